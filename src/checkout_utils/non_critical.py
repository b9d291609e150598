from dataclasses import dataclass
from typing import Any, Callable, Optional

from checkout_utils.logger import get_logger

logger = get_logger("non_critical")


@dataclass(frozen=True)
class DependencyOutcome:
    name: str
    ok: bool
    error: Optional[str] = None


def call_non_critical(name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> DependencyOutcome:
    """
    Run ``fn`` once. A failure is logged as ``<name>_failed`` and reported in
    the outcome, never raised: the caller's primary response must not depend
    on this call.
    """
    try:
        fn(*args, **kwargs)
    except Exception as e:
        logger.warning(
            f"{name}_failed",
            extra={"dependency": name, "error_type": type(e).__name__, "error": str(e)},
        )
        return DependencyOutcome(name=name, ok=False, error=type(e).__name__)

    logger.info(f"{name}_ok", extra={"dependency": name})
    return DependencyOutcome(name=name, ok=True)
