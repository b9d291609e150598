"""
Per-invocation configuration.

Every handler builds its settings once from a mapping (``os.environ`` in
production, a plain dict in tests) and passes them down explicitly. Nothing
here is cached between invocations.
"""

import json
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from checkout_utils.logger import get_logger
from checkout_utils.secrets import resolve_stripe_secret

logger = get_logger("config")

DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0

_DISABLED = re.compile(r"^(0|false|no|off)$", re.IGNORECASE)


class ConfigError(RuntimeError):
    """A required setting is missing or unusable. Handlers answer 500."""


def _env(env: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if env is None else env


def _parse_int(raw: str) -> Optional[int]:
    try:
        return int(raw.strip())
    except (AttributeError, ValueError):
        return None


def http_timeout(env: Optional[Mapping[str, str]] = None) -> float:
    raw = _env(env).get("HTTP_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        msg = f"Invalid HTTP_TIMEOUT_SECONDS='{raw}'. Must be a number of seconds."
        logger.error(msg)
        raise ConfigError(msg)
    if value <= 0:
        raise ConfigError("HTTP_TIMEOUT_SECONDS must be positive.")
    return value


@dataclass(frozen=True)
class StripeSettings:
    secret_key: str

    def __repr__(self) -> str:
        return "StripeSettings(secret_key='***')"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "StripeSettings":
        secret = resolve_stripe_secret(_env(env))
        if not secret:
            raise ConfigError("Missing STRIPE_SECRET_KEY in environment variables.")
        return cls(secret_key=secret)


@dataclass(frozen=True)
class SiteSettings:
    url: Optional[str] = None
    deploy_prime_url: Optional[str] = None

    @property
    def origin(self) -> Optional[str]:
        return self.url or self.deploy_prime_url or None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "SiteSettings":
        env = _env(env)
        return cls(
            url=(env.get("URL") or "").strip() or None,
            deploy_prime_url=(env.get("DEPLOY_PRIME_URL") or "").strip() or None,
        )


@dataclass(frozen=True)
class InlinePriceDefaults:
    unit_amount: str
    product_name: str
    product_description: str


LEGACY_INLINE_DEFAULTS = InlinePriceDefaults(
    unit_amount="9900",
    product_name="VINvoyant Intake",
    product_description="Concierge Vehicle Intelligence Intake",
)

TIERED_FALLBACK_DEFAULTS = InlinePriceDefaults(
    unit_amount="12900",
    product_name="VINvoyant Brief (Legacy)",
    product_description="Legacy fixed-price checkout (tiered pricing disabled)",
)


def _parse_price_map(raw: str) -> Optional[Dict[str, Any]]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("config.invalid_tiered_price_ids")
        return None
    return data if isinstance(data, dict) else None


@dataclass(frozen=True)
class CheckoutSettings:
    mode: str = "payment"
    enable_tiered: bool = True
    tiered_price_ids: Optional[Dict[str, Any]] = None
    price_id: str = ""
    # None when UNIT_AMOUNT is not an integer; pricing reports it.
    unit_amount: Optional[int] = None
    currency: str = "usd"
    product_name: str = ""
    product_description: str = ""

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        defaults: InlinePriceDefaults = LEGACY_INLINE_DEFAULTS,
    ) -> "CheckoutSettings":
        env = _env(env)
        return cls(
            mode=env.get("CHECKOUT_MODE") or "payment",
            enable_tiered=not _DISABLED.match(str(env.get("ENABLE_TIERED_PRICING") or "").strip()),
            tiered_price_ids=_parse_price_map(env.get("STRIPE_TIERED_PRICE_IDS", "")),
            price_id=env.get("STRIPE_PRICE_ID") or "",
            unit_amount=_parse_int(env.get("UNIT_AMOUNT") or defaults.unit_amount),
            currency=(env.get("CURRENCY") or "usd").lower(),
            product_name=env.get("PRODUCT_NAME") or defaults.product_name,
            product_description=env.get("PRODUCT_DESCRIPTION") or defaults.product_description,
        )
