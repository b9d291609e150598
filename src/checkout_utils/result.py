import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class Ok:
    payload: Dict[str, Any]
    status: int = 200


@dataclass(frozen=True)
class Err:
    status: int
    message: str
    details: Optional[Any] = field(default=None, compare=False)

    def body(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            out["details"] = self.details
        return out


Result = Union[Ok, Err]


def json_response(status: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }


def to_response(result: Result) -> Dict[str, Any]:
    """Render either branch of a handler result as an HTTP response."""
    if isinstance(result, Ok):
        return json_response(result.status, result.payload)
    if isinstance(result, Err):
        return json_response(result.status, result.body())
    raise TypeError(f"Unexpected handler result: {result!r}")
