"""Helpers for reading Netlify / API Gateway style HTTP events."""

import json
import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit

from checkout_utils.logger import get_logger

logger = get_logger("http")

REQUEST_ID_PATTERN = re.compile(r"VV-[0-9]{4}-[0-9]{5}")


def get_method(event: Mapping[str, Any]) -> str:
    # Netlify / REST API events carry httpMethod; HTTP API v2 nests it.
    method = event.get("httpMethod") or (
        ((event.get("requestContext") or {}).get("http") or {}).get("method")
    )
    return str(method or "").upper()


def get_headers(event: Mapping[str, Any]) -> Dict[str, str]:
    """Lower-cased header names."""
    headers = event.get("headers") or {}
    return {str(k).lower(): v for k, v in headers.items() if v is not None}


def get_query(event: Mapping[str, Any]) -> Dict[str, str]:
    return dict(event.get("queryStringParameters") or {})


def parse_json_body(event: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Extract the JSON body from the event.

    An empty or unparseable body yields ``{}``: callers validate the fields
    they need and answer 400 themselves.
    """
    body = event.get("body")

    if isinstance(body, dict):
        return body
    if not body:
        return {}

    try:
        payload = json.loads(body)
    except (TypeError, ValueError):
        logger.warning("http.invalid_json", extra={"body_length": len(str(body))})
        return {}

    return payload if isinstance(payload, dict) else {}


def text_field(payload: Mapping[str, Any], *keys: str) -> str:
    """First non-empty value among ``keys``, stringified and stripped."""
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return value
    return ""


def origin_from_headers(headers: Mapping[str, str]) -> Optional[str]:
    origin = headers.get("origin")
    if origin:
        return origin

    referer = headers.get("referer") or headers.get("referrer")
    if not referer:
        return None

    parts = urlsplit(referer)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def is_valid_request_id(rid: str) -> bool:
    return bool(rid) and REQUEST_ID_PATTERN.fullmatch(rid) is not None
