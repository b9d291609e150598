"""
Create a Stripe Checkout Session at a single fixed price (POST).

Pricing comes from STRIPE_PRICE_ID, or inline from UNIT_AMOUNT (cents),
CURRENCY, PRODUCT_NAME and PRODUCT_DESCRIPTION.
"""

import os
from typing import Any, Mapping

from checkout_utils.config import (
    LEGACY_INLINE_DEFAULTS,
    CheckoutSettings,
    ConfigError,
    SiteSettings,
    StripeSettings,
)
from checkout_utils.http import (
    get_headers,
    get_method,
    is_valid_request_id,
    origin_from_headers,
    parse_json_body,
    text_field,
)
from checkout_utils.logger import get_logger
from checkout_utils.pricing import fixed_line_item
from checkout_utils.result import Err, Result, to_response
from checkout_utils.stripe_client import checkout_session_params, create_checkout_session

logger = get_logger("create_checkout_session_legacy")


def handle(event: Mapping[str, Any], env: Mapping[str, str]) -> Result:
    if get_method(event) != "POST":
        return Err(405, "Method Not Allowed")

    payload = parse_json_body(event)
    rid = text_field(payload, "rid")
    email = text_field(payload, "email")

    origin = origin_from_headers(get_headers(event)) or SiteSettings.from_env(env).origin
    if not origin:
        return Err(400, "Could not determine site origin.")
    if not is_valid_request_id(rid):
        logger.warning("checkout_legacy.invalid_rid", extra={"rid_present": bool(rid)})
        return Err(400, "Invalid or missing Request ID.")

    settings = CheckoutSettings.from_env(env, defaults=LEGACY_INLINE_DEFAULTS)
    line_item = fixed_line_item(settings, example_amount=9900)
    if isinstance(line_item, Err):
        logger.error("checkout_legacy.pricing_misconfigured", extra={"error": line_item.message})
        return line_item

    params = checkout_session_params(settings.mode, origin, rid, line_item, email=email)
    return create_checkout_session(StripeSettings.from_env(env), params)


def lambda_handler(event, context):
    logger.info(
        "checkout_legacy.lambda_start",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    try:
        result = handle(event, os.environ)
    except ConfigError as e:
        logger.error("checkout_legacy.env_error", extra={"error": str(e)})
        result = Err(500, str(e))
    except Exception:
        logger.exception("checkout_legacy.unexpected_error")
        result = Err(500, "Server error creating session.")

    return to_response(result)


handler = lambda_handler
