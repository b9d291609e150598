"""
Create a Stripe Checkout Session with tiered pricing (POST).

Tiered pricing is on unless ENABLE_TIERED_PRICING is 0/false/no/off; with it
off, the fixed legacy pricing (STRIPE_PRICE_ID or inline UNIT_AMOUNT) applies.
"""

import os
from typing import Any, Mapping

from checkout_utils.config import (
    TIERED_FALLBACK_DEFAULTS,
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
from checkout_utils.pricing import fixed_line_item, tiered_line_item
from checkout_utils.result import Err, Result, to_response
from checkout_utils.stripe_client import checkout_session_params, create_checkout_session

logger = get_logger("create_checkout_session")


def handle(event: Mapping[str, Any], env: Mapping[str, str]) -> Result:
    if get_method(event) != "POST":
        return Err(405, "Method Not Allowed")

    payload = parse_json_body(event)
    rid = text_field(payload, "rid")
    email = text_field(payload, "email")
    service_level = text_field(payload, "service_level", "serviceLevel")
    vehicle_tier = text_field(payload, "vehicle_tier", "vehicleTier")

    origin = origin_from_headers(get_headers(event)) or SiteSettings.from_env(env).origin
    if not origin:
        return Err(400, "Could not determine site origin.")
    if not is_valid_request_id(rid):
        logger.warning("checkout.invalid_rid", extra={"rid_present": bool(rid)})
        return Err(400, "Invalid or missing Request ID.")

    settings = CheckoutSettings.from_env(env, defaults=TIERED_FALLBACK_DEFAULTS)
    if settings.enable_tiered:
        line_item = tiered_line_item(settings, vehicle_tier, service_level, rid)
    else:
        line_item = fixed_line_item(settings, example_amount=12900)
    if isinstance(line_item, Err):
        logger.warning(
            "checkout.pricing_rejected",
            extra={
                "rid": rid,
                "vehicle_tier": vehicle_tier,
                "service_level": service_level,
                "error": line_item.message,
            },
        )
        return line_item

    stripe_settings = StripeSettings.from_env(env)

    params = checkout_session_params(
        settings.mode,
        origin,
        rid,
        line_item,
        email=email,
        metadata={"service_level": service_level, "vehicle_tier": vehicle_tier},
    )
    return create_checkout_session(stripe_settings, params)


def lambda_handler(event, context):
    logger.info(
        "checkout.lambda_start",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    try:
        result = handle(event, os.environ)
    except ConfigError as e:
        # Misconfiguration is a 500, not a 4xx
        logger.error("checkout.env_error", extra={"error": str(e)})
        result = Err(500, str(e))
    except Exception:
        logger.exception("checkout.unexpected_error")
        result = Err(500, "Server error creating session.")

    return to_response(result)


# Netlify Functions entry point
handler = lambda_handler
