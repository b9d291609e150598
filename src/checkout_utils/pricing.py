"""
Line-item pricing for checkout sessions.

Tiered pricing mirrors the site's pricing table: an amount in cents (USD)
per vehicle tier and service level. A Stripe Price ID map can override
individual cells; anything else falls back to inline ``price_data``.
"""

from typing import Any, Dict, Optional, Union

from checkout_utils.config import CheckoutSettings
from checkout_utils.result import Err

PRICE_ID_PREFIX = "price_"
TIERED_CURRENCY = "usd"
MIN_UNIT_AMOUNT = 50

PRICING_CENTS: Dict[str, Dict[str, int]] = {
    "tier_a": {
        "brief_remote": 12900,
        "command_remote": 24900,
        "verify_ppi_inperson": 29900,
        "confirm_diag_inperson": 17900,
    },
    "tier_b": {
        "brief_remote": 16900,
        "command_remote": 32900,
        "verify_ppi_inperson": 39900,
        "confirm_diag_inperson": 22900,
    },
}

SERVICE_NAMES: Dict[str, str] = {
    "brief_remote": "VINvoyant Brief (Remote)",
    "command_remote": "VINvoyant Command (Remote)",
    "verify_ppi_inperson": "VINvoyant Verify (Mobile PPI)",
    "confirm_diag_inperson": "VINvoyant Confirm (Diag + Quote)",
}

DEFAULT_SERVICE_NAME = "VINvoyant Service"

LineItem = Dict[str, Any]


def tier_label(vehicle_tier: str) -> str:
    if vehicle_tier == "tier_b":
        return "Tier B — European/Exotic"
    return "Tier A — Import/Domestic"


def mapped_price_id(
    price_ids: Optional[Dict[str, Any]], vehicle_tier: str, service_level: str
) -> Optional[str]:
    """Override Price ID for a cell, if the map holds a valid ``price_...`` string."""
    if not price_ids:
        return None
    tier = price_ids.get(vehicle_tier)
    if not isinstance(tier, dict):
        return None
    candidate = tier.get(service_level)
    if isinstance(candidate, str) and candidate.startswith(PRICE_ID_PREFIX):
        return candidate
    return None


def tiered_line_item(
    settings: CheckoutSettings, vehicle_tier: str, service_level: str, rid: str
) -> Union[LineItem, Err]:
    if not vehicle_tier or not service_level:
        return Err(400, "Missing service/tier selection for tiered pricing.")

    price_id = mapped_price_id(settings.tiered_price_ids, vehicle_tier, service_level)
    if price_id:
        return {"price": price_id, "quantity": 1}

    unit_amount = PRICING_CENTS.get(vehicle_tier, {}).get(service_level)
    if not unit_amount:
        return Err(400, "Invalid or missing service/tier selection for tiered pricing.")

    return {
        "price_data": {
            "currency": TIERED_CURRENCY,
            "unit_amount": unit_amount,
            "product_data": {
                "name": SERVICE_NAMES.get(service_level, DEFAULT_SERVICE_NAME),
                "description": f"{tier_label(vehicle_tier)} • Request ID {rid}",
            },
        },
        "quantity": 1,
    }


def fixed_line_item(settings: CheckoutSettings, example_amount: int) -> Union[LineItem, Err]:
    """A configured Price ID, else an inline price from the environment."""
    if settings.price_id:
        return {"price": settings.price_id, "quantity": 1}

    if settings.unit_amount is None or settings.unit_amount < MIN_UNIT_AMOUNT:
        return Err(
            500,
            f"Invalid UNIT_AMOUNT env var (must be cents, e.g. {example_amount}).",
        )

    return {
        "price_data": {
            "currency": settings.currency,
            "unit_amount": settings.unit_amount,
            "product_data": {
                "name": settings.product_name,
                "description": settings.product_description,
            },
        },
        "quantity": 1,
    }
