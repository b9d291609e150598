from typing import Any, Dict, Optional
from urllib.parse import quote

import stripe

from checkout_utils.config import StripeSettings
from checkout_utils.logger import get_logger
from checkout_utils.result import Err, Ok, Result

logger = get_logger("stripe_client")

# One attempt per call; failures surface to the caller unretried.
MAX_NETWORK_RETRIES = 0


def _as_dict(session: Any) -> Dict[str, Any]:
    if isinstance(session, dict):
        return session
    return session.to_dict()


def _relay_error(exc: stripe.StripeError, fallback: str) -> Err:
    """Upstream status and message when Stripe answered; 500 otherwise."""
    status = getattr(exc, "http_status", None)
    if not status:
        logger.error(
            "stripe.transport_error",
            extra={"error_type": type(exc).__name__},
        )
        return Err(500, fallback)

    logger.warning(
        "stripe.api_error",
        extra={"status": status, "code": getattr(exc, "code", None)},
    )
    return Err(status, exc.user_message or "Stripe error", details=exc.json_body)


def create_checkout_session(settings: StripeSettings, params: Dict[str, Any]) -> Result:
    """
    Create a Checkout Session.

    Returns Ok({"url", "sessionId"}) or an Err carrying the upstream status.
    """
    try:
        session = _as_dict(
            stripe.checkout.Session.create(
                api_key=settings.secret_key, max_network_retries=MAX_NETWORK_RETRIES, **params
            )
        )
    except stripe.StripeError as e:
        return _relay_error(e, "Server error creating session.")

    logger.info(
        "stripe.session_created",
        extra={"session_id": session.get("id"), "rid": params.get("client_reference_id")},
    )
    return Ok({"url": session.get("url"), "sessionId": session.get("id")})


def retrieve_checkout_session(settings: StripeSettings, session_id: str) -> Result:
    """Fetch a Checkout Session; Ok payload is the session as a dict."""
    try:
        session = _as_dict(
            stripe.checkout.Session.retrieve(
                session_id, api_key=settings.secret_key, max_network_retries=MAX_NETWORK_RETRIES
            )
        )
    except stripe.StripeError as e:
        return _relay_error(e, "Server error retrieving session.")

    return Ok(session)


def session_rid(session: Dict[str, Any]) -> str:
    """Tracking ID stored on the session: metadata first, then client reference."""
    metadata = session.get("metadata") or {}
    return metadata.get("rid") or session.get("client_reference_id") or ""


def is_paid(session: Dict[str, Any]) -> bool:
    return session.get("payment_status") == "paid"


def checkout_session_params(
    mode: str,
    origin: str,
    rid: str,
    line_item: Dict[str, Any],
    email: str = "",
    metadata: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Parameters for ``Session.create``. The request ID rides along as both
    metadata and client reference so the paid session can be reconciled.
    """
    rid_q = quote(rid, safe="")
    params: Dict[str, Any] = {
        "mode": mode,
        # Stripe substitutes {CHECKOUT_SESSION_ID} itself.
        "success_url": f"{origin}/paid.html?session_id={{CHECKOUT_SESSION_ID}}&rid={rid_q}",
        "cancel_url": f"{origin}/#start?canceled=1&rid={rid_q}",
        "metadata": {"rid": rid, **{k: v for k, v in (metadata or {}).items() if v}},
        "client_reference_id": rid,
        "line_items": [line_item],
    }
    if email:
        params["customer_email"] = email
    return params
