"""Report whether a Stripe Checkout Session is paid (GET or POST)."""

import os
from typing import Any, Mapping

from checkout_utils.config import ConfigError, StripeSettings
from checkout_utils.http import get_method, get_query, parse_json_body, text_field
from checkout_utils.logger import get_logger
from checkout_utils.result import Err, Ok, Result, to_response
from checkout_utils.stripe_client import is_paid, retrieve_checkout_session, session_rid

logger = get_logger("verify_session")


def handle(event: Mapping[str, Any], env: Mapping[str, str]) -> Result:
    method = get_method(event)
    if method not in ("GET", "POST"):
        return Err(405, "Method Not Allowed")

    session_id = text_field(get_query(event), "session_id")
    if not session_id and method == "POST":
        session_id = text_field(parse_json_body(event), "session_id", "sessionId")

    if not session_id:
        return Err(400, "Missing session_id.")

    fetched = retrieve_checkout_session(StripeSettings.from_env(env), session_id)
    if isinstance(fetched, Err):
        return fetched

    session = fetched.payload
    paid = is_paid(session)
    rid = session_rid(session)

    logger.info(
        "verify.session_checked",
        extra={"session_id": session_id, "rid": rid, "paid": paid},
    )

    return Ok(
        {
            "paid": paid,
            "session_id": session.get("id") or session_id,
            "rid": rid,
            "status": session.get("status"),
            "payment_status": session.get("payment_status"),
        }
    )


def lambda_handler(event, context):
    logger.info(
        "verify.lambda_start",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    try:
        result = handle(event, os.environ)
    except ConfigError as e:
        logger.error("verify.env_error", extra={"error": str(e)})
        result = Err(500, str(e))
    except Exception:
        logger.exception("verify.unexpected_error")
        result = Err(500, "Server error retrieving session.")

    return to_response(result)


handler = lambda_handler
