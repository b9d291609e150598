"""
Confirm a paid Checkout Session and relay the intake form (POST).

The session must be paid and carry the caller's request ID. The intake fields
are then posted to the site's Netlify form endpoint; that forward is
best-effort and never changes the response once payment is verified.
"""

import os
from typing import Any, List, Mapping, Tuple

import requests

from checkout_utils.config import ConfigError, SiteSettings, StripeSettings, http_timeout
from checkout_utils.http import get_headers, get_method, origin_from_headers, parse_json_body, text_field
from checkout_utils.logger import get_logger
from checkout_utils.non_critical import call_non_critical
from checkout_utils.result import Err, Ok, Result, to_response
from checkout_utils.stripe_client import is_paid, retrieve_checkout_session, session_rid

logger = get_logger("submit_intake")

FORM_NAME = "vinvoyant_intake"
FORM_PATH = "/success.html"

# (form field, payload keys checked in order)
INTAKE_FIELDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("source", ("source",)),
    ("name", ("name",)),
    ("email", ("email",)),
    ("vin", ("vin",)),
    ("goal", ("goal",)),
    ("service_level", ("service_level", "serviceLevel")),
    ("vehicle_tier", ("vehicle_tier", "vehicleTier")),
    ("symptoms", ("symptoms",)),
    ("dtc_codes", ("dtc_codes",)),
    ("evidence_links", ("evidence_links",)),
]

FormData = List[Tuple[str, str]]


def _form_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_form_value(v) for v in value)
    return str(value)


def _append(form: FormData, key: str, value: Any) -> None:
    text = _form_value(value)
    if text.strip():
        form.append((key, text))


def build_intake_form(payload: Mapping[str, Any], request_id: str, session_id: str) -> FormData:
    """Flatten the allow-listed intake fields into Netlify form pairs."""
    form: FormData = [("form-name", FORM_NAME)]

    for field, keys in INTAKE_FIELDS:
        value = next((payload.get(k) for k in keys if payload.get(k) not in (None, "")), None)
        _append(form, field, value)
        if field == "source":
            _append(form, "request_id", request_id)

    deliverables = payload.get("deliverables")
    if isinstance(deliverables, list):
        for item in deliverables:
            _append(form, "deliverables", item)

    form.append(("paid_confirmed", "true"))
    form.append(("payment_reference", session_id))
    _append(form, "session_id", session_id)
    return form


def forward_intake(origin: str, form: FormData, env: Mapping[str, str]) -> None:
    # Resolved here so a bad HTTP_TIMEOUT_SECONDS only fails the forward.
    timeout = http_timeout(env)
    resp = requests.post(
        f"{origin}{FORM_PATH}",
        data=form,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=timeout,
    )
    resp.raise_for_status()


def handle(event: Mapping[str, Any], env: Mapping[str, str]) -> Result:
    if get_method(event) != "POST":
        return Err(405, "Method Not Allowed")

    payload = parse_json_body(event)
    session_id = text_field(payload, "session_id", "sessionId")
    request_id = text_field(payload, "request_id", "requestId")

    if not session_id:
        return Err(400, "Missing session_id.")
    if not request_id:
        return Err(400, "Missing request_id.")

    fetched = retrieve_checkout_session(StripeSettings.from_env(env), session_id)
    if isinstance(fetched, Err):
        return fetched

    session = fetched.payload
    if not is_paid(session):
        logger.warning(
            "intake.payment_not_verified",
            extra={"session_id": session_id, "payment_status": session.get("payment_status")},
        )
        return Err(402, "Payment not verified.")

    # A paid session must not vouch for a different request.
    stored_rid = session_rid(session)
    if stored_rid and stored_rid != request_id:
        logger.warning(
            "intake.rid_mismatch",
            extra={"session_id": session_id, "request_id": request_id},
        )
        return Err(400, "Request ID did not match the paid session.")

    origin = SiteSettings.from_env(env).origin or origin_from_headers(get_headers(event))
    if origin:
        reference = session.get("id") or session_id
        call_non_critical(
            "intake.forward",
            forward_intake,
            origin,
            build_intake_form(payload, request_id, reference),
            env,
        )
    else:
        logger.warning("intake.no_site_origin", extra={"request_id": request_id})

    logger.info("intake.confirmed", extra={"session_id": session_id, "request_id": request_id})
    return Ok({"ok": True, "rid": request_id})


def lambda_handler(event, context):
    logger.info(
        "intake.lambda_start",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    try:
        result = handle(event, os.environ)
    except ConfigError as e:
        logger.error("intake.env_error", extra={"error": str(e)})
        result = Err(500, str(e))
    except Exception:
        logger.exception("intake.unexpected_error")
        result = Err(500, "Server error confirming payment.")

    return to_response(result)


handler = lambda_handler
