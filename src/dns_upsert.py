"""
Apply Stripe "custom domain" DNS records in Netlify DNS.

Requirements:
  • NETLIFY_AUTH_TOKEN must be set (or pass --auth-token).
  • The domain's DNS zone must be hosted on Netlify DNS.

The TXT value (ACME challenge) is sensitive and is never printed or logged.

Exit codes: 0 ok / nothing to do, 1 unexpected error, 2 invalid input or a
conflicting record without --force, 3 zone not found.
"""

import argparse
import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from checkout_utils.config import ConfigError, http_timeout
from checkout_utils.logger import get_logger

logger = get_logger("dns_upsert")

NETLIFY_API_BASE = "https://api.netlify.com/api/v1"
USER_AGENT = "netlify-agent-dns-helper"
ERROR_BODY_LIMIT = 200

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID = 2
EXIT_ZONE_NOT_FOUND = 3

DEFAULT_ZONE = "vinvoyant.com"
DEFAULT_CNAME_HOST = "pay"
DEFAULT_CNAME_TARGET = "hosted-checkout.stripecdn.com"
DEFAULT_TXT_HOST = "_acme-challenge.pay"
DEFAULT_TTL = "300"


class DnsApiError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NetlifyDnsClient:
    """Minimal Netlify DNS REST client. One attempt per call."""

    def __init__(self, auth_token: str, base_url: str = NETLIFY_API_BASE, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {auth_token}",
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            }
        )

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        logger.debug("dns.request", extra={"method": method, "path": path})
        resp = self.session.request(method, f"{self.base_url}{path}", json=body, timeout=self.timeout)

        if not resp.ok:
            # A TXT create can echo the challenge value back; never carry it.
            text = "" if body and body.get("type") == "TXT" else (resp.text or "")[:ERROR_BODY_LIMIT]
            message = f"{resp.status_code} {resp.reason}"
            if text:
                message = f"{message}: {text}"
            raise DnsApiError(message, status=resp.status_code)

        if not resp.content:
            return None
        return resp.json()

    def list_zones(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/dns_zones") or []

    def list_records(self, zone_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/dns_zones/{zone_id}/dns_records") or []

    def create_record(self, zone_id: str, record: Dict[str, Any]) -> Any:
        return self._request("POST", f"/dns_zones/{zone_id}/dns_records", body=record)

    def delete_record(self, zone_id: str, record_id: str) -> None:
        self._request("DELETE", f"/dns_zones/{zone_id}/dns_records/{record_id}")


@dataclass(frozen=True)
class DnsRecord:
    type: str
    hostname: str
    value: str
    ttl: int

    def as_payload(self) -> Dict[str, Any]:
        return {"type": self.type, "hostname": self.hostname, "value": self.value, "ttl": self.ttl}


class UpsertAction(Enum):
    UNCHANGED = "unchanged"
    BLOCKED = "blocked"
    REPLACE = "replace"
    CREATE = "create"


@dataclass(frozen=True)
class UpsertPlan:
    action: UpsertAction
    to_delete: List[Dict[str, Any]]


def normalize_zone_name(zone_name: str) -> str:
    return zone_name[:-1] if zone_name.endswith(".") else zone_name


def redact_value(record_type: str, value: str) -> str:
    if record_type == "TXT":
        return "(redacted)"
    return value


def plan_upsert(existing: Sequence[Mapping[str, Any]], desired: DnsRecord, force: bool) -> UpsertPlan:
    """
    Decide what to do with ``desired`` given the zone's current records.

    Identity is (type, hostname); TTL is ignored both for matching and for
    deciding whether the record is already correct.
    """
    matches = [
        r
        for r in existing
        if str(r.get("type")).upper() == desired.type and str(r.get("hostname")) == desired.hostname
    ]

    if any(str(r.get("value")) == desired.value for r in matches):
        return UpsertPlan(UpsertAction.UNCHANGED, [])
    if matches and not force:
        return UpsertPlan(UpsertAction.BLOCKED, [])
    if matches:
        return UpsertPlan(UpsertAction.REPLACE, matches)
    return UpsertPlan(UpsertAction.CREATE, [])


def upsert_record(client: NetlifyDnsClient, zone_id: str, desired: DnsRecord, force: bool) -> UpsertAction:
    plan = plan_upsert(client.list_records(zone_id), desired, force)
    shown = redact_value(desired.type, desired.value)

    if plan.action is UpsertAction.UNCHANGED:
        print(f"OK: {desired.type} {desired.hostname} already set to {shown}")
        return plan.action

    if plan.action is UpsertAction.BLOCKED:
        print(
            f"Blocked: {desired.type} {desired.hostname} exists with a different value. "
            "Re-run with --force to replace it.",
            file=sys.stderr,
        )
        return plan.action

    if plan.action is UpsertAction.REPLACE:
        for record in plan.to_delete:
            client.delete_record(zone_id, record["id"])
        print(f"Replaced: {desired.type} {desired.hostname} (existing records removed)")

    client.create_record(zone_id, desired.as_payload())
    logger.info(
        "dns.record_created",
        extra={"type": desired.type, "hostname": desired.hostname, "replaced": len(plan.to_delete)},
    )
    print(f"Created: {desired.type} {desired.hostname} -> {shown}")
    return plan.action


@dataclass(frozen=True)
class DnsSettings:
    auth_token: str
    zone: str
    cname: DnsRecord
    txt: DnsRecord
    force: bool

    def __repr__(self) -> str:
        return f"DnsSettings(zone={self.zone!r}, force={self.force!r})"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dns-stripe-pay",
        description="Apply Stripe custom-domain DNS records (CNAME + ACME TXT) in Netlify DNS.",
    )
    parser.add_argument("--auth-token", help="Netlify auth token (or set NETLIFY_AUTH_TOKEN)")
    parser.add_argument("--zone", default=DEFAULT_ZONE, help=f"DNS zone name (default: {DEFAULT_ZONE})")
    parser.add_argument("--cname-host", default=DEFAULT_CNAME_HOST, help=f"CNAME host (default: {DEFAULT_CNAME_HOST})")
    parser.add_argument(
        "--cname-target",
        default=DEFAULT_CNAME_TARGET,
        help=f"CNAME target (default: {DEFAULT_CNAME_TARGET})",
    )
    parser.add_argument("--txt-host", default=DEFAULT_TXT_HOST, help=f"TXT host (default: {DEFAULT_TXT_HOST})")
    parser.add_argument("--txt-value", help="TXT value (or set STRIPE_ACME_CHALLENGE_VALUE)")
    parser.add_argument("--ttl", default=DEFAULT_TTL, help=f"TTL in seconds (default: {DEFAULT_TTL})")
    parser.add_argument("--force", action="store_true", help="Replace existing differing records")
    return parser


def load_settings(args: argparse.Namespace, env: Mapping[str, str]) -> DnsSettings:
    auth_token = args.auth_token or env.get("NETLIFY_AUTH_TOKEN")
    if not auth_token:
        raise ConfigError("Missing Netlify auth token. Set NETLIFY_AUTH_TOKEN or pass --auth-token.")

    try:
        ttl = int(str(args.ttl).strip())
    except ValueError:
        ttl = 0
    if ttl <= 0:
        raise ConfigError("Invalid --ttl value (must be a positive integer).")

    txt_value = args.txt_value or env.get("STRIPE_ACME_CHALLENGE_VALUE")
    if not txt_value:
        raise ConfigError("Missing TXT value. Set STRIPE_ACME_CHALLENGE_VALUE or pass --txt-value.")

    return DnsSettings(
        auth_token=auth_token,
        zone=normalize_zone_name(args.zone),
        cname=DnsRecord("CNAME", args.cname_host, args.cname_target, ttl),
        txt=DnsRecord("TXT", args.txt_host, txt_value, ttl),
        force=args.force,
    )


def run(settings: DnsSettings, client: NetlifyDnsClient) -> int:
    zones = client.list_zones()
    zone = next(
        (z for z in zones if normalize_zone_name(str(z.get("name"))) == settings.zone),
        None,
    )
    if zone is None:
        print(
            f"DNS zone not found in Netlify DNS: {settings.zone}. The domain's DNS must be hosted "
            "on Netlify DNS to apply records from this environment.",
            file=sys.stderr,
        )
        return EXIT_ZONE_NOT_FOUND

    # Each record is applied on its own; a blocked CNAME still lets the TXT through.
    actions = [
        upsert_record(client, zone["id"], record, settings.force)
        for record in (settings.cname, settings.txt)
    ]

    if UpsertAction.BLOCKED in actions:
        return EXIT_INVALID
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None, env: Optional[Mapping[str, str]] = None) -> int:
    env = os.environ if env is None else env
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args, env)
        client = NetlifyDnsClient(settings.auth_token, timeout=http_timeout(env))
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return EXIT_INVALID

    try:
        return run(settings, client)
    except (DnsApiError, requests.RequestException) as e:
        print(str(e), file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
