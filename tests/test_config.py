import json
import logging

import pytest

from checkout_utils import secrets
from checkout_utils.config import (
    LEGACY_INLINE_DEFAULTS,
    TIERED_FALLBACK_DEFAULTS,
    CheckoutSettings,
    ConfigError,
    SiteSettings,
    StripeSettings,
    http_timeout,
)
from checkout_utils.http import get_method, is_valid_request_id, origin_from_headers, parse_json_body
from checkout_utils.logger import JsonFormatter
from checkout_utils.pricing import PRICING_CENTS, mapped_price_id, tiered_line_item
from checkout_utils.result import Err, Ok, to_response


class StubSecretsManager:
    def __init__(self, secret_string):
        self.secret_string = secret_string
        self.requested = []

    def get_secret_value(self, SecretId):
        self.requested.append(SecretId)
        return {"SecretString": self.secret_string}


class FakeBoto3:
    def __init__(self, stub):
        self.stub = stub
        self.regions = []

    def client(self, name, region_name=None):
        assert name == "secretsmanager"
        self.regions.append(region_name)
        return self.stub


def test_stripe_secret_from_environment():
    settings = StripeSettings.from_env({"STRIPE_SECRET_KEY": " sk_test_env "})
    assert settings.secret_key == "sk_test_env"
    assert "sk_test_env" not in repr(settings)


def test_stripe_secret_missing():
    with pytest.raises(ConfigError, match="Missing STRIPE_SECRET_KEY"):
        StripeSettings.from_env({})


def test_stripe_secret_from_secrets_manager(monkeypatch):
    stub = StubSecretsManager(json.dumps({"secret_key": "sk_test_sm"}))
    fake = FakeBoto3(stub)
    monkeypatch.setattr(secrets, "boto3", fake, raising=True)

    settings = StripeSettings.from_env({"STRIPE_SECRET_NAME": "vinvoyant/stripe", "AWS_REGION": "us-west-2"})

    assert settings.secret_key == "sk_test_sm"
    assert stub.requested == ["vinvoyant/stripe"]
    assert fake.regions == ["us-west-2"]


def test_secrets_manager_without_key_field(monkeypatch):
    monkeypatch.setattr(secrets, "boto3", FakeBoto3(StubSecretsManager(json.dumps({"other": "x"}))))

    with pytest.raises(ConfigError):
        StripeSettings.from_env({"STRIPE_SECRET_NAME": "vinvoyant/stripe"})


def test_secrets_manager_empty_payload(monkeypatch):
    monkeypatch.setattr(secrets, "boto3", FakeBoto3(StubSecretsManager("")))

    with pytest.raises(RuntimeError, match="no SecretString"):
        StripeSettings.from_env({"STRIPE_SECRET_NAME": "vinvoyant/stripe"})


def test_checkout_settings_defaults():
    legacy = CheckoutSettings.from_env({}, defaults=LEGACY_INLINE_DEFAULTS)
    tiered = CheckoutSettings.from_env({}, defaults=TIERED_FALLBACK_DEFAULTS)

    assert legacy.enable_tiered is True
    assert legacy.mode == "payment"
    assert legacy.unit_amount == 9900
    assert legacy.product_name == "VINvoyant Intake"
    assert tiered.unit_amount == 12900
    assert tiered.tiered_price_ids is None


@pytest.mark.parametrize("flag, enabled", [("", True), ("1", True), ("yes", True), ("Off", False), ("FALSE", False)])
def test_tiered_toggle(flag, enabled):
    assert CheckoutSettings.from_env({"ENABLE_TIERED_PRICING": flag}).enable_tiered is enabled


def test_site_origin_order():
    assert SiteSettings.from_env({"URL": "https://a", "DEPLOY_PRIME_URL": "https://b"}).origin == "https://a"
    assert SiteSettings.from_env({"DEPLOY_PRIME_URL": "https://b"}).origin == "https://b"
    assert SiteSettings.from_env({}).origin is None


def test_http_timeout():
    assert http_timeout({}) == 10.0
    assert http_timeout({"HTTP_TIMEOUT_SECONDS": "2.5"}) == 2.5
    with pytest.raises(ConfigError):
        http_timeout({"HTTP_TIMEOUT_SECONDS": "soon"})


def test_pricing_example_from_table():
    item = tiered_line_item(CheckoutSettings(), "tier_a", "brief_remote", "VV-2024-00042")

    assert item["price_data"]["unit_amount"] == PRICING_CENTS["tier_a"]["brief_remote"] == 12900
    assert item["price_data"]["currency"] == "usd"


def test_mapped_price_id_requires_prefix():
    price_ids = {"tier_a": {"brief_remote": "price_abc", "command_remote": 42}, "tier_b": "price_x"}

    assert mapped_price_id(price_ids, "tier_a", "brief_remote") == "price_abc"
    assert mapped_price_id(price_ids, "tier_a", "command_remote") is None
    assert mapped_price_id(price_ids, "tier_b", "brief_remote") is None
    assert mapped_price_id(None, "tier_a", "brief_remote") is None


@pytest.mark.parametrize(
    "rid, valid",
    [("VV-2024-00042", True), ("VV-0000-00000", True), ("VV-2024-00042\n", False), ("VV-٢٠٢٤-00042", False)],
)
def test_request_id_pattern(rid, valid):
    assert is_valid_request_id(rid) is valid


def test_origin_from_headers():
    assert origin_from_headers({"origin": "https://vinvoyant.com"}) == "https://vinvoyant.com"
    assert origin_from_headers({"referer": "https://vinvoyant.com:8443/a/b?c=1"}) == "https://vinvoyant.com:8443"
    assert origin_from_headers({"referrer": "/relative"}) is None
    assert origin_from_headers({}) is None


def test_event_helpers():
    assert get_method({"requestContext": {"http": {"method": "post"}}}) == "POST"
    assert get_method({}) == ""
    assert parse_json_body({"body": "not json"}) == {}
    assert parse_json_body({"body": "[1, 2]"}) == {}
    assert parse_json_body({"body": {"a": 1}}) == {"a": 1}


def test_to_response_branches():
    ok = to_response(Ok({"paid": True}))
    err = to_response(Err(402, "Payment not verified."))

    assert ok["statusCode"] == 200 and json.loads(ok["body"]) == {"paid": True}
    assert err["statusCode"] == 402 and json.loads(err["body"]) == {"error": "Payment not verified."}
    with pytest.raises(TypeError):
        to_response({"statusCode": 200})


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("checkout", logging.INFO, __file__, 1, "checkout.session_created", (), None)
    record.session_id = "cs_test_a1b2c3"

    line = json.loads(JsonFormatter().format(record))

    assert line["message"] == "checkout.session_created"
    assert line["level"] == "INFO"
    assert line["session_id"] == "cs_test_a1b2c3"


def test_package_metadata():
    import checkout_utils

    assert checkout_utils.__version__ == "1.0.0"
    assert not hasattr(checkout_utils, "__license__")


def test_get_method_with_null_http_block():
    assert get_method({"requestContext": {"http": None}}) == ""
    assert get_method({"requestContext": None, "httpMethod": "get"}) == "GET"
