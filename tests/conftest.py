import json
from pathlib import Path

import pytest
import stripe

EVENTS_DIR = Path(__file__).parent / "events"

SECRET = "sk_test_dummy"


def load_event(name):
    with open(EVENTS_DIR / name, "r", encoding="utf-8") as f:
        return json.load(f)


class StubStripe:
    """Stands in for stripe.checkout.Session.create / retrieve."""

    def __init__(self):
        self.created = []
        self.retrieved = []
        self.session = {
            "id": "cs_test_a1b2c3",
            "url": "https://checkout.stripe.com/c/pay/cs_test_a1b2c3",
            "status": "complete",
            "payment_status": "paid",
            "metadata": {"rid": "VV-2024-00042"},
            "client_reference_id": "VV-2024-00042",
        }
        self.error = None

    def create(self, **params):
        self.created.append(params)
        if self.error:
            raise self.error
        return {"id": self.session["id"], "url": self.session["url"]}

    def retrieve(self, session_id, **params):
        self.retrieved.append({"id": session_id, **params})
        if self.error:
            raise self.error
        return self.session


@pytest.fixture
def stub_stripe(monkeypatch):
    stub = StubStripe()
    monkeypatch.setattr(stripe.checkout.Session, "create", stub.create, raising=True)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", stub.retrieve, raising=True)
    return stub


@pytest.fixture
def env():
    return {"STRIPE_SECRET_KEY": SECRET}


class CountingHttpClient(stripe.HTTPClient):
    """Transport that answers every Stripe request with a 503 and counts attempts."""

    name = "counting"

    def __init__(self):
        super().__init__()
        self.calls = []

    def request(self, method, url, headers, post_data=None):
        self.calls.append((method, url))
        return json.dumps({"error": {"message": "upstream down"}}), 503, {}

    def close(self):
        pass


@pytest.fixture
def unavailable_stripe(monkeypatch):
    client = CountingHttpClient()
    monkeypatch.setattr(stripe, "default_http_client", client)
    return client
