import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from core.exceptions import DependencyUnavailable
from integrations.billing import BillingClient
from models.subscription import Subscription
from models.user import User
from tests.conftest import WEBHOOK_SECRET, register


def _signed(payload: dict, secret=WEBHOOK_SECRET):
    body = json.dumps(payload)
    timestamp = int(time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.{body}".encode(), hashlib.sha256).hexdigest()
    return body, {"stripe-signature": f"t={timestamp},v1={digest}", "content-type": "application/json"}


def _subscription_event(kind, user_id, status="active", sub_id="sub_123"):
    return {
        "id": "evt_1",
        "type": kind,
        "data": {"object": {
            "id": sub_id,
            "customer": "cus_123",
            "status": status,
            "metadata": {"userId": str(user_id)},
            "items": {"data": [{"price": {"id": "price_pro", "unit_amount": 1099}}]},
            "current_period_start": 1767225600,
            "current_period_end": 1769904000,
            "trial_end": None,
            "canceled_at": None,
        }},
    }


def test_new_user_is_on_active_trial(client):
    _, headers = register(client, "trial@example.com")
    status = client.get("/api/subscription/status", headers=headers).json()
    assert status["status"] == "trial"
    assert status["is_trial"] is True
    assert status["trial_days_left"] == 30
    assert status["is_active"] is True


def test_checkout_creates_customer_once(client, db, monkeypatch):
    created_customers = []
    sessions = []

    def create_customer(**kwargs):
        created_customers.append(kwargs)
        return SimpleNamespace(id="cus_new")

    def create_session(**kwargs):
        sessions.append(kwargs)
        return SimpleNamespace(id=f"cs_{len(sessions)}", url="https://checkout.stripe.com/pay/cs")

    monkeypatch.setattr(stripe.Customer, "create", create_customer)
    monkeypatch.setattr(stripe.checkout.Session, "create", create_session)

    user, headers = register(client, "buyer@example.com", "Bea Buyer")
    first = client.post("/api/subscription/create-checkout", headers=headers)
    assert first.status_code == 200
    assert first.json()["url"] == "https://checkout.stripe.com/pay/cs"
    client.post("/api/subscription/create-checkout", headers=headers)

    assert len(created_customers) == 1
    assert created_customers[0]["metadata"] == {"userId": str(user["id"])}
    assert [s["customer"] for s in sessions] == ["cus_new", "cus_new"]
    assert sessions[0]["subscription_data"]["trial_period_days"] == 30
    assert db.query(User).filter_by(id=user["id"]).one().stripe_customer_id == "cus_new"


def test_portal_needs_a_customer(client):
    _, headers = register(client, "nobody@example.com")
    response = client.post("/api/subscription/create-portal", headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "No subscription found"


def test_unconfigured_billing():
    billing = BillingClient(None, None)
    with pytest.raises(DependencyUnavailable):
        billing.create_checkout_session("cus_1", 1)
    with pytest.raises(DependencyUnavailable):
        billing.construct_event(b"{}", "t=1,v1=abc")


def test_webhook_rejects_bad_signature(client):
    body, headers = _signed({"type": "customer.subscription.created"}, secret="whsec_other")
    response = client.post("/api/subscription/webhook", content=body, headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid webhook signature"


def test_webhook_updates_user_and_subscription(client, db):
    user, _ = register(client, "sub@example.com")

    body, headers = _signed(_subscription_event("customer.subscription.updated", user["id"]))
    response = client.post("/api/subscription/webhook", content=body, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"received": True}

    row = db.query(Subscription).filter_by(stripe_subscription_id="sub_123").one()
    assert (row.user_id, row.status, row.plan_id, row.amount) == (user["id"], "active", "price_pro", 1099)
    stored = db.query(User).filter_by(id=user["id"]).one()
    assert stored.subscription_status == "active"
    assert stored.stripe_subscription_id == "sub_123"
    assert stored.stripe_customer_id == "cus_123"

    body, headers = _signed(_subscription_event("customer.subscription.deleted", user["id"]))
    client.post("/api/subscription/webhook", content=body, headers=headers)
    db.expire_all()
    assert db.query(Subscription).filter_by(stripe_subscription_id="sub_123").one().status == "canceled"
    assert db.query(Subscription).count() == 1
    assert db.query(User).filter_by(id=user["id"]).one().subscription_status == "canceled"


def test_webhook_ignores_other_events(client, db):
    body, headers = _signed({"type": "invoice.created", "data": {"object": {"id": "in_1"}}})
    response = client.post("/api/subscription/webhook", content=body, headers=headers)
    assert response.status_code == 200
    assert db.query(Subscription).count() == 0


def test_webhook_rejects_undecodable_body(client):
    response = client.post(
        "/api/subscription/webhook",
        content=b"\xff\xfe\x00garbage",
        headers={"stripe-signature": "t=1,v1=abc", "content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid webhook signature"
