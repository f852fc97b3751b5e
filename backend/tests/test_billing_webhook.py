"""Stripe webhook synchronisation and checkout guards."""
import asyncio
import hashlib
import hmac
import json
import os
import time

from report_buddy.db.models import BillingEvent
from report_buddy.services.subscription_service import subscription_service

from conftest import auth, get_user, set_user, signup

WEBHOOK_URL = "/api/stripe/webhook"


def _sign(payload: str, ts: str) -> str:
    digest = hmac.new(
        os.environ["STRIPE_WEBHOOK_SECRET"].encode(),
        f"{ts}.{payload}".encode(),
        hashlib.sha256,
    ).hexdigest()
    return f"t={ts},v1={digest}"


def _post_event(client, event):
    payload = json.dumps(event)
    ts = str(int(time.time()))
    return client.post(
        WEBHOOK_URL,
        content=payload,
        headers={"Stripe-Signature": _sign(payload, ts), "Content-Type": "application/json"},
    )


def _event(event_id, event_type, obj, created=None):
    return {
        "id": event_id,
        "type": event_type,
        "created": created or int(time.time()),
        "data": {"object": obj},
    }


def _subscription(status="active", price="price_basic", period_end=1893456000):
    return {
        "id": "sub_123",
        "customer": "cus_alice",
        "status": status,
        "items": {"data": [{"price": {"id": price}, "current_period_end": period_end}]},
    }


def _customer(client):
    signup(client)
    set_user("alice", stripe_customer_id="cus_alice")


def test_bad_signature_is_rejected(client):
    payload = json.dumps(_event("evt_bad", "invoice.payment_failed", {"customer": "cus_alice"}))
    resp = client.post(
        WEBHOOK_URL,
        content=payload,
        headers={"Stripe-Signature": "t=1,v1=deadbeef", "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Webhook signature verification failed"}


def test_checkout_completed_activates_subscription(client, monkeypatch):
    _customer(client)
    monkeypatch.setattr(
        subscription_service, "retrieve_subscription", lambda sub_id: _subscription(price="price_pro")
    )

    resp = _post_event(client, _event(
        "evt_checkout", "checkout.session.completed",
        {"customer": "cus_alice", "subscription": "sub_123"},
    ))
    assert resp.status_code == 200
    assert resp.json() == {"received": True, "status": "processed"}

    user = get_user("alice")
    assert user.subscription_status == "active"
    assert user.subscription_id == "sub_123"
    assert user.subscription_tier == "pro"
    assert user.subscription_current_period_end.year == 2030


def test_event_processing_runs_off_the_event_loop(client, monkeypatch):
    _customer(client)
    loops = []

    def _retrieve(sub_id):
        try:
            loops.append(asyncio.get_running_loop())
        except RuntimeError:
            loops.append(None)
        return _subscription()

    monkeypatch.setattr(subscription_service, "retrieve_subscription", _retrieve)
    resp = _post_event(client, _event(
        "evt_thread", "checkout.session.completed",
        {"customer": "cus_alice", "subscription": "sub_123"},
    ))
    assert resp.json() == {"received": True, "status": "processed"}
    assert loops == [None]


def test_duplicate_delivery_is_acknowledged_once(client):
    _customer(client)
    event = _event("evt_dup", "invoice.payment_failed", {"customer": "cus_alice"})

    assert _post_event(client, event).json()["status"] == "processed"
    set_user("alice", subscription_status="active")

    resp = _post_event(client, event)
    assert resp.json() == {"received": True, "status": "duplicate"}
    assert get_user("alice").subscription_status == "active"


def test_out_of_order_update_is_skipped(client):
    _customer(client)
    now = int(time.time())

    newer = _event("evt_new", "customer.subscription.deleted", _subscription(), created=now)
    older = _event("evt_old", "customer.subscription.updated", _subscription(status="active"), created=now - 60)

    assert _post_event(client, newer).json()["status"] == "processed"
    assert _post_event(client, older).json()["status"] == "stale"

    user = get_user("alice")
    assert user.subscription_status == "canceled"
    assert user.subscription_tier is None


def test_same_second_events_both_apply(client):
    _customer(client)
    now = int(time.time())

    _post_event(client, _event("evt_a", "customer.subscription.updated", _subscription(status="past_due"), created=now))
    resp = _post_event(client, _event("evt_b", "customer.subscription.updated", _subscription(status="active"), created=now))

    assert resp.json()["status"] == "processed"
    assert get_user("alice").subscription_status == "active"


def test_unknown_customer_is_a_no_op(client, db):
    signup(client)

    resp = _post_event(client, _event("evt_unknown", "customer.subscription.deleted", {"id": "sub_x", "customer": "cus_nobody"}))
    assert resp.status_code == 200
    assert resp.json()["status"] == "ignored"
    assert get_user("alice").subscription_status == "trialing"
    assert db.get(BillingEvent, "evt_unknown") is not None


def test_unhandled_event_type_is_ignored(client):
    _customer(client)
    resp = _post_event(client, _event("evt_other", "customer.created", {"customer": "cus_alice"}))
    assert resp.json() == {"received": True, "status": "ignored"}


def test_processing_failure_is_acknowledged(client, monkeypatch):
    _customer(client)

    def _boom(sub_id):
        raise RuntimeError("stripe down")

    monkeypatch.setattr(subscription_service, "retrieve_subscription", _boom)
    resp = _post_event(client, _event(
        "evt_fail", "checkout.session.completed",
        {"customer": "cus_alice", "subscription": "sub_123"},
    ))
    assert resp.status_code == 200
    assert resp.json() == {"received": True, "error": "Webhook processing failed"}
    assert get_user("alice").subscription_status == "trialing"


def test_subscription_update_sets_basic_tier(client):
    _customer(client)
    _post_event(client, _event("evt_upd", "customer.subscription.updated", _subscription(price="price_basic")))

    user = get_user("alice")
    assert user.subscription_status == "active"
    assert user.subscription_tier == "basic"


def test_checkout_rejected_when_already_active(client):
    signup(client)
    set_user("alice", subscription_status="active")

    resp = client.post("/api/stripe/create-checkout-session", json={"tier": "pro"}, headers=auth())
    assert resp.status_code == 400
    assert resp.json()["error"] == "You already have an active subscription"


def test_portal_requires_billing_account(client):
    signup(client)
    resp = client.post("/api/stripe/create-portal-session", headers=auth())
    assert resp.status_code == 400
    assert resp.json()["error"] == "No billing account found"
