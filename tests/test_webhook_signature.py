import json

import pytest

from app.core.config import Settings, get_settings
from app.integrations.payment_gateway import compute_webhook_signature, verify_webhook_signature
from app.main import app
from app.models.registration import WebinarRegistration
from tests.conftest import WEBHOOK_SECRET, auth_headers, fetch, make_user, make_webinar


@pytest.fixture
def production(client):
    app.dependency_overrides[get_settings] = lambda: Settings(
        CASHFREE_ENV="production",
        CASHFREE_SECRET_KEY=WEBHOOK_SECRET,
        APP_URL="http://testserver",
    )
    return client


def success_body(order_id):
    return json.dumps(
        {"type": "PAYMENT_SUCCESS_WEBHOOK", "data": {"order": {"order_id": order_id}, "payment": {}}}
    ).encode()


def test_signature_roundtrip():
    body = b'{"type":"PAYMENT_SUCCESS_WEBHOOK"}'
    sig = compute_webhook_signature("secret", "1700000000", body)
    assert verify_webhook_signature("secret", body, sig, "1700000000")
    assert not verify_webhook_signature("secret", body, sig, "1700000001")
    assert not verify_webhook_signature("", body, sig, "1700000000")


def test_bad_signature_is_rejected_in_production(production):
    user = make_user()
    webinar = make_webinar()
    order = production.post(
        "/api/payment/create",
        json={"type": "webinar", "item_id": webinar.id},
        headers=auth_headers(user),
    ).json()

    res = production.post(
        "/api/payment/webhook",
        content=success_body(order["order_id"]),
        headers={"x-webhook-signature": "bogus", "x-webhook-timestamp": "1700000000"},
    )
    assert res.status_code == 401
    assert fetch(WebinarRegistration, order["registration_id"]).payment_status == "pending"


def test_signed_webhook_is_accepted_in_production(production):
    user = make_user()
    webinar = make_webinar()
    order = production.post(
        "/api/payment/create",
        json={"type": "webinar", "item_id": webinar.id},
        headers=auth_headers(user),
    ).json()

    body = success_body(order["order_id"])
    res = production.post(
        "/api/payment/webhook",
        content=body,
        headers={
            "x-webhook-signature": compute_webhook_signature(WEBHOOK_SECRET, "1700000000", body),
            "x-webhook-timestamp": "1700000000",
        },
    )
    assert res.status_code == 200
    assert fetch(WebinarRegistration, order["registration_id"]).payment_status == "completed"


def test_signature_is_not_checked_outside_production(client):
    res = client.post("/api/payment/webhook", json={"type": "PAYMENT_USER_DROPPED_WEBHOOK", "data": {}})
    assert res.status_code == 200
