from datetime import datetime, timedelta, timezone

from tests.conftest import auth_headers, make_coupon, make_user, make_webinar


def test_validate_requires_code(client):
    res = client.post("/api/coupon/validate", json={"code": "  "})
    assert res.status_code == 400
    assert res.json()["detail"] == "Coupon code is required"


def test_unknown_code_is_404(client):
    res = client.post("/api/coupon/validate", json={"code": "NOPE"})
    assert res.status_code == 404
    assert res.json()["detail"] == "Invalid or expired coupon code"


def test_validate_is_case_insensitive_and_quotes_amount(client):
    webinar = make_webinar()
    make_coupon("SAVE10", discount_value="10")

    res = client.post(
        "/api/coupon/validate",
        json={"code": "save10", "item_type": "webinar", "item_id": webinar.id, "amount": 499},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["valid"] is True
    assert body["coupon"]["code"] == "SAVE10"
    assert body["discount_amount"] == 49.9
    assert body["final_amount"] == 449.1


def test_zero_amount_means_validation_only(client):
    make_coupon("SAVE10")
    res = client.post("/api/coupon/validate", json={"code": "SAVE10", "amount": 0})
    assert res.status_code == 200
    assert res.json()["final_amount"] is None


def test_expired_coupon_is_rejected(client):
    make_coupon("OLD", valid_until=datetime.now(timezone.utc) - timedelta(days=1))
    res = client.post("/api/coupon/validate", json={"code": "OLD"})
    assert res.status_code == 400
    assert res.json()["detail"] == "This coupon has expired"


def test_wrong_item_type_is_rejected(client):
    make_coupon("SVC", applies_to="service")
    res = client.post("/api/coupon/validate", json={"code": "SVC", "item_type": "webinar"})
    assert res.status_code == 400
    assert res.json()["detail"] == "This coupon is only valid for services"


def test_per_user_limit_applies_to_signed_in_users(client, gateway):
    user = make_user()
    webinar = make_webinar(price="100.00")
    make_coupon("ALLFREE", discount_type="fixed", discount_value="100")

    # first use zeroes the price and records the usage
    res = client.post(
        "/api/payment/create",
        json={"type": "webinar", "item_id": webinar.id, "coupon_code": "ALLFREE"},
        headers=auth_headers(user),
    )
    assert res.status_code == 200

    res = client.post("/api/coupon/validate", json={"code": "ALLFREE"}, headers=auth_headers(user))
    assert res.status_code == 400
    assert res.json()["detail"] == "You have already used this coupon"

    # anonymous callers skip the per-user check
    res = client.post("/api/coupon/validate", json={"code": "ALLFREE"})
    assert res.status_code == 200
