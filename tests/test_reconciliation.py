import json

from sqlalchemy import func, select

from app.core.db import SessionLocal
from app.models.coupon import Coupon, CouponUsage
from app.models.purchase import ServicePurchase
from app.models.registration import WebinarRegistration
from app.models.webinar import Webinar
from tests.conftest import auth_headers, fetch, make_coupon, make_service, make_user, make_webinar, run


def start_order(client, user, item_type, item_id, coupon_code=None):
    res = client.post(
        "/api/payment/create",
        json={"type": item_type, "item_id": item_id, "coupon_code": coupon_code},
        headers=auth_headers(user),
    )
    assert res.status_code == 200
    return res.json()


def verify(client, user, order_id):
    return client.post("/api/payment/verify", json={"order_id": order_id}, headers=auth_headers(user))


def webhook(client, event_type, order_id, payment_id="PAY_1"):
    payload = {
        "type": event_type,
        "data": {
            "order": {"order_id": order_id},
            "payment": {"cf_payment_id": payment_id, "payment_group": "upi"},
        },
    }
    return client.post("/api/payment/webhook", content=json.dumps(payload))


def usage_count(coupon_id):
    async def _count():
        async with SessionLocal() as db:
            res = await db.execute(
                select(func.count(CouponUsage.id)).where(CouponUsage.coupon_id == coupon_id)
            )
            return res.scalar_one()

    return run(_count())


def test_verify_requires_order_id(client):
    user = make_user()
    res = client.post("/api/payment/verify", json={}, headers=auth_headers(user))
    assert res.status_code == 400
    assert res.json()["detail"] == "Order ID is required"


def test_verify_unpaid_order_reports_gateway_status(client):
    user = make_user()
    webinar = make_webinar()
    order = start_order(client, user, "webinar", webinar.id)

    res = verify(client, user, order["order_id"])
    assert res.status_code == 400
    assert res.json()["detail"]["status"] == "ACTIVE"
    assert fetch(WebinarRegistration, order["registration_id"]).payment_status == "pending"


def test_verify_completes_once(client, gateway, mailer):
    user = make_user()
    webinar = make_webinar(total_slots=20)
    order = start_order(client, user, "webinar", webinar.id)
    gateway.mark_paid(order["order_id"], payment_id="PAY_42", method="card")

    first = verify(client, user, order["order_id"])
    second = verify(client, user, order["order_id"])

    assert first.status_code == 200 and second.status_code == 200
    assert first.json()["already_completed"] is False
    assert second.json()["already_completed"] is True
    assert second.json()["payment_status"] == "completed"

    reg = fetch(WebinarRegistration, order["registration_id"])
    assert reg.transaction_id == "PAY_42"
    assert reg.payment_method == "card"
    assert reg.invoice_number.startswith("INV-")
    assert fetch(Webinar, webinar.id).available_slots == 19

    assert len(mailer.sent) == 1
    assert mailer.sent[0].attachments[0].filename == f"invoice-{reg.invoice_number}.pdf"


def test_verify_and_webhook_complete_once(client, gateway, mailer):
    user = make_user()
    webinar = make_webinar(total_slots=20)
    coupon = make_coupon("SAVE10")
    order = start_order(client, user, "webinar", webinar.id, coupon_code="SAVE10")
    gateway.mark_paid(order["order_id"])

    assert webhook(client, "PAYMENT_SUCCESS_WEBHOOK", order["order_id"]).status_code == 200
    res = verify(client, user, order["order_id"])
    assert res.status_code == 200
    assert res.json()["already_completed"] is True
    assert webhook(client, "PAYMENT_SUCCESS_WEBHOOK", order["order_id"]).status_code == 200

    assert fetch(Webinar, webinar.id).available_slots == 19
    assert fetch(Coupon, coupon.id).current_uses == 1
    assert usage_count(coupon.id) == 1
    assert len(mailer.sent) == 1


def test_webhook_completes_service_purchase(client, mailer):
    user = make_user()
    service = make_service()
    order = start_order(client, user, "service", service.id)

    res = webhook(client, "PAYMENT_SUCCESS", order["order_id"], payment_id=998877)
    assert res.status_code == 200
    assert res.json()["type"] == "service"
    assert len(mailer.sent) == 1


def test_failed_webhook_marks_pending_order_failed(client):
    user = make_user()
    webinar = make_webinar()
    order = start_order(client, user, "webinar", webinar.id)

    assert webhook(client, "PAYMENT_FAILED_WEBHOOK", order["order_id"]).status_code == 200
    assert fetch(WebinarRegistration, order["registration_id"]).payment_status == "failed"


def test_failed_order_can_still_complete(client, gateway):
    user = make_user()
    webinar = make_webinar(total_slots=3)
    order = start_order(client, user, "webinar", webinar.id)

    webhook(client, "PAYMENT_FAILED_WEBHOOK", order["order_id"])
    gateway.mark_paid(order["order_id"])
    assert verify(client, user, order["order_id"]).json()["already_completed"] is False
    assert fetch(Webinar, webinar.id).available_slots == 2


def test_late_failure_never_demotes_completed_order(client, gateway):
    user = make_user()
    webinar = make_webinar()
    order = start_order(client, user, "webinar", webinar.id)
    gateway.mark_paid(order["order_id"])
    verify(client, user, order["order_id"])

    assert webhook(client, "PAYMENT_FAILED_WEBHOOK", order["order_id"]).status_code == 200
    assert fetch(WebinarRegistration, order["registration_id"]).payment_status == "completed"


def test_webhook_for_unknown_order_is_404(client):
    res = webhook(client, "PAYMENT_SUCCESS_WEBHOOK", "ORDER_0_missing")
    assert res.status_code == 404


def test_webhook_without_order_id_is_400(client):
    res = client.post("/api/payment/webhook", json={"type": "PAYMENT_SUCCESS_WEBHOOK", "data": {}})
    assert res.status_code == 400
    assert res.json()["detail"] == "Missing order ID"


def test_unhandled_webhook_type_is_acknowledged(client):
    res = client.post("/api/payment/webhook", json={"type": "REFUND_STATUS_WEBHOOK", "data": {}})
    assert res.status_code == 200
    assert res.json() == {"success": True, "type": None}


def test_verify_is_scoped_to_the_order_owner(client, gateway):
    owner = make_user("owner@example.com")
    other = make_user("other@example.com")
    webinar = make_webinar()
    order = start_order(client, owner, "webinar", webinar.id)
    gateway.mark_paid(order["order_id"])

    res = verify(client, other, order["order_id"])
    assert res.status_code == 404
    assert fetch(WebinarRegistration, order["registration_id"]).payment_status == "pending"


def test_last_seat_goes_to_first_completion(client, gateway):
    a = make_user("a@example.com")
    b = make_user("b@example.com")
    webinar = make_webinar(total_slots=1)
    order_a = start_order(client, a, "webinar", webinar.id)
    order_b = start_order(client, b, "webinar", webinar.id)
    gateway.mark_paid(order_a["order_id"])
    gateway.mark_paid(order_b["order_id"])

    verify(client, a, order_a["order_id"])
    verify(client, b, order_b["order_id"])

    # both paid; the counter floors at zero and resync reports the oversell
    assert fetch(Webinar, webinar.id).available_slots == 0


def confirmed_registrations(user_id, webinar_id):
    async def _count():
        async with SessionLocal() as db:
            res = await db.execute(
                select(func.count(WebinarRegistration.id)).where(
                    WebinarRegistration.user_id == user_id,
                    WebinarRegistration.webinar_id == webinar_id,
                    WebinarRegistration.payment_status.in_(("completed", "free")),
                )
            )
            return res.scalar_one()

    return run(_count())


def test_second_paid_checkout_for_same_webinar_is_not_a_second_seat(client, gateway, mailer):
    user = make_user()
    webinar = make_webinar(total_slots=10)
    first = start_order(client, user, "webinar", webinar.id)
    second = start_order(client, user, "webinar", webinar.id)
    gateway.mark_paid(first["order_id"], payment_id="PAY_A")
    gateway.mark_paid(second["order_id"], payment_id="PAY_B")

    res_first = verify(client, user, first["order_id"])
    res_second = verify(client, user, second["order_id"])

    assert res_first.status_code == 200 and res_second.status_code == 200
    assert res_second.json()["already_completed"] is True
    assert res_second.json()["registration_id"] == first["registration_id"]

    assert confirmed_registrations(user.id, webinar.id) == 1
    assert fetch(WebinarRegistration, second["registration_id"]).payment_status == "pending"
    assert fetch(Webinar, webinar.id).available_slots == 9
    assert len(mailer.sent) == 1


def test_second_paid_service_checkout_via_webhook_is_not_confirmed(client, mailer):
    user = make_user()
    service = make_service()
    first = start_order(client, user, "service", service.id)
    second = start_order(client, user, "service", service.id)

    assert webhook(client, "PAYMENT_SUCCESS_WEBHOOK", first["order_id"]).status_code == 200
    assert webhook(client, "PAYMENT_SUCCESS_WEBHOOK", second["order_id"], payment_id="PAY_2").status_code == 200

    assert fetch(ServicePurchase, first["purchase_id"]).payment_status == "completed"
    assert fetch(ServicePurchase, second["purchase_id"]).payment_status == "pending"
    assert len(mailer.sent) == 1
