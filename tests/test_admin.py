from decimal import Decimal

import pytest

from app.models.webinar import Webinar
from tests.conftest import auth_headers, fetch, make_service, make_user, make_webinar

ADMIN_ROUTES = [
    ("get", "/api/admin/webinars"),
    ("get", "/api/admin/services"),
    ("get", "/api/admin/coupons"),
    ("get", "/api/admin/registrations"),
    ("get", "/api/admin/purchases"),
    ("get", "/api/admin/users"),
    ("get", "/api/admin/contacts"),
    ("get", "/api/admin/analytics"),
    ("get", "/api/admin/faqs"),
    ("get", "/api/admin/legal-pages"),
    ("post", "/api/admin/sync-slots"),
]


@pytest.mark.parametrize("method,path", ADMIN_ROUTES)
def test_admin_routes_reject_anonymous_and_regular_users(client, method, path):
    user = make_user()
    assert getattr(client, method)(path).status_code == 401
    assert getattr(client, method)(path, headers=auth_headers(user)).status_code == 403


@pytest.fixture
def admin():
    return make_user("admin@example.com", role="admin")


def test_create_webinar_opens_every_seat(client, admin):
    res = client.post(
        "/api/admin/webinars",
        json={
            "title": "Async Python",
            "slug": "async-python",
            "price": 799,
            "total_slots": 40,
            "webinar_date": "2026-12-01",
            "start_time": "19:00:00",
            "status": "published",
        },
        headers=auth_headers(admin),
    )
    assert res.status_code == 201
    assert res.json()["available_slots"] == 40

    dup = client.post(
        "/api/admin/webinars",
        json={"title": "Again", "slug": "async-python", "webinar_date": "2026-12-02", "start_time": "19:00:00"},
        headers=auth_headers(admin),
    )
    assert dup.status_code == 400
    assert dup.json()["detail"] == "Slug already exists"


def test_capacity_change_keeps_taken_seats(client, admin):
    webinar = make_webinar(total_slots=50, available_slots=45)
    res = client.patch(
        f"/api/admin/webinars/{webinar.id}",
        json={"total_slots": 60},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    assert fetch(Webinar, webinar.id).available_slots == 55


def test_coupon_crud(client, admin):
    res = client.post(
        "/api/admin/coupons",
        json={"code": "launch20", "discount_type": "percentage", "discount_value": 20},
        headers=auth_headers(admin),
    )
    assert res.status_code == 201
    coupon = res.json()
    assert coupon["code"] == "LAUNCH20"
    assert coupon["current_uses"] == 0

    dup = client.post(
        "/api/admin/coupons",
        json={"code": "LAUNCH20", "discount_type": "fixed", "discount_value": 50},
        headers=auth_headers(admin),
    )
    assert dup.status_code == 400

    toggled = client.post(f"/api/admin/coupons/{coupon['id']}/toggle", headers=auth_headers(admin))
    assert toggled.json()["is_active"] is False

    res = client.post("/api/coupon/validate", json={"code": "LAUNCH20"})
    assert res.status_code == 404

    assert client.delete(f"/api/admin/coupons/{coupon['id']}", headers=auth_headers(admin)).status_code == 204
    assert client.get("/api/admin/coupons", headers=auth_headers(admin)).json() == []


def test_orders_listing_and_fulfillment(client, admin, gateway):
    user = make_user()
    service = make_service()
    order = client.post(
        "/api/payment/create",
        json={"type": "service", "item_id": service.id},
        headers=auth_headers(user),
    ).json()

    listing = client.get(
        "/api/admin/purchases", params={"payment_status": "pending"}, headers=auth_headers(admin)
    ).json()
    assert listing["total"] == 1
    row = listing["items"][0]
    assert row["user"]["email"] == "user@example.com"
    assert row["service"]["slug"] == "resume-review"

    res = client.patch(
        f"/api/admin/purchases/{order['purchase_id']}",
        json={"fulfillment_status": "in_progress", "fulfillment_notes": "call booked"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    assert res.json()["fulfillment_status"] == "in_progress"


def test_admin_cannot_demote_self(client, admin):
    res = client.patch(f"/api/admin/users/{admin.id}/role", json={"role": "user"}, headers=auth_headers(admin))
    assert res.status_code == 400

    user = make_user()
    res = client.patch(f"/api/admin/users/{user.id}/role", json={"role": "admin"}, headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.json()["role"] == "admin"


def test_contact_submission_and_mark_read(client, admin):
    bad = client.post("/api/contact", json={"name": "A", "email": "nope", "message": "hi"})
    assert bad.status_code == 400
    assert bad.json()["detail"] == "Invalid email format"

    ok = client.post("/api/contact", json={"name": "A", "email": "a@example.com", "message": "hi"})
    assert ok.status_code == 200
    contact_id = ok.json()["data"]["id"]

    res = client.patch(
        f"/api/admin/contacts/{contact_id}",
        json={"is_read": True, "admin_notes": "replied"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    assert res.json()["read_by"] == admin.id

    unread = client.get("/api/admin/contacts", params={"is_read": False}, headers=auth_headers(admin))
    assert unread.json() == []


def test_analytics_counts_confirmed_revenue(client, admin, gateway):
    user = make_user()
    webinar = make_webinar(price="500.00")
    order = client.post(
        "/api/payment/create",
        json={"type": "webinar", "item_id": webinar.id},
        headers=auth_headers(user),
    ).json()
    gateway.mark_paid(order["order_id"])
    client.post("/api/payment/verify", json={"order_id": order["order_id"]}, headers=auth_headers(user))

    # a pending order does not count
    client.post(
        "/api/payment/create",
        json={"type": "webinar", "item_id": make_webinar(slug="other").id},
        headers=auth_headers(user),
    )

    res = client.get("/api/admin/analytics", params={"period": 7}, headers=auth_headers(admin))
    assert res.status_code == 200
    body = res.json()
    assert body["overview"]["total_webinar_revenue"] == 500.0
    assert body["overview"]["registrations_count"] == 1
    assert len(body["chart_data"]) == 7
    assert body["top_webinars"][0]["webinar_id"] == webinar.id
    assert Decimal(str(body["chart_data"][-1]["total"])) == Decimal("500")


def test_analytics_period_bounds(client, admin):
    res = client.get("/api/admin/analytics", params={"period": 0}, headers=auth_headers(admin))
    assert res.status_code == 400


def test_upload_validates_type(client, admin):
    res = client.post(
        "/api/admin/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"folder": "webinars"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 400

    res = client.post(
        "/api/admin/upload",
        files={"file": ("thumb.png", b"\x89PNG\r\n\x1a\n", "image/png")},
        data={"folder": "webinars"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    assert res.json()["url"].startswith("/storage/webinars/")
    assert res.json()["path"].endswith(".png")


def test_upload_extension_follows_content_type_not_filename(client, admin):
    res = client.post(
        "/api/admin/upload",
        files={"file": ("evil.html", b"<script>alert(1)</script>", "image/png")},
        data={"folder": "uploads"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    url = res.json()["url"]
    assert url.endswith(".png")

    served = client.get(url)
    assert served.status_code == 200
    assert served.headers["content-type"] == "image/png"
