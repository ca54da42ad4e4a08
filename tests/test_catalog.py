from tests.conftest import auth_headers, make_service, make_user, make_webinar


def test_only_published_webinars_are_listed(client):
    make_webinar(slug="live")
    make_webinar(slug="wip", status="draft")

    res = client.get("/api/webinars")
    assert res.status_code == 200
    assert [w["slug"] for w in res.json()] == ["live"]
    assert client.get("/api/webinars/wip").status_code == 404


def test_webinar_detail_hides_meeting_details(client):
    make_webinar(slug="live", meeting_link="https://zoom.us/j/1", meeting_password="pw")
    body = client.get("/api/webinars/live").json()
    assert body["slug"] == "live"
    assert "meeting_link" not in body
    assert "meeting_password" not in body


def test_inactive_services_are_hidden(client):
    make_service(slug="on")
    make_service(slug="off", is_active=False)

    assert [s["slug"] for s in client.get("/api/services").json()] == ["on"]
    assert client.get("/api/services/off").status_code == 404
    assert client.get("/api/services/on").json()["price"] == 2999.0


def test_settings_insert_then_update(client):
    admin = make_user("admin@example.com", role="admin")
    assert client.get("/api/settings").json()["settings"] is None

    created = client.put(
        "/api/settings",
        json={"site_name": "WebinarPro", "gst_enabled": True, "gst_number": "29ABCDE1234F1Z5"},
        headers=auth_headers(admin),
    )
    assert created.status_code == 200
    assert created.json()["message"] == "Settings created"
    settings_id = created.json()["settings"]["id"]

    updated = client.put(
        "/api/settings",
        json={"id": settings_id, "company_name": "WebinarPro Pvt Ltd"},
        headers=auth_headers(admin),
    )
    assert updated.json()["message"] == "Settings updated"
    assert updated.json()["settings"]["gst_enabled"] is True

    missing = client.put("/api/settings", json={"id": "nope"}, headers=auth_headers(admin))
    assert missing.status_code == 404


def test_settings_write_requires_admin(client):
    user = make_user()
    res = client.put("/api/settings", json={"site_name": "x"}, headers=auth_headers(user))
    assert res.status_code == 403


def test_health_reports_counts(client):
    make_webinar()
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["data"]["counts"] == {"webinars": 1, "services": 0, "contact_leads": 0}
