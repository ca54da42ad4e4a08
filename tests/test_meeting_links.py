from decimal import Decimal

from sqlalchemy import text

from app.core.db import engine
from app.models.registration import WebinarRegistration
from app.models.webinar import Webinar
from tests.conftest import _add, auth_headers, fetch, make_user, make_users, make_webinar, run

LINK = "https://zoom.us/j/123456789"


def register(webinar, user, status):
    return run(
        _add(
            WebinarRegistration(
                user_id=user.id,
                webinar_id=webinar.id,
                amount_paid=Decimal("0"),
                payment_status=status,
            )
        )
    )


def send(client, admin, **body):
    return client.post("/api/admin/send-meeting-links", json=body, headers=auth_headers(admin))


def test_requires_webinar_and_link(client):
    admin = make_user("admin@example.com", role="admin")
    res = send(client, admin, webinar_id="w1")
    assert res.status_code == 400
    assert res.json()["detail"] == "Webinar ID and meeting link are required"


def test_unknown_webinar_is_404(client):
    admin = make_user("admin@example.com", role="admin")
    assert send(client, admin, webinar_id="missing", meeting_link=LINK).status_code == 404


def test_only_confirmed_registrants_are_emailed(client, mailer):
    admin = make_user("admin@example.com", role="admin")
    webinar = make_webinar()
    paid, free, pending = make_users(3)
    confirmed = [register(webinar, paid, "completed"), register(webinar, free, "free")]
    waiting = register(webinar, pending, "pending")

    res = send(client, admin, webinar_id=webinar.id, meeting_link=LINK)
    assert res.status_code == 200
    body = res.json()
    assert body["emails_sent"] == 2
    assert body["emails_failed"] == 0
    assert body["total_recipients"] == 2

    assert sorted(e.to for e in mailer.sent) == sorted([paid.email, free.email])
    assert all(LINK in e.html for e in mailer.sent)

    assert fetch(Webinar, webinar.id).meeting_link == LINK
    for reg in confirmed:
        row = fetch(WebinarRegistration, reg.id)
        assert row.meeting_link_sent is True
        assert row.meeting_link_sent_at is not None
    assert fetch(WebinarRegistration, waiting.id).meeting_link_sent is False


def test_link_is_saved_even_without_recipients(client, mailer):
    admin = make_user("admin@example.com", role="admin")
    webinar = make_webinar()

    res = send(client, admin, webinar_id=webinar.id, meeting_link=LINK)
    assert res.status_code == 200
    assert res.json()["message"] == "Meeting links updated but no emails to send"
    assert fetch(Webinar, webinar.id).meeting_link == LINK
    assert mailer.sent == []


def test_failed_sends_are_counted(client, mailer):
    admin = make_user("admin@example.com", role="admin")
    webinar = make_webinar()
    ok, bad = make_users(2)
    reg_ok = register(webinar, ok, "completed")
    reg_bad = register(webinar, bad, "completed")

    def flaky_send(email):
        mailer.sent.append(email)
        return email.to != bad.email

    mailer.send = flaky_send

    body = send(client, admin, webinar_id=webinar.id, meeting_link=LINK).json()
    assert body["emails_sent"] == 1
    assert body["emails_failed"] == 1
    assert fetch(WebinarRegistration, reg_ok.id).meeting_link_sent is True
    assert fetch(WebinarRegistration, reg_bad.id).meeting_link_sent is False


async def _drop_confirmed_index():
    async with engine.begin() as conn:
        await conn.execute(text("DROP INDEX uq_webinar_registrations_confirmed"))


def test_attendee_with_duplicate_rows_gets_one_email(client, mailer):
    # rows written before the one-seat index existed
    run(_drop_confirmed_index())
    admin = make_user("admin@example.com", role="admin")
    webinar = make_webinar()
    (attendee,) = make_users(1)
    first = register(webinar, attendee, "completed")
    second = register(webinar, attendee, "completed")

    body = send(client, admin, webinar_id=webinar.id, meeting_link=LINK).json()
    assert body["emails_sent"] == 1
    assert body["total_recipients"] == 1
    assert [e.to for e in mailer.sent] == [attendee.email]
    assert fetch(WebinarRegistration, first.id).meeting_link_sent is True
    assert fetch(WebinarRegistration, second.id).meeting_link_sent is True
