from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.integrations.smtp_mailer import SmtpMailer
from app.models.registration import CONFIRMED_STATUSES, WebinarRegistration
from app.models.webinar import Webinar
from app.services.invoices import get_issuer
from app.services.notifications import meeting_link_email, send_bulk

logger = logging.getLogger(__name__)


class MeetingLinkError(Exception):
    pass


class WebinarNotFound(MeetingLinkError):
    pass


async def send_meeting_links(
    db: AsyncSession,
    mailer: SmtpMailer,
    *,
    webinar_id: str,
    meeting_link: str,
) -> dict:
    webinar = await db.get(Webinar, webinar_id)
    if webinar is None:
        raise WebinarNotFound("Webinar not found")

    res = await db.execute(
        select(WebinarRegistration).where(
            WebinarRegistration.webinar_id == webinar_id,
            WebinarRegistration.payment_status.in_(CONFIRMED_STATUSES),
        )
    )
    registrations = [r for r in res.scalars().all() if r.user is not None and r.user.email]

    # the link lives on the webinar, registrants just get told about it
    webinar.meeting_link = meeting_link
    await db.commit()

    if not registrations:
        return {
            "success": True,
            "message": "Meeting links updated but no emails to send",
            "emails_sent": 0,
            "emails_failed": 0,
            "total_recipients": 0,
        }

    # one email per attendee even if they hold more than one row
    recipients = {r.user.email: r.user for r in registrations}

    issuer = await get_issuer(db)
    emails = [
        meeting_link_email(
            to=email,
            user_name=user.full_name or "User",
            webinar=webinar,
            meeting_link=meeting_link,
            company_name=issuer.company_name,
        )
        for email, user in recipients.items()
    ]
    result = await send_bulk(mailer, emails)

    delivered = set(result.delivered_to)
    sent_at = datetime.now(timezone.utc)
    for r in registrations:
        if r.user.email in delivered:
            r.meeting_link_sent = True
            r.meeting_link_sent_at = sent_at
    await db.commit()

    logger.info(
        "Meeting links for webinar %s: %s/%s delivered",
        webinar_id,
        result.successful,
        result.total,
    )
    return {
        "success": True,
        "message": f"Meeting links sent to {result.successful} of {result.total} registrants",
        "emails_sent": result.successful,
        "emails_failed": result.failed,
        "total_recipients": result.total,
    }
