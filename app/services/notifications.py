from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import BackgroundTasks
from jinja2 import Environment, PackageLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from app.core.money import D, fmt_inr, fmt_long_date, fmt_time_12h
from app.integrations.smtp_mailer import Attachment, OutgoingEmail, SmtpMailer
from app.models.purchase import ServicePurchase
from app.models.registration import WebinarRegistration
from app.models.user import User
from app.models.webinar import Webinar

logger = logging.getLogger(__name__)

_env = Environment(
    loader=PackageLoader("app", "templates/email"),
    autoescape=select_autoescape(["html"]),
)

PLATFORM_LABELS = {"zoom": "Zoom", "google_meet": "Google Meet"}


def render(template: str, *, company_name: str, **ctx) -> str:
    return _env.get_template(template).render(
        company_name=company_name,
        year=datetime.now(timezone.utc).year,
        **ctx,
    )


# -------------------------
# Messages
# -------------------------
def welcome_email(user: User, *, app_url: str, company_name: str) -> OutgoingEmail:
    return OutgoingEmail(
        to=user.email,
        subject=f"Welcome to {company_name}!",
        html=render(
            "welcome.html",
            company_name=company_name,
            user_name=user.display_name,
            login_url=f"{app_url}/webinars",
        ),
    )


def password_reset_email(
    user: User, *, reset_url: str, valid_minutes: int, company_name: str
) -> OutgoingEmail:
    return OutgoingEmail(
        to=user.email,
        subject="Reset your password",
        html=render(
            "password_reset.html",
            company_name=company_name,
            user_name=user.display_name,
            reset_url=reset_url,
            valid_minutes=valid_minutes,
        ),
    )


def booking_confirmation_email(
    registration: WebinarRegistration,
    *,
    app_url: str,
    company_name: str,
    invoice: Attachment | None = None,
    invoice_number: str | None = None,
) -> OutgoingEmail:
    webinar = registration.webinar
    amount = D(registration.amount_paid)
    return OutgoingEmail(
        to=registration.user.email,
        subject=f"Booking Confirmed: {webinar.title}",
        html=render(
            "booking_confirmation.html",
            company_name=company_name,
            user_name=registration.user.display_name,
            webinar_title=webinar.title,
            host_name=webinar.host_name or "Host",
            webinar_date=fmt_long_date(webinar.webinar_date, weekday=True),
            webinar_time=fmt_time_12h(webinar.start_time),
            amount_paid=amount > 0,
            amount=fmt_inr(amount),
            transaction_id=registration.transaction_id or registration.payment_id,
            invoice_number=invoice_number,
            dashboard_url=f"{app_url}/dashboard/webinars",
        ),
        attachments=[invoice] if invoice else [],
    )


def service_confirmation_email(
    purchase: ServicePurchase,
    *,
    app_url: str,
    company_name: str,
    invoice: Attachment | None = None,
    invoice_number: str | None = None,
) -> OutgoingEmail:
    service = purchase.service
    return OutgoingEmail(
        to=purchase.user.email,
        subject=f"Purchase Confirmed: {service.name}",
        html=render(
            "service_confirmation.html",
            company_name=company_name,
            user_name=purchase.user.display_name,
            service_name=service.name,
            service_description=service.short_description or "",
            amount=fmt_inr(purchase.amount_paid),
            transaction_id=purchase.transaction_id or purchase.payment_id,
            invoice_number=invoice_number,
            dashboard_url=f"{app_url}/dashboard/services",
        ),
        attachments=[invoice] if invoice else [],
    )


def meeting_link_email(
    *, to: str, user_name: str, webinar: Webinar, meeting_link: str, company_name: str
) -> OutgoingEmail:
    platform = PLATFORM_LABELS.get(webinar.meeting_platform, "Zoom")
    return OutgoingEmail(
        to=to,
        subject=f"Meeting link: {webinar.title}",
        html=render(
            "meeting_link.html",
            company_name=company_name,
            user_name=user_name,
            webinar_title=webinar.title,
            webinar_date=fmt_long_date(webinar.webinar_date, weekday=True),
            webinar_time=fmt_time_12h(webinar.start_time),
            platform=platform,
            meeting_link=meeting_link,
        ),
    )


# -------------------------
# Dispatch
# -------------------------
def send_quietly(mailer: SmtpMailer, email: OutgoingEmail) -> None:
    """Background-task target: a failed send is logged and dropped (no retry)."""
    try:
        mailer.send(email)
    except Exception:
        logger.exception("Email send error for %s", email.to)


def dispatch(background_tasks: BackgroundTasks, mailer: SmtpMailer, email: OutgoingEmail) -> None:
    background_tasks.add_task(send_quietly, mailer, email)


@dataclass
class BulkSendResult:
    total: int
    successful: int
    failed: int
    delivered_to: list[str]


async def send_bulk(mailer: SmtpMailer, emails: list[OutgoingEmail]) -> BulkSendResult:
    delivered: list[str] = []
    for email in emails:
        ok = await run_in_threadpool(mailer.send, email)
        if ok:
            delivered.append(email.to)

    return BulkSendResult(
        total=len(emails),
        successful=len(delivered),
        failed=len(emails) - len(delivered),
        delivered_to=delivered,
    )
