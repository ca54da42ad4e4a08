# app/services/payments.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.money import D
from app.integrations.payment_gateway import PaymentGateway, PaymentGatewayError
from app.integrations.smtp_mailer import OutgoingEmail
from app.models.purchase import ServicePurchase
from app.models.registration import CONFIRMED_STATUSES, WebinarRegistration
from app.models.webinar import Webinar
from app.services.coupons import record_coupon_usage
from app.services.invoices import (
    build_invoice_pdf,
    generate_invoice_number,
    get_issuer,
    invoice_attachment,
    purchase_invoice_data,
    registration_invoice_data,
)
from app.services.notifications import booking_confirmation_email, service_confirmation_email

logger = logging.getLogger(__name__)

Order = Union[WebinarRegistration, ServicePurchase]

# states a completion may move out of
COMPLETABLE_STATUSES = ("pending", "failed")

SUCCESS_EVENTS = ("PAYMENT_SUCCESS_WEBHOOK", "PAYMENT_SUCCESS")
FAILED_EVENTS = ("PAYMENT_FAILED_WEBHOOK", "PAYMENT_FAILED")


class PaymentError(Exception):
    pass


class OrderNotFound(PaymentError):
    pass


class PaymentVerificationFailed(PaymentError):
    pass


class PaymentNotCompleted(PaymentError):
    def __init__(self, gateway_status: str | None):
        super().__init__("Payment not completed")
        self.gateway_status = gateway_status


@dataclass
class CompletionResult:
    type: str  # webinar | service
    record: Order
    # True only for the caller whose update moved the row to completed/free
    first_transition: bool
    email: OutgoingEmail | None = None

    @property
    def already_completed(self) -> bool:
        return not self.first_transition


def order_type(record: Order) -> str:
    return "webinar" if isinstance(record, WebinarRegistration) else "service"


# -------------------------
# Lookup
# -------------------------
async def find_order(db: AsyncSession, order_id: str, *, user_id: str | None = None) -> Order | None:
    """Registration first, then purchase. user_id scopes the lookup to the owner."""
    for model in (WebinarRegistration, ServicePurchase):
        stmt = select(model).where(model.payment_id == order_id)
        if user_id is not None:
            stmt = stmt.where(model.user_id == user_id)
        res = await db.execute(stmt)
        record = res.scalar_one_or_none()
        if record is not None:
            return record
    return None


async def _confirmed_sibling(db: AsyncSession, record: Order) -> Order | None:
    """Another confirmed order by the same user for the same item, if any."""
    if isinstance(record, WebinarRegistration):
        stmt = select(WebinarRegistration).where(
            WebinarRegistration.webinar_id == record.webinar_id,
            WebinarRegistration.payment_status.in_(CONFIRMED_STATUSES),
        )
    else:
        stmt = select(ServicePurchase).where(
            ServicePurchase.service_id == record.service_id,
            ServicePurchase.payment_status == "completed",
        )
    model = type(record)
    res = await db.execute(
        stmt.where(model.user_id == record.user_id, model.id != record.id).limit(1)
    )
    return res.scalar_one_or_none()


def _duplicate_result(kind: str, record: Order, existing: Order) -> CompletionResult:
    # the paid duplicate stays pending; the confirmed order is what the caller sees
    logger.warning(
        "Order %s paid but user %s already holds confirmed order %s; needs refund",
        record.payment_id,
        record.user_id,
        existing.payment_id,
    )
    return CompletionResult(type=kind, record=existing, first_transition=False)


async def _reload(db: AsyncSession, record: Order) -> Order:
    model = type(record)
    res = await db.execute(
        select(model)
        .where(model.id == record.id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one()


# -------------------------
# Transitions
# -------------------------
async def _decrement_slot(db: AsyncSession, webinar_id: str) -> None:
    res = await db.execute(
        update(Webinar)
        .where(Webinar.id == webinar_id, Webinar.available_slots > 0)
        .values(available_slots=Webinar.available_slots - 1)
    )
    if res.rowcount == 0:
        logger.warning("Webinar %s had no slots left to decrement", webinar_id)


async def _confirmation_email(
    db: AsyncSession, record: Order, *, app_url: str
) -> OutgoingEmail:
    issuer = await get_issuer(db)

    invoice = None
    if D(record.amount_paid) > 0 and record.invoice_number:
        if isinstance(record, WebinarRegistration):
            data = registration_invoice_data(record, invoice_number=record.invoice_number, issuer=issuer)
        else:
            data = purchase_invoice_data(record, invoice_number=record.invoice_number, issuer=issuer)
        invoice = invoice_attachment(record.invoice_number, build_invoice_pdf(data))

    if isinstance(record, WebinarRegistration):
        return booking_confirmation_email(
            record,
            app_url=app_url,
            company_name=issuer.company_name,
            invoice=invoice,
            invoice_number=record.invoice_number if invoice else None,
        )
    return service_confirmation_email(
        record,
        app_url=app_url,
        company_name=issuer.company_name,
        invoice=invoice,
        invoice_number=record.invoice_number if invoice else None,
    )


async def complete_order(
    db: AsyncSession,
    record: Order,
    *,
    app_url: str,
    status: str = "completed",
    transaction_id: str | None = None,
    payment_method: str | None = None,
) -> CompletionResult:
    """
    Moves an order to `status` (completed|free) with a conditional update.

    Exactly one caller per order wins the update; only that caller decrements
    the webinar slot, records the coupon usage, assigns the invoice number and
    gets the confirmation email back. Everyone else sees first_transition=False.
    """
    model = type(record)
    kind = order_type(record)

    existing = await _confirmed_sibling(db, record)
    if existing is not None:
        return _duplicate_result(kind, record, existing)

    values = {
        "payment_status": status,
        "updated_at": func.now(),
    }
    if transaction_id:
        values["transaction_id"] = transaction_id
    if payment_method:
        values["payment_method"] = payment_method
    if D(record.amount_paid) > 0 and not record.invoice_number:
        values["invoice_number"] = generate_invoice_number()

    try:
        res = await db.execute(
            update(model)
            .where(model.id == record.id, model.payment_status.in_(COMPLETABLE_STATUSES))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    except IntegrityError:
        # a concurrent completion of a sibling order won the unique index
        await db.rollback()
        await db.refresh(record)
        existing = await _confirmed_sibling(db, record)
        if existing is None:
            raise
        return _duplicate_result(kind, record, existing)

    if res.rowcount != 1:
        record = await _reload(db, record)
        logger.info("Order %s already %s; nothing to do", record.payment_id, record.payment_status)
        return CompletionResult(type=kind, record=record, first_transition=False)

    if kind == "webinar":
        await _decrement_slot(db, record.webinar_id)

    if record.coupon_id:
        await record_coupon_usage(
            db,
            coupon_id=record.coupon_id,
            user_id=record.user_id,
            order_id=record.payment_id,
            item_type=kind,
            discount_amount=record.discount_amount,
        )

    await db.commit()
    record = await _reload(db, record)
    logger.info("Order %s marked %s (%s %s)", record.payment_id, status, kind, record.id)

    email = await _confirmation_email(db, record, app_url=app_url)
    return CompletionResult(type=kind, record=record, first_transition=True, email=email)


async def mark_order_failed(db: AsyncSession, order_id: str) -> int:
    """Only pending rows move to failed; completed orders are never demoted."""
    changed = 0
    for model in (WebinarRegistration, ServicePurchase):
        res = await db.execute(
            update(model)
            .where(model.payment_id == order_id, model.payment_status == "pending")
            .values(payment_status="failed", updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        changed += res.rowcount or 0
    await db.commit()

    if changed:
        logger.info("Payment failed for order %s", order_id)
    return changed


# -------------------------
# Triggers
# -------------------------
async def verify_payment(
    db: AsyncSession,
    gateway: PaymentGateway,
    *,
    order_id: str,
    user_id: str,
    app_url: str,
) -> CompletionResult:
    logger.info("Verifying payment for order %s", order_id)

    try:
        status = await gateway.fetch_order_status(order_id)
    except PaymentGatewayError as e:
        raise PaymentVerificationFailed(str(e) or "Payment verification failed") from e

    if not (status.is_paid or gateway.demo_mode):
        raise PaymentNotCompleted(status.order_status)

    record = await find_order(db, order_id, user_id=user_id)
    if record is None:
        logger.error("Registration/purchase not found for order %s", order_id)
        raise OrderNotFound("Registration not found")

    return await complete_order(
        db,
        record,
        app_url=app_url,
        transaction_id=status.cf_payment_id or None,
        payment_method=status.payment_method or None,
    )


@dataclass
class WebhookOutcome:
    event_type: str
    order_id: str | None = None
    result: CompletionResult | None = None


async def process_webhook_event(db: AsyncSession, payload: dict, *, app_url: str) -> WebhookOutcome:
    event_type = payload.get("type") or ""
    data = payload.get("data") or {}
    order_id = (data.get("order") or {}).get("order_id")

    logger.info("Webhook received: %s %s", event_type, order_id)

    if event_type in SUCCESS_EVENTS:
        if not order_id:
            raise PaymentError("Missing order ID")

        record = await find_order(db, order_id)
        if record is None:
            logger.warning("No matching record found for order %s", order_id)
            raise OrderNotFound("Order not found")

        payment = data.get("payment") or {}
        cf_payment_id = payment.get("cf_payment_id")
        result = await complete_order(
            db,
            record,
            app_url=app_url,
            transaction_id=str(cf_payment_id) if cf_payment_id else order_id,
            payment_method=payment.get("payment_group") or None,
        )
        return WebhookOutcome(event_type=event_type, order_id=order_id, result=result)

    if event_type in FAILED_EVENTS:
        if order_id:
            await mark_order_failed(db, order_id)
        return WebhookOutcome(event_type=event_type, order_id=order_id)

    logger.info("Unhandled webhook type: %s", event_type)
    return WebhookOutcome(event_type=event_type, order_id=order_id)
