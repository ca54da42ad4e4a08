# app/services/bookings.py
from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.money import D, ZERO, round_money
from app.integrations.payment_gateway import CustomerDetails, GatewayOrder, PaymentGateway
from app.models.purchase import ServicePurchase
from app.models.registration import CONFIRMED_STATUSES, WebinarRegistration
from app.models.service import Service
from app.models.user import User
from app.models.webinar import Webinar
from app.services.coupons import validate_coupon
from app.services.payments import CompletionResult, Order, complete_order

logger = logging.getLogger(__name__)

ITEM_TYPES = ("webinar", "service")

_BASE36 = string.digits + string.ascii_lowercase


class BookingError(Exception):
    pass


class ItemNotFound(BookingError):
    pass


@dataclass
class BookingResult:
    type: str
    record: Order
    order_id: str
    amount: Decimal
    demo_mode: bool
    gateway_order: GatewayOrder | None = None
    # set for zero-amount orders, which complete synchronously
    completion: CompletionResult | None = None

    @property
    def requires_payment(self) -> bool:
        return self.completion is None


def generate_order_id(now_ms: int | None = None) -> str:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"ORDER_{now_ms}_{suffix}"


async def _load_item(db: AsyncSession, item_type: str, item_id: str):
    if item_type == "webinar":
        item = await db.get(Webinar, item_id)
        if item is None:
            raise ItemNotFound("Webinar not found")
        return item

    item = await db.get(Service, item_id)
    if item is None:
        raise ItemNotFound("Service not found")
    return item


async def _already_owned(db: AsyncSession, *, item_type: str, item_id: str, user_id: str) -> bool:
    if item_type == "webinar":
        stmt = select(WebinarRegistration.id).where(
            WebinarRegistration.webinar_id == item_id,
            WebinarRegistration.user_id == user_id,
            WebinarRegistration.payment_status.in_(CONFIRMED_STATUSES),
        )
    else:
        stmt = select(ServicePurchase.id).where(
            ServicePurchase.service_id == item_id,
            ServicePurchase.user_id == user_id,
            ServicePurchase.payment_status == "completed",
        )
    res = await db.execute(stmt.limit(1))
    return res.scalar_one_or_none() is not None


def _new_record(item_type: str, **fields) -> Order:
    if item_type == "webinar":
        return WebinarRegistration(webinar_id=fields.pop("item_id"), **fields)
    return ServicePurchase(service_id=fields.pop("item_id"), **fields)


async def create_booking(
    db: AsyncSession,
    gateway: PaymentGateway,
    *,
    user: User,
    item_type: str,
    item_id: str,
    coupon_code: str | None = None,
    app_url: str,
    currency: str = "INR",
) -> BookingResult:
    """
    Prices the order server-side (item price minus coupon), then either
    completes it synchronously (zero amount) or opens a gateway order and
    stores a pending row keyed by the generated order id.
    """
    if item_type not in ITEM_TYPES:
        raise BookingError("Invalid payment type")

    item = await _load_item(db, item_type, item_id)

    if await _already_owned(db, item_type=item_type, item_id=item_id, user_id=user.id):
        if item_type == "webinar":
            raise BookingError("You are already registered for this webinar")
        raise BookingError("You have already purchased this service")

    if item_type == "webinar" and item.available_slots <= 0:
        raise BookingError("Sorry, this webinar is sold out")

    price = round_money(D(item.price))
    discount = ZERO
    coupon_id = None
    if coupon_code and price > 0:
        quote = await validate_coupon(
            db,
            code=coupon_code,
            item_type=item_type,
            item_id=item_id,
            amount=price,
            user_id=user.id,
        )
        discount = quote.discount_amount
        coupon_id = quote.coupon.id
    amount = round_money(price - discount)

    order_id = generate_order_id()
    record = _new_record(
        item_type,
        item_id=item_id,
        user_id=user.id,
        amount_paid=amount,
        original_amount=price,
        discount_amount=discount,
        coupon_id=coupon_id,
        payment_status="pending",
        payment_id=order_id,
    )

    if amount <= 0:
        db.add(record)
        await db.commit()
        await db.refresh(record)

        status = "free" if price <= 0 else "completed"
        completion = await complete_order(
            db,
            record,
            app_url=app_url,
            status=status,
            transaction_id=order_id,
            payment_method="free" if status == "free" else "coupon",
        )
        logger.info("Zero-amount %s order %s recorded as %s", item_type, order_id, status)
        return BookingResult(
            type=item_type,
            record=completion.record,
            order_id=order_id,
            amount=ZERO,
            demo_mode=gateway.demo_mode,
            completion=completion,
        )

    path = "webinar" if item_type == "webinar" else "service"
    gateway_order = await gateway.create_order(
        order_id=order_id,
        amount=amount,
        currency=currency,
        customer=CustomerDetails(
            customer_id=user.id,
            customer_email=user.email,
            customer_phone=user.phone or "9999999999",
            customer_name=user.full_name or "Customer",
        ),
        return_url=f"{app_url}/{path}/{item.slug}/success?order_id={{order_id}}",
        notify_url=f"{app_url}/api/payment/webhook",
        note=f"{'Webinar Registration' if item_type == 'webinar' else 'Service Purchase'} - {item_id}",
    )

    db.add(record)
    await db.commit()
    await db.refresh(record)
    logger.info("Pending %s order %s created for %s", item_type, order_id, amount)

    return BookingResult(
        type=item_type,
        record=record,
        order_id=order_id,
        amount=amount,
        demo_mode=gateway.demo_mode,
        gateway_order=gateway_order,
    )
