# app/services/coupons.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.money import D, ZERO, fmt_inr, round_money
from app.models.coupon import Coupon, CouponUsage

logger = logging.getLogger(__name__)


class CouponError(Exception):
    pass


class CouponNotFound(CouponError):
    pass


class CouponRejected(CouponError):
    """Coupon exists but cannot be applied. `reason` is a stable machine code."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


@dataclass
class CouponQuote:
    coupon: Coupon
    discount_amount: Decimal
    # None for validation-only calls (no amount supplied)
    final_amount: Decimal | None


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def _as_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    # SQLite hands back naive datetimes; they are stored as UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


# -------------------------
# Pure checks (no I/O)
# -------------------------
def check_coupon(
    coupon: Coupon,
    *,
    item_type: str | None,
    item_id: str | None,
    amount: Decimal | None,
    now: datetime,
) -> None:
    """
    Runs the record-level checks in order and raises CouponRejected on the
    first failure. Existence/activity and the per-user cap are checked by
    validate_coupon since they need the store.
    """
    now = _as_utc(now)

    valid_from = _as_utc(coupon.valid_from)
    if valid_from is not None and valid_from > now:
        raise CouponRejected("not_yet_valid", "This coupon is not yet valid")

    valid_until = _as_utc(coupon.valid_until)
    if valid_until is not None and valid_until < now:
        raise CouponRejected("expired", "This coupon has expired")

    if coupon.max_uses is not None and (coupon.current_uses or 0) >= coupon.max_uses:
        raise CouponRejected("usage_limit", "This coupon has reached its usage limit")

    if item_type and coupon.applies_to != "all" and coupon.applies_to != item_type:
        raise CouponRejected(
            "wrong_item_type",
            f"This coupon is only valid for {coupon.applies_to}s",
        )

    allowed = coupon.applicable_items or []
    if item_id and allowed and item_id not in allowed:
        raise CouponRejected("item_not_eligible", "This coupon is not valid for this item")

    if amount is not None and coupon.min_purchase_amount is not None:
        if D(amount) < D(coupon.min_purchase_amount):
            raise CouponRejected(
                "below_minimum",
                f"Minimum purchase amount is {fmt_inr(coupon.min_purchase_amount)}",
            )


def compute_discount(coupon: Coupon, amount) -> Decimal:
    amount = D(amount)
    if amount <= 0:
        return ZERO

    if coupon.discount_type == "percentage":
        discount = amount * D(coupon.discount_value) / Decimal(100)
        if coupon.max_discount_amount is not None and discount > D(coupon.max_discount_amount):
            discount = D(coupon.max_discount_amount)
    else:
        discount = D(coupon.discount_value)

    # never drive the payable total below zero
    if discount > amount:
        discount = amount

    return round_money(discount)


def quote_coupon(coupon: Coupon, amount: Decimal | None) -> CouponQuote:
    if amount is None:
        return CouponQuote(coupon=coupon, discount_amount=ZERO, final_amount=None)

    discount = compute_discount(coupon, amount)
    return CouponQuote(
        coupon=coupon,
        discount_amount=discount,
        final_amount=round_money(D(amount) - discount),
    )


# -------------------------
# Store-backed validation
# -------------------------
async def get_active_coupon(db: AsyncSession, code: str) -> Coupon | None:
    res = await db.execute(
        select(Coupon).where(Coupon.code == normalize_code(code), Coupon.is_active.is_(True))
    )
    return res.scalar_one_or_none()


async def count_user_usages(db: AsyncSession, *, coupon_id: str, user_id: str) -> int:
    res = await db.execute(
        select(func.count(CouponUsage.id)).where(
            CouponUsage.coupon_id == coupon_id,
            CouponUsage.user_id == user_id,
        )
    )
    return int(res.scalar_one() or 0)


async def validate_coupon(
    db: AsyncSession,
    *,
    code: str,
    item_type: str | None = None,
    item_id: str | None = None,
    amount: Decimal | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
) -> CouponQuote:
    coupon = await get_active_coupon(db, code)
    if coupon is None:
        raise CouponNotFound("Invalid or expired coupon code")

    check_coupon(
        coupon,
        item_type=item_type,
        item_id=item_id,
        amount=amount,
        now=now or datetime.now(timezone.utc),
    )

    if user_id and coupon.max_uses_per_user:
        used = await count_user_usages(db, coupon_id=coupon.id, user_id=user_id)
        if used >= coupon.max_uses_per_user:
            raise CouponRejected("per_user_limit", "You have already used this coupon")

    return quote_coupon(coupon, amount)


async def record_coupon_usage(
    db: AsyncSession,
    *,
    coupon_id: str,
    user_id: str,
    order_id: str,
    item_type: str,
    discount_amount: Decimal,
) -> bool:
    """
    Ledger row + counter bump for a completed order. Does not commit.
    Returns False if this order's usage was already recorded.
    """
    exists = await db.execute(select(CouponUsage.id).where(CouponUsage.order_id == order_id))
    if exists.scalar_one_or_none() is not None:
        logger.info("Coupon usage for order %s already recorded", order_id)
        return False

    db.add(
        CouponUsage(
            coupon_id=coupon_id,
            user_id=user_id,
            order_id=order_id,
            item_type=item_type,
            discount_amount=round_money(discount_amount),
        )
    )
    await db.flush()

    res = await db.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon_id,
            or_(Coupon.max_uses.is_(None), Coupon.current_uses < Coupon.max_uses),
        )
        .values(current_uses=Coupon.current_uses + 1)
    )
    if res.rowcount == 0:
        # exhausted between validation and payment; the order is already paid
        logger.warning("Coupon %s over its max_uses after order %s", coupon_id, order_id)
    return True


# -------------------------
# Admin
# -------------------------
_COUPON_FIELDS = (
    "description",
    "discount_type",
    "discount_value",
    "min_purchase_amount",
    "max_discount_amount",
    "max_uses",
    "max_uses_per_user",
    "valid_from",
    "valid_until",
    "applies_to",
    "applicable_items",
    "is_active",
)


async def admin_create_coupon(db: AsyncSession, *, data) -> Coupon:
    coupon = Coupon(code=normalize_code(data.code), current_uses=0)
    for field in _COUPON_FIELDS:
        setattr(coupon, field, getattr(data, field))

    db.add(coupon)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise CouponError("Coupon code already exists")
    await db.refresh(coupon)
    return coupon


async def admin_get_coupon(db: AsyncSession, *, coupon_id: str) -> Coupon:
    coupon = await db.get(Coupon, coupon_id)
    if coupon is None:
        raise CouponNotFound("Coupon not found")
    return coupon


async def admin_list_coupons(db: AsyncSession, *, is_active: bool | None = None) -> list[Coupon]:
    stmt = select(Coupon).order_by(Coupon.created_at.desc())
    if is_active is not None:
        stmt = stmt.where(Coupon.is_active.is_(is_active))
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def admin_update_coupon(db: AsyncSession, *, coupon_id: str, data) -> Coupon:
    coupon = await admin_get_coupon(db, coupon_id=coupon_id)

    changes = data.model_dump(exclude_unset=True)
    if "code" in changes and changes["code"] is not None:
        changes["code"] = normalize_code(changes["code"])
    for field, value in changes.items():
        setattr(coupon, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise CouponError("Coupon code already exists")
    await db.refresh(coupon)
    return coupon


async def admin_delete_coupon(db: AsyncSession, *, coupon_id: str) -> None:
    coupon = await admin_get_coupon(db, coupon_id=coupon_id)
    await db.delete(coupon)
    await db.commit()
