# app/models/coupon.py
from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)

from app.core.db import Base
from app.models.user import new_id


class Coupon(Base):
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint(
            "discount_type IN ('percentage','fixed')",
            name="coupons_discount_type_check",
        ),
        CheckConstraint(
            "applies_to IN ('all','webinar','service')",
            name="coupons_applies_to_check",
        ),
        CheckConstraint("current_uses >= 0", name="coupons_current_uses_check"),
    )

    id = Column(String(36), primary_key=True, default=new_id)

    # stored upper-cased
    code = Column(String(64), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    discount_type = Column(String(16), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)

    min_purchase_amount = Column(Numeric(10, 2), nullable=True)
    # cap for percentage coupons
    max_discount_amount = Column(Numeric(10, 2), nullable=True)

    # NULL = unlimited
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)
    max_uses_per_user = Column(Integer, nullable=True, default=1)

    # NULL = open-ended
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    applies_to = Column(String(16), nullable=False, default="all")
    # optional allow-list of webinar/service ids
    applicable_items = Column(JSON, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CouponUsage(Base):
    __tablename__ = "coupon_usages"
    __table_args__ = (
        # one usage per order, whichever completion path records it
        UniqueConstraint("order_id", name="coupon_usages_order_id_key"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    coupon_id = Column(String(36), ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(String(64), nullable=False)
    item_type = Column(String(16), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False)

    used_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
