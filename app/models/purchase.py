from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.models.registration import _status_check
from app.models.user import new_id

FULFILLMENT_STATUSES = ("pending", "in_progress", "completed")


class ServicePurchase(Base):
    __tablename__ = "service_purchases"
    __table_args__ = (
        CheckConstraint(_status_check, name="service_purchases_status_check"),
        CheckConstraint(
            "fulfillment_status IN ('pending','in_progress','completed')",
            name="service_purchases_fulfillment_check",
        ),
        Index(
            "uq_service_purchases_completed",
            "user_id",
            "service_id",
            unique=True,
            sqlite_where=text("payment_status = 'completed'"),
            postgresql_where=text("payment_status = 'completed'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )

    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    original_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    coupon_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True
    )

    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    payment_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    invoice_number: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)

    fulfillment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    fulfillment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    user = relationship("User", lazy="selectin")
    service = relationship("Service", lazy="selectin")
