from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.models.user import new_id

PAYMENT_STATUSES = ("pending", "completed", "failed", "free", "refunded")
CONFIRMED_STATUSES = ("completed", "free")

_status_check = "payment_status IN ('pending','completed','failed','free','refunded')"
_confirmed_clause = "payment_status IN ('completed','free')"


class WebinarRegistration(Base):
    __tablename__ = "webinar_registrations"
    __table_args__ = (
        CheckConstraint(_status_check, name="webinar_registrations_status_check"),
        # one confirmed seat per user and webinar
        Index(
            "uq_webinar_registrations_confirmed",
            "user_id",
            "webinar_id",
            unique=True,
            sqlite_where=text(_confirmed_clause),
            postgresql_where=text(_confirmed_clause),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    webinar_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("webinars.id", ondelete="CASCADE"), nullable=False, index=True
    )

    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    original_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    coupon_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True
    )

    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    # external order id; the reconciliation key for verify + webhook
    payment_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    invoice_number: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)

    meeting_link_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    meeting_link_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    user = relationship("User", lazy="selectin")
    webinar = relationship("Webinar", lazy="selectin")
