from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base
from app.models.user import new_id


class Webinar(Base):
    __tablename__ = "webinars"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft','published','completed','cancelled')",
            name="webinars_status_check",
        ),
        CheckConstraint("available_slots >= 0", name="webinars_available_slots_check"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    short_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    original_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    # fixed capacity vs. remaining capacity
    total_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    available_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    webinar_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="Asia/Kolkata")

    host_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    host_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    host_image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    host_bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    banner_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    meeting_link: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    meeting_password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    meeting_platform: Mapped[str] = mapped_column(String(32), nullable=False, default="zoom")

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
