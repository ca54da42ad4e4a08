from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base
from app.models.user import new_id


class SiteSettings(Base):
    __tablename__ = "site_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    site_name: Mapped[str] = mapped_column(String(255), nullable=False, default="WebinarPro")
    site_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    favicon_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    facebook_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    twitter_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    instagram_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    linkedin_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    youtube_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # invoice issuer details
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    gst_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    gst_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    gst_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("18"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
