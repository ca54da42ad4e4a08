from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.common import Money


class WebinarOut(BaseModel):
    id: str
    title: str
    slug: str
    description: str | None = None
    short_description: str | None = None
    price: Money
    original_price: Money | None = None
    total_slots: int
    available_slots: int
    webinar_date: date
    start_time: time
    end_time: time | None = None
    timezone: str
    host_name: str | None = None
    host_title: str | None = None
    host_image_url: str | None = None
    host_bio: str | None = None
    thumbnail_url: str | None = None
    banner_url: str | None = None
    meeting_platform: str
    status: str
    is_featured: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AdminWebinarOut(WebinarOut):
    meeting_link: str | None = None
    meeting_password: str | None = None
    updated_at: datetime


class WebinarCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    short_description: str | None = None
    price: Decimal = Field(default=Decimal("0"), ge=0)
    original_price: Decimal | None = Field(default=None, ge=0)
    total_slots: int = Field(default=100, ge=1)
    webinar_date: date
    start_time: time
    end_time: time | None = None
    timezone: str = "Asia/Kolkata"
    host_name: str | None = None
    host_title: str | None = None
    host_image_url: str | None = None
    host_bio: str | None = None
    thumbnail_url: str | None = None
    banner_url: str | None = None
    meeting_link: str | None = None
    meeting_password: str | None = None
    meeting_platform: Literal["zoom", "google_meet"] = "zoom"
    status: Literal["draft", "published", "completed", "cancelled"] = "draft"
    is_featured: bool = False


class WebinarUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    short_description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    original_price: Decimal | None = Field(default=None, ge=0)
    total_slots: int | None = Field(default=None, ge=1)
    available_slots: int | None = Field(default=None, ge=0)
    webinar_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    timezone: str | None = None
    host_name: str | None = None
    host_title: str | None = None
    host_image_url: str | None = None
    host_bio: str | None = None
    thumbnail_url: str | None = None
    banner_url: str | None = None
    meeting_link: str | None = None
    meeting_password: str | None = None
    meeting_platform: Literal["zoom", "google_meet"] | None = None
    status: Literal["draft", "published", "completed", "cancelled"] | None = None
    is_featured: bool | None = None


class ServiceOut(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    short_description: str | None = None
    price: Money
    original_price: Money | None = None
    features: list = Field(default_factory=list)
    icon_url: str | None = None
    image_url: str | None = None
    is_active: bool
    is_featured: bool
    display_order: int
    created_at: datetime

    class Config:
        from_attributes = True


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    short_description: str | None = None
    price: Decimal = Field(..., ge=0)
    original_price: Decimal | None = Field(default=None, ge=0)
    features: list[str] = Field(default_factory=list)
    icon_url: str | None = None
    image_url: str | None = None
    is_active: bool = True
    is_featured: bool = False
    display_order: int = 0


class ServiceUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    short_description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    original_price: Decimal | None = Field(default=None, ge=0)
    features: list[str] | None = None
    icon_url: str | None = None
    image_url: str | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    display_order: int | None = None


class SiteSettingsOut(BaseModel):
    id: str
    site_name: str
    site_description: str | None = None
    logo_url: str | None = None
    favicon_url: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    facebook_url: str | None = None
    twitter_url: str | None = None
    instagram_url: str | None = None
    linkedin_url: str | None = None
    youtube_url: str | None = None
    company_name: str | None = None
    gst_enabled: bool
    gst_number: str | None = None
    gst_rate: Money

    class Config:
        from_attributes = True


class SiteSettingsResponse(BaseModel):
    settings: SiteSettingsOut | None
    message: str | None = None


class SiteSettingsIn(BaseModel):
    id: str | None = None
    site_name: str | None = Field(default=None, max_length=255)
    site_description: str | None = None
    logo_url: str | None = None
    favicon_url: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    facebook_url: str | None = None
    twitter_url: str | None = None
    instagram_url: str | None = None
    linkedin_url: str | None = None
    youtube_url: str | None = None
    company_name: str | None = None
    gst_enabled: bool | None = None
    gst_number: str | None = None
    gst_rate: Decimal | None = Field(default=None, ge=0, le=100)


class ContactIn(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    subject: str | None = None
    message: str | None = None


class ContactOut(BaseModel):
    id: str
    name: str
    email: str
    phone: str | None = None
    subject: str | None = None
    message: str
    is_read: bool
    read_at: datetime | None = None
    read_by: str | None = None
    admin_notes: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
