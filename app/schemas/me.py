from __future__ import annotations

from datetime import date, datetime, time

from pydantic import BaseModel, Field

from app.schemas.common import Money


class MeOut(BaseModel):
    id: str
    email: str
    role: str
    full_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MeUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    avatar_url: str | None = Field(default=None, max_length=1024)


class WebinarSummaryOut(BaseModel):
    id: str
    title: str
    slug: str
    webinar_date: date
    start_time: time
    host_name: str | None = None
    thumbnail_url: str | None = None
    meeting_platform: str
    status: str

    class Config:
        from_attributes = True


class ServiceSummaryOut(BaseModel):
    id: str
    name: str
    slug: str
    short_description: str | None = None
    image_url: str | None = None

    class Config:
        from_attributes = True


class MyRegistrationOut(BaseModel):
    id: str
    amount_paid: Money
    discount_amount: Money
    payment_status: str
    payment_id: str | None
    invoice_number: str | None
    meeting_link_sent: bool
    registered_at: datetime
    webinar: WebinarSummaryOut

    class Config:
        from_attributes = True


class MyPurchaseOut(BaseModel):
    id: str
    amount_paid: Money
    discount_amount: Money
    payment_status: str
    payment_id: str | None
    invoice_number: str | None
    fulfillment_status: str
    purchased_at: datetime
    service: ServiceSummaryOut

    class Config:
        from_attributes = True
