from __future__ import annotations

from datetime import date, datetime, time
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.common import Money


# -------------------------
# Bookings / purchases
# -------------------------
class OrderUserOut(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None


class OrderWebinarOut(BaseModel):
    id: str
    title: str
    slug: str
    webinar_date: date
    start_time: time


class OrderServiceOut(BaseModel):
    id: str
    name: str
    slug: str


class RegistrationRowOut(BaseModel):
    id: str
    order_id: Optional[str] = None
    amount_paid: Money
    original_amount: Optional[Money] = None
    discount_amount: Money
    payment_status: str
    transaction_id: Optional[str] = None
    invoice_number: Optional[str] = None
    meeting_link_sent: bool = False
    registered_at: datetime
    user: Optional[OrderUserOut] = None
    webinar: Optional[OrderWebinarOut] = None


class RegistrationsListOut(BaseModel):
    items: List[RegistrationRowOut] = Field(default_factory=list)
    limit: int
    offset: int
    total: int


class PurchaseRowOut(BaseModel):
    id: str
    order_id: Optional[str] = None
    amount_paid: Money
    original_amount: Optional[Money] = None
    discount_amount: Money
    payment_status: str
    transaction_id: Optional[str] = None
    invoice_number: Optional[str] = None
    fulfillment_status: str
    fulfillment_notes: Optional[str] = None
    purchased_at: datetime
    user: Optional[OrderUserOut] = None
    service: Optional[OrderServiceOut] = None


class PurchasesListOut(BaseModel):
    items: List[PurchaseRowOut] = Field(default_factory=list)
    limit: int
    offset: int
    total: int


class FulfillmentUpdate(BaseModel):
    fulfillment_status: Literal["pending", "in_progress", "completed"]
    fulfillment_notes: Optional[str] = None


# -------------------------
# Users / contacts
# -------------------------
class AdminUserOut(BaseModel):
    id: str
    email: str
    role: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class RoleUpdate(BaseModel):
    role: Literal["user", "admin"]


class ContactMarkIn(BaseModel):
    is_read: bool = True
    admin_notes: Optional[str] = None


# -------------------------
# Analytics
# -------------------------
class AnalyticsOverviewOut(BaseModel):
    total_revenue: Money
    total_webinar_revenue: Money
    total_service_revenue: Money
    total_users: int = 0
    total_webinars: int = 0
    new_users_this_period: int = 0
    pending_contacts: int = 0
    registrations_count: int = 0
    purchases_count: int = 0


class ChartPointOut(BaseModel):
    date: str
    webinar: Money
    service: Money
    total: Money


class TopWebinarOut(BaseModel):
    webinar_id: str
    title: str
    revenue: Money
    count: int


class AnalyticsOut(BaseModel):
    period_days: int
    overview: AnalyticsOverviewOut
    chart_data: List[ChartPointOut] = Field(default_factory=list)
    top_webinars: List[TopWebinarOut] = Field(default_factory=list)


# -------------------------
# Bulk operations
# -------------------------
class MeetingLinksRequest(BaseModel):
    webinar_id: Optional[str] = None
    meeting_link: Optional[str] = None


class MeetingLinksOut(BaseModel):
    success: bool = True
    message: str
    emails_sent: int = 0
    emails_failed: int = 0
    total_recipients: int = 0


class SlotSyncRowOut(BaseModel):
    webinar_id: str
    title: str
    total_slots: int
    registered: int
    previous_available: int
    available_slots: int


class SlotSyncOut(BaseModel):
    success: bool = True
    message: str
    results: List[SlotSyncRowOut] = Field(default_factory=list)


class UploadOut(BaseModel):
    success: bool = True
    url: str
    path: str
