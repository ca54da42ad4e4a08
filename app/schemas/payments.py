from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from app.schemas.common import Money


class PaymentCreateRequest(BaseModel):
    type: Literal["webinar", "service"]
    item_id: str
    coupon_code: str | None = None


class PaymentCreateResponse(BaseModel):
    success: bool = True
    type: str
    order_id: str
    amount: Money
    demo_mode: bool = False
    requires_payment: bool
    payment_status: str
    registration_id: str | None = None
    purchase_id: str | None = None
    cf_order_id: str | None = None
    payment_session_id: str | None = None


class WebinarRegisterRequest(BaseModel):
    webinar_id: str
    coupon_code: str | None = None


class WebinarRegisterResponse(PaymentCreateResponse):
    message: str | None = None


class PaymentVerifyRequest(BaseModel):
    order_id: str | None = None


class PaymentVerifyResponse(BaseModel):
    success: bool = True
    type: str
    payment_status: str
    already_completed: bool
    registration_id: str | None = None
    purchase_id: str | None = None


class WebhookAck(BaseModel):
    success: bool = True
    type: str | None = None
