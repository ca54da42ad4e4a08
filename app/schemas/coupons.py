# app/schemas/coupons.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.common import Money


class CouponValidateRequest(BaseModel):
    code: str | None = None
    item_type: Literal["webinar", "service"] | None = None
    item_id: str | None = None
    amount: Decimal | None = Field(default=None, ge=0)


class CouponSummaryOut(BaseModel):
    id: str
    code: str
    description: str | None
    discount_type: str
    discount_value: Money
    max_discount_amount: Money | None

    class Config:
        from_attributes = True


class CouponValidateResponse(BaseModel):
    valid: bool = True
    coupon: CouponSummaryOut
    discount_amount: Money
    # null for validation-only calls
    final_amount: Money | None


class AdminCouponCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=64)
    description: str | None = None
    discount_type: Literal["percentage", "fixed"]
    discount_value: Decimal = Field(..., gt=0)
    min_purchase_amount: Decimal | None = Field(default=None, ge=0)
    max_discount_amount: Decimal | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    max_uses_per_user: int | None = Field(default=1, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    applies_to: Literal["all", "webinar", "service"] = "all"
    applicable_items: list[str] | None = None
    is_active: bool = True


class AdminCouponUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=2, max_length=64)
    description: str | None = None
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    min_purchase_amount: Decimal | None = Field(default=None, ge=0)
    max_discount_amount: Decimal | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    max_uses_per_user: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    applies_to: Literal["all", "webinar", "service"] | None = None
    applicable_items: list[str] | None = None
    is_active: bool | None = None


class AdminCouponOut(BaseModel):
    id: str
    code: str
    description: str | None
    discount_type: str
    discount_value: Money
    min_purchase_amount: Money | None
    max_discount_amount: Money | None
    max_uses: int | None
    current_uses: int
    max_uses_per_user: int | None
    valid_from: datetime | None
    valid_until: datetime | None
    applies_to: str
    applicable_items: list[str] | None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
