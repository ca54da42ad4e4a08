from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

_SLUG = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


# -------------------------
# FAQs
# -------------------------
class FaqOut(BaseModel):
    id: str
    question: str
    answer: str
    category: str
    display_order: int

    class Config:
        from_attributes = True


class AdminFaqOut(FaqOut):
    is_active: bool
    created_at: datetime
    updated_at: datetime


class FaqCreate(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    category: str = Field(default="General", min_length=1, max_length=100)
    display_order: int = 0
    is_active: bool = True


class FaqUpdate(BaseModel):
    question: str | None = Field(default=None, min_length=1)
    answer: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    display_order: int | None = None
    is_active: bool | None = None


# -------------------------
# Legal pages
# -------------------------
class LegalPageOut(BaseModel):
    id: str
    slug: str
    title: str
    content: str
    last_updated: datetime

    class Config:
        from_attributes = True


class LegalPageCreate(BaseModel):
    slug: str = Field(..., min_length=1, max_length=255, pattern=_SLUG)
    title: str = Field(..., min_length=1, max_length=255)
    content: str = ""


class LegalPageUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = None
