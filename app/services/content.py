from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.faq import Faq
from app.models.legal_page import LegalPage


class ContentError(Exception):
    pass


class ContentNotFound(ContentError):
    pass


# -------------------------
# Public reads
# -------------------------
async def list_active_faqs(db: AsyncSession, *, category: str | None = None) -> list[Faq]:
    stmt = (
        select(Faq)
        .where(Faq.is_active.is_(True))
        .order_by(Faq.display_order.asc(), Faq.created_at.asc())
    )
    if category:
        stmt = stmt.where(Faq.category == category)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def get_legal_page(db: AsyncSession, slug: str) -> LegalPage:
    res = await db.execute(select(LegalPage).where(LegalPage.slug == slug))
    page = res.scalar_one_or_none()
    if page is None:
        raise ContentNotFound("Page not found")
    return page


# -------------------------
# Admin: FAQs
# -------------------------
async def admin_list_faqs(db: AsyncSession) -> list[Faq]:
    res = await db.execute(select(Faq).order_by(Faq.display_order.asc(), Faq.created_at.asc()))
    return list(res.scalars().all())


async def admin_get_faq(db: AsyncSession, *, faq_id: str) -> Faq:
    faq = await db.get(Faq, faq_id)
    if faq is None:
        raise ContentNotFound("FAQ not found")
    return faq


async def admin_create_faq(db: AsyncSession, *, data) -> Faq:
    faq = Faq(**data.model_dump())
    db.add(faq)
    await db.commit()
    await db.refresh(faq)
    return faq


async def admin_update_faq(db: AsyncSession, *, faq_id: str, data) -> Faq:
    faq = await admin_get_faq(db, faq_id=faq_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(faq, field, value)
    await db.commit()
    await db.refresh(faq)
    return faq


async def admin_delete_faq(db: AsyncSession, *, faq_id: str) -> None:
    faq = await admin_get_faq(db, faq_id=faq_id)
    await db.delete(faq)
    await db.commit()


# -------------------------
# Admin: legal pages
# -------------------------
async def admin_list_legal_pages(db: AsyncSession) -> list[LegalPage]:
    res = await db.execute(select(LegalPage).order_by(LegalPage.title.asc()))
    return list(res.scalars().all())


async def admin_create_legal_page(db: AsyncSession, *, data) -> LegalPage:
    page = LegalPage(**data.model_dump())
    db.add(page)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ContentError("Slug already exists")
    await db.refresh(page)
    return page


async def admin_update_legal_page(db: AsyncSession, *, page_id: str, data) -> LegalPage:
    page = await db.get(LegalPage, page_id)
    if page is None:
        raise ContentNotFound("Page not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(page, field, value)
    await db.commit()
    await db.refresh(page)
    return page
