from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.service import Service
from app.models.webinar import Webinar


class CatalogError(Exception):
    pass


class CatalogNotFound(CatalogError):
    pass


# -------------------------
# Public reads
# -------------------------
async def list_published_webinars(
    db: AsyncSession, *, featured: bool | None = None, limit: int | None = None
) -> list[Webinar]:
    stmt = (
        select(Webinar)
        .where(Webinar.status == "published")
        .order_by(Webinar.webinar_date.asc(), Webinar.start_time.asc())
    )
    if featured is not None:
        stmt = stmt.where(Webinar.is_featured.is_(featured))
    if limit:
        stmt = stmt.limit(limit)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def get_published_webinar(db: AsyncSession, slug: str) -> Webinar:
    res = await db.execute(
        select(Webinar).where(Webinar.slug == slug, Webinar.status == "published")
    )
    webinar = res.scalar_one_or_none()
    if webinar is None:
        raise CatalogNotFound("Webinar not found")
    return webinar


async def list_active_services(db: AsyncSession, *, featured: bool | None = None) -> list[Service]:
    stmt = (
        select(Service)
        .where(Service.is_active.is_(True))
        .order_by(Service.display_order.asc(), Service.name.asc())
    )
    if featured is not None:
        stmt = stmt.where(Service.is_featured.is_(featured))
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def get_active_service(db: AsyncSession, slug: str) -> Service:
    res = await db.execute(
        select(Service).where(Service.slug == slug, Service.is_active.is_(True))
    )
    service = res.scalar_one_or_none()
    if service is None:
        raise CatalogNotFound("Service not found")
    return service


# -------------------------
# Admin
# -------------------------
async def _commit_or_slug_error(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise CatalogError("Slug already exists")


async def admin_list_webinars(db: AsyncSession, *, status: str | None = None) -> list[Webinar]:
    stmt = select(Webinar).order_by(Webinar.webinar_date.desc())
    if status:
        stmt = stmt.where(Webinar.status == status)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def admin_get_webinar(db: AsyncSession, *, webinar_id: str) -> Webinar:
    webinar = await db.get(Webinar, webinar_id)
    if webinar is None:
        raise CatalogNotFound("Webinar not found")
    return webinar


async def admin_create_webinar(db: AsyncSession, *, data) -> Webinar:
    webinar = Webinar(**data.model_dump())
    # a new webinar starts with every seat open
    webinar.available_slots = webinar.total_slots
    db.add(webinar)
    await _commit_or_slug_error(db)
    await db.refresh(webinar)
    return webinar


async def admin_update_webinar(db: AsyncSession, *, webinar_id: str, data) -> Webinar:
    webinar = await admin_get_webinar(db, webinar_id=webinar_id)
    changes = data.model_dump(exclude_unset=True)

    if "total_slots" in changes and "available_slots" not in changes:
        # keep the number of taken seats when capacity changes
        taken = webinar.total_slots - webinar.available_slots
        changes["available_slots"] = max(0, changes["total_slots"] - taken)

    for field, value in changes.items():
        setattr(webinar, field, value)

    await _commit_or_slug_error(db)
    await db.refresh(webinar)
    return webinar


async def admin_delete_webinar(db: AsyncSession, *, webinar_id: str) -> None:
    webinar = await admin_get_webinar(db, webinar_id=webinar_id)
    await db.delete(webinar)
    await db.commit()


async def admin_list_services(db: AsyncSession) -> list[Service]:
    res = await db.execute(select(Service).order_by(Service.display_order.asc()))
    return list(res.scalars().all())


async def admin_get_service(db: AsyncSession, *, service_id: str) -> Service:
    service = await db.get(Service, service_id)
    if service is None:
        raise CatalogNotFound("Service not found")
    return service


async def admin_create_service(db: AsyncSession, *, data) -> Service:
    service = Service(**data.model_dump())
    db.add(service)
    await _commit_or_slug_error(db)
    await db.refresh(service)
    return service


async def admin_update_service(db: AsyncSession, *, service_id: str, data) -> Service:
    service = await admin_get_service(db, service_id=service_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    await _commit_or_slug_error(db)
    await db.refresh(service)
    return service


async def admin_delete_service(db: AsyncSession, *, service_id: str) -> None:
    service = await admin_get_service(db, service_id=service_id)
    await db.delete(service)
    await db.commit()
