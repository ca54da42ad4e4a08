from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.catalog import ServiceOut, WebinarOut
from app.services.catalog import (
    CatalogNotFound,
    get_active_service,
    get_published_webinar,
    list_active_services,
    list_published_webinars,
)

router = APIRouter(tags=["Catalog"])


@router.get("/webinars", response_model=list[WebinarOut])
async def webinars(
    featured: bool | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await list_published_webinars(db, featured=featured, limit=limit)


@router.get("/webinars/{slug}", response_model=WebinarOut)
async def webinar_detail(slug: str, db: AsyncSession = Depends(get_db)):
    try:
        return await get_published_webinar(db, slug)
    except CatalogNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/services", response_model=list[ServiceOut])
async def services(
    featured: bool | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await list_active_services(db, featured=featured)


@router.get("/services/{slug}", response_model=ServiceOut)
async def service_detail(slug: str, db: AsyncSession = Depends(get_db)):
    try:
        return await get_active_service(db, slug)
    except CatalogNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
