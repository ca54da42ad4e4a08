from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_service_db
from app.core.deps import require_admin
from app.schemas.catalog import (
    AdminWebinarOut,
    ServiceCreate,
    ServiceOut,
    ServiceUpdate,
    WebinarCreate,
    WebinarUpdate,
)
from app.services.catalog import (
    CatalogError,
    CatalogNotFound,
    admin_create_service,
    admin_create_webinar,
    admin_delete_service,
    admin_delete_webinar,
    admin_get_service,
    admin_get_webinar,
    admin_list_services,
    admin_list_webinars,
    admin_update_service,
    admin_update_webinar,
)

router = APIRouter(prefix="/admin", tags=["Admin - Catalog"])


def _raise(e: CatalogError) -> None:
    if isinstance(e, CatalogNotFound):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=400, detail=str(e))


# -------------------------
# Webinars
# -------------------------
@router.get("/webinars", response_model=list[AdminWebinarOut])
async def list_webinars(
    status: Literal["draft", "published", "completed", "cancelled"] | None = Query(default=None),
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    return await admin_list_webinars(db, status=status)


@router.get("/webinars/{webinar_id}", response_model=AdminWebinarOut)
async def get_webinar(
    webinar_id: str,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_get_webinar(db, webinar_id=webinar_id)
    except CatalogError as e:
        _raise(e)


@router.post("/webinars", response_model=AdminWebinarOut, status_code=201)
async def create_webinar(
    body: WebinarCreate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_create_webinar(db, data=body)
    except CatalogError as e:
        _raise(e)


@router.patch("/webinars/{webinar_id}", response_model=AdminWebinarOut)
async def update_webinar(
    webinar_id: str,
    body: WebinarUpdate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_update_webinar(db, webinar_id=webinar_id, data=body)
    except CatalogError as e:
        _raise(e)


@router.delete("/webinars/{webinar_id}", status_code=204)
async def delete_webinar(
    webinar_id: str,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        await admin_delete_webinar(db, webinar_id=webinar_id)
    except CatalogError as e:
        _raise(e)


# -------------------------
# Services
# -------------------------
@router.get("/services", response_model=list[ServiceOut])
async def list_services(
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    return await admin_list_services(db)


@router.get("/services/{service_id}", response_model=ServiceOut)
async def get_service(
    service_id: str,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_get_service(db, service_id=service_id)
    except CatalogError as e:
        _raise(e)


@router.post("/services", response_model=ServiceOut, status_code=201)
async def create_service(
    body: ServiceCreate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_create_service(db, data=body)
    except CatalogError as e:
        _raise(e)


@router.patch("/services/{service_id}", response_model=ServiceOut)
async def update_service(
    service_id: str,
    body: ServiceUpdate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_update_service(db, service_id=service_id, data=body)
    except CatalogError as e:
        _raise(e)


@router.delete("/services/{service_id}", status_code=204)
async def delete_service(
    service_id: str,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        await admin_delete_service(db, service_id=service_id)
    except CatalogError as e:
        _raise(e)
