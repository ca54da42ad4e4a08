from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db, get_service_db
from app.core.deps import require_admin
from app.models.user import User
from app.schemas.catalog import ContactIn, SiteSettingsIn, SiteSettingsResponse
from app.services.contacts import ContactError, submit_contact
from app.services.site_settings import (
    SiteSettingsError,
    get_site_settings,
    health_counts,
    save_site_settings,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Site"])


@router.get("/settings", response_model=SiteSettingsResponse)
async def read_settings(db: AsyncSession = Depends(get_db)):
    return {"settings": await get_site_settings(db)}


@router.put("/settings", response_model=SiteSettingsResponse)
async def write_settings(
    payload: SiteSettingsIn,
    db: AsyncSession = Depends(get_service_db),
    _: User = Depends(require_admin),
):
    try:
        row, created = await save_site_settings(db, data=payload)
    except SiteSettingsError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("Settings save failed: %s", e)
        raise HTTPException(status_code=400, detail="Failed to save settings")

    return {"settings": row, "message": "Settings created" if created else "Settings updated"}


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    try:
        data = await health_counts(db)
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Database connection failed", "details": str(e)},
        )
    return {"success": True, "message": "Database connection successful!", "data": data}


@router.post("/contact")
async def contact(payload: ContactIn, db: AsyncSession = Depends(get_db)):
    try:
        lead = await submit_contact(
            db,
            name=payload.name or "",
            email=payload.email or "",
            message=payload.message or "",
            phone=payload.phone,
            subject=payload.subject,
        )
    except ContactError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "message": "Thank you! Your message has been received.",
        "data": {"id": lead.id},
    }
