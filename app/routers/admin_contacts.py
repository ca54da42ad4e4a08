from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_service_db
from app.core.deps import require_admin
from app.models.user import User
from app.schemas.admin import ContactMarkIn
from app.schemas.catalog import ContactOut
from app.services.contacts import ContactNotFound, admin_list_contacts, admin_mark_contact

router = APIRouter(prefix="/admin/contacts", tags=["Admin - Contacts"])


@router.get("", response_model=list[ContactOut])
async def list_contacts(
    is_read: bool | None = Query(default=None),
    db: AsyncSession = Depends(get_service_db),
    _: User = Depends(require_admin),
):
    return await admin_list_contacts(db, is_read=is_read)


@router.patch("/{contact_id}", response_model=ContactOut)
async def mark_contact(
    contact_id: str,
    body: ContactMarkIn,
    db: AsyncSession = Depends(get_service_db),
    admin_user: User = Depends(require_admin),
):
    try:
        return await admin_mark_contact(
            db,
            contact_id=contact_id,
            is_read=body.is_read,
            admin_notes=body.admin_notes,
            actor_user_id=admin_user.id,
        )
    except ContactNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
