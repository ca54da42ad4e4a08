from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_service_db
from app.core.deps import require_admin
from app.schemas.content import (
    AdminFaqOut,
    FaqCreate,
    FaqUpdate,
    LegalPageCreate,
    LegalPageOut,
    LegalPageUpdate,
)
from app.services.content import (
    ContentError,
    ContentNotFound,
    admin_create_faq,
    admin_create_legal_page,
    admin_delete_faq,
    admin_list_faqs,
    admin_list_legal_pages,
    admin_update_faq,
    admin_update_legal_page,
)

router = APIRouter(prefix="/admin", tags=["Admin - Content"])


def _raise(e: ContentError) -> None:
    if isinstance(e, ContentNotFound):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=400, detail=str(e))


# -------------------------
# FAQs
# -------------------------
@router.get("/faqs", response_model=list[AdminFaqOut])
async def list_faqs(
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    return await admin_list_faqs(db)


@router.post("/faqs", response_model=AdminFaqOut, status_code=201)
async def create_faq(
    body: FaqCreate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    return await admin_create_faq(db, data=body)


@router.patch("/faqs/{faq_id}", response_model=AdminFaqOut)
async def update_faq(
    faq_id: str,
    body: FaqUpdate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_update_faq(db, faq_id=faq_id, data=body)
    except ContentError as e:
        _raise(e)


@router.delete("/faqs/{faq_id}", status_code=204)
async def delete_faq(
    faq_id: str,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        await admin_delete_faq(db, faq_id=faq_id)
    except ContentError as e:
        _raise(e)


# -------------------------
# Legal pages
# -------------------------
@router.get("/legal-pages", response_model=list[LegalPageOut])
async def list_legal_pages(
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    return await admin_list_legal_pages(db)


@router.post("/legal-pages", response_model=LegalPageOut, status_code=201)
async def create_legal_page(
    body: LegalPageCreate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_create_legal_page(db, data=body)
    except ContentError as e:
        _raise(e)


@router.patch("/legal-pages/{page_id}", response_model=LegalPageOut)
async def update_legal_page(
    page_id: str,
    body: LegalPageUpdate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_update_legal_page(db, page_id=page_id, data=body)
    except ContentError as e:
        _raise(e)
