from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.content import FaqOut, LegalPageOut
from app.services.content import ContentNotFound, get_legal_page, list_active_faqs

router = APIRouter(tags=["Content"])


@router.get("/faqs", response_model=list[FaqOut])
async def faqs(
    category: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await list_active_faqs(db, category=category)


@router.get("/legal/{slug}", response_model=LegalPageOut)
async def legal_page(slug: str, db: AsyncSession = Depends(get_db)):
    try:
        return await get_legal_page(db, slug)
    except ContentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
