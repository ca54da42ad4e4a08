from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_service_db
from app.core.deps import require_admin
from app.models.user import User
from app.schemas.admin import AnalyticsOut
from app.services.analytics import AnalyticsError, admin_analytics

router = APIRouter(prefix="/admin", tags=["Admin - Analytics"])


@router.get("/analytics", response_model=AnalyticsOut)
async def analytics(
    period: int = Query(default=30, description="Days to look back"),
    db: AsyncSession = Depends(get_service_db),
    _: User = Depends(require_admin),
):
    try:
        return await admin_analytics(db, period_days=period)
    except AnalyticsError as e:
        raise HTTPException(status_code=400, detail=str(e))
