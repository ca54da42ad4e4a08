from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_service_db
from app.core.deps import require_admin
from app.models.user import User
from app.schemas.admin import (
    FulfillmentUpdate,
    PurchaseRowOut,
    PurchasesListOut,
    RegistrationsListOut,
)
from app.services.orders import (
    OrderNotFound,
    OrdersError,
    list_purchases,
    list_registrations,
    update_fulfillment,
)


router = APIRouter(prefix="/admin", tags=["Admin Orders"])


@router.get("/registrations", response_model=RegistrationsListOut)
async def admin_list_registrations(
    webinar_id: Optional[str] = None,
    payment_status: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_service_db),
    _: User = Depends(require_admin),
) -> RegistrationsListOut:
    data = await list_registrations(
        db,
        webinar_id=webinar_id,
        payment_status=payment_status,
        limit=limit,
        offset=offset,
    )
    return RegistrationsListOut(**data)


@router.get("/purchases", response_model=PurchasesListOut)
async def admin_list_purchases(
    payment_status: Optional[str] = None,
    fulfillment_status: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_service_db),
    _: User = Depends(require_admin),
) -> PurchasesListOut:
    data = await list_purchases(
        db,
        payment_status=payment_status,
        fulfillment_status=fulfillment_status,
        limit=limit,
        offset=offset,
    )
    return PurchasesListOut(**data)


@router.patch("/purchases/{purchase_id}", response_model=PurchaseRowOut)
async def admin_update_fulfillment(
    purchase_id: str,
    body: FulfillmentUpdate,
    db: AsyncSession = Depends(get_service_db),
    _: User = Depends(require_admin),
) -> PurchaseRowOut:
    try:
        data = await update_fulfillment(
            db,
            purchase_id=purchase_id,
            fulfillment_status=body.fulfillment_status,
            fulfillment_notes=body.fulfillment_notes,
        )
        return PurchaseRowOut(**data)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrdersError as e:
        raise HTTPException(status_code=400, detail=str(e))
