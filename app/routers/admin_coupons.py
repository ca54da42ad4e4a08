# app/routers/admin_coupons.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_service_db
from app.core.deps import require_admin
from app.schemas.coupons import AdminCouponCreate, AdminCouponOut, AdminCouponUpdate
from app.services.coupons import (
    CouponError,
    CouponNotFound,
    admin_create_coupon,
    admin_delete_coupon,
    admin_get_coupon,
    admin_list_coupons,
    admin_update_coupon,
)

router = APIRouter(prefix="/admin/coupons", tags=["Admin - Coupons"])


@router.get("", response_model=list[AdminCouponOut])
async def list_coupons(
    is_active: bool | None = Query(default=None),
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    return await admin_list_coupons(db, is_active=is_active)


@router.post("", response_model=AdminCouponOut, status_code=201)
async def create_coupon(
    body: AdminCouponCreate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_create_coupon(db, data=body)
    except CouponError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{coupon_id}", response_model=AdminCouponOut)
async def update_coupon(
    coupon_id: str,
    body: AdminCouponUpdate,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        return await admin_update_coupon(db, coupon_id=coupon_id, data=body)
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CouponError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{coupon_id}/toggle", response_model=AdminCouponOut)
async def toggle_coupon(
    coupon_id: str,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        coupon = await admin_get_coupon(db, coupon_id=coupon_id)
        return await admin_update_coupon(
            db,
            coupon_id=coupon_id,
            data=AdminCouponUpdate(is_active=not coupon.is_active),
        )
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{coupon_id}", status_code=204)
async def delete_coupon(
    coupon_id: str,
    db: AsyncSession = Depends(get_service_db),
    admin_user=Depends(require_admin),
):
    try:
        await admin_delete_coupon(db, coupon_id=coupon_id)
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
