from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.deps import get_optional_user
from app.models.user import User
from app.schemas.coupons import CouponSummaryOut, CouponValidateRequest, CouponValidateResponse
from app.services.coupons import CouponNotFound, CouponRejected, validate_coupon

router = APIRouter(prefix="/coupon", tags=["Coupons"])


@router.post("/validate", response_model=CouponValidateResponse)
async def validate(
    payload: CouponValidateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    if not payload.code or not payload.code.strip():
        raise HTTPException(status_code=400, detail="Coupon code is required")

    try:
        quote = await validate_coupon(
            db,
            code=payload.code,
            item_type=payload.item_type,
            item_id=payload.item_id,
            # 0 means no amount
            amount=payload.amount if payload.amount else None,
            user_id=current_user.id if current_user else None,
        )
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CouponRejected as e:
        raise HTTPException(status_code=400, detail=str(e))

    return CouponValidateResponse(
        coupon=CouponSummaryOut.model_validate(quote.coupon),
        discount_amount=quote.discount_amount,
        final_amount=quote.final_amount,
    )
