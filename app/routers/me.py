from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.me import MeOut, MeUpdate, MyPurchaseOut, MyRegistrationOut
from app.services.accounts import my_purchases, my_registrations, update_profile

router = APIRouter(prefix="/me", tags=["Me"])


@router.get("", response_model=MeOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("", response_model=MeOut)
async def update_me(
    payload: MeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await update_profile(db, current_user, data=payload)


@router.get("/webinars", response_model=list[MyRegistrationOut])
async def my_webinars(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await my_registrations(db, user_id=current_user.id)


@router.get("/services", response_model=list[MyPurchaseOut])
async def my_services(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await my_purchases(db, user_id=current_user.id)
