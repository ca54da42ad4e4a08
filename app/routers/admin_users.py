from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_service_db
from app.core.deps import require_admin
from app.models.user import User
from app.schemas.admin import AdminUserOut, RoleUpdate
from app.services.accounts import AccountError, UserNotFound, admin_list_users, admin_set_role

router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])


@router.get("", response_model=list[AdminUserOut])
async def list_users(
    role: Literal["user", "admin"] | None = Query(default=None),
    db: AsyncSession = Depends(get_service_db),
    _: User = Depends(require_admin),
):
    return await admin_list_users(db, role=role)


@router.patch("/{user_id}/role", response_model=AdminUserOut)
async def set_role(
    user_id: str,
    body: RoleUpdate,
    db: AsyncSession = Depends(get_service_db),
    admin_user: User = Depends(require_admin),
):
    try:
        return await admin_set_role(db, user_id=user_id, role=body.role, actor_user_id=admin_user.id)
    except UserNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AccountError as e:
        raise HTTPException(status_code=400, detail=str(e))
