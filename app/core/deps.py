from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.db import get_db
from app.core.security import decode_token, TokenError
from app.integrations.payment_gateway import PaymentGateway, build_payment_gateway
from app.integrations.smtp_mailer import SmtpMailer, build_mailer
from app.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

SESSION_COOKIE = "access_token"


def token_from_request(request: Request, bearer: str | None) -> str | None:
    return bearer or request.cookies.get(SESSION_COOKIE)


async def _load_user(db: AsyncSession, token: str) -> User:
    try:
        payload = decode_token(token, expected_type="access")
    except TokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token missing user id")

    res = await db.execute(select(User).where(User.id == str(user_id)))
    user = res.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="User inactive")

    return user


async def get_current_user(
    request: Request,
    bearer: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    token = token_from_request(request, bearer)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return await _load_user(db, token)


async def get_optional_user(
    request: Request,
    bearer: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    token = token_from_request(request, bearer)
    if not token:
        return None
    try:
        return await _load_user(db, token)
    except HTTPException:
        return None


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


def get_payment_gateway(settings: Settings = Depends(get_settings)) -> PaymentGateway:
    return build_payment_gateway(settings)


def get_mailer(settings: Settings = Depends(get_settings)) -> SmtpMailer:
    return build_mailer(settings)
