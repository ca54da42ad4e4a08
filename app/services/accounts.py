from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import (
    TokenError,
    create_access_token,
    create_refresh_token,
    create_reset_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.models.purchase import ServicePurchase
from app.models.registration import WebinarRegistration
from app.models.user import User

logger = logging.getLogger(__name__)

ROLES = ("user", "admin")


class AccountError(Exception):
    pass


class InvalidCredentials(AccountError):
    pass


class UserNotFound(AccountError):
    pass


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def issue_tokens(user: User) -> dict:
    return {
        "access_token": create_access_token(user_id=user.id, role=user.role),
        "refresh_token": create_refresh_token(user_id=user.id),
        "token_type": "bearer",
    }


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    res = await db.execute(select(User).where(func.lower(User.email) == normalize_email(email)))
    return res.scalar_one_or_none()


async def signup(db: AsyncSession, *, email: str, password: str, full_name: str | None) -> User:
    if await get_user_by_email(db, email) is not None:
        raise AccountError("An account with this email already exists")

    user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        full_name=(full_name or "").strip() or None,
        role="user",
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AccountError("An account with this email already exists")
    await db.refresh(user)
    logger.info("New account %s", user.id)
    return user


async def authenticate(db: AsyncSession, *, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentials("Invalid email or password")
    if not user.is_active:
        raise InvalidCredentials("User is inactive")
    return user


async def refresh_session(db: AsyncSession, *, refresh_token: str) -> User:
    try:
        payload = decode_token(refresh_token, expected_type="refresh")
    except TokenError as e:
        raise InvalidCredentials(str(e)) from e

    user = await db.get(User, str(payload.get("sub")))
    if user is None or not user.is_active:
        raise InvalidCredentials("User not found")
    return user


async def start_password_reset(db: AsyncSession, *, email: str) -> tuple[User, str] | None:
    """Returns (user, token) or None when there is no such account."""
    user = await get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    return user, create_reset_token(user_id=user.id, password_hash=user.password_hash)


async def reset_password(db: AsyncSession, *, token: str, new_password: str) -> User:
    try:
        payload = decode_token(token, expected_type="reset")
    except TokenError as e:
        raise AccountError("Invalid or expired reset link") from e

    user = await db.get(User, str(payload.get("sub")))
    # the token carries a fingerprint of the hash it was issued against
    if user is None or payload.get("pwh") != user.password_hash[-12:]:
        raise AccountError("Invalid or expired reset link")

    user.password_hash = hash_password(new_password)
    await db.commit()
    logger.info("Password reset for %s", user.id)
    return user


# -------------------------
# Profile
# -------------------------
async def update_profile(db: AsyncSession, user: User, *, data) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user


async def my_registrations(db: AsyncSession, *, user_id: str) -> list[WebinarRegistration]:
    res = await db.execute(
        select(WebinarRegistration)
        .where(WebinarRegistration.user_id == user_id)
        .order_by(WebinarRegistration.registered_at.desc())
    )
    return list(res.scalars().all())


async def my_purchases(db: AsyncSession, *, user_id: str) -> list[ServicePurchase]:
    res = await db.execute(
        select(ServicePurchase)
        .where(ServicePurchase.user_id == user_id)
        .order_by(ServicePurchase.purchased_at.desc())
    )
    return list(res.scalars().all())


# -------------------------
# Admin
# -------------------------
async def admin_list_users(db: AsyncSession, *, role: str | None = None) -> list[User]:
    stmt = select(User).order_by(User.created_at.desc())
    if role:
        stmt = stmt.where(User.role == role)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def admin_set_role(db: AsyncSession, *, user_id: str, role: str, actor_user_id: str) -> User:
    if role not in ROLES:
        raise AccountError("Invalid role")

    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFound("User not found")
    if user.id == actor_user_id and role != "admin":
        raise AccountError("You cannot remove your own admin role")

    user.role = role
    await db.commit()
    await db.refresh(user)
    logger.info("User %s role set to %s by %s", user.id, role, actor_user_id)
    return user
