from __future__ import annotations

import bcrypt
import jwt
from datetime import datetime, timedelta, timezone

from app.core.config import settings


class TokenError(Exception):
    pass


# -------------------------
# Password hashing (bcrypt)
# -------------------------
def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# -------------------------
# JWT tokens
# -------------------------
def _encode(*, user_id: str, token_type: str, ttl: timedelta, extra: dict | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def create_access_token(*, user_id: str, role: str) -> str:
    return _encode(
        user_id=user_id,
        token_type="access",
        ttl=timedelta(minutes=settings.JWT_ACCESS_MINUTES),
        extra={"role": role},
    )


def create_refresh_token(*, user_id: str) -> str:
    return _encode(
        user_id=user_id,
        token_type="refresh",
        ttl=timedelta(days=settings.JWT_REFRESH_DAYS),
    )


def create_reset_token(*, user_id: str, password_hash: str) -> str:
    # bind to the current hash so a used link stops working after the reset
    return _encode(
        user_id=user_id,
        token_type="reset",
        ttl=timedelta(minutes=settings.JWT_RESET_MINUTES),
        extra={"pwh": password_hash[-12:]},
    )


def decode_token(token: str, *, expected_type: str | None = None) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.ExpiredSignatureError as e:
        raise TokenError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise TokenError("Invalid token") from e

    if expected_type is not None and payload.get("type") != expected_type:
        raise TokenError("Wrong token type")
    return payload
