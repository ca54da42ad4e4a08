from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.db import get_db
from app.core.deps import SESSION_COOKIE, get_mailer
from app.integrations.smtp_mailer import SmtpMailer
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageOut,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenPair,
)
from app.schemas.me import MeOut
from app.services.accounts import (
    AccountError,
    InvalidCredentials,
    authenticate,
    issue_tokens,
    refresh_session,
    reset_password,
    signup,
    start_password_reset,
)
from app.services.invoices import get_issuer
from app.services.notifications import dispatch, password_reset_email, welcome_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.JWT_ACCESS_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.APP_URL.startswith("https://"),
    )


@router.post("/signup", response_model=MeOut, status_code=201)
async def signup_user(
    payload: SignupRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: SmtpMailer = Depends(get_mailer),
):
    try:
        user = await signup(db, email=payload.email, password=payload.password, full_name=payload.full_name)
    except AccountError as e:
        raise HTTPException(status_code=400, detail=str(e))

    issuer = await get_issuer(db)
    dispatch(
        background_tasks,
        mailer,
        welcome_email(user, app_url=settings.APP_URL, company_name=issuer.company_name),
    )
    return user


@router.post("/login", response_model=TokenPair)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user = await authenticate(db, email=payload.email, password=payload.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=str(e))

    tokens = issue_tokens(user)
    _set_session_cookie(response, tokens["access_token"], settings)
    return tokens


@router.post("/logout", response_model=MessageOut)
async def logout(response: Response):
    # tokens are stateless
    response.delete_cookie(SESSION_COOKIE)
    return {"message": "Logged out"}


@router.post("/refresh", response_model=TokenPair)
async def refresh(
    payload: RefreshRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user = await refresh_session(db, refresh_token=payload.refresh_token)
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=str(e))

    tokens = issue_tokens(user)
    _set_session_cookie(response, tokens["access_token"], settings)
    return tokens


@router.post("/forgot-password", response_model=MessageOut)
async def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: SmtpMailer = Depends(get_mailer),
):
    found = await start_password_reset(db, email=payload.email)
    if found is not None:
        user, token = found
        issuer = await get_issuer(db)
        dispatch(
            background_tasks,
            mailer,
            password_reset_email(
                user,
                reset_url=f"{settings.APP_URL}/reset-password?token={token}",
                valid_minutes=settings.JWT_RESET_MINUTES,
                company_name=issuer.company_name,
            ),
        )
    else:
        logger.info("Password reset requested for unknown email")

    return {"message": "If an account exists for this email, a reset link has been sent."}


@router.post("/reset-password", response_model=MessageOut)
async def reset_user_password(
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        await reset_password(db, token=payload.token, new_password=payload.new_password)
    except AccountError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Password updated successfully."}
