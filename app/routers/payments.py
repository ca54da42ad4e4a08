from __future__ import annotations

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.db import get_db, get_service_db
from app.core.deps import get_current_user, get_mailer, get_payment_gateway
from app.integrations.payment_gateway import PaymentGateway, PaymentGatewayError
from app.integrations.smtp_mailer import SmtpMailer
from app.models.user import User
from app.schemas.payments import (
    PaymentCreateRequest,
    PaymentCreateResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    WebhookAck,
    WebinarRegisterRequest,
    WebinarRegisterResponse,
)
from app.services.bookings import BookingError, BookingResult, ItemNotFound, create_booking
from app.services.coupons import CouponNotFound, CouponRejected
from app.services.notifications import dispatch
from app.services.payments import (
    CompletionResult,
    OrderNotFound,
    PaymentError,
    PaymentNotCompleted,
    PaymentVerificationFailed,
    process_webhook_event,
    verify_payment,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


def _notify_first_completion(
    background_tasks: BackgroundTasks, mailer: SmtpMailer, result: CompletionResult | None
) -> None:
    if result is not None and result.first_transition and result.email is not None:
        dispatch(background_tasks, mailer, result.email)


def _id_fields(kind: str, record_id: str) -> dict:
    if kind == "webinar":
        return {"registration_id": record_id}
    return {"purchase_id": record_id}


def _booking_response(result: BookingResult) -> dict:
    gw = result.gateway_order
    return {
        "type": result.type,
        "order_id": result.order_id,
        "amount": result.amount,
        "demo_mode": result.demo_mode,
        "requires_payment": result.requires_payment,
        "payment_status": result.record.payment_status,
        "cf_order_id": gw.cf_order_id if gw else None,
        "payment_session_id": gw.payment_session_id if gw else None,
        **_id_fields(result.type, result.record.id),
    }


async def _book(
    db: AsyncSession,
    gateway: PaymentGateway,
    settings: Settings,
    *,
    user: User,
    item_type: str,
    item_id: str,
    coupon_code: str | None,
) -> BookingResult:
    try:
        return await create_booking(
            db,
            gateway,
            user=user,
            item_type=item_type,
            item_id=item_id,
            coupon_code=coupon_code,
            app_url=settings.APP_URL,
            currency=settings.CURRENCY,
        )
    except ItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (BookingError, CouponRejected) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentGatewayError as e:
        raise HTTPException(status_code=500, detail=str(e) or "Payment gateway error")


@router.post("/payment/create", response_model=PaymentCreateResponse)
async def create_payment(
    payload: PaymentCreateRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    mailer: SmtpMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    result = await _book(
        db,
        gateway,
        settings,
        user=current_user,
        item_type=payload.type,
        item_id=payload.item_id,
        coupon_code=payload.coupon_code,
    )
    _notify_first_completion(background_tasks, mailer, result.completion)
    return _booking_response(result)


@router.post("/webinar/register", response_model=WebinarRegisterResponse)
async def register_webinar(
    payload: WebinarRegisterRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    mailer: SmtpMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    result = await _book(
        db,
        gateway,
        settings,
        user=current_user,
        item_type="webinar",
        item_id=payload.webinar_id,
        coupon_code=payload.coupon_code,
    )
    _notify_first_completion(background_tasks, mailer, result.completion)

    body = _booking_response(result)
    if not result.requires_payment:
        body["message"] = "Successfully registered for the webinar!"
    return body


@router.post("/payment/verify", response_model=PaymentVerifyResponse)
async def verify(
    payload: PaymentVerifyRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    mailer: SmtpMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    if not payload.order_id:
        raise HTTPException(status_code=400, detail="Order ID is required")

    try:
        result = await verify_payment(
            db,
            gateway,
            order_id=payload.order_id,
            user_id=current_user.id,
            app_url=settings.APP_URL,
        )
    except PaymentNotCompleted as e:
        raise HTTPException(
            status_code=400,
            detail={"error": str(e), "status": e.gateway_status},
        )
    except PaymentVerificationFailed as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    _notify_first_completion(background_tasks, mailer, result)
    return {
        "type": result.type,
        "payment_status": result.record.payment_status,
        "already_completed": result.already_completed,
        **_id_fields(result.type, result.record.id),
    }


@router.post("/payment/webhook", response_model=WebhookAck)
async def webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_service_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    mailer: SmtpMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    raw_body = await request.body()

    if settings.is_production:
        signature = request.headers.get("x-webhook-signature", "")
        timestamp = request.headers.get("x-webhook-timestamp", "")
        if not gateway.verify_webhook(raw_body, signature, timestamp):
            logger.error("Invalid webhook signature")
            raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = json.loads(raw_body or b"{}")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    try:
        outcome = await process_webhook_event(db, payload, app_url=settings.APP_URL)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PaymentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _notify_first_completion(background_tasks, mailer, outcome.result)
    return {"type": outcome.result.type if outcome.result else None}
