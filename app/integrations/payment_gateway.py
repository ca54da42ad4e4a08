from __future__ import annotations

import base64
import hashlib
import hmac
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal


class PaymentGatewayError(Exception):
    pass


@dataclass
class CustomerDetails:
    customer_id: str
    customer_email: str
    customer_phone: str = "9999999999"
    customer_name: str = "Customer"


@dataclass
class GatewayOrder:
    cf_order_id: str
    order_id: str
    order_status: str
    payment_session_id: str
    order_expiry_time: str = ""


@dataclass
class GatewayPaymentStatus:
    order_id: str
    order_amount: Decimal
    order_status: str
    cf_order_id: str = ""
    cf_payment_id: str | None = None
    payment_method: str | None = None
    payment_time: str | None = None
    payment_status: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.order_status == "PAID" or self.payment_status == "SUCCESS"


def compute_webhook_signature(secret: str, timestamp: str, raw_body: bytes) -> str:
    mac = hmac.new(secret.encode(), timestamp.encode() + raw_body, hashlib.sha256).digest()
    return base64.b64encode(mac).decode()


def verify_webhook_signature(secret: str, raw_body: bytes, signature: str, timestamp: str) -> bool:
    if not secret or not signature:
        return False
    expected = compute_webhook_signature(secret, timestamp, raw_body)
    return hmac.compare_digest(expected, signature)


# ----------------------------
# Payment Gateway Interface
# ----------------------------
class PaymentGateway(ABC):
    demo_mode: bool = False

    @abstractmethod
    async def create_order(
        self,
        *,
        order_id: str,
        amount: Decimal,
        currency: str,
        customer: CustomerDetails,
        return_url: str,
        notify_url: str,
        note: str = "",
    ) -> GatewayOrder: ...

    @abstractmethod
    async def fetch_order_status(self, order_id: str) -> GatewayPaymentStatus: ...

    @abstractmethod
    def verify_webhook(self, raw_body: bytes, signature: str, timestamp: str) -> bool: ...


# ----------------------------
# Demo implementation
# ----------------------------
class DemoGateway(PaymentGateway):
    """Stands in when no gateway credentials are configured: every order is paid."""

    demo_mode = True

    def __init__(self, secret: str = ""):
        self.secret = secret

    async def create_order(
        self,
        *,
        order_id: str,
        amount: Decimal,
        currency: str,
        customer: CustomerDetails,
        return_url: str,
        notify_url: str,
        note: str = "",
    ) -> GatewayOrder:
        now_ms = int(time.time() * 1000)
        expiry = datetime.now(timezone.utc) + timedelta(minutes=30)
        return GatewayOrder(
            cf_order_id=f"CF_DEMO_{now_ms}",
            order_id=order_id,
            order_status="ACTIVE",
            payment_session_id=f"session_demo_{uuid.uuid4().hex[:12]}",
            order_expiry_time=expiry.isoformat(),
        )

    async def fetch_order_status(self, order_id: str) -> GatewayPaymentStatus:
        return GatewayPaymentStatus(
            order_id=order_id,
            order_amount=Decimal("0"),
            order_status="PAID",
            cf_order_id=f"CF_DEMO_{order_id}",
            cf_payment_id=f"PAY_DEMO_{int(time.time() * 1000)}",
            payment_status="SUCCESS",
            payment_time=datetime.now(timezone.utc).isoformat(),
        )

    def verify_webhook(self, raw_body: bytes, signature: str, timestamp: str) -> bool:
        return verify_webhook_signature(self.secret, raw_body, signature, timestamp)


def build_payment_gateway(settings) -> PaymentGateway:
    if settings.demo_mode:
        return DemoGateway(secret=settings.CASHFREE_SECRET_KEY)

    from app.integrations.cashfree_client import CashfreeGateway

    return CashfreeGateway(
        app_id=settings.CASHFREE_APP_ID,
        secret_key=settings.CASHFREE_SECRET_KEY,
        production=settings.is_production,
        api_version=settings.CASHFREE_API_VERSION,
    )
