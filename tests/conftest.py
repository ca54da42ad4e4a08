import asyncio
import os
import tempfile
from datetime import date, time, timedelta
from decimal import Decimal

import pytest

_TMP = tempfile.mkdtemp(prefix="webinarpro-tests-")

# must be set before app.core.config is imported
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP}/test.db"
os.environ["UPLOAD_DIR"] = f"{_TMP}/storage"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["CASHFREE_APP_ID"] = ""
os.environ["CASHFREE_SECRET_KEY"] = "whsec_test"
os.environ["CASHFREE_ENV"] = "sandbox"
os.environ["APP_URL"] = "http://testserver"

from fastapi.testclient import TestClient  # noqa: E402

from app.core.db import Base, SessionLocal, engine  # noqa: E402
from app.core.deps import get_mailer, get_payment_gateway  # noqa: E402
from app.core.security import create_access_token, hash_password  # noqa: E402
from app.integrations.payment_gateway import (  # noqa: E402
    GatewayOrder,
    GatewayPaymentStatus,
    PaymentGateway,
    verify_webhook_signature,
)
from app.integrations.smtp_mailer import SmtpMailer  # noqa: E402
from app.main import app  # noqa: E402
from app.models.coupon import Coupon  # noqa: E402
from app.models.service import Service  # noqa: E402
from app.models.user import User  # noqa: E402
from app.models.webinar import Webinar  # noqa: E402

WEBHOOK_SECRET = "whsec_test"


def run(coro):
    return asyncio.run(coro)


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


# -------------------------
# Fakes
# -------------------------
class FakeGateway(PaymentGateway):
    """Records created orders; an order is unpaid until mark_paid() is called."""

    demo_mode = False

    def __init__(self):
        self.created = []
        self.paid = {}

    async def create_order(self, *, order_id, amount, currency, customer, return_url, notify_url, note=""):
        self.created.append(
            {
                "order_id": order_id,
                "amount": amount,
                "currency": currency,
                "customer": customer,
                "return_url": return_url,
                "notify_url": notify_url,
            }
        )
        return GatewayOrder(
            cf_order_id=f"CF_{order_id}",
            order_id=order_id,
            order_status="ACTIVE",
            payment_session_id=f"session_{order_id}",
        )

    def mark_paid(self, order_id, payment_id="PAY_1", method="upi"):
        self.paid[order_id] = (payment_id, method)

    async def fetch_order_status(self, order_id):
        if order_id in self.paid:
            payment_id, method = self.paid[order_id]
            return GatewayPaymentStatus(
                order_id=order_id,
                order_amount=Decimal("0"),
                order_status="PAID",
                cf_payment_id=payment_id,
                payment_method=method,
                payment_status="SUCCESS",
            )
        return GatewayPaymentStatus(order_id=order_id, order_amount=Decimal("0"), order_status="ACTIVE")

    def verify_webhook(self, raw_body, signature, timestamp):
        return verify_webhook_signature(WEBHOOK_SECRET, raw_body, signature, timestamp)


class RecordingMailer(SmtpMailer):
    def __init__(self):
        super().__init__(host="localhost", port=465, user="", password="", sender="test@example.com")
        self.sent = []

    def send(self, email):
        self.sent.append(email)
        return True


# -------------------------
# Fixtures
# -------------------------
@pytest.fixture(autouse=True)
def fresh_db():
    run(_reset_schema())
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(gateway, mailer):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_mailer] = lambda: mailer
    return TestClient(app)


# -------------------------
# Seed helpers
# -------------------------
async def _add(obj):
    async with SessionLocal() as db:
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
        return obj


def make_user(email="user@example.com", *, role="user", password="secret123", full_name="Test User"):
    return run(
        _add(
            User(
                email=email,
                password_hash=hash_password(password),
                role=role,
                full_name=full_name,
                is_active=True,
            )
        )
    )


def make_webinar(*, price="499.00", total_slots=50, available_slots=None, slug="intro-to-python", **extra):
    return run(
        _add(
            Webinar(
                title=extra.pop("title", "Intro to Python"),
                slug=slug,
                price=Decimal(price),
                total_slots=total_slots,
                available_slots=total_slots if available_slots is None else available_slots,
                webinar_date=date.today() + timedelta(days=7),
                start_time=time(18, 30),
                status=extra.pop("status", "published"),
                **extra,
            )
        )
    )


def make_service(*, price="2999.00", slug="resume-review", **extra):
    return run(
        _add(
            Service(
                name=extra.pop("name", "Resume Review"),
                slug=slug,
                price=Decimal(price),
                features=["1:1 call", "written notes"],
                is_active=extra.pop("is_active", True),
                **extra,
            )
        )
    )


def make_coupon(code="SAVE10", *, discount_type="percentage", discount_value="10", **extra):
    return run(
        _add(
            Coupon(
                code=code,
                discount_type=discount_type,
                discount_value=Decimal(discount_value),
                applies_to=extra.pop("applies_to", "all"),
                max_uses_per_user=extra.pop("max_uses_per_user", 1),
                current_uses=0,
                is_active=extra.pop("is_active", True),
                **extra,
            )
        )
    )


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user_id=user.id, role=user.role)}"}


async def _get(model, pk):
    async with SessionLocal() as db:
        return await db.get(model, pk)


def fetch(model, pk):
    return run(_get(model, pk))


async def _add_users(n, prefix):
    async with SessionLocal() as db:
        users = [
            User(email=f"{prefix}{i}@example.com", password_hash="!", role="user", is_active=True)
            for i in range(n)
        ]
        db.add_all(users)
        await db.commit()
        return users


def make_users(n, prefix="attendee"):
    """Bulk users that cannot log in; for seeding registrations."""
    return run(_add_users(n, prefix))
