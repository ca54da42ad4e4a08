from __future__ import annotations

import logging
from decimal import Decimal

import httpx

from app.integrations.payment_gateway import (
    CustomerDetails,
    GatewayOrder,
    GatewayPaymentStatus,
    PaymentGateway,
    PaymentGatewayError,
    verify_webhook_signature,
)

logger = logging.getLogger(__name__)

SANDBOX_URL = "https://sandbox.cashfree.com/pg"
PRODUCTION_URL = "https://api.cashfree.com/pg"


class CashfreeGateway(PaymentGateway):
    def __init__(
        self,
        *,
        app_id: str,
        secret_key: str,
        production: bool = False,
        api_version: str = "2023-08-01",
        timeout: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.app_id = app_id
        self.secret_key = secret_key
        self.base_url = PRODUCTION_URL if production else SANDBOX_URL
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "x-client-id": self.app_id,
            "x-client-secret": self.secret_key,
            "x-api-version": self.api_version,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, json: dict | None = None):
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                r = await client.request(method, path, json=json, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("Cashfree %s %s failed: %s", method, path, e)
            raise PaymentGatewayError("Payment gateway unreachable") from e

        if r.status_code >= 400:
            try:
                message = r.json().get("message") or r.text
            except ValueError:
                message = r.text
            logger.error("Cashfree %s %s -> %s: %s", method, path, r.status_code, message)
            raise PaymentGatewayError(message or "Payment gateway error")

        return r.json()

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
        payload = {
            "order_id": order_id,
            "order_amount": float(amount),
            "order_currency": currency,
            "customer_details": {
                "customer_id": customer.customer_id,
                "customer_email": customer.customer_email,
                "customer_phone": customer.customer_phone,
                "customer_name": customer.customer_name,
            },
            "order_meta": {
                "return_url": return_url,
                "notify_url": notify_url,
            },
            "order_note": note,
        }

        logger.info("Creating Cashfree order %s for %s %s", order_id, amount, currency)
        data = await self._request("POST", "/orders", json=payload)

        return GatewayOrder(
            cf_order_id=str(data.get("cf_order_id") or ""),
            order_id=data.get("order_id") or order_id,
            order_status=data.get("order_status") or "ACTIVE",
            payment_session_id=data.get("payment_session_id") or "",
            order_expiry_time=data.get("order_expiry_time") or "",
        )

    async def fetch_order_status(self, order_id: str) -> GatewayPaymentStatus:
        payments = await self._request("GET", f"/orders/{order_id}/payments")

        if isinstance(payments, list) and payments:
            p = payments[0]
            status = p.get("payment_status") or "UNKNOWN"
            return GatewayPaymentStatus(
                order_id=order_id,
                order_amount=Decimal(str(p.get("payment_amount") or 0)),
                order_status="PAID" if status == "SUCCESS" else status,
                cf_order_id=str(p.get("cf_order_id") or ""),
                cf_payment_id=str(p.get("cf_payment_id") or ""),
                payment_method=str(p.get("payment_group") or p.get("payment_method") or ""),
                payment_time=p.get("payment_completion_time") or "",
                payment_status=status,
            )

        # no payment attempts yet; fall back to the order itself
        order = await self._request("GET", f"/orders/{order_id}")
        return GatewayPaymentStatus(
            order_id=order_id,
            order_amount=Decimal(str(order.get("order_amount") or 0)),
            order_status=order.get("order_status") or "UNKNOWN",
            cf_order_id=str(order.get("cf_order_id") or ""),
        )

    def verify_webhook(self, raw_body: bytes, signature: str, timestamp: str) -> bool:
        return verify_webhook_signature(self.secret_key, raw_body, signature, timestamp)
