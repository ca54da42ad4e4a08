from __future__ import annotations

from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.purchase import FULFILLMENT_STATUSES, ServicePurchase
from app.models.registration import WebinarRegistration


class OrdersError(Exception):
    pass


class OrderNotFound(OrdersError):
    pass


def _user_summary(user) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "email": user.email, "full_name": user.full_name, "phone": user.phone}


def _registration_row(r: WebinarRegistration) -> dict:
    w = r.webinar
    return {
        "id": r.id,
        "order_id": r.payment_id,
        "amount_paid": r.amount_paid,
        "original_amount": r.original_amount,
        "discount_amount": r.discount_amount,
        "payment_status": r.payment_status,
        "transaction_id": r.transaction_id,
        "invoice_number": r.invoice_number,
        "meeting_link_sent": bool(r.meeting_link_sent),
        "registered_at": r.registered_at,
        "user": _user_summary(r.user),
        "webinar": (
            {
                "id": w.id,
                "title": w.title,
                "slug": w.slug,
                "webinar_date": w.webinar_date,
                "start_time": w.start_time,
            }
            if w
            else None
        ),
    }


def _purchase_row(p: ServicePurchase) -> dict:
    s = p.service
    return {
        "id": p.id,
        "order_id": p.payment_id,
        "amount_paid": p.amount_paid,
        "original_amount": p.original_amount,
        "discount_amount": p.discount_amount,
        "payment_status": p.payment_status,
        "transaction_id": p.transaction_id,
        "invoice_number": p.invoice_number,
        "fulfillment_status": p.fulfillment_status,
        "fulfillment_notes": p.fulfillment_notes,
        "purchased_at": p.purchased_at,
        "user": _user_summary(p.user),
        "service": {"id": s.id, "name": s.name, "slug": s.slug} if s else None,
    }


async def list_registrations(
    db: AsyncSession,
    *,
    webinar_id: Optional[str] = None,
    payment_status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> dict:
    filters = []
    if webinar_id is not None:
        filters.append(WebinarRegistration.webinar_id == webinar_id)
    if payment_status is not None:
        filters.append(WebinarRegistration.payment_status == payment_status)

    where_clause = and_(*filters) if filters else None

    total_stmt = select(func.count()).select_from(WebinarRegistration)
    stmt = (
        select(WebinarRegistration)
        .order_by(WebinarRegistration.registered_at.desc())
        .limit(limit)
        .offset(offset)
    )
    if where_clause is not None:
        total_stmt = total_stmt.where(where_clause)
        stmt = stmt.where(where_clause)

    total = int((await db.execute(total_stmt)).scalar_one())
    res = await db.execute(stmt)
    items = [_registration_row(r) for r in res.scalars().all()]

    return {"items": items, "limit": limit, "offset": offset, "total": total}


async def list_purchases(
    db: AsyncSession,
    *,
    payment_status: Optional[str] = None,
    fulfillment_status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> dict:
    filters = []
    if payment_status is not None:
        filters.append(ServicePurchase.payment_status == payment_status)
    if fulfillment_status is not None:
        filters.append(ServicePurchase.fulfillment_status == fulfillment_status)

    where_clause = and_(*filters) if filters else None

    total_stmt = select(func.count()).select_from(ServicePurchase)
    stmt = (
        select(ServicePurchase)
        .order_by(ServicePurchase.purchased_at.desc())
        .limit(limit)
        .offset(offset)
    )
    if where_clause is not None:
        total_stmt = total_stmt.where(where_clause)
        stmt = stmt.where(where_clause)

    total = int((await db.execute(total_stmt)).scalar_one())
    res = await db.execute(stmt)
    items = [_purchase_row(p) for p in res.scalars().all()]

    return {"items": items, "limit": limit, "offset": offset, "total": total}


async def update_fulfillment(
    db: AsyncSession,
    *,
    purchase_id: str,
    fulfillment_status: str,
    fulfillment_notes: Optional[str] = None,
) -> dict:
    if fulfillment_status not in FULFILLMENT_STATUSES:
        raise OrdersError("Invalid fulfillment status")

    purchase = await db.get(ServicePurchase, purchase_id)
    if purchase is None:
        raise OrderNotFound("Purchase not found")

    purchase.fulfillment_status = fulfillment_status
    if fulfillment_notes is not None:
        purchase.fulfillment_notes = fulfillment_notes
    await db.commit()
    await db.refresh(purchase)
    return _purchase_row(purchase)
