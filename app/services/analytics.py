from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.money import D, ZERO, round_money
from app.models.contact_lead import ContactLead
from app.models.purchase import ServicePurchase
from app.models.registration import CONFIRMED_STATUSES, WebinarRegistration
from app.models.user import User
from app.models.webinar import Webinar


class AnalyticsError(Exception):
    pass


def _day(dt: datetime) -> str:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date().isoformat()


async def _count(db: AsyncSession, stmt) -> int:
    res = await db.execute(stmt)
    return int(res.scalar_one() or 0)


async def admin_analytics(db: AsyncSession, *, period_days: int = 30) -> dict:
    """
    Revenue and counts over the last `period_days` days.

    Webinar revenue counts completed + free registrations, service revenue
    counts completed purchases. The chart has one bucket per UTC day,
    oldest first, including empty days.
    """
    if period_days < 1 or period_days > 366:
        raise AnalyticsError("period must be between 1 and 366 days")

    now = datetime.now(timezone.utc)
    start = now - timedelta(days=period_days)

    res = await db.execute(
        select(WebinarRegistration).where(
            WebinarRegistration.registered_at >= start,
            WebinarRegistration.payment_status.in_(CONFIRMED_STATUSES),
        )
    )
    registrations = list(res.scalars().all())

    res = await db.execute(
        select(ServicePurchase).where(
            ServicePurchase.purchased_at >= start,
            ServicePurchase.payment_status == "completed",
        )
    )
    purchases = list(res.scalars().all())

    webinar_revenue = sum((D(r.amount_paid) for r in registrations), ZERO)
    service_revenue = sum((D(p.amount_paid) for p in purchases), ZERO)

    # chart buckets
    by_day: dict[str, dict] = {}
    for i in range(period_days):
        day = (now - timedelta(days=period_days - 1 - i)).date().isoformat()
        by_day[day] = {"date": day, "webinar": ZERO, "service": ZERO}

    for r in registrations:
        bucket = by_day.get(_day(r.registered_at))
        if bucket:
            bucket["webinar"] += D(r.amount_paid)
    for p in purchases:
        bucket = by_day.get(_day(p.purchased_at))
        if bucket:
            bucket["service"] += D(p.amount_paid)

    chart = [
        {
            "date": b["date"],
            "webinar": round_money(b["webinar"]),
            "service": round_money(b["service"]),
            "total": round_money(b["webinar"] + b["service"]),
        }
        for b in by_day.values()
    ]

    # top webinars by revenue
    stats: dict[str, dict] = {}
    for r in registrations:
        s = stats.setdefault(
            r.webinar_id,
            {
                "webinar_id": r.webinar_id,
                "title": r.webinar.title if r.webinar else "Unknown",
                "revenue": ZERO,
                "count": 0,
            },
        )
        s["revenue"] += D(r.amount_paid)
        s["count"] += 1
    top = sorted(stats.values(), key=lambda s: s["revenue"], reverse=True)[:5]
    for s in top:
        s["revenue"] = round_money(s["revenue"])

    total_users = await _count(db, select(func.count(User.id)))
    total_webinars = await _count(
        db, select(func.count(Webinar.id)).where(Webinar.status == "published")
    )
    new_users = await _count(db, select(func.count(User.id)).where(User.created_at >= start))
    pending_contacts = await _count(
        db, select(func.count(ContactLead.id)).where(ContactLead.is_read.is_(False))
    )

    return {
        "period_days": period_days,
        "overview": {
            "total_revenue": round_money(webinar_revenue + service_revenue),
            "total_webinar_revenue": round_money(webinar_revenue),
            "total_service_revenue": round_money(service_revenue),
            "total_users": total_users,
            "total_webinars": total_webinars,
            "new_users_this_period": new_users,
            "pending_contacts": pending_contacts,
            "registrations_count": len(registrations),
            "purchases_count": len(purchases),
        },
        "chart_data": chart,
        "top_webinars": top,
    }
