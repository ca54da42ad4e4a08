from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.registration import CONFIRMED_STATUSES, WebinarRegistration
from app.models.webinar import Webinar

logger = logging.getLogger(__name__)


async def confirmed_counts(db: AsyncSession) -> dict[str, int]:
    res = await db.execute(
        select(WebinarRegistration.webinar_id, func.count(WebinarRegistration.id))
        .where(WebinarRegistration.payment_status.in_(CONFIRMED_STATUSES))
        .group_by(WebinarRegistration.webinar_id)
    )
    return {webinar_id: int(n) for webinar_id, n in res.all()}


async def sync_slots(db: AsyncSession) -> dict:
    """
    Recounts available_slots = max(0, total_slots - confirmed registrations)
    for every webinar. Overrides whatever the incremental path left behind.
    """
    counts = await confirmed_counts(db)

    res = await db.execute(select(Webinar).order_by(Webinar.webinar_date.asc()))
    webinars = list(res.scalars().all())

    results = []
    for w in webinars:
        registered = counts.get(w.id, 0)
        available = max(0, int(w.total_slots) - registered)
        previous = int(w.available_slots)
        if previous != available:
            logger.info("Webinar %s slots %s -> %s", w.id, previous, available)
        w.available_slots = available
        results.append(
            {
                "webinar_id": w.id,
                "title": w.title,
                "total_slots": int(w.total_slots),
                "registered": registered,
                "previous_available": previous,
                "available_slots": available,
            }
        )

    await db.commit()
    return {
        "success": True,
        "message": f"Synced {len(results)} webinars",
        "results": results,
    }
