from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact_lead import ContactLead
from app.models.service import Service
from app.models.site_settings import SiteSettings
from app.models.webinar import Webinar

logger = logging.getLogger(__name__)


class SiteSettingsError(Exception):
    pass


# columns that cannot be cleared
_REQUIRED_FIELDS = ("site_name", "gst_enabled", "gst_rate")


async def get_site_settings(db: AsyncSession) -> SiteSettings | None:
    res = await db.execute(select(SiteSettings).order_by(SiteSettings.created_at.asc()).limit(1))
    return res.scalar_one_or_none()


async def save_site_settings(db: AsyncSession, *, data) -> tuple[SiteSettings, bool]:
    """Updates the row named by data.id, or inserts one. Returns (row, created)."""
    changes = data.model_dump(exclude_unset=True, exclude={"id"})

    if data.id:
        row = await db.get(SiteSettings, data.id)
        if row is None:
            raise SiteSettingsError("Settings not found")
        created = False
    else:
        row = SiteSettings()
        db.add(row)
        created = True

    for field, value in changes.items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(row, field, value)

    await db.commit()
    await db.refresh(row)
    logger.info("Site settings %s", "created" if created else "updated")
    return row, created


async def health_counts(db: AsyncSession) -> dict:
    settings_row = await get_site_settings(db)

    counts = {}
    for key, model in (("webinars", Webinar), ("services", Service), ("contact_leads", ContactLead)):
        res = await db.execute(select(func.count(model.id)))
        counts[key] = int(res.scalar_one() or 0)

    return {
        "site_settings": (
            {
                "name": settings_row.site_name,
                "description": settings_row.site_description,
                "email": settings_row.email,
            }
            if settings_row
            else None
        ),
        "counts": counts,
    }
