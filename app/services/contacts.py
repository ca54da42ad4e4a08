from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact_lead import ContactLead

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ContactError(Exception):
    pass


class ContactNotFound(ContactError):
    pass


async def submit_contact(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    message: str,
    phone: str | None = None,
    subject: str | None = None,
) -> ContactLead:
    name = (name or "").strip()
    email = (email or "").strip()
    message = (message or "").strip()

    if not name or not email or not message:
        raise ContactError("Name, email, and message are required")
    if not EMAIL_RE.match(email):
        raise ContactError("Invalid email format")

    lead = ContactLead(
        name=name,
        email=email,
        phone=phone or None,
        subject=subject or None,
        message=message,
    )
    db.add(lead)
    await db.commit()
    await db.refresh(lead)
    logger.info("Contact lead %s from %s", lead.id, email)
    return lead


async def admin_list_contacts(db: AsyncSession, *, is_read: bool | None = None) -> list[ContactLead]:
    stmt = select(ContactLead).order_by(ContactLead.created_at.desc())
    if is_read is not None:
        stmt = stmt.where(ContactLead.is_read.is_(is_read))
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def admin_mark_contact(
    db: AsyncSession,
    *,
    contact_id: str,
    is_read: bool,
    actor_user_id: str,
    admin_notes: str | None = None,
) -> ContactLead:
    lead = await db.get(ContactLead, contact_id)
    if lead is None:
        raise ContactNotFound("Contact not found")

    lead.is_read = is_read
    if is_read:
        lead.read_at = datetime.now(timezone.utc)
        lead.read_by = actor_user_id
    else:
        lead.read_at = None
        lead.read_by = None
    if admin_notes is not None:
        lead.admin_notes = admin_notes

    await db.commit()
    await db.refresh(lead)
    return lead
