from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.db import get_service_db
from app.core.deps import get_mailer, require_admin
from app.integrations.smtp_mailer import SmtpMailer
from app.models.user import User
from app.schemas.admin import MeetingLinksOut, MeetingLinksRequest, SlotSyncOut, UploadOut
from app.services.meeting_links import WebinarNotFound, send_meeting_links
from app.services.slots import sync_slots
from app.services.storage import UploadError, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin - Operations"])


@router.post("/send-meeting-links", response_model=MeetingLinksOut)
async def meeting_links(
    body: MeetingLinksRequest,
    db: AsyncSession = Depends(get_service_db),
    mailer: SmtpMailer = Depends(get_mailer),
    _: User = Depends(require_admin),
):
    if not body.webinar_id or not body.meeting_link:
        raise HTTPException(status_code=400, detail="Webinar ID and meeting link are required")

    try:
        return await send_meeting_links(
            db, mailer, webinar_id=body.webinar_id, meeting_link=body.meeting_link
        )
    except WebinarNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/sync-slots", response_model=SlotSyncOut)
async def resync_slots(
    db: AsyncSession = Depends(get_service_db),
    _: User = Depends(require_admin),
):
    return await sync_slots(db)


@router.post("/upload", response_model=UploadOut)
async def upload(
    file: UploadFile | None = File(default=None),
    folder: str = Form(default="uploads"),
    settings: Settings = Depends(get_settings),
    _: User = Depends(require_admin),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    content = await file.read()
    try:
        stored = save_upload(
            root=settings.UPLOAD_DIR,
            folder=folder,
            filename=file.filename or "",
            content_type=file.content_type or "",
            content=content,
            max_bytes=settings.UPLOAD_MAX_BYTES,
        )
    except UploadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"url": stored.url, "path": stored.path}
