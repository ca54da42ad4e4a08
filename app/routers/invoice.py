from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.services.invoices import (
    InvoiceError,
    InvoiceNotFound,
    purchase_invoice_pdf,
    registration_invoice_pdf,
)

router = APIRouter(tags=["Invoices"])


@router.get("/invoice")
async def download_invoice(
    registration_id: str | None = Query(default=None),
    purchase_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not registration_id and not purchase_id:
        raise HTTPException(status_code=400, detail="Registration ID or Purchase ID is required")

    try:
        if registration_id:
            number, pdf = await registration_invoice_pdf(
                db, registration_id=registration_id, user_id=current_user.id
            )
        else:
            number, pdf = await purchase_invoice_pdf(
                db, purchase_id=purchase_id, user_id=current_user.id
            )
    except InvoiceNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvoiceError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice-{number}.pdf"'},
    )
