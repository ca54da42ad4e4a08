from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.money import D, ZERO, fmt_long_date, round_money
from app.integrations.smtp_mailer import Attachment
from app.models.purchase import ServicePurchase
from app.models.registration import CONFIRMED_STATUSES, WebinarRegistration
from app.models.site_settings import SiteSettings
from app.services.site_settings import get_site_settings

_BASE36 = string.digits + string.ascii_uppercase


class InvoiceError(Exception):
    pass


class InvoiceNotFound(InvoiceError):
    pass


@dataclass
class Issuer:
    company_name: str = "WebinarPro"
    email: str = "support@webinarpro.com"
    address: str = ""
    phone: str = ""
    gst_enabled: bool = False
    gst_number: str = ""
    gst_rate: Decimal = Decimal("18")

    @classmethod
    def from_settings(cls, s: Optional[SiteSettings]) -> "Issuer":
        if s is None:
            return cls()
        return cls(
            company_name=s.company_name or s.site_name or "WebinarPro",
            email=s.email or "support@webinarpro.com",
            address=s.address or "",
            phone=s.phone or "",
            gst_enabled=bool(s.gst_enabled),
            gst_number=s.gst_number or "",
            gst_rate=D(s.gst_rate or 18),
        )


@dataclass
class InvoiceLine:
    description: str
    details: str
    quantity: int
    unit_price: Decimal
    total: Decimal


@dataclass
class InvoiceData:
    invoice_number: str
    invoice_date: str
    customer_name: str
    customer_email: str
    customer_phone: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    transaction_id: str
    payment_method: str
    issuer: Issuer
    items: list[InvoiceLine] = field(default_factory=list)


def generate_invoice_number(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"INV-{now.year}{now.month:02d}-{suffix}"


def split_inclusive_tax(total, *, gst_enabled: bool, gst_rate) -> tuple[Decimal, Decimal]:
    """Prices are tax-inclusive: tax = total * rate / (100 + rate)."""
    total = D(total)
    if not gst_enabled or total <= 0:
        return round_money(total), ZERO
    rate = D(gst_rate)
    tax = round_money(total * rate / (Decimal(100) + rate))
    return round_money(total - tax), tax


def _money(amount) -> str:
    # reportlab's base fonts have no rupee glyph
    return f"Rs. {round_money(amount):,.2f}"


def build_invoice_pdf(data: InvoiceData) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=f"Invoice {data.invoice_number}",
    )

    styles = getSampleStyleSheet()
    issuer = data.issuer
    story = []

    story.append(Paragraph(f"<b>{issuer.company_name}</b>", styles["Title"]))
    for line in (issuer.address, issuer.email, issuer.phone):
        if line:
            story.append(Paragraph(line, styles["Normal"]))
    if issuer.gst_enabled and issuer.gst_number:
        story.append(Paragraph(f"GSTIN: {issuer.gst_number}", styles["Normal"]))
    story.append(Spacer(1, 10))

    story.append(Paragraph(f"<b>Invoice</b> {data.invoice_number}", styles["Heading2"]))
    story.append(Paragraph(f"Date: {data.invoice_date}", styles["Normal"]))
    story.append(Paragraph(f"Status: <b>PAID</b> ({data.payment_method})", styles["Normal"]))
    if data.transaction_id:
        story.append(Paragraph(f"Transaction ID: {data.transaction_id}", styles["Normal"]))
    story.append(Spacer(1, 8))

    story.append(Paragraph("<b>Bill To</b>", styles["Normal"]))
    story.append(Paragraph(data.customer_name, styles["Normal"]))
    story.append(Paragraph(data.customer_email, styles["Normal"]))
    if data.customer_phone:
        story.append(Paragraph(data.customer_phone, styles["Normal"]))
    story.append(Spacer(1, 10))

    header = ["Description", "Qty", "Unit Price", "Total"]
    rows: list[list] = [header]
    for item in data.items:
        desc = item.description if not item.details else f"{item.description}<br/><font size=7>{item.details}</font>"
        rows.append(
            [
                Paragraph(desc, styles["Normal"]),
                str(item.quantity),
                _money(item.unit_price),
                _money(item.total),
            ]
        )

    rows.append(["", "", "Subtotal", _money(data.subtotal)])
    if issuer.gst_enabled:
        rows.append(["", "", f"GST ({issuer.gst_rate.normalize()}%)", _money(data.tax)])
    rows.append(["", "", "Total", _money(data.total)])

    tbl = Table(rows, colWidths=[95 * mm, 15 * mm, 35 * mm, 35 * mm], repeatRows=1)
    tbl.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#111827")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("GRID", (0, 0), (-1, len(data.items)), 0.25, colors.grey),
                ("FONTNAME", (2, -1), (-1, -1), "Helvetica-Bold"),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 4),
                ("RIGHTPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    story.append(tbl)
    story.append(Spacer(1, 14))
    story.append(Paragraph("Thank you for your purchase!", styles["Italic"]))

    doc.build(story)
    return buf.getvalue()


# -------------------------
# Store-backed
# -------------------------
async def get_issuer(db: AsyncSession) -> Issuer:
    return Issuer.from_settings(await get_site_settings(db))


async def ensure_invoice_number(db: AsyncSession, record) -> str:
    """Assigns the invoice number on first request and persists it."""
    if record.invoice_number:
        return record.invoice_number

    # first writer wins when two downloads race
    model = type(record)
    await db.execute(
        update(model)
        .where(model.id == record.id, model.invoice_number.is_(None))
        .values(invoice_number=generate_invoice_number())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(record)
    return record.invoice_number


def registration_invoice_data(reg: WebinarRegistration, *, invoice_number: str, issuer: Issuer) -> InvoiceData:
    webinar = reg.webinar
    user = reg.user
    total = D(reg.amount_paid)
    subtotal, tax = split_inclusive_tax(total, gst_enabled=issuer.gst_enabled, gst_rate=issuer.gst_rate)

    return InvoiceData(
        invoice_number=invoice_number,
        invoice_date=fmt_long_date(reg.registered_at),
        customer_name=user.full_name or "Customer",
        customer_email=user.email,
        customer_phone=user.phone or "",
        items=[
            InvoiceLine(
                description=f"Webinar Registration: {webinar.title}",
                details=f"Date: {fmt_long_date(webinar.webinar_date)} | Host: {webinar.host_name or 'Host'}",
                quantity=1,
                unit_price=subtotal,
                total=subtotal,
            )
        ],
        subtotal=subtotal,
        tax=tax,
        total=round_money(total),
        transaction_id=reg.transaction_id or reg.payment_id or "",
        payment_method="Free Registration" if reg.payment_status == "free" else "Online Payment",
        issuer=issuer,
    )


def purchase_invoice_data(purchase: ServicePurchase, *, invoice_number: str, issuer: Issuer) -> InvoiceData:
    service = purchase.service
    user = purchase.user
    total = D(purchase.amount_paid)
    subtotal, tax = split_inclusive_tax(total, gst_enabled=issuer.gst_enabled, gst_rate=issuer.gst_rate)

    return InvoiceData(
        invoice_number=invoice_number,
        invoice_date=fmt_long_date(purchase.purchased_at),
        customer_name=user.full_name or "Customer",
        customer_email=user.email,
        customer_phone=user.phone or "",
        items=[
            InvoiceLine(
                description=service.name or "Service",
                details=service.short_description or "",
                quantity=1,
                unit_price=subtotal,
                total=subtotal,
            )
        ],
        subtotal=subtotal,
        tax=tax,
        total=round_money(total),
        transaction_id=purchase.transaction_id or purchase.payment_id or "",
        payment_method="Online Payment",
        issuer=issuer,
    )


async def registration_invoice_pdf(
    db: AsyncSession, *, registration_id: str, user_id: str
) -> tuple[str, bytes]:
    res = await db.execute(
        select(WebinarRegistration).where(
            WebinarRegistration.id == registration_id,
            WebinarRegistration.user_id == user_id,
        )
    )
    reg = res.scalar_one_or_none()
    if reg is None:
        raise InvoiceNotFound("Registration not found")
    if reg.payment_status not in CONFIRMED_STATUSES:
        raise InvoiceError("Invoice only available for completed payments")

    number = await ensure_invoice_number(db, reg)
    issuer = await get_issuer(db)
    pdf = build_invoice_pdf(registration_invoice_data(reg, invoice_number=number, issuer=issuer))
    return number, pdf


async def purchase_invoice_pdf(
    db: AsyncSession, *, purchase_id: str, user_id: str
) -> tuple[str, bytes]:
    res = await db.execute(
        select(ServicePurchase).where(
            ServicePurchase.id == purchase_id,
            ServicePurchase.user_id == user_id,
        )
    )
    purchase = res.scalar_one_or_none()
    if purchase is None:
        raise InvoiceNotFound("Purchase not found")
    if purchase.payment_status != "completed":
        raise InvoiceError("Invoice only available for completed payments")

    number = await ensure_invoice_number(db, purchase)
    issuer = await get_issuer(db)
    pdf = build_invoice_pdf(purchase_invoice_data(purchase, invoice_number=number, issuer=issuer))
    return number, pdf


def invoice_attachment(number: str, pdf: bytes) -> Attachment:
    return Attachment(filename=f"invoice-{number}.pdf", content=pdf)
