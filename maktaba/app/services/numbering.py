from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from maktaba.app.models.invoice import Invoice, InvoiceType
from maktaba.app.models.purchase import Purchase

INVOICE_PREFIXES: dict[InvoiceType, str] = {
    InvoiceType.SALE: "SAL",
    InvoiceType.SHIPPING: "SHP",
    InvoiceType.RESERVATION: "RSV",
    InvoiceType.RETURN: "RET",
}
PURCHASE_PREFIX = "PUR"


def format_reference(prefix: str, sequence: int, year: int) -> str:
    """Return a formatted document number like SAL-2026-000001."""
    return f"{prefix}-{year}-{sequence:06d}"


def _next_sequence(references: list[str]) -> int:
    """Highest numeric suffix plus one; malformed references are ignored."""
    highest = 0
    for ref in references:
        try:
            highest = max(highest, int(ref.rsplit("-", 1)[1]))
        except (IndexError, ValueError):
            continue
    return highest + 1


def next_invoice_reference(db: Session, invoice_type: InvoiceType, now: datetime) -> str:
    prefix = INVOICE_PREFIXES[invoice_type]
    rows = (
        db.query(Invoice.reference)
        .filter(Invoice.reference.like(f"{prefix}-{now.year}-%"))
        .all()
    )
    return format_reference(prefix, _next_sequence([r[0] for r in rows]), now.year)


def next_purchase_reference(db: Session, now: datetime) -> str:
    rows = (
        db.query(Purchase.reference)
        .filter(Purchase.reference.like(f"{PURCHASE_PREFIX}-{now.year}-%"))
        .all()
    )
    return format_reference(PURCHASE_PREFIX, _next_sequence([r[0] for r in rows]), now.year)
