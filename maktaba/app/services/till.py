from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from maktaba.app.core.config import settings
from maktaba.app.core.dates import shop_day_bounds, shop_today, utcnow
from maktaba.app.models.invoice import Invoice, InvoiceStatus, InvoiceType, PaymentStatus
from maktaba.app.models.till import TillCloseout
from maktaba.app.models.user import User
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import NotFoundError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _is_cash_sale(invoice: Invoice) -> bool:
    if invoice.type == InvoiceType.SALE:
        return True
    return (
        invoice.type == InvoiceType.SHIPPING
        and invoice.status == InvoiceStatus.COMPLETED
        and invoice.payment_status == PaymentStatus.PAID
    )


def _get_cashier(db: Session, cashier_id: UUID) -> User:
    cashier = db.query(User).filter(User.id == cashier_id).first()
    if not cashier:
        raise NotFoundError(f"User {cashier_id} not found")
    return cashier


def summarize_till(db: Session, cashier: User, for_date: date | None = None) -> dict:
    """Aggregate one cashier's invoices for a shop-local calendar day.

    An invoice belongs to the day of its payment, or of its creation when
    it was never paid. Returns carry negative totals, so the expected cash
    is simply sales plus returns.
    """
    day = for_date or shop_today()
    start, end = shop_day_bounds(day)
    effective_date = sa_func.coalesce(Invoice.paid_date, Invoice.date)
    invoices = (
        db.query(Invoice)
        .filter(
            Invoice.processed_by == cashier.username,
            effective_date >= start,
            effective_date < end,
        )
        .order_by(Invoice.date)
        .all()
    )

    sales_total = sum(
        (Decimal(str(inv.total)) for inv in invoices if _is_cash_sale(inv)), ZERO
    )
    returns_total = sum(
        (Decimal(str(inv.total)) for inv in invoices if inv.type == InvoiceType.RETURN), ZERO
    )
    return {
        "cashier_id": cashier.id,
        "cashier_username": cashier.username,
        "for_date": day,
        "total_sales": sales_total,
        "total_returns": abs(returns_total),
        "net_cash_expected": sales_total + returns_total,
        "invoice_ids": [str(inv.id) for inv in invoices],
    }


def get_till_summary(db: Session, cashier_id: UUID, for_date: date | None = None) -> dict:
    return summarize_till(db, _get_cashier(db, cashier_id), for_date)


def close_till(
    db: Session,
    user: User | None,
    cashier_id: UUID,
    counted_cash: Decimal,
    notes: str | None = None,
    for_date: date | None = None,
    ip_address: str | None = None,
) -> TillCloseout:
    """Record the counted cash against the expected figure for the day.

    Invoices and accounts are left untouched; the closeout row is the only
    write and is never updated afterwards.
    """
    if user is None:
        raise ValueError("No user is logged in")
    if not user.is_admin and user.id != cashier_id:
        raise ValueError("You can only close your own till")
    if counted_cash < 0:
        raise ValueError("Counted cash must be non-negative")

    cashier = _get_cashier(db, cashier_id)
    day = for_date or shop_today()

    if not settings.TILL_ALLOW_REPEAT_CLOSEOUT:
        existing = (
            db.query(TillCloseout)
            .filter(TillCloseout.cashier_id == cashier.id, TillCloseout.for_date == day)
            .first()
        )
        if existing:
            raise ValueError(f"Till for {cashier.username} on {day.isoformat()} is already closed")

    summary = summarize_till(db, cashier, day)
    difference = counted_cash - summary["net_cash_expected"]

    closeout = TillCloseout(
        date=utcnow(),
        cashier_id=cashier.id,
        cashier_username=cashier.username,
        for_date=day,
        total_sales=summary["total_sales"],
        total_returns=summary["total_returns"],
        net_cash_expected=summary["net_cash_expected"],
        counted_cash=counted_cash,
        difference=difference,
        notes=notes,
        invoice_ids=summary["invoice_ids"],
    )
    db.add(closeout)
    db.flush()

    if difference != 0:
        logger.warning(
            "Till of %s on %s is off by %s (expected %s, counted %s)",
            cashier.username,
            day.isoformat(),
            difference,
            summary["net_cash_expected"],
            counted_cash,
        )

    log_action(
        db,
        user_id=user.id,
        action="TILL_CLOSED",
        resource_type="till_closeouts",
        resource_id=str(closeout.id),
        ip_address=ip_address,
        changes={
            "cashier": cashier.username,
            "for_date": day.isoformat(),
            "net_cash_expected": str(summary["net_cash_expected"]),
            "counted_cash": str(counted_cash),
            "difference": str(difference),
        },
    )

    db.commit()
    db.refresh(closeout)
    return closeout


def list_closeouts(db: Session, cashier_id: UUID | None = None) -> list[TillCloseout]:
    """Return closeouts, most recent first."""
    query = db.query(TillCloseout)
    if cashier_id is not None:
        query = query.filter(TillCloseout.cashier_id == cashier_id)
    return query.order_by(TillCloseout.date.desc()).all()
