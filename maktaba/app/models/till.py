from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, Date, DateTime, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from maktaba.app.core.database import Base


class TillCloseout(Base):
    """End-of-day reconciliation of one cashier's till. Never updated."""

    __tablename__ = "till_closeouts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    cashier_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    cashier_username: Mapped[str] = mapped_column(String(150), nullable=False)
    for_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_sales: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    total_returns: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    net_cash_expected: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    counted_cash: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    difference: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    invoice_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("ix_till_closeouts_cashier_day", "cashier_id", "for_date"),
        Index("ix_till_closeouts_date", "date"),
    )
