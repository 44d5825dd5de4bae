from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator

from maktaba.app.schemas.common import OrmOut


class TillSummaryOut(BaseModel):
    cashier_id: UUID
    cashier_username: str
    for_date: date
    total_sales: Decimal
    total_returns: Decimal
    net_cash_expected: Decimal
    invoice_ids: list[str]


class TillCloseRequest(BaseModel):
    counted_cash: Decimal
    notes: str | None = None
    for_date: date | None = None
    # Admins may close another cashier's till; defaults to the caller
    cashier_id: UUID | None = None

    @field_validator("counted_cash")
    @classmethod
    def cash_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Counted cash must be non-negative")
        return v


class TillCloseoutOut(OrmOut):
    id: UUID
    date: datetime
    cashier_id: UUID
    cashier_username: str
    for_date: date
    total_sales: Decimal
    total_returns: Decimal
    net_cash_expected: Decimal
    counted_cash: Decimal
    difference: Decimal
    notes: str | None
    invoice_ids: list[str]
