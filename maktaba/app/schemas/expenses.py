from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator

from maktaba.app.schemas.common import OrmOut


class ExpenseCreate(BaseModel):
    description: str
    amount: Decimal
    account_id: UUID
    category: str | None = None
    date: datetime | None = None

    @field_validator("description")
    @classmethod
    def description_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description must not be empty")
        return v.strip()

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v


class ExpenseOut(OrmOut):
    id: UUID
    date: datetime
    description: str
    amount: Decimal
    category: str | None
    account_id: UUID
    transaction_id: UUID | None
