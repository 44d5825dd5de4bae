from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator

from maktaba.app.models.ledger import AccountType, TransactionType
from maktaba.app.schemas.common import OrmOut

# Entry types a user may record by hand; the rest are posted by order,
# return, purchase and expense operations.
MANUAL_TRANSACTION_TYPES = {
    TransactionType.EXPENSE,
    TransactionType.CAPITAL_DEPOSIT,
    TransactionType.PROFIT_WITHDRAWAL,
    TransactionType.TRANSFER,
}


class AccountCreate(BaseModel):
    name: str
    type: AccountType = AccountType.CASH

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Account name must not be empty")
        return v.strip()


class AccountOut(OrmOut):
    id: UUID
    code: str | None
    name: str
    type: AccountType
    user_id: UUID | None


class AccountBalanceOut(BaseModel):
    account_id: UUID
    code: str | None = None
    name: str
    type: AccountType | None = None
    user_id: UUID | None = None
    balance: Decimal


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: Decimal
    description: str = ""
    from_account_id: UUID | None = None
    to_account_id: UUID | None = None
    category: str | None = None
    date: datetime | None = None

    @field_validator("type")
    @classmethod
    def manual_type_only(cls, v: TransactionType) -> TransactionType:
        if v not in MANUAL_TRANSACTION_TYPES:
            raise ValueError(f"Transactions of type {v.value} cannot be recorded by hand")
        return v

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be greater than zero")
        return v


class TransactionOut(OrmOut):
    id: UUID
    date: datetime
    description: str
    amount: Decimal
    type: TransactionType
    from_account_id: UUID | None
    to_account_id: UUID | None
    related_invoice_id: UUID | None
    related_purchase_id: UUID | None
    budget_id: UUID | None
    category: str | None
    created_by: UUID | None


class BudgetCreate(BaseModel):
    name: str
    target_amount: Decimal

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Budget name must not be empty")
        return v.strip()

    @field_validator("target_amount")
    @classmethod
    def target_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Target amount must be greater than zero")
        return v


class BudgetFund(BaseModel):
    from_account_id: UUID
    to_account_id: UUID
    amount: Decimal
    description: str = ""

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be greater than zero")
        return v


class BudgetOut(BaseModel):
    id: UUID
    name: str
    target_amount: Decimal
    funded: Decimal
    remaining: Decimal
    progress_percent: Decimal
