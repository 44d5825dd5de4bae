from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from maktaba.app.core.database import Base


class AccountType(str, enum.Enum):
    CASH = "cash"
    BANK = "bank"
    OTHER = "other"


class TransactionType(str, enum.Enum):
    SALE_INCOME = "sale_income"
    EXPENSE = "expense"
    EXPENSE_REVERSAL = "expense_reversal"
    CAPITAL_DEPOSIT = "capital_deposit"
    PROFIT_WITHDRAWAL = "profit_withdrawal"
    SUPPLIER_PAYMENT = "supplier_payment"
    RETURN_REFUND = "return_refund"
    TRANSFER = "transfer"


class FinancialAccount(Base):
    """A money container: the main cash box, a bank account or a cashier till.

    Balances are never stored; see ``services.ledger.compute_balances``.
    """

    __tablename__ = "financial_accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AccountType] = mapped_column(Enum(AccountType), nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (Index("ix_financial_accounts_user", "user_id"),)


class FinancialTransaction(Base):
    """Append-only money movement.

    Only ``to_account_id`` set: credit. Only ``from_account_id`` set: debit.
    Both set: transfer.
    """

    __tablename__ = "financial_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    type: Mapped[TransactionType] = mapped_column(Enum(TransactionType), nullable=False)
    from_account_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    to_account_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    related_invoice_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    related_purchase_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    budget_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("budgets.id"), nullable=True
    )
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_financial_transaction_amount_positive"),
        Index("ix_financial_transactions_date", "date"),
        Index("ix_financial_transactions_type", "type"),
        Index("ix_financial_transactions_from", "from_account_id"),
        Index("ix_financial_transactions_to", "to_account_id"),
        Index("ix_financial_transactions_invoice", "related_invoice_id"),
        Index("ix_financial_transactions_budget", "budget_id"),
    )


class Budget(Base):
    """A savings goal; its funded amount is derived from tagged transfers."""

    __tablename__ = "budgets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )

    __table_args__ = (
        CheckConstraint("target_amount > 0", name="ck_budget_target_positive"),
    )


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    account_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    transaction_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_expense_amount_positive"),
        Index("ix_expenses_date", "date"),
        Index("ix_expenses_category", "category"),
    )
