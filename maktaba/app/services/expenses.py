from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from maktaba.app.core.dates import utcnow
from maktaba.app.core.i18n import ledger_text
from maktaba.app.models.ledger import Expense, TransactionType
from maktaba.app.models.user import User
from maktaba.app.schemas.expenses import ExpenseCreate
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import NotFoundError
from maktaba.app.services.ledger import get_account, post_transaction


def add_expense(db: Session, user: User | None, data: ExpenseCreate) -> Expense:
    """Record an expense and debit the account it was paid from."""
    if user is None:
        raise ValueError("No user is logged in")
    if not data.description.strip():
        raise ValueError("Description must not be empty")
    if data.amount <= 0:
        raise ValueError("Amount must be greater than 0")
    account = get_account(db, data.account_id)

    when = data.date or utcnow()
    txn = post_transaction(
        db,
        type=TransactionType.EXPENSE,
        amount=data.amount,
        description=data.description,
        from_account_id=account.id,
        category=data.category,
        created_by=user.id,
        date=when,
    )
    expense = Expense(
        date=when,
        description=data.description,
        amount=data.amount,
        category=data.category,
        account_id=account.id,
        transaction_id=txn.id,
        created_by=user.id,
    )
    db.add(expense)
    db.flush()

    log_action(
        db,
        user_id=user.id,
        action="EXPENSE_CREATED",
        resource_type="expenses",
        resource_id=str(expense.id),
        changes={
            "description": expense.description,
            "amount": str(expense.amount),
            "account": account.name,
        },
    )
    db.commit()
    db.refresh(expense)
    return expense


def list_expenses(
    db: Session,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> list[Expense]:
    query = db.query(Expense)
    if from_date is not None:
        query = query.filter(Expense.date >= from_date)
    if to_date is not None:
        query = query.filter(Expense.date < to_date)
    return query.order_by(Expense.date.desc()).all()


def delete_expense(db: Session, user: User | None, expense_id: UUID) -> None:
    """Delete an expense; the ledger keeps both the debit and its reversal."""
    if user is None:
        raise ValueError("No user is logged in")
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFoundError(f"Expense {expense_id} not found")

    post_transaction(
        db,
        type=TransactionType.EXPENSE_REVERSAL,
        amount=Decimal(str(expense.amount)),
        description=ledger_text("ledger.expense_reversal", description=expense.description),
        to_account_id=expense.account_id,
        category=expense.category,
        created_by=user.id,
    )
    log_action(
        db,
        user_id=user.id,
        action="EXPENSE_DELETED",
        resource_type="expenses",
        resource_id=str(expense.id),
        changes={"description": expense.description, "amount": str(expense.amount)},
    )
    db.delete(expense)
    db.commit()
