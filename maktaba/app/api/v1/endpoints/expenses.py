from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_active_admin, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.ledger import Expense
from maktaba.app.models.user import User
from maktaba.app.schemas.common import MessageOut
from maktaba.app.schemas.expenses import ExpenseCreate, ExpenseOut
from maktaba.app.services.expenses import add_expense, delete_expense, list_expenses

router = APIRouter()


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Expense:
    try:
        return add_expense(db, current_user, payload)
    except ValueError as e:
        raise http_error(e)


@router.get("", response_model=list[ExpenseOut])
def get_expenses(
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> list[Expense]:
    return list_expenses(db, from_date, to_date)


@router.delete("/{expense_id}", response_model=MessageOut)
def remove_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> dict[str, str]:
    try:
        delete_expense(db, current_user, expense_id)
    except ValueError as e:
        raise http_error(e)
    return {"detail": "Expense deleted"}
