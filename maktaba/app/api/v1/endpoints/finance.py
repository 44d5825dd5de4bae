from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_active_admin, get_current_user, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.ledger import FinancialAccount, FinancialTransaction, TransactionType
from maktaba.app.models.user import User
from maktaba.app.schemas.ledger import (
    AccountBalanceOut,
    AccountCreate,
    AccountOut,
    BudgetCreate,
    BudgetFund,
    BudgetOut,
    TransactionCreate,
    TransactionOut,
)
from maktaba.app.services.ledger import (
    add_transaction,
    budget_progress,
    create_account,
    create_budget,
    fund_budget,
    get_account_balances,
    list_accounts,
    list_budgets,
    list_transactions,
)

router = APIRouter()


# ─── Accounts ────────────────────────────────────────────────────────────────


@router.get("/accounts", response_model=list[AccountOut])
def get_accounts(
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[FinancialAccount]:
    return list_accounts(db)


@router.post("/accounts", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def add_account(
    payload: AccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> FinancialAccount:
    return create_account(db, payload, current_user.id)


@router.get("/balances", response_model=list[AccountBalanceOut])
def get_balances(
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> list[dict]:
    """Balances folded from the whole transaction log."""
    return get_account_balances(db)


# ─── Transactions ────────────────────────────────────────────────────────────


@router.get("/transactions", response_model=list[TransactionOut])
def get_transactions(
    account_id: UUID | None = None,
    type: TransactionType | None = None,
    limit: int = 200,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> list[FinancialTransaction]:
    return list_transactions(db, account_id=account_id, type=type, limit=limit)


@router.post(
    "/transactions", response_model=TransactionOut, status_code=status.HTTP_201_CREATED
)
def record_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> FinancialTransaction:
    try:
        return add_transaction(db, current_user, payload)
    except ValueError as e:
        raise http_error(e)


# ─── Budgets ─────────────────────────────────────────────────────────────────


@router.get("/budgets", response_model=list[BudgetOut])
def get_budgets(
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> list[dict]:
    return list_budgets(db)


@router.post("/budgets", response_model=BudgetOut, status_code=status.HTTP_201_CREATED)
def add_budget(
    payload: BudgetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> dict:
    try:
        budget = create_budget(db, payload, current_user.id)
    except ValueError as e:
        raise http_error(e)
    return budget_progress(db, budget)


@router.post("/budgets/{budget_id}/fund", response_model=BudgetOut)
def fund_a_budget(
    budget_id: UUID,
    payload: BudgetFund,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> dict:
    try:
        return fund_budget(db, current_user, budget_id, payload)
    except ValueError as e:
        raise http_error(e)
