"""Financial ledger: append-only transactions and derived balances.

Every money movement in the shop is one ``FinancialTransaction`` row.
Balances are never stored; they are folded from the full log on demand
by :func:`compute_balances`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy.orm import Session

from maktaba.app.core.dates import utcnow
from maktaba.app.core.i18n import ledger_text
from maktaba.app.models.ledger import (
    AccountType,
    Budget,
    FinancialAccount,
    FinancialTransaction,
    TransactionType,
)
from maktaba.app.models.user import RoleEnum, User
from maktaba.app.schemas.ledger import (
    MANUAL_TRANSACTION_TYPES,
    AccountCreate,
    BudgetCreate,
    BudgetFund,
    TransactionCreate,
)
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CASH_CODE = "cash-default"
DEFAULT_BANK_CODE = "bank-default"

# Category tag used for budget funding before transfers carried budget_id
LEGACY_FUNDING_PREFIX = "تمويل: "

ZERO = Decimal("0")
PCT = Decimal("0.01")

_REQUIRES_FROM = {
    TransactionType.EXPENSE,
    TransactionType.PROFIT_WITHDRAWAL,
    TransactionType.TRANSFER,
}
_REQUIRES_TO = {
    TransactionType.CAPITAL_DEPOSIT,
    TransactionType.TRANSFER,
}


# ─── Accounts ────────────────────────────────────────────────────────────────


def get_account(db: Session, account_id: UUID) -> FinancialAccount:
    account = db.query(FinancialAccount).filter(FinancialAccount.id == account_id).first()
    if not account:
        raise NotFoundError(f"Account {account_id} not found")
    return account


def get_account_by_code(db: Session, code: str) -> FinancialAccount:
    account = db.query(FinancialAccount).filter(FinancialAccount.code == code).first()
    if not account:
        raise ValueError(f"Account {code} not found")
    return account


def list_accounts(db: Session) -> list[FinancialAccount]:
    return db.query(FinancialAccount).order_by(FinancialAccount.created_at, FinancialAccount.name).all()


def create_account(db: Session, data: AccountCreate, user_id: UUID | None) -> FinancialAccount:
    account = FinancialAccount(name=data.name, type=data.type)
    db.add(account)
    db.flush()
    log_action(
        db,
        user_id=user_id,
        action="ACCOUNT_CREATED",
        resource_type="financial_accounts",
        resource_id=str(account.id),
        changes={"name": account.name, "type": account.type.value},
    )
    db.commit()
    db.refresh(account)
    return account


def ensure_default_accounts(db: Session) -> dict[str, FinancialAccount]:
    """Create the main cash box and bank account if missing. Does NOT commit."""
    defaults = [
        (DEFAULT_CASH_CODE, "account.cash_default", AccountType.CASH),
        (DEFAULT_BANK_CODE, "account.bank_default", AccountType.BANK),
    ]
    accounts: dict[str, FinancialAccount] = {}
    for code, name_key, account_type in defaults:
        account = db.query(FinancialAccount).filter(FinancialAccount.code == code).first()
        if not account:
            account = FinancialAccount(code=code, name=ledger_text(name_key), type=account_type)
            db.add(account)
            logger.info("Created default account %s", code)
        accounts[code] = account
    db.flush()
    return accounts


def ensure_till_for_user(db: Session, user: User) -> FinancialAccount:
    """Return the cashier's till, creating it if needed. Does NOT commit."""
    till = db.query(FinancialAccount).filter(FinancialAccount.user_id == user.id).first()
    if till:
        return till
    till = FinancialAccount(
        name=ledger_text("account.till", username=user.username),
        type=AccountType.CASH,
        user_id=user.id,
    )
    db.add(till)
    db.flush()
    logger.info("Created till account for cashier %s", user.username)
    return till


def ensure_cashier_tills(db: Session) -> list[FinancialAccount]:
    """Give every cashier without one a till account. Does NOT commit."""
    cashiers = db.query(User).filter(User.role == RoleEnum.CASHIER).all()
    return [ensure_till_for_user(db, cashier) for cashier in cashiers]


def resolve_cashier_account(db: Session, user: User) -> FinancialAccount:
    """The account a cashier's takings go to: their till, else the main cash box."""
    till = db.query(FinancialAccount).filter(FinancialAccount.user_id == user.id).first()
    if till:
        return till
    return get_account_by_code(db, DEFAULT_CASH_CODE)


# ─── Posting ─────────────────────────────────────────────────────────────────


def post_transaction(
    db: Session,
    *,
    type: TransactionType,
    amount: Decimal,
    description: str,
    from_account_id: UUID | None = None,
    to_account_id: UUID | None = None,
    related_invoice_id: UUID | None = None,
    related_purchase_id: UUID | None = None,
    budget_id: UUID | None = None,
    category: str | None = None,
    created_by: UUID | None = None,
    date: datetime | None = None,
) -> FinancialTransaction:
    """Append one transaction to the ledger.

    Rows are only ever inserted. Does NOT commit; the caller commits it
    together with the invoice, expense or purchase it belongs to.
    """
    if amount <= 0:
        raise ValueError("Transaction amount must be greater than zero")
    if from_account_id is None and to_account_id is None:
        raise ValueError("A transaction needs a source or a destination account")
    txn = FinancialTransaction(
        date=date or utcnow(),
        description=description,
        amount=amount,
        type=type,
        from_account_id=from_account_id,
        to_account_id=to_account_id,
        related_invoice_id=related_invoice_id,
        related_purchase_id=related_purchase_id,
        budget_id=budget_id,
        category=category,
        created_by=created_by,
    )
    db.add(txn)
    db.flush()
    return txn


def _validate_manual_entry(
    db: Session,
    type: TransactionType,
    amount: Decimal,
    from_account_id: UUID | None,
    to_account_id: UUID | None,
) -> None:
    if type not in MANUAL_TRANSACTION_TYPES:
        raise ValueError(f"Transactions of type {type.value} cannot be recorded by hand")
    if amount <= 0:
        raise ValueError("Amount must be greater than zero")
    if type in _REQUIRES_FROM and from_account_id is None:
        raise ValueError("Select the account the money comes from")
    if type in _REQUIRES_TO and to_account_id is None:
        raise ValueError("Select the account the money goes to")
    if type == TransactionType.TRANSFER and from_account_id == to_account_id:
        raise ValueError("Cannot transfer to the same account")
    for account_id in (from_account_id, to_account_id):
        if account_id is not None:
            get_account(db, account_id)


def add_transaction(db: Session, user: User | None, data: TransactionCreate) -> FinancialTransaction:
    """Record a manual entry: expense, capital deposit, withdrawal or transfer."""
    if user is None:
        raise ValueError("No user is logged in")
    _validate_manual_entry(db, data.type, data.amount, data.from_account_id, data.to_account_id)

    # Only the sides the entry type uses are kept
    from_id = data.from_account_id if data.type in _REQUIRES_FROM else None
    to_id = data.to_account_id if data.type in _REQUIRES_TO else None
    description = data.description.strip() or ledger_text(f"ledger.default.{data.type.value}")

    txn = post_transaction(
        db,
        type=data.type,
        amount=data.amount,
        description=description,
        from_account_id=from_id,
        to_account_id=to_id,
        category=data.category,
        created_by=user.id,
        date=data.date,
    )
    log_action(
        db,
        user_id=user.id,
        action="TRANSACTION_RECORDED",
        resource_type="financial_transactions",
        resource_id=str(txn.id),
        changes={"type": txn.type.value, "amount": str(txn.amount)},
    )
    db.commit()
    db.refresh(txn)
    return txn


def list_transactions(
    db: Session,
    account_id: UUID | None = None,
    type: TransactionType | None = None,
    limit: int = 200,
) -> list[FinancialTransaction]:
    query = db.query(FinancialTransaction)
    if account_id is not None:
        query = query.filter(
            (FinancialTransaction.from_account_id == account_id)
            | (FinancialTransaction.to_account_id == account_id)
        )
    if type is not None:
        query = query.filter(FinancialTransaction.type == type)
    return query.order_by(FinancialTransaction.date.desc()).limit(limit).all()


# ─── Balances ────────────────────────────────────────────────────────────────


def compute_balances(
    accounts: Iterable[FinancialAccount],
    transactions: Iterable[FinancialTransaction],
) -> dict[UUID, Decimal]:
    """Fold the transaction log into per-account balances.

    Every known account starts at zero; ``from`` subtracts and ``to`` adds.
    The result does not depend on transaction order. Accounts referenced
    only by transactions still get an entry.
    """
    balances: dict[UUID, Decimal] = {account.id: ZERO for account in accounts}
    for txn in transactions:
        amount = Decimal(str(txn.amount))
        if txn.from_account_id is not None:
            balances[txn.from_account_id] = balances.get(txn.from_account_id, ZERO) - amount
        if txn.to_account_id is not None:
            balances[txn.to_account_id] = balances.get(txn.to_account_id, ZERO) + amount
    return balances


def get_account_balances(db: Session) -> list[dict]:
    accounts = list_accounts(db)
    balances = compute_balances(accounts, db.query(FinancialTransaction).all())
    result: list[dict] = []
    for account in accounts:
        result.append({
            "account_id": account.id,
            "code": account.code,
            "name": account.name,
            "type": account.type,
            "user_id": account.user_id,
            "balance": balances.pop(account.id),
        })
    for account_id, balance in balances.items():
        logger.warning("Transactions reference unknown account %s", account_id)
        result.append({"account_id": account_id, "name": str(account_id), "balance": balance})
    return result


# ─── Budgets ─────────────────────────────────────────────────────────────────


def get_budget(db: Session, budget_id: UUID) -> Budget:
    budget = db.query(Budget).filter(Budget.id == budget_id).first()
    if not budget:
        raise NotFoundError(f"Budget {budget_id} not found")
    return budget


def create_budget(db: Session, data: BudgetCreate, user_id: UUID | None) -> Budget:
    if db.query(Budget).filter(Budget.name == data.name).first():
        raise ValueError(f"Budget '{data.name}' already exists")
    budget = Budget(name=data.name, target_amount=data.target_amount)
    db.add(budget)
    db.flush()
    log_action(
        db,
        user_id=user_id,
        action="BUDGET_CREATED",
        resource_type="budgets",
        resource_id=str(budget.id),
        changes={"name": budget.name, "target_amount": str(budget.target_amount)},
    )
    db.commit()
    db.refresh(budget)
    return budget


def budget_funded_amount(db: Session, budget: Budget) -> Decimal:
    """Sum of transfers earmarked for *budget*.

    Transfers carry ``budget_id``; untagged transfers from older data are
    matched on their ``"تمويل: <name>"`` category.
    """
    tagged = (
        db.query(FinancialTransaction)
        .filter(
            FinancialTransaction.type == TransactionType.TRANSFER,
            FinancialTransaction.budget_id == budget.id,
        )
        .all()
    )
    legacy_categories = {
        LEGACY_FUNDING_PREFIX + budget.name,
        ledger_text("ledger.budget_funding", name=budget.name),
    }
    legacy = (
        db.query(FinancialTransaction)
        .filter(
            FinancialTransaction.type == TransactionType.TRANSFER,
            FinancialTransaction.budget_id.is_(None),
            FinancialTransaction.category.in_(legacy_categories),
        )
        .all()
    )
    return sum((Decimal(str(t.amount)) for t in tagged + legacy), ZERO)


def budget_progress(db: Session, budget: Budget) -> dict:
    funded = budget_funded_amount(db, budget)
    target = Decimal(str(budget.target_amount))
    percent = min(Decimal("100"), funded / target * 100) if target > 0 else ZERO
    return {
        "id": budget.id,
        "name": budget.name,
        "target_amount": target,
        "funded": funded,
        "remaining": max(ZERO, target - funded),
        "progress_percent": percent.quantize(PCT, rounding=ROUND_HALF_UP),
    }


def list_budgets(db: Session) -> list[dict]:
    return [budget_progress(db, b) for b in db.query(Budget).order_by(Budget.name).all()]


def fund_budget(db: Session, user: User | None, budget_id: UUID, data: BudgetFund) -> dict:
    """Move money towards a budget goal as a tagged transfer."""
    if user is None:
        raise ValueError("No user is logged in")
    budget = get_budget(db, budget_id)
    _validate_manual_entry(
        db, TransactionType.TRANSFER, data.amount, data.from_account_id, data.to_account_id
    )
    category = ledger_text("ledger.budget_funding", name=budget.name)
    txn = post_transaction(
        db,
        type=TransactionType.TRANSFER,
        amount=data.amount,
        description=data.description.strip() or category,
        from_account_id=data.from_account_id,
        to_account_id=data.to_account_id,
        budget_id=budget.id,
        category=category,
        created_by=user.id,
    )
    log_action(
        db,
        user_id=user.id,
        action="BUDGET_FUNDED",
        resource_type="budgets",
        resource_id=str(budget.id),
        changes={"transaction_id": str(txn.id), "amount": str(txn.amount)},
    )
    db.commit()
    return budget_progress(db, budget)
