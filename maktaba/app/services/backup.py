"""Whole-shop backup and restore.

The backup is a JSON object keyed by collection name, each holding a list
of records. Restoring replaces the shop state with the file contents.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from maktaba.app.models.catalog import Customer, Product, RequestedBook
from maktaba.app.models.invoice import (
    Invoice,
    InvoiceItem,
    InvoiceType,
    ReturnRequest,
    ReturnRequestItem,
)
from maktaba.app.models.ledger import Budget, Expense, FinancialAccount, FinancialTransaction
from maktaba.app.models.purchase import Purchase, PurchaseItem, PurchasePayment, Supplier
from maktaba.app.models.till import TillCloseout
from maktaba.app.models.user import User
from maktaba.app.schemas.backup import (
    BudgetRecord,
    CustomerRecord,
    ExpenseRecord,
    FinancialAccountRecord,
    FinancialTransactionRecord,
    InvoiceRecord,
    ProductRecord,
    PurchaseRecord,
    RequestedBookRecord,
    ReturnRequestRecord,
    SupplierRecord,
    TillCloseoutRecord,
    UserRecord,
)
from maktaba.app.services.audit import log_action
from maktaba.app.services.ledger import ensure_cashier_tills, ensure_default_accounts

logger = logging.getLogger(__name__)

# Collection key -> (model, record schema), in restore order
COLLECTIONS: dict[str, tuple[type, type[BaseModel]]] = {
    "users": (User, UserRecord),
    "products": (Product, ProductRecord),
    "customers": (Customer, CustomerRecord),
    "suppliers": (Supplier, SupplierRecord),
    "financialAccounts": (FinancialAccount, FinancialAccountRecord),
    "budgets": (Budget, BudgetRecord),
    "invoices": (Invoice, InvoiceRecord),
    "returnRequests": (ReturnRequest, ReturnRequestRecord),
    "purchases": (Purchase, PurchaseRecord),
    "financialTransactions": (FinancialTransaction, FinancialTransactionRecord),
    "expenses": (Expense, ExpenseRecord),
    "tillCloseouts": (TillCloseout, TillCloseoutRecord),
    "requestedBooks": (RequestedBook, RequestedBookRecord),
}

# Child tables cleared before their parents
_CHILD_MODELS = [ReturnRequestItem, InvoiceItem, PurchasePayment, PurchaseItem]


def export_state(db: Session) -> dict[str, list[dict[str, Any]]]:
    """Dump every collection as JSON-ready records in a stable order."""
    data: dict[str, list[dict[str, Any]]] = {}
    for key, (model, record) in COLLECTIONS.items():
        rows = db.query(model).order_by(model.id).all()
        data[key] = [record.model_validate(row).model_dump(mode="json") for row in rows]
    return data


def _parse(data: dict[str, Any]) -> dict[str, list[BaseModel]]:
    parsed: dict[str, list[BaseModel]] = {}
    for key, (_, record) in COLLECTIONS.items():
        if key not in data:
            continue
        rows = data[key]
        if not isinstance(rows, list):
            raise ValueError(f"Backup collection '{key}' must be a list")
        try:
            parsed[key] = [record.model_validate(row) for row in rows]
        except ValidationError as e:
            raise ValueError(f"Backup collection '{key}' is invalid: {e.errors()[0]['msg']}")
    return parsed


def _build(key: str, record: BaseModel) -> Any:
    model = COLLECTIONS[key][0]
    values = record.model_dump(exclude={"items", "payments"})
    if key == "invoices":
        return model(**values, items=[
            InvoiceItem(line_no=n, **item.model_dump()) for n, item in enumerate(record.items)
        ])
    if key == "returnRequests":
        return model(**values, items=[
            ReturnRequestItem(line_no=n, **item.model_dump()) for n, item in enumerate(record.items)
        ])
    if key == "purchases":
        return model(
            **values,
            items=[PurchaseItem(line_no=n, **i.model_dump()) for n, i in enumerate(record.items)],
            payments=[PurchasePayment(**p.model_dump()) for p in record.payments],
        )
    return model(**values)


def import_state(db: Session, data: Any, user_id: UUID | None = None) -> dict[str, int]:
    """Replace the shop state with a backup.

    Every collection is cleared and refilled from the file; a collection
    missing from the file ends up empty. Users are the exception: they are
    kept when the file has none, so nobody is locked out. Nothing is
    written if any record fails validation.
    """
    if not isinstance(data, dict):
        raise ValueError("Backup must be a JSON object")
    if not any(key in data for key in COLLECTIONS):
        raise ValueError("Backup file contains no known collections")
    parsed = _parse(data)

    # ── Clear ────────────────────────────────────────────────────────────
    for model in _CHILD_MODELS:
        db.query(model).delete(synchronize_session=False)
    for key in reversed(list(COLLECTIONS)):
        if key == "users" and key not in parsed:
            continue
        db.query(COLLECTIONS[key][0]).delete(synchronize_session=False)
    db.flush()
    # Deleted rows may come back with the same ids
    db.expunge_all()

    # ── Restore ──────────────────────────────────────────────────────────
    restored: dict[str, int] = {}
    for key in COLLECTIONS:
        records = parsed.get(key)
        if records is None:
            continue
        if key == "invoices":
            # Originals before the returns that point at them
            records = sorted(records, key=lambda r: r.type == InvoiceType.RETURN)
        db.add_all([_build(key, r) for r in records])
        db.flush()
        restored[key] = len(records)

    ensure_default_accounts(db)
    ensure_cashier_tills(db)

    log_action(
        db,
        user_id=user_id,
        action="BACKUP_RESTORED",
        resource_type="backup",
        resource_id="import",
        changes=restored,
    )
    db.commit()
    logger.info("Backup restored: %s", restored)
    return restored
