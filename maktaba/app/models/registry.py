# maktaba/app/models/registry.py
#
# Re-exports every model so a single import registers all tables on
# Base.metadata (init_db, tests, scripts).

from maktaba.app.models.user import RoleEnum, User
from maktaba.app.models.audit import AuditLog
from maktaba.app.models.catalog import Customer, Product, RequestedBook, RequestedBookStatus
from maktaba.app.models.invoice import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    InvoiceType,
    OrderSource,
    PaymentStatus,
    ReturnRequest,
    ReturnRequestItem,
    ReturnRequestStatus,
)
from maktaba.app.models.ledger import (
    AccountType,
    Budget,
    Expense,
    FinancialAccount,
    FinancialTransaction,
    TransactionType,
)
from maktaba.app.models.purchase import Purchase, PurchaseItem, PurchasePayment, Supplier
from maktaba.app.models.till import TillCloseout

__all__ = [
    "RoleEnum",
    "User",
    "AuditLog",
    "Customer",
    "Product",
    "RequestedBook",
    "RequestedBookStatus",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "InvoiceType",
    "OrderSource",
    "PaymentStatus",
    "ReturnRequest",
    "ReturnRequestItem",
    "ReturnRequestStatus",
    "AccountType",
    "Budget",
    "Expense",
    "FinancialAccount",
    "FinancialTransaction",
    "TransactionType",
    "Purchase",
    "PurchaseItem",
    "PurchasePayment",
    "Supplier",
    "TillCloseout",
]
