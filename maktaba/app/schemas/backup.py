"""Record shapes of the backup file.

Each collection of the backup is a list of these records. Amounts are
normalised to four decimal places and datetimes to UTC so an export of
restored data matches the export it was restored from.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from maktaba.app.core.dates import as_utc
from maktaba.app.models.catalog import RequestedBookStatus
from maktaba.app.models.invoice import (
    InvoiceStatus,
    InvoiceType,
    OrderSource,
    PaymentStatus,
    ReturnRequestStatus,
)
from maktaba.app.models.ledger import AccountType, TransactionType
from maktaba.app.models.user import RoleEnum

Q = Decimal("0.0001")


class BackupRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    @field_validator("*")
    @classmethod
    def normalise(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return as_utc(v)
        if isinstance(v, Decimal):
            return v.quantize(Q)
        return v


class UserRecord(BackupRecord):
    id: UUID
    username: str
    hashed_password: str
    role: RoleEnum
    is_active: bool = True


class ProductRecord(BackupRecord):
    id: UUID
    name: str
    author: str | None = None
    category: str | None = None
    quantity: int
    price: Decimal
    cost_price: Decimal | None = None


class InvoiceItemRecord(BackupRecord):
    product_id: UUID
    product_name: str
    quantity: int
    price: Decimal
    cost_price: Decimal | None = None
    discount: Decimal = Decimal("0")


class InvoiceRecord(BackupRecord):
    id: UUID
    reference: str
    type: InvoiceType
    status: InvoiceStatus
    payment_status: PaymentStatus
    date: datetime
    paid_date: datetime | None = None
    total: Decimal
    total_cost: Decimal
    total_profit: Decimal
    shipping_fee: Decimal = Decimal("0")
    source: OrderSource | None = None
    customer_id: UUID | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_address: str | None = None
    processed_by: str | None = None
    original_invoice_id: UUID | None = None
    items: list[InvoiceItemRecord]


class ReturnRequestRecord(BackupRecord):
    id: UUID
    request_date: datetime
    original_invoice_id: UUID
    requested_by: str
    status: ReturnRequestStatus
    processed_by: str | None = None
    processed_date: datetime | None = None
    return_invoice_id: UUID | None = None
    items: list[InvoiceItemRecord]


class RequestedBookRecord(BackupRecord):
    id: UUID
    name: str
    customer_name: str | None = None
    customer_phone: str | None = None
    requested_count: int = 1
    last_requested_date: datetime
    status: RequestedBookStatus


class CustomerRecord(BackupRecord):
    id: UUID
    name: str
    phone: str
    address: str | None = None
    email: str | None = None
    notes: str | None = None


class SupplierRecord(BackupRecord):
    id: UUID
    name: str
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class PurchaseItemRecord(BackupRecord):
    product_id: UUID
    product_name: str
    quantity: int
    cost_price: Decimal
    price: Decimal | None = None
    category: str | None = None


class PurchasePaymentRecord(BackupRecord):
    id: UUID
    date: datetime
    amount: Decimal
    account_id: UUID
    transaction_id: UUID | None = None


class PurchaseRecord(BackupRecord):
    id: UUID
    reference: str
    supplier_id: UUID
    supplier_name: str
    date: datetime
    total_cost: Decimal
    payment_status: PaymentStatus
    is_stocked_in: bool
    items: list[PurchaseItemRecord]
    payments: list[PurchasePaymentRecord] = []


class FinancialAccountRecord(BackupRecord):
    id: UUID
    code: str | None = None
    name: str
    type: AccountType
    user_id: UUID | None = None


class FinancialTransactionRecord(BackupRecord):
    id: UUID
    date: datetime
    description: str
    amount: Decimal
    type: TransactionType
    from_account_id: UUID | None = None
    to_account_id: UUID | None = None
    related_invoice_id: UUID | None = None
    related_purchase_id: UUID | None = None
    budget_id: UUID | None = None
    category: str | None = None
    created_by: UUID | None = None


class BudgetRecord(BackupRecord):
    id: UUID
    name: str
    target_amount: Decimal


class TillCloseoutRecord(BackupRecord):
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
    notes: str | None = None
    invoice_ids: list[str] = []


class ExpenseRecord(BackupRecord):
    id: UUID
    date: datetime
    description: str
    amount: Decimal
    category: str | None = None
    account_id: UUID
    transaction_id: UUID | None = None
    created_by: UUID | None = None


class ImportResult(BaseModel):
    restored: dict[str, int]
