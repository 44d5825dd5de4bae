from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator

from maktaba.app.models.invoice import PaymentStatus
from maktaba.app.schemas.common import OrmOut


class SupplierCreate(BaseModel):
    name: str
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Supplier name must not be empty")
        return v.strip()


class SupplierUpdate(BaseModel):
    name: str | None = None
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class SupplierOut(OrmOut):
    id: UUID
    name: str
    contact_person: str | None
    phone: str | None
    email: str | None
    address: str | None


class PurchaseItemIn(BaseModel):
    product_id: UUID
    quantity: int
    cost_price: Decimal
    price: Decimal | None = None
    category: str | None = None

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero")
        return v

    @field_validator("cost_price", "price")
    @classmethod
    def price_non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("Price must be non-negative")
        return v


class PurchaseCreate(BaseModel):
    supplier_id: UUID
    items: list[PurchaseItemIn]
    date: datetime | None = None

    @field_validator("items")
    @classmethod
    def at_least_one_item(cls, v: list[PurchaseItemIn]) -> list[PurchaseItemIn]:
        if not v:
            raise ValueError("Purchase must contain at least one item")
        return v


class PurchasePaymentIn(BaseModel):
    amount: Decimal
    account_id: UUID
    date: datetime | None = None

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Payment amount must be greater than zero")
        return v


class StockInRequest(BaseModel):
    update_product_prices: bool = True


class PurchaseItemOut(OrmOut):
    product_id: UUID
    product_name: str
    quantity: int
    cost_price: Decimal
    price: Decimal | None
    category: str | None


class PurchasePaymentOut(OrmOut):
    id: UUID
    date: datetime
    amount: Decimal
    account_id: UUID
    transaction_id: UUID | None


class PurchaseOut(OrmOut):
    id: UUID
    reference: str
    supplier_id: UUID
    supplier_name: str
    date: datetime
    total_cost: Decimal
    payment_status: PaymentStatus
    is_stocked_in: bool
    items: list[PurchaseItemOut]
    payments: list[PurchasePaymentOut]
