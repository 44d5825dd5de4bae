from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator, model_validator

from maktaba.app.models.invoice import (
    InvoiceStatus,
    InvoiceType,
    OrderSource,
    PaymentStatus,
    ReturnRequestStatus,
)
from maktaba.app.schemas.common import OrmOut


# ─── Request ──────────────────────────────────────────────────────────────────


class OrderItemIn(BaseModel):
    product_id: UUID
    quantity: int
    price: Decimal | None = None
    cost_price: Decimal | None = None
    discount: Decimal = Decimal("0")

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero")
        return v

    @field_validator("price", "cost_price", "discount")
    @classmethod
    def amount_non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("Amounts must be non-negative")
        return v


class CustomerInfo(BaseModel):
    id: UUID | None = None
    name: str
    phone: str
    address: str | None = None


class OrderCreate(BaseModel):
    type: InvoiceType
    items: list[OrderItemIn]
    customer: CustomerInfo | None = None
    shipping_fee: Decimal = Decimal("0")
    source: OrderSource | None = None

    @field_validator("items")
    @classmethod
    def at_least_one_item(cls, v: list[OrderItemIn]) -> list[OrderItemIn]:
        if not v:
            raise ValueError("Cart must contain at least one item")
        return v

    @field_validator("shipping_fee")
    @classmethod
    def fee_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Shipping fee must be non-negative")
        return v

    @field_validator("type")
    @classmethod
    def not_a_return(cls, v: InvoiceType) -> InvoiceType:
        if v == InvoiceType.RETURN:
            raise ValueError("Returns are created through the returns endpoint")
        return v


class OrderStatusUpdate(BaseModel):
    status: InvoiceStatus | None = None
    payment_status: PaymentStatus | None = None

    @model_validator(mode="after")
    def something_to_change(self) -> "OrderStatusUpdate":
        if self.status is None and self.payment_status is None:
            raise ValueError("status or payment_status is required")
        return self


class ReturnItemIn(BaseModel):
    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero")
        return v


class ReturnCreate(BaseModel):
    original_invoice_id: UUID
    items: list[ReturnItemIn]

    @field_validator("items")
    @classmethod
    def at_least_one_item(cls, v: list[ReturnItemIn]) -> list[ReturnItemIn]:
        if not v:
            raise ValueError("Select at least one item to return")
        return v


# ─── Response ─────────────────────────────────────────────────────────────────


class InvoiceItemOut(OrmOut):
    product_id: UUID
    product_name: str
    quantity: int
    price: Decimal
    cost_price: Decimal | None
    discount: Decimal


class InvoiceOut(OrmOut):
    id: UUID
    reference: str
    type: InvoiceType
    status: InvoiceStatus
    payment_status: PaymentStatus
    date: datetime
    paid_date: datetime | None
    total: Decimal
    total_cost: Decimal
    total_profit: Decimal
    shipping_fee: Decimal
    source: OrderSource | None
    customer_id: UUID | None
    customer_name: str | None
    customer_phone: str | None
    customer_address: str | None
    processed_by: str | None
    original_invoice_id: UUID | None
    items: list[InvoiceItemOut]


class ReturnableItemOut(BaseModel):
    product_id: UUID
    product_name: str
    quantity_sold: int
    quantity_returned: int
    returnable_quantity: int
    price: Decimal
    discount: Decimal


class ReturnRequestItemOut(OrmOut):
    product_id: UUID
    product_name: str
    quantity: int
    price: Decimal
    cost_price: Decimal | None
    discount: Decimal


class ReturnRequestOut(OrmOut):
    id: UUID
    request_date: datetime
    original_invoice_id: UUID
    requested_by: str
    status: ReturnRequestStatus
    processed_by: str | None
    processed_date: datetime | None
    return_invoice_id: UUID | None
    items: list[ReturnRequestItemOut]
