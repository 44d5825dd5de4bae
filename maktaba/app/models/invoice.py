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
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from maktaba.app.core.database import Base


class InvoiceType(str, enum.Enum):
    SALE = "sale"
    SHIPPING = "shipping"
    RESERVATION = "reservation"
    RETURN = "return"


class InvoiceStatus(str, enum.Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    PARTIAL = "partial"


class OrderSource(str, enum.Enum):
    IN_STORE = "in-store"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    WHATSAPP = "whatsapp"
    OTHER = "other"


class ReturnRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Invoice(Base):
    """Sale, shipping order, reservation or return.

    Invoices are never deleted; cancellation is a status. Return invoices
    carry negative ``total`` and ``total_cost`` and point at the invoice
    they refund through ``original_invoice_id``.
    """

    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    reference: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    type: Mapped[InvoiceType] = mapped_column(Enum(InvoiceType), nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(Enum(InvoiceStatus), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), nullable=False
    )
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    paid_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    total: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    total_profit: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    shipping_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    source: Mapped[OrderSource | None] = mapped_column(Enum(OrderSource), nullable=True)

    # Customer snapshot; customer_id is optional for walk-in buyers
    customer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    customer_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    processed_by: Mapped[str | None] = mapped_column(String(150), nullable=True)
    original_invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("invoices.id"), nullable=True
    )

    items: Mapped[list[InvoiceItem]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.line_no",
    )

    __table_args__ = (
        Index("ix_invoices_type", "type"),
        Index("ix_invoices_status", "status"),
        Index("ix_invoices_date", "date"),
        Index("ix_invoices_paid_date", "paid_date"),
        Index("ix_invoices_processed_by", "processed_by"),
        Index("ix_invoices_original", "original_invoice_id"),
    )


class InvoiceItem(Base):
    """Snapshot of a product line at the time of sale.

    ``product_id`` is not a foreign key; lines outlive deleted products.
    """

    __tablename__ = "invoice_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    cost_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )

    invoice: Mapped[Invoice] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_invoice_item_quantity_positive"),
        CheckConstraint("discount >= 0", name="ck_invoice_item_discount_non_negative"),
        Index("ix_invoice_items_invoice", "invoice_id"),
        Index("ix_invoice_items_product", "product_id"),
    )


class ReturnRequest(Base):
    """A cashier's request to return items, awaiting admin approval."""

    __tablename__ = "return_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    request_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    original_invoice_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("invoices.id"), nullable=False
    )
    requested_by: Mapped[str] = mapped_column(String(150), nullable=False)
    status: Mapped[ReturnRequestStatus] = mapped_column(
        Enum(ReturnRequestStatus), nullable=False, default=ReturnRequestStatus.PENDING
    )
    processed_by: Mapped[str | None] = mapped_column(String(150), nullable=True)
    processed_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    return_invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("invoices.id"), nullable=True
    )

    items: Mapped[list[ReturnRequestItem]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="ReturnRequestItem.line_no",
    )

    __table_args__ = (
        Index("ix_return_requests_status", "status"),
        Index("ix_return_requests_original", "original_invoice_id"),
    )


class ReturnRequestItem(Base):
    __tablename__ = "return_request_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("return_requests.id", ondelete="CASCADE"), nullable=False
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    cost_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )

    request: Mapped[ReturnRequest] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_return_request_item_quantity_positive"),
    )
