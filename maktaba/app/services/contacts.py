"""Customers and the requested-books wish list."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from maktaba.app.core.dates import utcnow
from maktaba.app.models.catalog import Customer, RequestedBook, RequestedBookStatus
from maktaba.app.schemas.contacts import (
    CustomerCreate,
    CustomerUpdate,
    RequestedBookCreate,
)
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import NotFoundError


# ─── Customers ───────────────────────────────────────────────────────────────


def get_customer(db: Session, customer_id: UUID) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def list_customers(db: Session, search: str | None = None) -> list[Customer]:
    query = db.query(Customer)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(Customer.name.ilike(pattern) | Customer.phone.ilike(pattern))
    return query.order_by(Customer.name).all()


def create_customer(db: Session, data: CustomerCreate, user_id: UUID | None) -> Customer:
    customer = Customer(**data.model_dump())
    db.add(customer)
    db.flush()
    log_action(
        db,
        user_id=user_id,
        action="CUSTOMER_CREATED",
        resource_type="customers",
        resource_id=str(customer.id),
        changes={"name": customer.name, "phone": customer.phone},
    )
    db.commit()
    db.refresh(customer)
    return customer


def update_customer(
    db: Session, customer_id: UUID, data: CustomerUpdate, user_id: UUID | None
) -> Customer:
    customer = get_customer(db, customer_id)
    changes = data.model_dump(exclude_unset=True)
    for field in ("name", "phone"):
        if field in changes and not (changes[field] or "").strip():
            raise ValueError("Name and phone must not be empty")
    for field, value in changes.items():
        setattr(customer, field, value)
    log_action(
        db,
        user_id=user_id,
        action="CUSTOMER_UPDATED",
        resource_type="customers",
        resource_id=str(customer.id),
        changes=changes,
    )
    db.commit()
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: UUID, user_id: UUID | None) -> None:
    """Delete a customer; invoices keep their own copy of name and phone."""
    customer = get_customer(db, customer_id)
    log_action(
        db,
        user_id=user_id,
        action="CUSTOMER_DELETED",
        resource_type="customers",
        resource_id=str(customer.id),
        changes={"name": customer.name},
    )
    db.delete(customer)
    db.commit()


# ─── Requested books ─────────────────────────────────────────────────────────


def list_requested_books(
    db: Session, status: RequestedBookStatus | None = None
) -> list[RequestedBook]:
    query = db.query(RequestedBook)
    if status is not None:
        query = query.filter(RequestedBook.status == status)
    return query.order_by(
        RequestedBook.requested_count.desc(), RequestedBook.last_requested_date.desc()
    ).all()


def add_requested_book(
    db: Session, data: RequestedBookCreate, user_id: UUID | None
) -> RequestedBook:
    """Note a customer request; asking again for the same title bumps its count.

    Titles match case-insensitively. A fulfilled title asked for again goes
    back to pending.
    """
    now = utcnow()
    book = (
        db.query(RequestedBook)
        .filter(func.lower(RequestedBook.name) == data.name.lower())
        .first()
    )
    if book:
        book.requested_count += 1
        book.last_requested_date = now
        book.status = RequestedBookStatus.PENDING
        if data.customer_name:
            book.customer_name = data.customer_name
        if data.customer_phone:
            book.customer_phone = data.customer_phone
        action = "BOOK_REQUEST_REPEATED"
    else:
        book = RequestedBook(
            name=data.name,
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            requested_count=1,
            last_requested_date=now,
            status=RequestedBookStatus.PENDING,
        )
        db.add(book)
        action = "BOOK_REQUESTED"
    db.flush()
    log_action(
        db,
        user_id=user_id,
        action=action,
        resource_type="requested_books",
        resource_id=str(book.id),
        changes={"name": book.name, "requested_count": book.requested_count},
    )
    db.commit()
    db.refresh(book)
    return book


def update_requested_book_status(
    db: Session, book_id: UUID, status: RequestedBookStatus, user_id: UUID | None
) -> RequestedBook:
    book = db.query(RequestedBook).filter(RequestedBook.id == book_id).first()
    if not book:
        raise NotFoundError(f"Requested book {book_id} not found")
    book.status = status
    log_action(
        db,
        user_id=user_id,
        action="BOOK_REQUEST_STATUS",
        resource_type="requested_books",
        resource_id=str(book.id),
        changes={"status": status.value},
    )
    db.commit()
    db.refresh(book)
    return book


def delete_requested_book(db: Session, book_id: UUID, user_id: UUID | None) -> None:
    book = db.query(RequestedBook).filter(RequestedBook.id == book_id).first()
    if not book:
        raise NotFoundError(f"Requested book {book_id} not found")
    log_action(
        db,
        user_id=user_id,
        action="BOOK_REQUEST_DELETED",
        resource_type="requested_books",
        resource_id=str(book.id),
    )
    db.delete(book)
    db.commit()
