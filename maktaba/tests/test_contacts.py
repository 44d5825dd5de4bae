"""Tests for customers and requested books."""

from __future__ import annotations

from sqlalchemy.orm import Session

from maktaba.app.models.catalog import Customer, RequestedBookStatus
from maktaba.app.models.user import User
from maktaba.app.schemas.contacts import CustomerCreate, CustomerUpdate, RequestedBookCreate
from maktaba.app.services.contacts import (
    add_requested_book,
    create_customer,
    delete_customer,
    list_customers,
    list_requested_books,
    update_customer,
    update_requested_book_status,
)


class TestCustomers:
    def test_create_and_search(self, db: Session, admin_user: User) -> None:
        create_customer(db, CustomerCreate(name="Laila", phone="0155"), admin_user.id)
        create_customer(db, CustomerCreate(name="Youssef", phone="0166"), admin_user.id)
        assert [c.name for c in list_customers(db, "lai")] == ["Laila"]
        assert [c.name for c in list_customers(db, "0166")] == ["Youssef"]

    def test_update_and_delete(self, db: Session, admin_user: User, customer: Customer) -> None:
        updated = update_customer(db, customer.id, CustomerUpdate(notes="VIP"), admin_user.id)
        assert updated.notes == "VIP"
        customer_id = customer.id
        delete_customer(db, customer_id, admin_user.id)
        assert db.get(Customer, customer_id) is None


class TestRequestedBooks:
    def test_repeat_request_bumps_count(self, db: Session, cashier_user: User) -> None:
        first = add_requested_book(db, RequestedBookCreate(name="Azazeel"), cashier_user.id)
        again = add_requested_book(
            db, RequestedBookCreate(name="azazeel", customer_phone="0177"), cashier_user.id
        )
        assert again.id == first.id
        assert again.requested_count == 2
        assert again.customer_phone == "0177"
        assert len(list_requested_books(db)) == 1

    def test_fulfilled_title_requested_again_is_pending(
        self, db: Session, cashier_user: User
    ) -> None:
        book = add_requested_book(db, RequestedBookCreate(name="Azazeel"), cashier_user.id)
        update_requested_book_status(db, book.id, RequestedBookStatus.FULFILLED, cashier_user.id)
        assert list_requested_books(db, RequestedBookStatus.PENDING) == []

        book = add_requested_book(db, RequestedBookCreate(name="Azazeel"), cashier_user.id)
        assert book.status == RequestedBookStatus.PENDING
