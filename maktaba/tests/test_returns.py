"""Tests for returns and the return-request approval workflow."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from maktaba.app.models.catalog import Product
from maktaba.app.models.invoice import (
    Invoice,
    InvoiceStatus,
    InvoiceType,
    ReturnRequestStatus,
)
from maktaba.app.models.ledger import FinancialAccount, FinancialTransaction, TransactionType
from maktaba.app.models.user import User
from maktaba.app.schemas.orders import CustomerInfo, OrderItemIn, ReturnItemIn
from maktaba.app.services.orders import (
    create_order,
    get_returnable_items,
    process_return,
    update_order_status,
)
from maktaba.app.services.return_requests import (
    approve_request,
    list_return_requests,
    reject_request,
    send_return_request,
)


@pytest.fixture()
def book(db: Session) -> Product:
    p = Product(name="Poems", quantity=10, price=Decimal("5"), cost_price=Decimal("2"))
    db.add(p)
    db.commit()
    return p


@pytest.fixture()
def sale(db: Session, cashier_user: User, book: Product) -> Invoice:
    """3 x 5 sold by the cashier: total 15."""
    return create_order(
        db, cashier_user, InvoiceType.SALE, [OrderItemIn(product_id=book.id, quantity=3)]
    )


def _refunds(db: Session, invoice: Invoice) -> list[FinancialTransaction]:
    return (
        db.query(FinancialTransaction)
        .filter(
            FinancialTransaction.related_invoice_id == invoice.id,
            FinancialTransaction.type == TransactionType.RETURN_REFUND,
        )
        .all()
    )


class TestProcessReturn:
    def test_full_return_sign_convention(
        self,
        db: Session,
        cashier_user: User,
        cashier_till: FinancialAccount,
        sale: Invoice,
        book: Product,
    ) -> None:
        """Returning a 15 sale: invoice total -15, refund of 15 out of the till."""
        ret = process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=3)])

        assert ret.type == InvoiceType.RETURN
        assert ret.status == InvoiceStatus.COMPLETED
        assert ret.total == Decimal("-15")
        assert ret.total_cost == Decimal("-6")
        assert ret.total_profit == Decimal("-9")
        assert ret.original_invoice_id == sale.id
        assert ret.reference.startswith("RET-")

        refunds = _refunds(db, ret)
        assert len(refunds) == 1
        assert refunds[0].amount == Decimal("15")
        assert refunds[0].from_account_id == cashier_till.id
        assert refunds[0].to_account_id is None

    def test_return_restocks(
        self, db: Session, cashier_user: User, sale: Invoice, book: Product
    ) -> None:
        db.refresh(book)
        assert book.quantity == 7
        process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)])
        db.refresh(book)
        assert book.quantity == 9

    def test_partial_returns_accumulate(
        self, db: Session, cashier_user: User, sale: Invoice, book: Product
    ) -> None:
        process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=1)])
        process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)])
        items = get_returnable_items(db, sale.id)
        assert items[0]["quantity_sold"] == 3
        assert items[0]["quantity_returned"] == 3
        assert items[0]["returnable_quantity"] == 0

    def test_over_return_rejected(
        self, db: Session, cashier_user: User, sale: Invoice, book: Product
    ) -> None:
        process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)])
        with pytest.raises(ValueError, match="only 1 returnable"):
            process_return(
                db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)]
            )

    def test_product_not_on_invoice_rejected(
        self, db: Session, cashier_user: User, sale: Invoice
    ) -> None:
        with pytest.raises(ValueError, match="is not on invoice"):
            process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=uuid4(), quantity=1)])

    def test_pending_shipping_order_cannot_be_returned(
        self, db: Session, cashier_user: User, book: Product
    ) -> None:
        order = create_order(
            db,
            cashier_user,
            InvoiceType.SHIPPING,
            [OrderItemIn(product_id=book.id, quantity=1)],
            customer=CustomerInfo(name="Mona", phone="0101", address="Giza"),
        )
        with pytest.raises(ValueError, match="cannot be returned"):
            process_return(db, cashier_user, order.id, [ReturnItemIn(product_id=book.id, quantity=1)])

    def test_completed_shipping_order_can_be_returned(
        self, db: Session, cashier_user: User, default_accounts: dict, book: Product
    ) -> None:
        order = create_order(
            db,
            cashier_user,
            InvoiceType.SHIPPING,
            [OrderItemIn(product_id=book.id, quantity=2)],
            customer=CustomerInfo(name="Mona", phone="0101", address="Giza"),
        )
        update_order_status(db, cashier_user, order.id, status=InvoiceStatus.SHIPPED)
        update_order_status(db, cashier_user, order.id, status=InvoiceStatus.COMPLETED)
        ret = process_return(db, cashier_user, order.id, [ReturnItemIn(product_id=book.id, quantity=1)])
        assert ret.total == Decimal("-5")

    def test_discount_is_refunded_on_original_terms(
        self, db: Session, cashier_user: User, book: Product
    ) -> None:
        sale = create_order(
            db,
            cashier_user,
            InvoiceType.SALE,
            [OrderItemIn(product_id=book.id, quantity=2, discount=Decimal("1"))],
        )
        ret = process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=1)])
        assert ret.total == Decimal("-4")

    @pytest.mark.parametrize(
        "discounts",
        [(Decimal("0"), Decimal("5")), (Decimal("5"), Decimal("0"))],
    )
    def test_repeated_book_at_two_prices_refunds_what_was_paid(
        self,
        db: Session,
        cashier_user: User,
        cashier_till: FinancialAccount,
        book: Product,
        discounts: tuple[Decimal, Decimal],
    ) -> None:
        """One copy at 5 and one given away: returning both refunds 5."""
        sale = create_order(
            db,
            cashier_user,
            InvoiceType.SALE,
            [OrderItemIn(product_id=book.id, quantity=1, discount=d) for d in discounts],
        )
        assert sale.total == Decimal("5")

        ret = process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)])
        assert ret.total == Decimal("-5")
        assert sorted(item.discount for item in ret.items) == [Decimal("0"), Decimal("5")]
        assert sum(t.amount for t in _refunds(db, ret)) == Decimal("5")

    def test_split_returns_never_refund_more_than_the_sale(
        self, db: Session, cashier_user: User, cashier_till: FinancialAccount, book: Product
    ) -> None:
        sale = create_order(
            db,
            cashier_user,
            InvoiceType.SALE,
            [
                OrderItemIn(product_id=book.id, quantity=1, discount=Decimal("5")),
                OrderItemIn(product_id=book.id, quantity=2),
            ],
        )
        assert sale.total == Decimal("10")

        first = process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=1)])
        assert first.total == Decimal("0")
        assert _refunds(db, first) == []
        second = process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)])
        assert second.total == Decimal("-10")

        items = get_returnable_items(db, sale.id)
        assert items[0]["quantity_sold"] == 3
        assert items[0]["returnable_quantity"] == 0


class TestReturnRequests:
    def test_request_touches_neither_stock_nor_ledger(
        self, db: Session, cashier_user: User, sale: Invoice, book: Product
    ) -> None:
        before = db.query(FinancialTransaction).count()
        request = send_return_request(
            db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=1)]
        )
        assert request.status == ReturnRequestStatus.PENDING
        assert request.requested_by == "test_cashier"
        assert request.items[0].price == Decimal("5")
        db.refresh(book)
        assert book.quantity == 7
        assert db.query(FinancialTransaction).count() == before

    def test_request_is_validated_up_front(
        self, db: Session, cashier_user: User, sale: Invoice, book: Product
    ) -> None:
        with pytest.raises(ValueError, match="returnable"):
            send_return_request(
                db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=4)]
            )

    def test_approve_processes_the_return(
        self,
        db: Session,
        admin_user: User,
        cashier_user: User,
        default_accounts: dict,
        sale: Invoice,
        book: Product,
    ) -> None:
        request = send_return_request(
            db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)]
        )
        approved = approve_request(db, admin_user, request.id)

        assert approved.status == ReturnRequestStatus.APPROVED
        assert approved.processed_by == "test_admin"
        assert approved.processed_date is not None
        ret = db.get(Invoice, approved.return_invoice_id)
        assert ret.total == Decimal("-10")
        db.refresh(book)
        assert book.quantity == 9

    def test_approve_rechecks_returnable_quantity(
        self,
        db: Session,
        admin_user: User,
        cashier_user: User,
        default_accounts: dict,
        sale: Invoice,
        book: Product,
    ) -> None:
        request = send_return_request(
            db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)]
        )
        process_return(db, admin_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)])
        with pytest.raises(ValueError, match="returnable"):
            approve_request(db, admin_user, request.id)
        db.rollback()
        assert list_return_requests(db, ReturnRequestStatus.PENDING)[0].id == request.id

    def test_approved_request_is_priced_per_sale_line(
        self,
        db: Session,
        admin_user: User,
        cashier_user: User,
        default_accounts: dict,
        book: Product,
    ) -> None:
        sale = create_order(
            db,
            cashier_user,
            InvoiceType.SALE,
            [
                OrderItemIn(product_id=book.id, quantity=1),
                OrderItemIn(product_id=book.id, quantity=1, discount=Decimal("5")),
            ],
        )
        request = send_return_request(
            db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=2)]
        )
        assert len(request.items) == 2
        approved = approve_request(db, admin_user, request.id)
        ret = db.get(Invoice, approved.return_invoice_id)
        assert ret.total == Decimal("-5")

    def test_reject_is_terminal(
        self, db: Session, admin_user: User, cashier_user: User, sale: Invoice, book: Product
    ) -> None:
        request = send_return_request(
            db, cashier_user, sale.id, [ReturnItemIn(product_id=book.id, quantity=1)]
        )
        rejected = reject_request(db, admin_user, request.id)
        assert rejected.status == ReturnRequestStatus.REJECTED
        with pytest.raises(ValueError, match="already rejected"):
            approve_request(db, admin_user, request.id)
        db.refresh(book)
        assert book.quantity == 7
