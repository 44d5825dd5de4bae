"""Tests for end-of-day till reconciliation."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from maktaba.app.core.config import settings
from maktaba.app.core.dates import shop_day_bounds, shop_today
from maktaba.app.models.catalog import Product
from maktaba.app.models.invoice import Invoice, InvoiceType
from maktaba.app.models.till import TillCloseout
from maktaba.app.models.user import RoleEnum, User
from maktaba.app.schemas.orders import CustomerInfo, OrderItemIn, ReturnItemIn
from maktaba.app.services.orders import create_order, process_return
from maktaba.app.services.till import close_till, list_closeouts, summarize_till


@pytest.fixture()
def stock(db: Session) -> Product:
    p = Product(name="Atlas", quantity=50, price=Decimal("50"), cost_price=Decimal("20"))
    db.add(p)
    db.commit()
    return p


@pytest.fixture()
def busy_day(db: Session, cashier_user: User, stock: Product) -> None:
    """Sales of 500 and a return of 50 by the cashier today."""
    sale = create_order(
        db, cashier_user, InvoiceType.SALE, [OrderItemIn(product_id=stock.id, quantity=6)]
    )
    create_order(
        db, cashier_user, InvoiceType.SALE, [OrderItemIn(product_id=stock.id, quantity=4)]
    )
    process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=stock.id, quantity=1)])


class TestSummarizeTill:
    def test_expected_cash_is_sales_minus_returns(
        self, db: Session, cashier_user: User, busy_day: None
    ) -> None:
        summary = summarize_till(db, cashier_user)
        assert summary["total_sales"] == Decimal("500")
        assert summary["total_returns"] == Decimal("50")
        assert summary["net_cash_expected"] == Decimal("450")
        assert len(summary["invoice_ids"]) == 3

    def test_other_cashiers_are_not_counted(
        self, db: Session, cashier_user: User, admin_user: User, busy_day: None
    ) -> None:
        summary = summarize_till(db, admin_user)
        assert summary["net_cash_expected"] == Decimal("0")
        assert summary["invoice_ids"] == []

    def test_unpaid_orders_are_not_cash(
        self, db: Session, cashier_user: User, stock: Product
    ) -> None:
        create_order(
            db,
            cashier_user,
            InvoiceType.RESERVATION,
            [OrderItemIn(product_id=stock.id, quantity=1)],
            customer=CustomerInfo(name="Omar", phone="0122"),
        )
        summary = summarize_till(db, cashier_user)
        assert summary["total_sales"] == Decimal("0")
        assert len(summary["invoice_ids"]) == 1

    def test_invoices_of_another_day_are_excluded(
        self, db: Session, cashier_user: User, busy_day: None
    ) -> None:
        yesterday = shop_today() - timedelta(days=1)
        start, _ = shop_day_bounds(yesterday)
        invoice = db.query(Invoice).filter(Invoice.type == InvoiceType.SALE).first()
        invoice.date = start
        invoice.paid_date = start
        db.commit()

        assert summarize_till(db, cashier_user)["total_sales"] == Decimal("500") - invoice.total
        assert summarize_till(db, cashier_user, yesterday)["total_sales"] == invoice.total


class TestCloseTill:
    def test_difference_is_counted_minus_expected(
        self, db: Session, cashier_user: User, busy_day: None
    ) -> None:
        """Expected 450, counted 440: short by 10."""
        closeout = close_till(
            db, cashier_user, cashier_user.id, Decimal("440"), notes="short"
        )
        assert closeout.net_cash_expected == Decimal("450")
        assert closeout.counted_cash == Decimal("440")
        assert closeout.difference == Decimal("-10")
        assert closeout.cashier_username == "test_cashier"
        assert closeout.for_date == shop_today()
        assert len(closeout.invoice_ids) == 3

    def test_second_closeout_same_day_rejected(
        self, db: Session, cashier_user: User, busy_day: None
    ) -> None:
        close_till(db, cashier_user, cashier_user.id, Decimal("450"))
        with pytest.raises(ValueError, match="already closed"):
            close_till(db, cashier_user, cashier_user.id, Decimal("450"))

    def test_repeat_closeout_allowed_when_configured(
        self,
        db: Session,
        cashier_user: User,
        busy_day: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings, "TILL_ALLOW_REPEAT_CLOSEOUT", True)
        close_till(db, cashier_user, cashier_user.id, Decimal("200"))
        close_till(db, cashier_user, cashier_user.id, Decimal("450"))
        assert len(list_closeouts(db, cashier_user.id)) == 2

    def test_cashier_cannot_close_someone_elses_till(
        self, db: Session, cashier_user: User, admin_user: User
    ) -> None:
        with pytest.raises(ValueError, match="your own till"):
            close_till(db, cashier_user, admin_user.id, Decimal("0"))

    def test_admin_can_close_a_cashiers_till(
        self, db: Session, admin_user: User, cashier_user: User, busy_day: None
    ) -> None:
        closeout = close_till(db, admin_user, cashier_user.id, Decimal("450"))
        assert closeout.difference == Decimal("0")
        assert closeout.cashier_id == cashier_user.id

    def test_negative_count_rejected(self, db: Session, cashier_user: User) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            close_till(db, cashier_user, cashier_user.id, Decimal("-1"))

    def test_closeout_leaves_invoices_untouched(
        self, db: Session, cashier_user: User, busy_day: None
    ) -> None:
        before = [(i.id, i.status, i.total) for i in db.query(Invoice).order_by(Invoice.id)]
        close_till(db, cashier_user, cashier_user.id, Decimal("450"))
        after = [(i.id, i.status, i.total) for i in db.query(Invoice).order_by(Invoice.id)]
        assert before == after
        assert db.query(TillCloseout).count() == 1

    def test_list_closeouts_filters_by_cashier(
        self, db: Session, cashier_user: User, busy_day: None
    ) -> None:
        other = User(username="night_shift", hashed_password="x", role=RoleEnum.CASHIER)
        db.add(other)
        db.commit()
        close_till(db, cashier_user, cashier_user.id, Decimal("450"))
        close_till(db, other, other.id, Decimal("0"))
        assert len(list_closeouts(db)) == 2
        assert [c.cashier_username for c in list_closeouts(db, other.id)] == ["night_shift"]
