"""Tests for the sales summary report."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from maktaba.app.core.dates import shop_today
from maktaba.app.models.catalog import Product
from maktaba.app.models.invoice import InvoiceType
from maktaba.app.models.user import User
from maktaba.app.schemas.expenses import ExpenseCreate
from maktaba.app.schemas.orders import CustomerInfo, OrderItemIn, ReturnItemIn
from maktaba.app.services.expenses import add_expense
from maktaba.app.services.ledger import DEFAULT_CASH_CODE
from maktaba.app.services.orders import create_order, process_return
from maktaba.app.services.reports import sales_summary


class TestSalesSummary:
    def test_profit_and_loss(
        self,
        db: Session,
        cashier_user: User,
        admin_user: User,
        default_accounts: dict,
        product_a: Product,
        product_b: Product,
    ) -> None:
        sale = create_order(
            db, cashier_user, InvoiceType.SALE, [OrderItemIn(product_id=product_a.id, quantity=5)]
        )
        create_order(
            db, cashier_user, InvoiceType.SALE, [OrderItemIn(product_id=product_b.id, quantity=1)]
        )
        process_return(db, cashier_user, sale.id, [ReturnItemIn(product_id=product_a.id, quantity=2)])
        create_order(
            db,
            cashier_user,
            InvoiceType.RESERVATION,
            [OrderItemIn(product_id=product_b.id, quantity=1)],
            customer=CustomerInfo(name="Omar", phone="0122"),
        )
        add_expense(
            db,
            admin_user,
            ExpenseCreate(
                description="Bags",
                amount=Decimal("7"),
                account_id=default_accounts[DEFAULT_CASH_CODE].id,
            ),
        )

        report = sales_summary(db, shop_today(), shop_today())
        # Sales 50 + 50, return 20; cost 20 + 30 - 8
        assert report["total_sales"] == Decimal("100")
        assert report["total_returns"] == Decimal("20")
        assert report["net_sales"] == Decimal("80")
        assert report["cost_of_goods"] == Decimal("42")
        assert report["gross_profit"] == Decimal("38")
        assert report["total_expenses"] == Decimal("7")
        assert report["net_profit"] == Decimal("31")
        assert report["invoice_count"] == 3
        assert report["pending_orders"] == 1
        assert [p.name for p in report["low_stock"]] == ["Book B"]

    def test_other_days_are_excluded(
        self, db: Session, cashier_user: User, product_a: Product
    ) -> None:
        create_order(
            db, cashier_user, InvoiceType.SALE, [OrderItemIn(product_id=product_a.id, quantity=1)]
        )
        yesterday = shop_today() - timedelta(days=1)
        assert sales_summary(db, yesterday, yesterday)["total_sales"] == Decimal("0")
        assert sales_summary(db)["total_sales"] == Decimal("10")

    def test_reversed_range_rejected(self, db: Session) -> None:
        with pytest.raises(ValueError, match="must not be after"):
            sales_summary(db, shop_today(), shop_today() - timedelta(days=1))
