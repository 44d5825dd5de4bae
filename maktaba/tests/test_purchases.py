"""Tests for suppliers, purchases, stock-in and supplier payments."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from maktaba.app.models.catalog import Product
from maktaba.app.models.invoice import PaymentStatus
from maktaba.app.models.ledger import FinancialTransaction, TransactionType
from maktaba.app.models.purchase import Purchase, Supplier
from maktaba.app.models.user import User
from maktaba.app.schemas.purchases import (
    PurchaseCreate,
    PurchaseItemIn,
    PurchasePaymentIn,
    SupplierCreate,
    SupplierUpdate,
)
from maktaba.app.services.ledger import DEFAULT_BANK_CODE, compute_balances
from maktaba.app.services.purchases import (
    add_purchase_payment,
    create_purchase,
    create_supplier,
    delete_purchase,
    delete_supplier,
    stock_in,
    update_purchase,
    update_supplier,
)


@pytest.fixture()
def supplier(db: Session, admin_user: User) -> Supplier:
    return create_supplier(db, SupplierCreate(name="Dar El Shorouk", phone="0223"), admin_user.id)


@pytest.fixture()
def purchase(
    db: Session, admin_user: User, supplier: Supplier, product_a: Product, product_b: Product
) -> Purchase:
    """5 x A at 3 and 2 x B at 25: total cost 65."""
    return create_purchase(
        db,
        PurchaseCreate(
            supplier_id=supplier.id,
            items=[
                PurchaseItemIn(product_id=product_a.id, quantity=5, cost_price=Decimal("3"), price=Decimal("9")),
                PurchaseItemIn(product_id=product_b.id, quantity=2, cost_price=Decimal("25")),
            ],
        ),
        admin_user.id,
    )


class TestSuppliers:
    def test_update_supplier(self, db: Session, admin_user: User, supplier: Supplier) -> None:
        updated = update_supplier(db, supplier.id, SupplierUpdate(phone="0100"), admin_user.id)
        assert updated.phone == "0100"
        assert updated.name == "Dar El Shorouk"

    def test_supplier_with_purchases_cannot_be_deleted(
        self, db: Session, admin_user: User, supplier: Supplier, purchase: Purchase
    ) -> None:
        with pytest.raises(ValueError, match="has purchases"):
            delete_supplier(db, supplier.id, admin_user.id)


class TestPurchases:
    def test_create_purchase_totals_and_reference(self, purchase: Purchase) -> None:
        assert purchase.total_cost == Decimal("65")
        assert purchase.payment_status == PaymentStatus.UNPAID
        assert purchase.is_stocked_in is False
        assert purchase.supplier_name == "Dar El Shorouk"
        assert purchase.reference.startswith("PUR-")
        assert [i.product_name for i in purchase.items] == ["Book A", "Book B"]

    def test_creating_a_purchase_does_not_move_stock(
        self, db: Session, purchase: Purchase, product_a: Product
    ) -> None:
        db.refresh(product_a)
        assert product_a.quantity == 10

    def test_stock_in_adds_quantities_and_refreshes_prices(
        self,
        db: Session,
        admin_user: User,
        purchase: Purchase,
        product_a: Product,
        product_b: Product,
    ) -> None:
        stocked = stock_in(db, purchase.id, admin_user.id)
        assert stocked.is_stocked_in is True
        db.refresh(product_a)
        db.refresh(product_b)
        assert product_a.quantity == 15
        assert product_a.cost_price == Decimal("3")
        assert product_a.price == Decimal("9")
        assert product_b.quantity == 7
        assert product_b.price == Decimal("50")

    def test_stock_in_without_price_refresh(
        self, db: Session, admin_user: User, purchase: Purchase, product_a: Product
    ) -> None:
        stock_in(db, purchase.id, admin_user.id, update_product_prices=False)
        db.refresh(product_a)
        assert product_a.quantity == 15
        assert product_a.cost_price == Decimal("4")

    def test_stock_in_only_once(
        self, db: Session, admin_user: User, purchase: Purchase, product_a: Product
    ) -> None:
        stock_in(db, purchase.id, admin_user.id)
        with pytest.raises(ValueError, match="already stocked in"):
            stock_in(db, purchase.id, admin_user.id)
        db.refresh(product_a)
        assert product_a.quantity == 15

    def test_update_replaces_lines(
        self, db: Session, admin_user: User, supplier: Supplier, purchase: Purchase, product_a: Product
    ) -> None:
        updated = update_purchase(
            db,
            purchase.id,
            PurchaseCreate(
                supplier_id=supplier.id,
                items=[PurchaseItemIn(product_id=product_a.id, quantity=1, cost_price=Decimal("4"))],
            ),
            admin_user.id,
        )
        assert updated.total_cost == Decimal("4")
        assert len(updated.items) == 1

    def test_stocked_in_purchase_cannot_change(
        self, db: Session, admin_user: User, purchase: Purchase
    ) -> None:
        stock_in(db, purchase.id, admin_user.id)
        with pytest.raises(ValueError, match="stocked in"):
            delete_purchase(db, purchase.id, admin_user.id)

    def test_delete_unpaid_purchase(
        self, db: Session, admin_user: User, purchase: Purchase
    ) -> None:
        purchase_id = purchase.id
        delete_purchase(db, purchase_id, admin_user.id)
        assert db.get(Purchase, purchase_id) is None

    def test_reference_not_reused_after_delete(
        self, db: Session, admin_user: User, supplier: Supplier, purchase: Purchase, product_a: Product
    ) -> None:
        data = PurchaseCreate(
            supplier_id=supplier.id,
            items=[PurchaseItemIn(product_id=product_a.id, quantity=1, cost_price=Decimal("1"))],
        )
        second = create_purchase(db, data, admin_user.id)
        delete_purchase(db, purchase.id, admin_user.id)
        third = create_purchase(db, data, admin_user.id)
        assert second.reference.endswith("-000002")
        assert third.reference.endswith("-000003")


class TestSupplierPayments:
    def test_partial_then_paid(
        self, db: Session, admin_user: User, default_accounts: dict, purchase: Purchase
    ) -> None:
        bank = default_accounts[DEFAULT_BANK_CODE]
        first = add_purchase_payment(
            db, admin_user, purchase.id, PurchasePaymentIn(amount=Decimal("40"), account_id=bank.id)
        )
        assert first.payment_status == PaymentStatus.PARTIAL

        second = add_purchase_payment(
            db, admin_user, purchase.id, PurchasePaymentIn(amount=Decimal("25"), account_id=bank.id)
        )
        assert second.payment_status == PaymentStatus.PAID
        assert len(second.payments) == 2

        txns = (
            db.query(FinancialTransaction)
            .filter(FinancialTransaction.related_purchase_id == purchase.id)
            .all()
        )
        assert {t.type for t in txns} == {TransactionType.SUPPLIER_PAYMENT}
        balances = compute_balances([bank], txns)
        assert balances[bank.id] == Decimal("-65")

    def test_overpayment_rejected(
        self, db: Session, admin_user: User, default_accounts: dict, purchase: Purchase
    ) -> None:
        bank = default_accounts[DEFAULT_BANK_CODE]
        with pytest.raises(ValueError, match="exceeds the outstanding"):
            add_purchase_payment(
                db, admin_user, purchase.id, PurchasePaymentIn(amount=Decimal("66"), account_id=bank.id)
            )

    def test_paid_purchase_cannot_be_deleted(
        self, db: Session, admin_user: User, default_accounts: dict, purchase: Purchase
    ) -> None:
        bank = default_accounts[DEFAULT_BANK_CODE]
        add_purchase_payment(
            db, admin_user, purchase.id, PurchasePaymentIn(amount=Decimal("10"), account_id=bank.id)
        )
        with pytest.raises(ValueError, match="has payments"):
            delete_purchase(db, purchase.id, admin_user.id)
