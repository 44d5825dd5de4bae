from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy.orm import Session

from maktaba.app.core.dates import utcnow
from maktaba.app.core.i18n import ledger_text
from maktaba.app.models.catalog import Product
from maktaba.app.models.invoice import PaymentStatus
from maktaba.app.models.ledger import TransactionType
from maktaba.app.models.purchase import Purchase, PurchaseItem, PurchasePayment, Supplier
from maktaba.app.models.user import User
from maktaba.app.schemas.purchases import (
    PurchaseCreate,
    PurchasePaymentIn,
    SupplierCreate,
    SupplierUpdate,
)
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import NotFoundError
from maktaba.app.services.inventory import apply_stock_delta
from maktaba.app.services.ledger import get_account, post_transaction
from maktaba.app.services.numbering import next_purchase_reference

logger = logging.getLogger(__name__)

Q = Decimal("0.0001")
ZERO = Decimal("0")


# ─── Suppliers ───────────────────────────────────────────────────────────────


def get_supplier(db: Session, supplier_id: UUID) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def list_suppliers(db: Session) -> list[Supplier]:
    return db.query(Supplier).order_by(Supplier.name).all()


def create_supplier(db: Session, data: SupplierCreate, user_id: UUID | None) -> Supplier:
    supplier = Supplier(**data.model_dump())
    db.add(supplier)
    db.flush()
    log_action(
        db,
        user_id=user_id,
        action="SUPPLIER_CREATED",
        resource_type="suppliers",
        resource_id=str(supplier.id),
        changes={"name": supplier.name},
    )
    db.commit()
    db.refresh(supplier)
    return supplier


def update_supplier(
    db: Session, supplier_id: UUID, data: SupplierUpdate, user_id: UUID | None
) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValueError("Supplier name must not be empty")
    for field, value in changes.items():
        setattr(supplier, field, value)
    log_action(
        db,
        user_id=user_id,
        action="SUPPLIER_UPDATED",
        resource_type="suppliers",
        resource_id=str(supplier.id),
        changes=changes,
    )
    db.commit()
    db.refresh(supplier)
    return supplier


def delete_supplier(db: Session, supplier_id: UUID, user_id: UUID | None) -> None:
    supplier = get_supplier(db, supplier_id)
    if db.query(Purchase).filter(Purchase.supplier_id == supplier.id).first():
        raise ValueError("Supplier has purchases and cannot be deleted")
    log_action(
        db,
        user_id=user_id,
        action="SUPPLIER_DELETED",
        resource_type="suppliers",
        resource_id=str(supplier.id),
        changes={"name": supplier.name},
    )
    db.delete(supplier)
    db.commit()


# ─── Purchases ───────────────────────────────────────────────────────────────


def get_purchase(db: Session, purchase_id: UUID) -> Purchase:
    purchase = db.query(Purchase).filter(Purchase.id == purchase_id).first()
    if not purchase:
        raise NotFoundError(f"Purchase {purchase_id} not found")
    return purchase


def list_purchases(db: Session, supplier_id: UUID | None = None) -> list[Purchase]:
    query = db.query(Purchase)
    if supplier_id is not None:
        query = query.filter(Purchase.supplier_id == supplier_id)
    return query.order_by(Purchase.date.desc()).all()


def _build_items(db: Session, data: PurchaseCreate) -> tuple[list[PurchaseItem], Decimal]:
    items: list[PurchaseItem] = []
    for line_no, item in enumerate(data.items):
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product:
            raise NotFoundError(f"Product {item.product_id} not found")
        items.append(PurchaseItem(
            line_no=line_no,
            product_id=product.id,
            product_name=product.name,
            quantity=item.quantity,
            cost_price=item.cost_price,
            price=item.price,
            category=item.category,
        ))
    total = sum((Decimal(str(i.cost_price)) * i.quantity for i in items), ZERO)
    return items, total.quantize(Q, rounding=ROUND_HALF_UP)


def _check_editable(purchase: Purchase) -> None:
    if purchase.is_stocked_in:
        raise ValueError("Purchase has been stocked in and can no longer change")
    if purchase.payments:
        raise ValueError("Purchase has payments and can no longer change")


def create_purchase(db: Session, data: PurchaseCreate, user_id: UUID | None) -> Purchase:
    supplier = get_supplier(db, data.supplier_id)
    items, total = _build_items(db, data)
    now = utcnow()
    purchase = Purchase(
        reference=next_purchase_reference(db, now),
        supplier_id=supplier.id,
        supplier_name=supplier.name,
        date=data.date or now,
        total_cost=total,
        payment_status=PaymentStatus.UNPAID,
        is_stocked_in=False,
        items=items,
    )
    db.add(purchase)
    db.flush()
    log_action(
        db,
        user_id=user_id,
        action="PURCHASE_CREATED",
        resource_type="purchases",
        resource_id=purchase.reference,
        changes={"supplier": supplier.name, "total_cost": str(total), "item_count": len(items)},
    )
    db.commit()
    db.refresh(purchase)
    return purchase


def update_purchase(
    db: Session, purchase_id: UUID, data: PurchaseCreate, user_id: UUID | None
) -> Purchase:
    """Replace supplier, lines and date of a purchase not yet stocked in or paid."""
    purchase = get_purchase(db, purchase_id)
    _check_editable(purchase)
    supplier = get_supplier(db, data.supplier_id)
    items, total = _build_items(db, data)

    purchase.supplier_id = supplier.id
    purchase.supplier_name = supplier.name
    if data.date is not None:
        purchase.date = data.date
    purchase.items = items
    purchase.total_cost = total

    log_action(
        db,
        user_id=user_id,
        action="PURCHASE_UPDATED",
        resource_type="purchases",
        resource_id=purchase.reference,
        changes={"supplier": supplier.name, "total_cost": str(total), "item_count": len(items)},
    )
    db.commit()
    db.refresh(purchase)
    return purchase


def delete_purchase(db: Session, purchase_id: UUID, user_id: UUID | None) -> None:
    purchase = get_purchase(db, purchase_id)
    _check_editable(purchase)
    log_action(
        db,
        user_id=user_id,
        action="PURCHASE_DELETED",
        resource_type="purchases",
        resource_id=purchase.reference,
    )
    db.delete(purchase)
    db.commit()


def stock_in(
    db: Session,
    purchase_id: UUID,
    user_id: UUID | None,
    update_product_prices: bool = True,
) -> Purchase:
    """Put the purchased quantities on the shelf. Allowed once per purchase.

    With *update_product_prices* the product cost becomes the purchase cost
    and, where the line carries one, the shelf price becomes the new price.
    """
    purchase = get_purchase(db, purchase_id)
    if purchase.is_stocked_in:
        raise ValueError(f"Purchase {purchase.reference} is already stocked in")

    apply_stock_delta(db, [(item.product_id, item.quantity) for item in purchase.items])

    if update_product_prices:
        for item in purchase.items:
            product = db.query(Product).filter(Product.id == item.product_id).first()
            if not product:
                continue
            product.cost_price = item.cost_price
            if item.price is not None:
                product.price = item.price
            if item.category:
                product.category = item.category

    purchase.is_stocked_in = True
    log_action(
        db,
        user_id=user_id,
        action="PURCHASE_STOCKED_IN",
        resource_type="purchases",
        resource_id=purchase.reference,
        changes={"items": [{"product_id": str(i.product_id), "quantity": i.quantity} for i in purchase.items]},
    )
    db.commit()
    db.refresh(purchase)
    return purchase


def purchase_total_paid(purchase: Purchase) -> Decimal:
    return sum((Decimal(str(p.amount)) for p in purchase.payments), ZERO)


def add_purchase_payment(
    db: Session, user: User | None, purchase_id: UUID, data: PurchasePaymentIn
) -> Purchase:
    """Pay a supplier invoice from one of the shop's accounts.

    The status is derived from the cumulative paid amount: ``paid`` once it
    reaches the total cost, ``partial`` before that.
    """
    if user is None:
        raise ValueError("No user is logged in")
    if data.amount <= 0:
        raise ValueError("Payment amount must be greater than zero")
    purchase = get_purchase(db, purchase_id)
    account = get_account(db, data.account_id)

    paid_so_far = purchase_total_paid(purchase)
    outstanding = Decimal(str(purchase.total_cost)) - paid_so_far
    if data.amount > outstanding:
        raise ValueError(f"Payment exceeds the outstanding amount of {outstanding}")

    now = data.date or utcnow()
    txn = post_transaction(
        db,
        type=TransactionType.SUPPLIER_PAYMENT,
        amount=data.amount,
        description=ledger_text(
            "ledger.supplier_payment",
            supplier=purchase.supplier_name,
            reference=purchase.reference,
        ),
        from_account_id=account.id,
        related_purchase_id=purchase.id,
        created_by=user.id,
        date=now,
    )
    purchase.payments.append(PurchasePayment(
        date=now,
        amount=data.amount,
        account_id=account.id,
        transaction_id=txn.id,
    ))

    total_paid = paid_so_far + data.amount
    if total_paid >= Decimal(str(purchase.total_cost)):
        purchase.payment_status = PaymentStatus.PAID
    elif total_paid > 0:
        purchase.payment_status = PaymentStatus.PARTIAL
    else:
        purchase.payment_status = PaymentStatus.UNPAID

    log_action(
        db,
        user_id=user.id,
        action="PURCHASE_PAYMENT",
        resource_type="purchases",
        resource_id=purchase.reference,
        changes={
            "amount": str(data.amount),
            "account": account.name,
            "payment_status": purchase.payment_status.value,
        },
    )
    db.commit()
    db.refresh(purchase)
    return purchase
