"""Order state machine: sales, shipping orders, reservations and returns.

Each operation validates first, then applies every effect (invoice row,
stock deltas, ledger postings, audit row) in the same session and commits
once. A ``ValueError`` leaves nothing behind.

Status transitions::

    shipping     pending -> shipped -> completed
                 pending | shipped | completed -> cancelled, unless returned against
    reservation  pending -> completed (normally via convert_to_sale)
                 pending -> cancelled
    sale, return created completed + paid; final
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy.orm import Session

from maktaba.app.core.config import settings
from maktaba.app.core.dates import utcnow
from maktaba.app.core.i18n import ledger_text
from maktaba.app.models.catalog import Customer, Product
from maktaba.app.models.invoice import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    InvoiceType,
    OrderSource,
    PaymentStatus,
)
from maktaba.app.models.ledger import TransactionType
from maktaba.app.models.user import User
from maktaba.app.schemas.orders import CustomerInfo, OrderItemIn, ReturnItemIn
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import NotFoundError
from maktaba.app.services.inventory import apply_stock_delta
from maktaba.app.services.ledger import (
    get_account_by_code,
    post_transaction,
    resolve_cashier_account,
)
from maktaba.app.services.numbering import next_invoice_reference

logger = logging.getLogger(__name__)

Q = Decimal("0.0001")
ZERO = Decimal("0")

ORDER_TYPES = {InvoiceType.SALE, InvoiceType.SHIPPING, InvoiceType.RESERVATION}

ALLOWED_TRANSITIONS: dict[InvoiceType, dict[InvoiceStatus, set[InvoiceStatus]]] = {
    InvoiceType.SHIPPING: {
        InvoiceStatus.PENDING: {InvoiceStatus.SHIPPED, InvoiceStatus.CANCELLED},
        InvoiceStatus.SHIPPED: {InvoiceStatus.COMPLETED, InvoiceStatus.CANCELLED},
        InvoiceStatus.COMPLETED: {InvoiceStatus.CANCELLED},
    },
    InvoiceType.RESERVATION: {
        InvoiceStatus.PENDING: {InvoiceStatus.COMPLETED, InvoiceStatus.CANCELLED},
    },
}


def _q(value: Decimal) -> Decimal:
    return value.quantize(Q, rounding=ROUND_HALF_UP)


def _require_user(user: User | None) -> User:
    if user is None:
        raise ValueError("No user is logged in")
    return user


def _invoice_type_label(invoice_type: InvoiceType) -> str:
    return ledger_text(f"invoice_type.{invoice_type.value}")


def _has_returns(db: Session, invoice: Invoice) -> bool:
    return (
        db.query(Invoice.id)
        .filter(
            Invoice.original_invoice_id == invoice.id,
            Invoice.type == InvoiceType.RETURN,
        )
        .first()
        is not None
    )


# ─── Queries ─────────────────────────────────────────────────────────────────


def get_invoice(db: Session, invoice_id: UUID) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFoundError(f"Invoice {invoice_id} not found")
    return invoice


def list_invoices(
    db: Session,
    type: InvoiceType | None = None,
    status: InvoiceStatus | None = None,
    limit: int = 200,
) -> list[Invoice]:
    query = db.query(Invoice)
    if type is not None:
        query = query.filter(Invoice.type == type)
    if status is not None:
        query = query.filter(Invoice.status == status)
    return query.order_by(Invoice.date.desc()).limit(limit).all()


# ─── Create ──────────────────────────────────────────────────────────────────


def create_order(
    db: Session,
    user: User | None,
    type: InvoiceType,
    items: Sequence[OrderItemIn],
    customer: CustomerInfo | None = None,
    shipping_fee: Decimal = ZERO,
    source: OrderSource | None = None,
    ip_address: str | None = None,
) -> Invoice:
    """Turn a cart into a sale, shipping order or reservation.

    Stock is taken off the shelf immediately for every type. A sale is
    paid on the spot and its total is credited to the cashier's till;
    shipping orders and reservations start pending and unpaid.
    """
    user = _require_user(user)
    if type not in ORDER_TYPES:
        raise ValueError(f"Cannot create an order of type {type.value}")
    if not items:
        raise ValueError("Cart must contain at least one item")
    if shipping_fee < 0:
        raise ValueError("Shipping fee must be non-negative")
    if shipping_fee > 0 and type != InvoiceType.SHIPPING:
        raise ValueError("Only shipping orders carry a shipping fee")

    if type in (InvoiceType.SHIPPING, InvoiceType.RESERVATION):
        if customer is None or not customer.name.strip() or not customer.phone.strip():
            raise ValueError("Customer name and phone are required for shipping and reservations")
        if type == InvoiceType.SHIPPING and not (customer.address or "").strip():
            raise ValueError("A shipping address is required")
    if customer is not None and customer.id is not None:
        if not db.query(Customer).filter(Customer.id == customer.id).first():
            raise NotFoundError(f"Customer {customer.id} not found")

    # ── Load & validate all products up-front ────────────────────────────
    lines: list[InvoiceItem] = []
    for line_no, item in enumerate(items):
        if item.quantity <= 0:
            raise ValueError("Quantity must be greater than zero")
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product:
            raise NotFoundError(f"Product {item.product_id} not found")
        price = item.price if item.price is not None else Decimal(str(product.price))
        cost = item.cost_price if item.cost_price is not None else product.cost_price
        discount = item.discount or ZERO
        if discount < 0 or discount > price:
            raise ValueError(f"Discount on '{product.name}' must be between 0 and the unit price")
        lines.append(InvoiceItem(
            line_no=line_no,
            product_id=product.id,
            product_name=product.name,
            quantity=item.quantity,
            price=_q(price),
            cost_price=_q(Decimal(str(cost))) if cost is not None else None,
            discount=_q(discount),
        ))

    # ── Totals ───────────────────────────────────────────────────────────
    fee = _q(shipping_fee)
    subtotal = sum(((ln.price - ln.discount) * ln.quantity for ln in lines), ZERO)
    total = _q(subtotal + fee)
    total_cost = _q(sum(((ln.cost_price or ZERO) * ln.quantity for ln in lines), ZERO))
    total_profit = total - total_cost - fee

    now = utcnow()
    is_sale = type == InvoiceType.SALE
    invoice = Invoice(
        reference=next_invoice_reference(db, type, now),
        type=type,
        status=InvoiceStatus.COMPLETED if is_sale else InvoiceStatus.PENDING,
        payment_status=PaymentStatus.PAID if is_sale else PaymentStatus.UNPAID,
        date=now,
        paid_date=now if is_sale else None,
        total=total,
        total_cost=total_cost,
        total_profit=total_profit,
        shipping_fee=fee,
        source=source,
        customer_id=customer.id if customer else None,
        customer_name=customer.name.strip() if customer else None,
        customer_phone=customer.phone.strip() if customer else None,
        customer_address=customer.address if customer else None,
        processed_by=user.username,
        items=lines,
    )
    db.add(invoice)
    db.flush()

    apply_stock_delta(db, [(ln.product_id, -ln.quantity) for ln in lines])

    if is_sale and total > 0:
        till = resolve_cashier_account(db, user)
        post_transaction(
            db,
            type=TransactionType.SALE_INCOME,
            amount=total,
            description=ledger_text("ledger.sale_income", reference=invoice.reference),
            to_account_id=till.id,
            related_invoice_id=invoice.id,
            created_by=user.id,
            date=now,
        )

    log_action(
        db,
        user_id=user.id,
        action="ORDER_CREATED",
        resource_type="invoices",
        resource_id=invoice.reference,
        ip_address=ip_address,
        changes={
            "type": type.value,
            "item_count": len(lines),
            "total": str(total),
            "total_cost": str(total_cost),
            "shipping_fee": str(fee),
        },
    )

    db.commit()
    db.refresh(invoice)
    return invoice


# ─── Status transitions ──────────────────────────────────────────────────────


def update_order_status(
    db: Session,
    user: User | None,
    order_id: UUID,
    status: InvoiceStatus | None = None,
    payment_status: PaymentStatus | None = None,
    ip_address: str | None = None,
) -> Invoice:
    """Move a shipping order or reservation through its lifecycle.

    Cancelling puts every item back on the shelf, so an order with returns
    against it cannot be cancelled. Marking an unpaid order paid stamps
    ``paid_date`` and credits the payment collection account
    (``PAYMENT_COLLECTION_ACCOUNT_CODE``, the main cash box by default).
    """
    user = _require_user(user)
    invoice = get_invoice(db, order_id)

    if invoice.type not in ALLOWED_TRANSITIONS:
        raise ValueError(f"{invoice.type.value.capitalize()} invoices are final and cannot change status")
    if invoice.status == InvoiceStatus.CANCELLED:
        raise ValueError("Cancelled orders cannot be changed")

    old_status = invoice.status
    old_payment = invoice.payment_status
    new_status = status if status is not None else old_status
    new_payment = payment_status if payment_status is not None else old_payment

    if new_status != old_status:
        allowed = ALLOWED_TRANSITIONS[invoice.type].get(old_status, set())
        if new_status not in allowed:
            raise ValueError(
                f"Cannot move a {invoice.type.value} order from {old_status.value} "
                f"to {new_status.value}"
            )
    if new_payment != old_payment:
        if old_payment == PaymentStatus.PAID:
            raise ValueError("A paid order cannot be marked unpaid")
        if new_status == InvoiceStatus.CANCELLED:
            raise ValueError("Cannot record a payment on a cancelled order")

    if new_status == InvoiceStatus.CANCELLED and _has_returns(db, invoice):
        raise ValueError(
            f"Order {invoice.reference} has returns against it and cannot be cancelled"
        )

    collecting = new_payment == PaymentStatus.PAID and old_payment != PaymentStatus.PAID
    collection_account = None
    if collecting and invoice.total > 0:
        collection_account = get_account_by_code(db, settings.PAYMENT_COLLECTION_ACCOUNT_CODE)

    # ── Apply ────────────────────────────────────────────────────────────
    now = utcnow()
    invoice.status = new_status
    invoice.payment_status = new_payment

    if new_status == InvoiceStatus.CANCELLED:
        apply_stock_delta(db, [(item.product_id, item.quantity) for item in invoice.items])
        if old_payment == PaymentStatus.PAID:
            logger.warning(
                "Paid order %s cancelled; refund the customer manually", invoice.reference
            )

    if collecting:
        invoice.paid_date = now
        if collection_account is not None:
            post_transaction(
                db,
                type=TransactionType.SALE_INCOME,
                amount=Decimal(str(invoice.total)),
                description=ledger_text(
                    "ledger.payment_collection",
                    type=_invoice_type_label(invoice.type),
                    reference=invoice.reference,
                ),
                to_account_id=collection_account.id,
                related_invoice_id=invoice.id,
                created_by=user.id,
                date=now,
            )

    log_action(
        db,
        user_id=user.id,
        action="ORDER_STATUS_CHANGED",
        resource_type="invoices",
        resource_id=invoice.reference,
        ip_address=ip_address,
        changes={
            "status": [old_status.value, new_status.value],
            "payment_status": [old_payment.value, new_payment.value],
        },
    )

    db.commit()
    db.refresh(invoice)
    return invoice


def convert_to_sale(
    db: Session,
    user: User | None,
    reservation_id: UUID,
    ip_address: str | None = None,
) -> Invoice:
    """Complete a pending reservation as a paid sale by the acting cashier.

    Stock already left the shelf when the reservation was made. Income is
    credited to the cashier's till unless the reservation was paid before.
    """
    user = _require_user(user)
    invoice = get_invoice(db, reservation_id)
    if invoice.type != InvoiceType.RESERVATION:
        raise ValueError("Only reservations can be converted to a sale")
    if invoice.status != InvoiceStatus.PENDING:
        raise ValueError(f"Reservation is {invoice.status.value}, not pending")

    was_paid = invoice.payment_status == PaymentStatus.PAID
    till = resolve_cashier_account(db, user) if not was_paid and invoice.total > 0 else None

    now = utcnow()
    invoice.type = InvoiceType.SALE
    invoice.status = InvoiceStatus.COMPLETED
    invoice.payment_status = PaymentStatus.PAID
    if not was_paid:
        invoice.paid_date = now
    invoice.processed_by = user.username

    if till is not None:
        post_transaction(
            db,
            type=TransactionType.SALE_INCOME,
            amount=Decimal(str(invoice.total)),
            description=ledger_text("ledger.reservation_conversion", reference=invoice.reference),
            to_account_id=till.id,
            related_invoice_id=invoice.id,
            created_by=user.id,
            date=now,
        )

    log_action(
        db,
        user_id=user.id,
        action="RESERVATION_CONVERTED",
        resource_type="invoices",
        resource_id=invoice.reference,
        ip_address=ip_address,
        changes={"total": str(invoice.total), "already_paid": was_paid},
    )

    db.commit()
    db.refresh(invoice)
    return invoice


# ─── Returns ─────────────────────────────────────────────────────────────────


def _check_returnable_invoice(invoice: Invoice) -> None:
    if invoice.type == InvoiceType.SALE and invoice.status == InvoiceStatus.COMPLETED:
        return
    if invoice.type == InvoiceType.SHIPPING and invoice.status == InvoiceStatus.COMPLETED:
        return
    raise ValueError(
        f"Invoice {invoice.reference} ({invoice.type.value}, {invoice.status.value}) "
        "cannot be returned"
    )


def _returnable_lines(db: Session, original: Invoice) -> dict[UUID, dict]:
    """Per product of *original*: quantities sold and returned, plus the open sale lines.

    Returns take copies back from the original lines in ``line_no`` order,
    so each copy is refunded at the price and discount of the line it was
    sold on. ``open_lines`` lists what every line still has to give back.
    """
    lines: dict[UUID, dict] = {}
    for item in sorted(original.items, key=lambda it: it.line_no):
        line = lines.setdefault(item.product_id, {
            "product_id": item.product_id,
            "product_name": item.product_name,
            "quantity_sold": 0,
            "quantity_returned": 0,
            "open_lines": [],
        })
        line["quantity_sold"] += item.quantity
        line["open_lines"].append({
            "remaining": item.quantity,
            "price": Decimal(str(item.price)),
            "discount": Decimal(str(item.discount)),
            "cost_price": Decimal(str(item.cost_price)) if item.cost_price is not None else None,
        })

    previous_returns = (
        db.query(Invoice)
        .filter(
            Invoice.original_invoice_id == original.id,
            Invoice.type == InvoiceType.RETURN,
        )
        .all()
    )
    for ret in previous_returns:
        for item in ret.items:
            if item.product_id in lines:
                line = lines[item.product_id]
                line["quantity_returned"] += item.quantity
                _take_from_open_lines(line["open_lines"], item.quantity)
    return lines


def _take_from_open_lines(open_lines: list[dict], quantity: int) -> list[dict]:
    """Consume *quantity* copies from the open lines, first line first."""
    taken: list[dict] = []
    for open_line in open_lines:
        if quantity <= 0:
            break
        take = min(quantity, open_line["remaining"])
        if take <= 0:
            continue
        open_line["remaining"] -= take
        quantity -= take
        taken.append({**open_line, "quantity": take})
    return taken


def get_returnable_items(db: Session, invoice_id: UUID) -> list[dict]:
    """Per product: what can still be returned, priced at the next open line."""
    original = get_invoice(db, invoice_id)
    _check_returnable_invoice(original)
    result: list[dict] = []
    for line in _returnable_lines(db, original).values():
        open_lines = line["open_lines"]
        terms = next((ol for ol in open_lines if ol["remaining"] > 0), open_lines[-1])
        result.append({
            "product_id": line["product_id"],
            "product_name": line["product_name"],
            "quantity_sold": line["quantity_sold"],
            "quantity_returned": line["quantity_returned"],
            "returnable_quantity": line["quantity_sold"] - line["quantity_returned"],
            "price": terms["price"],
            "discount": terms["discount"],
        })
    return result


def validate_return_items(
    db: Session, original: Invoice, items: Sequence[ReturnItemIn]
) -> list[dict]:
    """Check a return against what is still returnable on *original*.

    Returns the lines to refund, one per original sale line drawn from and
    priced on that line's terms, so a refund never exceeds what was paid.
    """
    _check_returnable_invoice(original)
    if not items:
        raise ValueError("Select at least one item to return")

    requested: dict[UUID, int] = {}
    for item in items:
        if item.quantity <= 0:
            raise ValueError("Quantity must be greater than zero")
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    available = _returnable_lines(db, original)
    lines: list[dict] = []
    for product_id, quantity in requested.items():
        line = available.get(product_id)
        if line is None:
            raise ValueError(f"Product {product_id} is not on invoice {original.reference}")
        returnable = line["quantity_sold"] - line["quantity_returned"]
        if quantity > returnable:
            raise ValueError(
                f"Cannot return {quantity} of '{line['product_name']}': "
                f"only {returnable} returnable"
            )
        for taken in _take_from_open_lines(line["open_lines"], quantity):
            lines.append({
                "product_id": product_id,
                "product_name": line["product_name"],
                "quantity": taken["quantity"],
                "price": taken["price"],
                "discount": taken["discount"],
                "cost_price": taken["cost_price"],
            })
    return lines


def apply_return(db: Session, user: User, original: Invoice, lines: list[dict]) -> Invoice:
    """Create the return invoice, restock and refund. Does NOT commit."""
    items = [
        InvoiceItem(
            line_no=line_no,
            product_id=line["product_id"],
            product_name=line["product_name"],
            quantity=line["quantity"],
            price=line["price"],
            cost_price=line["cost_price"],
            discount=line["discount"],
        )
        for line_no, line in enumerate(lines)
    ]
    refund = _q(sum(((ln.price - ln.discount) * ln.quantity for ln in items), ZERO))
    cost = _q(sum(((ln.cost_price or ZERO) * ln.quantity for ln in items), ZERO))

    now = utcnow()
    ret = Invoice(
        reference=next_invoice_reference(db, InvoiceType.RETURN, now),
        type=InvoiceType.RETURN,
        status=InvoiceStatus.COMPLETED,
        payment_status=PaymentStatus.PAID,
        date=now,
        paid_date=now,
        total=-refund,
        total_cost=-cost,
        total_profit=-refund + cost,
        shipping_fee=ZERO,
        customer_id=original.customer_id,
        customer_name=original.customer_name,
        customer_phone=original.customer_phone,
        customer_address=original.customer_address,
        processed_by=user.username,
        original_invoice_id=original.id,
        items=items,
    )
    db.add(ret)
    db.flush()

    apply_stock_delta(db, [(ln.product_id, ln.quantity) for ln in items])

    if refund > 0:
        till = resolve_cashier_account(db, user)
        post_transaction(
            db,
            type=TransactionType.RETURN_REFUND,
            amount=refund,
            description=ledger_text("ledger.return_refund", reference=original.reference),
            from_account_id=till.id,
            related_invoice_id=ret.id,
            category=ledger_text("category.returns"),
            created_by=user.id,
            date=now,
        )
    return ret


def process_return(
    db: Session,
    user: User | None,
    original_invoice_id: UUID,
    items: Sequence[ReturnItemIn],
    ip_address: str | None = None,
) -> Invoice:
    """Refund items of a completed sale or shipping order.

    Quantities may not exceed what was sold minus what earlier returns of
    the same invoice already took back.
    """
    user = _require_user(user)
    original = get_invoice(db, original_invoice_id)
    lines = validate_return_items(db, original, items)
    ret = apply_return(db, user, original, lines)

    log_action(
        db,
        user_id=user.id,
        action="RETURN_PROCESSED",
        resource_type="invoices",
        resource_id=ret.reference,
        ip_address=ip_address,
        changes={
            "original_invoice": original.reference,
            "total": str(ret.total),
            "items": [{"product_id": str(ln["product_id"]), "quantity": ln["quantity"]} for ln in lines],
        },
    )

    db.commit()
    db.refresh(ret)
    return ret
