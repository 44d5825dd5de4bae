from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy.orm import Session

from maktaba.app.models.catalog import Product
from maktaba.app.schemas.products import (
    PriceBatchRequest,
    PriceOperation,
    ProductCreate,
    ProductUpdate,
)
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import NotFoundError

logger = logging.getLogger(__name__)

Q = Decimal("0.0001")


# ─── Stock deltas ─────────────────────────────────────────────────────────────


def apply_stock_delta(db: Session, deltas: Iterable[tuple[UUID, int]]) -> None:
    """Apply signed quantity changes to product stock.

    Negative deltas consume stock, positive deltas restock. Stock never goes
    below zero: an underflow is clamped and logged, not raised. Deltas for
    products that no longer exist are skipped. Does NOT commit.
    """
    for product_id, delta in deltas:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            logger.warning("Stock delta %+d skipped: product %s not found", delta, product_id)
            continue
        new_quantity = product.quantity + delta
        if new_quantity < 0:
            logger.warning(
                "Stock for %s (%s) clamped at 0 (had %d, delta %+d)",
                product.name,
                product.id,
                product.quantity,
                delta,
            )
            new_quantity = 0
        product.quantity = new_quantity
    db.flush()


# ─── Product administration ──────────────────────────────────────────────────


def get_product(db: Session, product_id: UUID) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def list_products(db: Session, search: str | None = None) -> list[Product]:
    query = db.query(Product)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            Product.name.ilike(pattern) | Product.author.ilike(pattern)
        )
    return query.order_by(Product.name).all()


def create_product(db: Session, data: ProductCreate, user_id: UUID | None) -> Product:
    product = Product(
        name=data.name,
        author=data.author,
        category=data.category,
        quantity=data.quantity,
        price=data.price,
        cost_price=data.cost_price,
    )
    db.add(product)
    db.flush()
    log_action(
        db,
        user_id=user_id,
        action="PRODUCT_CREATED",
        resource_type="products",
        resource_id=str(product.id),
        changes={"name": product.name, "quantity": product.quantity, "price": str(product.price)},
    )
    db.commit()
    db.refresh(product)
    return product


def update_product(
    db: Session, product_id: UUID, data: ProductUpdate, user_id: UUID | None
) -> Product:
    product = get_product(db, product_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValueError("Product name must not be empty")
    for field, value in changes.items():
        if field in ("quantity", "price", "name") and value is None:
            continue
        setattr(product, field, value)
    log_action(
        db,
        user_id=user_id,
        action="PRODUCT_UPDATED",
        resource_type="products",
        resource_id=str(product.id),
        changes={k: str(v) if v is not None else None for k, v in changes.items()},
    )
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: UUID, user_id: UUID | None) -> None:
    """Delete a product. Invoice lines keep their own snapshot of it."""
    product = get_product(db, product_id)
    log_action(
        db,
        user_id=user_id,
        action="PRODUCT_DELETED",
        resource_type="products",
        resource_id=str(product.id),
        changes={"name": product.name},
    )
    db.delete(product)
    db.commit()


def update_prices_batch(
    db: Session, data: PriceBatchRequest, user_id: UUID | None
) -> list[Product]:
    """Scale price and cost price of many products by one factor."""
    if data.factor <= 0:
        raise ValueError("Factor must be greater than zero")

    query = db.query(Product)
    if data.product_ids:
        query = query.filter(Product.id.in_(data.product_ids))
    products = query.order_by(Product.name).all()

    def scale(value: Decimal) -> Decimal:
        if data.operation == PriceOperation.MULTIPLY:
            result = Decimal(str(value)) * data.factor
        else:
            result = Decimal(str(value)) / data.factor
        return result.quantize(Q, rounding=ROUND_HALF_UP)

    for product in products:
        product.price = scale(product.price)
        if product.cost_price is not None:
            product.cost_price = scale(product.cost_price)

    log_action(
        db,
        user_id=user_id,
        action="PRICES_UPDATED",
        resource_type="products",
        resource_id="batch",
        changes={
            "operation": data.operation.value,
            "factor": str(data.factor),
            "product_count": len(products),
        },
    )
    db.commit()
    return products


def list_low_stock(db: Session, threshold: int) -> list[Product]:
    """Products still on the shelf but at or below *threshold* copies."""
    return (
        db.query(Product)
        .filter(Product.quantity > 0, Product.quantity <= threshold)
        .order_by(Product.quantity, Product.name)
        .all()
    )
