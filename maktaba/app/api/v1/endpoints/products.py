from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_active_admin, get_current_user, http_error
from maktaba.app.core.config import settings
from maktaba.app.core.database import get_db
from maktaba.app.models.catalog import Product
from maktaba.app.models.user import User
from maktaba.app.schemas.common import MessageOut
from maktaba.app.schemas.products import (
    PriceBatchRequest,
    ProductCreate,
    ProductOut,
    ProductUpdate,
)
from maktaba.app.services.inventory import (
    create_product,
    delete_product,
    get_product,
    list_low_stock,
    list_products,
    update_prices_batch,
    update_product,
)

router = APIRouter()


@router.get("", response_model=list[ProductOut])
def get_products(
    search: str | None = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[Product]:
    return list_products(db, search)


@router.get("/low-stock", response_model=list[ProductOut])
def get_low_stock(
    threshold: int | None = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[Product]:
    return list_low_stock(db, threshold if threshold is not None else settings.LOW_STOCK_THRESHOLD)


@router.get("/{product_id}", response_model=ProductOut)
def get_one_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> Product:
    try:
        return get_product(db, product_id)
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Product:
    return create_product(db, payload, current_user.id)


@router.patch("/{product_id}", response_model=ProductOut)
def edit_product(
    product_id: UUID,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Product:
    try:
        return update_product(db, product_id, payload, current_user.id)
    except ValueError as e:
        raise http_error(e)


@router.delete("/{product_id}", response_model=MessageOut)
def remove_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> dict[str, str]:
    try:
        delete_product(db, product_id, current_user.id)
    except ValueError as e:
        raise http_error(e)
    return {"detail": "Product deleted"}


@router.post("/prices/batch", response_model=list[ProductOut])
def batch_update_prices(
    payload: PriceBatchRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> list[Product]:
    try:
        return update_prices_batch(db, payload, current_user.id)
    except ValueError as e:
        raise http_error(e)
