from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_active_admin, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.purchase import Purchase
from maktaba.app.models.user import User
from maktaba.app.schemas.common import MessageOut
from maktaba.app.schemas.purchases import (
    PurchaseCreate,
    PurchaseOut,
    PurchasePaymentIn,
    StockInRequest,
)
from maktaba.app.services.purchases import (
    add_purchase_payment,
    create_purchase,
    delete_purchase,
    get_purchase,
    list_purchases,
    stock_in,
    update_purchase,
)

router = APIRouter()


@router.get("", response_model=list[PurchaseOut])
def get_purchases(
    supplier_id: UUID | None = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> list[Purchase]:
    return list_purchases(db, supplier_id)


@router.get("/{purchase_id}", response_model=PurchaseOut)
def get_one_purchase(
    purchase_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> Purchase:
    try:
        return get_purchase(db, purchase_id)
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=PurchaseOut, status_code=status.HTTP_201_CREATED)
def add_purchase(
    payload: PurchaseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Purchase:
    try:
        return create_purchase(db, payload, current_user.id)
    except ValueError as e:
        raise http_error(e)


@router.put("/{purchase_id}", response_model=PurchaseOut)
def edit_purchase(
    purchase_id: UUID,
    payload: PurchaseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Purchase:
    try:
        return update_purchase(db, purchase_id, payload, current_user.id)
    except ValueError as e:
        raise http_error(e)


@router.delete("/{purchase_id}", response_model=MessageOut)
def remove_purchase(
    purchase_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> dict[str, str]:
    try:
        delete_purchase(db, purchase_id, current_user.id)
    except ValueError as e:
        raise http_error(e)
    return {"detail": "Purchase deleted"}


@router.post("/{purchase_id}/stock-in", response_model=PurchaseOut)
def stock_in_purchase(
    purchase_id: UUID,
    payload: StockInRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Purchase:
    update_prices = payload.update_product_prices if payload else True
    try:
        return stock_in(db, purchase_id, current_user.id, update_product_prices=update_prices)
    except ValueError as e:
        raise http_error(e)


@router.post("/{purchase_id}/payments", response_model=PurchaseOut)
def pay_purchase(
    purchase_id: UUID,
    payload: PurchasePaymentIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Purchase:
    try:
        return add_purchase_payment(db, current_user, purchase_id, payload)
    except ValueError as e:
        raise http_error(e)
