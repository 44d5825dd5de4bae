from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import client_ip, get_current_user, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.invoice import Invoice, InvoiceStatus, InvoiceType
from maktaba.app.models.user import User
from maktaba.app.schemas.orders import (
    InvoiceOut,
    OrderCreate,
    OrderStatusUpdate,
    ReturnableItemOut,
)
from maktaba.app.services.orders import (
    convert_to_sale,
    create_order,
    get_invoice,
    get_returnable_items,
    list_invoices,
    update_order_status,
)

router = APIRouter()


@router.post("", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Invoice:
    """Check out a cart as a sale, shipping order or reservation."""
    try:
        return create_order(
            db,
            current_user,
            payload.type,
            payload.items,
            customer=payload.customer,
            shipping_fee=payload.shipping_fee,
            source=payload.source,
            ip_address=client_ip(request),
        )
    except ValueError as e:
        raise http_error(e)


@router.get("", response_model=list[InvoiceOut])
def get_orders(
    type: InvoiceType | None = None,
    status: InvoiceStatus | None = None,
    limit: int = 200,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[Invoice]:
    return list_invoices(db, type=type, status=status, limit=limit)


@router.get("/{order_id}", response_model=InvoiceOut)
def get_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> Invoice:
    try:
        return get_invoice(db, order_id)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{order_id}/status", response_model=InvoiceOut)
def change_order_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Invoice:
    try:
        return update_order_status(
            db,
            current_user,
            order_id,
            status=payload.status,
            payment_status=payload.payment_status,
            ip_address=client_ip(request),
        )
    except ValueError as e:
        raise http_error(e)


@router.post("/{order_id}/convert", response_model=InvoiceOut)
def convert_reservation(
    order_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Invoice:
    try:
        return convert_to_sale(db, current_user, order_id, ip_address=client_ip(request))
    except ValueError as e:
        raise http_error(e)


@router.get("/{order_id}/returnable", response_model=list[ReturnableItemOut])
def returnable_items(
    order_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[dict]:
    try:
        return get_returnable_items(db, order_id)
    except ValueError as e:
        raise http_error(e)
