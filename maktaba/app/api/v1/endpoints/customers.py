from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_user, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.catalog import Customer
from maktaba.app.models.user import User
from maktaba.app.schemas.common import MessageOut
from maktaba.app.schemas.contacts import CustomerCreate, CustomerOut, CustomerUpdate
from maktaba.app.services.contacts import (
    create_customer,
    delete_customer,
    get_customer,
    list_customers,
    update_customer,
)

router = APIRouter()


@router.get("", response_model=list[CustomerOut])
def get_customers(
    search: str | None = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[Customer]:
    return list_customers(db, search)


@router.get("/{customer_id}", response_model=CustomerOut)
def get_one_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> Customer:
    try:
        return get_customer(db, customer_id)
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def add_customer(
    payload: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Customer:
    return create_customer(db, payload, current_user.id)


@router.patch("/{customer_id}", response_model=CustomerOut)
def edit_customer(
    customer_id: UUID,
    payload: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Customer:
    try:
        return update_customer(db, customer_id, payload, current_user.id)
    except ValueError as e:
        raise http_error(e)


@router.delete("/{customer_id}", response_model=MessageOut)
def remove_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    try:
        delete_customer(db, customer_id, current_user.id)
    except ValueError as e:
        raise http_error(e)
    return {"detail": "Customer deleted"}
