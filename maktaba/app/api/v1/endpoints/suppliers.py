from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_active_admin, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.purchase import Supplier
from maktaba.app.models.user import User
from maktaba.app.schemas.common import MessageOut
from maktaba.app.schemas.purchases import SupplierCreate, SupplierOut, SupplierUpdate
from maktaba.app.services.purchases import (
    create_supplier,
    delete_supplier,
    get_supplier,
    list_suppliers,
    update_supplier,
)

router = APIRouter()


@router.get("", response_model=list[SupplierOut])
def get_suppliers(
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> list[Supplier]:
    return list_suppliers(db)


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_one_supplier(
    supplier_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> Supplier:
    try:
        return get_supplier(db, supplier_id)
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=SupplierOut, status_code=status.HTTP_201_CREATED)
def add_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Supplier:
    return create_supplier(db, payload, current_user.id)


@router.patch("/{supplier_id}", response_model=SupplierOut)
def edit_supplier(
    supplier_id: UUID,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Supplier:
    try:
        return update_supplier(db, supplier_id, payload, current_user.id)
    except ValueError as e:
        raise http_error(e)


@router.delete("/{supplier_id}", response_model=MessageOut)
def remove_supplier(
    supplier_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> dict[str, str]:
    try:
        delete_supplier(db, supplier_id, current_user.id)
    except ValueError as e:
        raise http_error(e)
    return {"detail": "Supplier deleted"}
