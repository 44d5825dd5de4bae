from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import client_ip, get_current_user, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.till import TillCloseout
from maktaba.app.models.user import User
from maktaba.app.schemas.till import TillCloseoutOut, TillCloseRequest, TillSummaryOut
from maktaba.app.services.till import close_till, get_till_summary, list_closeouts

router = APIRouter()


def _target_cashier(current_user: User, cashier_id: UUID | None) -> UUID:
    """Cashiers only see their own till; admins may pick any cashier."""
    if cashier_id is None or cashier_id == current_user.id:
        return current_user.id
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view your own till",
        )
    return cashier_id


@router.get("/summary", response_model=TillSummaryOut)
def till_summary(
    cashier_id: UUID | None = None,
    for_date: date | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    target = _target_cashier(current_user, cashier_id)
    try:
        return get_till_summary(db, target, for_date)
    except ValueError as e:
        raise http_error(e)


@router.post("/close", response_model=TillCloseoutOut, status_code=status.HTTP_201_CREATED)
def close_my_till(
    payload: TillCloseRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TillCloseout:
    target = _target_cashier(current_user, payload.cashier_id)
    try:
        return close_till(
            db,
            current_user,
            target,
            payload.counted_cash,
            notes=payload.notes,
            for_date=payload.for_date,
            ip_address=client_ip(request),
        )
    except ValueError as e:
        raise http_error(e)


@router.get("/closeouts", response_model=list[TillCloseoutOut])
def get_closeouts(
    cashier_id: UUID | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[TillCloseout]:
    if not current_user.is_admin:
        cashier_id = current_user.id
    return list_closeouts(db, cashier_id)
