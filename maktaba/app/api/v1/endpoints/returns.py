from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import (
    client_ip,
    get_current_active_admin,
    get_current_user,
    http_error,
)
from maktaba.app.core.database import get_db
from maktaba.app.models.invoice import Invoice, ReturnRequest, ReturnRequestStatus
from maktaba.app.models.user import User
from maktaba.app.schemas.orders import InvoiceOut, ReturnCreate, ReturnRequestOut
from maktaba.app.services.orders import process_return
from maktaba.app.services.return_requests import (
    approve_request,
    get_return_request,
    list_return_requests,
    reject_request,
    send_return_request,
)

router = APIRouter()


# ─── Direct returns (admin) ──────────────────────────────────────────────────


@router.post("", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def create_return(
    payload: ReturnCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> Invoice:
    try:
        return process_return(
            db,
            current_user,
            payload.original_invoice_id,
            payload.items,
            ip_address=client_ip(request),
        )
    except ValueError as e:
        raise http_error(e)


# ─── Return requests ─────────────────────────────────────────────────────────


@router.post(
    "/requests", response_model=ReturnRequestOut, status_code=status.HTTP_201_CREATED
)
def request_return(
    payload: ReturnCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ReturnRequest:
    """File a return for an admin to approve."""
    try:
        return send_return_request(db, current_user, payload.original_invoice_id, payload.items)
    except ValueError as e:
        raise http_error(e)


@router.get("/requests", response_model=list[ReturnRequestOut])
def get_return_requests(
    status: ReturnRequestStatus | None = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> list[ReturnRequest]:
    return list_return_requests(db, status)


@router.get("/requests/{request_id}", response_model=ReturnRequestOut)
def get_one_return_request(
    request_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> ReturnRequest:
    try:
        return get_return_request(db, request_id)
    except ValueError as e:
        raise http_error(e)


@router.post("/requests/{request_id}/approve", response_model=ReturnRequestOut)
def approve_return_request(
    request_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> ReturnRequest:
    try:
        return approve_request(db, current_user, request_id)
    except ValueError as e:
        raise http_error(e)


@router.post("/requests/{request_id}/reject", response_model=ReturnRequestOut)
def reject_return_request(
    request_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> ReturnRequest:
    try:
        return reject_request(db, current_user, request_id)
    except ValueError as e:
        raise http_error(e)
