from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from maktaba.app.core.dates import utcnow
from maktaba.app.models.invoice import (
    ReturnRequest,
    ReturnRequestItem,
    ReturnRequestStatus,
)
from maktaba.app.models.user import User
from maktaba.app.schemas.orders import ReturnItemIn
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import NotFoundError
from maktaba.app.services.orders import apply_return, get_invoice, validate_return_items


def get_return_request(db: Session, request_id: UUID) -> ReturnRequest:
    request = db.query(ReturnRequest).filter(ReturnRequest.id == request_id).first()
    if not request:
        raise NotFoundError(f"Return request {request_id} not found")
    return request


def list_return_requests(
    db: Session, status: ReturnRequestStatus | None = None
) -> list[ReturnRequest]:
    query = db.query(ReturnRequest)
    if status is not None:
        query = query.filter(ReturnRequest.status == status)
    return query.order_by(ReturnRequest.request_date.desc()).all()


def send_return_request(
    db: Session,
    user: User | None,
    original_invoice_id: UUID,
    items: Sequence[ReturnItemIn],
) -> ReturnRequest:
    """File a pending return for admin approval. Stock and ledger are untouched."""
    if user is None:
        raise ValueError("No user is logged in")
    original = get_invoice(db, original_invoice_id)
    lines = validate_return_items(db, original, items)

    request = ReturnRequest(
        request_date=utcnow(),
        original_invoice_id=original.id,
        requested_by=user.username,
        status=ReturnRequestStatus.PENDING,
        items=[
            ReturnRequestItem(
                line_no=line_no,
                product_id=line["product_id"],
                product_name=line["product_name"],
                quantity=line["quantity"],
                price=line["price"],
                cost_price=line["cost_price"],
                discount=line["discount"],
            )
            for line_no, line in enumerate(lines)
        ],
    )
    db.add(request)
    db.flush()

    log_action(
        db,
        user_id=user.id,
        action="RETURN_REQUESTED",
        resource_type="return_requests",
        resource_id=str(request.id),
        changes={"original_invoice": original.reference, "item_count": len(lines)},
    )
    db.commit()
    db.refresh(request)
    return request


def approve_request(db: Session, user: User | None, request_id: UUID) -> ReturnRequest:
    """Approve a pending request: the return is processed in the same commit."""
    if user is None:
        raise ValueError("No user is logged in")
    request = get_return_request(db, request_id)
    if request.status != ReturnRequestStatus.PENDING:
        raise ValueError(f"Return request is already {request.status.value}")

    original = get_invoice(db, request.original_invoice_id)
    # Re-checked: another return may have been processed since the request
    lines = validate_return_items(
        db,
        original,
        [ReturnItemIn(product_id=item.product_id, quantity=item.quantity) for item in request.items],
    )
    ret = apply_return(db, user, original, lines)

    request.status = ReturnRequestStatus.APPROVED
    request.processed_by = user.username
    request.processed_date = utcnow()
    request.return_invoice_id = ret.id

    log_action(
        db,
        user_id=user.id,
        action="RETURN_REQUEST_APPROVED",
        resource_type="return_requests",
        resource_id=str(request.id),
        changes={"return_invoice": ret.reference, "total": str(ret.total)},
    )
    db.commit()
    db.refresh(request)
    return request


def reject_request(db: Session, user: User | None, request_id: UUID) -> ReturnRequest:
    if user is None:
        raise ValueError("No user is logged in")
    request = get_return_request(db, request_id)
    if request.status != ReturnRequestStatus.PENDING:
        raise ValueError(f"Return request is already {request.status.value}")

    request.status = ReturnRequestStatus.REJECTED
    request.processed_by = user.username
    request.processed_date = utcnow()

    log_action(
        db,
        user_id=user.id,
        action="RETURN_REQUEST_REJECTED",
        resource_type="return_requests",
        resource_id=str(request.id),
    )
    db.commit()
    db.refresh(request)
    return request
