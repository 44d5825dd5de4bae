from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_user, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.catalog import RequestedBook, RequestedBookStatus
from maktaba.app.models.user import User
from maktaba.app.schemas.common import MessageOut
from maktaba.app.schemas.contacts import (
    RequestedBookCreate,
    RequestedBookOut,
    RequestedBookStatusUpdate,
)
from maktaba.app.services.contacts import (
    add_requested_book,
    delete_requested_book,
    list_requested_books,
    update_requested_book_status,
)

router = APIRouter()


@router.get("", response_model=list[RequestedBookOut])
def get_requested_books(
    status: RequestedBookStatus | None = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[RequestedBook]:
    return list_requested_books(db, status)


@router.post("", response_model=RequestedBookOut, status_code=status.HTTP_201_CREATED)
def request_book(
    payload: RequestedBookCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RequestedBook:
    """Note a title a customer asked for; repeat requests raise its count."""
    return add_requested_book(db, payload, current_user.id)


@router.patch("/{book_id}", response_model=RequestedBookOut)
def set_requested_book_status(
    book_id: UUID,
    payload: RequestedBookStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RequestedBook:
    try:
        return update_requested_book_status(db, book_id, payload.status, current_user.id)
    except ValueError as e:
        raise http_error(e)


@router.delete("/{book_id}", response_model=MessageOut)
def remove_requested_book(
    book_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    try:
        delete_requested_book(db, book_id, current_user.id)
    except ValueError as e:
        raise http_error(e)
    return {"detail": "Requested book deleted"}
