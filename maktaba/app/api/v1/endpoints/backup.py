from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_active_admin, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.user import User
from maktaba.app.schemas.backup import ImportResult
from maktaba.app.services.backup import export_state, import_state

router = APIRouter()


@router.get("/export")
def export_backup(
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> dict[str, list[dict[str, Any]]]:
    return export_state(db)


@router.post("/import", response_model=ImportResult)
def import_backup(
    data: Any = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> dict:
    """Replace the whole shop state with the uploaded backup."""
    admin_id = current_user.id
    try:
        return {"restored": import_state(db, data, admin_id)}
    except ValueError as e:
        db.rollback()
        raise http_error(e)
