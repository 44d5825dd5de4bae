from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_active_admin, http_error
from maktaba.app.core.database import get_db
from maktaba.app.models.user import User
from maktaba.app.schemas.reports import SalesSummaryOut
from maktaba.app.services.reports import sales_summary

router = APIRouter()


@router.get("/sales-summary", response_model=SalesSummaryOut)
def get_sales_summary(
    from_date: date | None = None,
    to_date: date | None = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_active_admin),
) -> dict:
    """Profit and loss between two shop-local dates, both inclusive."""
    try:
        return sales_summary(db, from_date, to_date)
    except ValueError as e:
        raise http_error(e)
