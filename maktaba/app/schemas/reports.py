from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from maktaba.app.schemas.products import ProductOut


class SalesSummaryOut(BaseModel):
    from_date: date | None
    to_date: date | None
    total_sales: Decimal
    total_returns: Decimal
    net_sales: Decimal
    cost_of_goods: Decimal
    gross_profit: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    invoice_count: int
    pending_orders: int
    low_stock: list[ProductOut]
