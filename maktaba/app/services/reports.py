from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from maktaba.app.core.config import settings
from maktaba.app.core.dates import shop_day_bounds
from maktaba.app.models.invoice import Invoice, InvoiceStatus, InvoiceType, PaymentStatus
from maktaba.app.models.ledger import Expense
from maktaba.app.services.inventory import list_low_stock

ZERO = Decimal("0")


def sales_summary(
    db: Session,
    from_date: date | None = None,
    to_date: date | None = None,
) -> dict:
    """Profit and loss for a range of shop-local days (both ends inclusive).

    Sales count on their payment date: walk-in sales, and shipping orders
    once completed and paid. Returns reduce both net sales and the cost of
    goods, since the books go back on the shelf.
    """
    if from_date and to_date and from_date > to_date:
        raise ValueError("from_date must not be after to_date")

    effective_date = sa_func.coalesce(Invoice.paid_date, Invoice.date)
    query = db.query(Invoice).filter(Invoice.status == InvoiceStatus.COMPLETED)
    expense_query = db.query(Expense)
    if from_date:
        start, _ = shop_day_bounds(from_date)
        query = query.filter(effective_date >= start)
        expense_query = expense_query.filter(Expense.date >= start)
    if to_date:
        _, end = shop_day_bounds(to_date)
        query = query.filter(effective_date < end)
        expense_query = expense_query.filter(Expense.date < end)

    sales: list[Invoice] = []
    returns: list[Invoice] = []
    for invoice in query.all():
        if invoice.type == InvoiceType.RETURN:
            returns.append(invoice)
        elif invoice.type == InvoiceType.SALE or (
            invoice.type == InvoiceType.SHIPPING
            and invoice.payment_status == PaymentStatus.PAID
        ):
            sales.append(invoice)

    total_sales = sum((Decimal(str(i.total)) for i in sales), ZERO)
    returns_total = sum((Decimal(str(i.total)) for i in returns), ZERO)
    net_sales = total_sales + returns_total
    cost_of_goods = sum((Decimal(str(i.total_cost)) for i in sales + returns), ZERO)
    gross_profit = net_sales - cost_of_goods
    total_expenses = sum((Decimal(str(e.amount)) for e in expense_query.all()), ZERO)

    pending_orders = (
        db.query(Invoice)
        .filter(
            Invoice.type.in_([InvoiceType.SHIPPING, InvoiceType.RESERVATION]),
            Invoice.status.in_([InvoiceStatus.PENDING, InvoiceStatus.SHIPPED]),
        )
        .count()
    )

    return {
        "from_date": from_date,
        "to_date": to_date,
        "total_sales": total_sales,
        "total_returns": abs(returns_total),
        "net_sales": net_sales,
        "cost_of_goods": cost_of_goods,
        "gross_profit": gross_profit,
        "total_expenses": total_expenses,
        "net_profit": gross_profit - total_expenses,
        "invoice_count": len(sales) + len(returns),
        "pending_orders": pending_orders,
        "low_stock": list_low_stock(db, settings.LOW_STOCK_THRESHOLD),
    }
