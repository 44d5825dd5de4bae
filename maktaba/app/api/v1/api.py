from fastapi import APIRouter

from maktaba.app.api.v1.endpoints import (
    auth,
    backup,
    customers,
    expenses,
    finance,
    orders,
    products,
    purchases,
    reports,
    requested_books,
    returns,
    suppliers,
    till,
    users,
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(returns.router, prefix="/returns", tags=["returns"])
api_router.include_router(finance.router, prefix="/finance", tags=["finance"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(purchases.router, prefix="/purchases", tags=["purchases"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(requested_books.router, prefix="/requested-books", tags=["requested-books"])
api_router.include_router(till.router, prefix="/till", tags=["till"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(backup.router, prefix="/backup", tags=["backup"])
