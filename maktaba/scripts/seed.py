"""Seed the database with default accounts, users and a starter catalogue.

Usage:
    python -m maktaba.scripts.seed

Safe to run more than once: existing rows are kept.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from maktaba.app.core.database import SessionLocal, init_db
from maktaba.app.core.security import get_password_hash
from maktaba.app.models.catalog import Product
from maktaba.app.models.user import RoleEnum, User
from maktaba.app.services.ledger import ensure_cashier_tills, ensure_default_accounts

USERS: list[tuple[str, str, RoleEnum]] = [
    ("admin", "Maktaba@Admin2026", RoleEnum.ADMIN),
    ("cashier", "Maktaba@Cashier2026", RoleEnum.CASHIER),
]

# name, author, category, quantity, price, cost price
PRODUCTS: list[tuple[str, str, str, int, str, str]] = [
    ("الأيام", "طه حسين", "أدب", 12, "120", "80"),
    ("ثلاثية القاهرة", "نجيب محفوظ", "روايات", 8, "350", "240"),
    ("مقدمة ابن خلدون", "ابن خلدون", "تاريخ", 5, "280", "190"),
    ("رجال في الشمس", "غسان كنفاني", "روايات", 15, "90", "55"),
    ("The Little Prince", "Antoine de Saint-Exupéry", "Children", 20, "150", "95"),
]


def seed(db: Session | None = None) -> None:
    own_session = db is None
    if own_session:
        init_db()
        db = SessionLocal()
    try:
        # ── Accounts ───────────────────────────────────────────────────
        ensure_default_accounts(db)

        # ── Users ──────────────────────────────────────────────────────
        for username, password, role in USERS:
            if db.query(User).filter_by(username=username).first():
                continue
            db.add(User(username=username, hashed_password=get_password_hash(password), role=role))
            print(f"Created {role.value} user: {username}")
        db.flush()
        ensure_cashier_tills(db)

        # ── Catalogue ──────────────────────────────────────────────────
        for name, author, category, quantity, price, cost in PRODUCTS:
            if db.query(Product).filter_by(name=name).first():
                continue
            db.add(
                Product(
                    name=name,
                    author=author,
                    category=category,
                    quantity=quantity,
                    price=Decimal(price),
                    cost_price=Decimal(cost),
                )
            )
            print(f"Created product: {name}")

        db.commit()
        print("Seed complete.")
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()
