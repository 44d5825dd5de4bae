"""Shared test fixtures.

Each test runs against freshly created tables in an in-memory SQLite
database; the tables are dropped after the test, so tests never see each
other's rows.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import maktaba.app.models.registry  # noqa: F401
from maktaba.app.api.v1.endpoints.auth import login_limiter
from maktaba.app.core.database import Base, SessionLocal, engine, get_db
from maktaba.app.core.security import create_access_token, get_password_hash
from maktaba.app.main import app
from maktaba.app.models.catalog import Customer, Product
from maktaba.app.models.ledger import FinancialAccount
from maktaba.app.models.user import RoleEnum, User
from maktaba.app.services.ledger import ensure_default_accounts, ensure_till_for_user

ADMIN_PASSWORD = "Admin1234"
CASHIER_PASSWORD = "Cashier1234"


# ─── DB session on fresh tables ───────────────────────────────────────────────


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(
    db: Session, default_accounts: dict[str, FinancialAccount]
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test session, default accounts in place."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    login_limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


# ─── Auth helpers ─────────────────────────────────────────────────────────────


@pytest.fixture()
def admin_user(db: Session) -> User:
    user = User(
        username="test_admin",
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        role=RoleEnum.ADMIN,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def cashier_user(db: Session) -> User:
    user = User(
        username="test_cashier",
        hashed_password=get_password_hash(CASHIER_PASSWORD),
        role=RoleEnum.CASHIER,
    )
    db.add(user)
    db.flush()
    ensure_till_for_user(db, user)
    db.commit()
    return user


@pytest.fixture()
def admin_token(admin_user: User) -> str:
    return create_access_token(subject=str(admin_user.id))


@pytest.fixture()
def cashier_token(cashier_user: User) -> str:
    return create_access_token(subject=str(cashier_user.id))


def auth(token: str) -> dict[str, str]:
    """Return Authorization header dict."""
    return {"Authorization": f"Bearer {token}"}


# ─── Ledger fixtures ──────────────────────────────────────────────────────────


@pytest.fixture()
def default_accounts(db: Session) -> dict[str, FinancialAccount]:
    """The main cash box and bank account, keyed by code."""
    accounts = ensure_default_accounts(db)
    db.commit()
    return accounts


@pytest.fixture()
def cashier_till(db: Session, cashier_user: User) -> FinancialAccount:
    return db.query(FinancialAccount).filter(FinancialAccount.user_id == cashier_user.id).one()


# ─── Catalogue fixtures ───────────────────────────────────────────────────────


@pytest.fixture()
def product_a(db: Session) -> Product:
    p = Product(
        name="Book A",
        author="Author A",
        category="Novels",
        quantity=10,
        price=Decimal("10.0000"),
        cost_price=Decimal("4.0000"),
    )
    db.add(p)
    db.commit()
    return p


@pytest.fixture()
def product_b(db: Session) -> Product:
    p = Product(
        name="Book B",
        author="Author B",
        category="History",
        quantity=5,
        price=Decimal("50.0000"),
        cost_price=Decimal("30.0000"),
    )
    db.add(p)
    db.commit()
    return p


@pytest.fixture()
def customer(db: Session) -> Customer:
    c = Customer(name="Test Customer", phone="01000000000", address="12 Nile St, Cairo")
    db.add(c)
    db.commit()
    return c
