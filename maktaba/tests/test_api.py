"""HTTP-level tests: auth, role guards and the main order flows."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from maktaba.app.models.catalog import Customer, Product
from maktaba.app.models.user import User
from maktaba.tests.conftest import ADMIN_PASSWORD, CASHIER_PASSWORD, auth


def _login(client: TestClient, username: str, password: str):
    return client.post(
        "/api/v1/auth/login/access-token",
        data={"username": username, "password": password},
    )


class TestAuth:
    def test_login_and_me(self, client: TestClient, cashier_user: User) -> None:
        resp = _login(client, "test_cashier", CASHIER_PASSWORD)
        assert resp.status_code == 200
        token = resp.json()["access_token"]

        me = client.get("/api/v1/auth/me", headers=auth(token))
        assert me.status_code == 200
        assert me.json()["username"] == "test_cashier"
        assert me.json()["role"] == "cashier"

    def test_wrong_password(self, client: TestClient, cashier_user: User) -> None:
        resp = _login(client, "test_cashier", "wrong-pass1")
        assert resp.status_code == 401

    def test_lockout_after_repeated_failures(
        self, client: TestClient, cashier_user: User
    ) -> None:
        for _ in range(5):
            _login(client, "test_cashier", "wrong-pass1")
        resp = _login(client, "test_cashier", CASHIER_PASSWORD)
        assert resp.status_code == 423

    def test_logout_revokes_token(self, client: TestClient, admin_user: User) -> None:
        token = _login(client, "test_admin", ADMIN_PASSWORD).json()["access_token"]
        assert client.post("/api/v1/auth/logout", headers=auth(token)).status_code == 200
        assert client.get("/api/v1/auth/me", headers=auth(token)).status_code == 401

    def test_missing_token(self, client: TestClient) -> None:
        assert client.get("/api/v1/orders").status_code == 401


class TestRoleGuards:
    def test_cashier_blocked_from_admin_endpoints(
        self, client: TestClient, cashier_token: str
    ) -> None:
        headers = auth(cashier_token)
        assert client.get("/api/v1/users", headers=headers).status_code == 403
        assert client.get("/api/v1/finance/balances", headers=headers).status_code == 403
        assert client.get("/api/v1/reports/sales-summary", headers=headers).status_code == 403
        assert client.get("/api/v1/backup/export", headers=headers).status_code == 403
        assert client.get("/api/v1/suppliers", headers=headers).status_code == 403

    def test_cashier_can_browse_products(
        self, client: TestClient, cashier_token: str, product_a: Product
    ) -> None:
        resp = client.get("/api/v1/products", params={"search": "book"}, headers=auth(cashier_token))
        assert resp.status_code == 200
        assert [p["name"] for p in resp.json()] == ["Book A"]


class TestUsersApi:
    def test_create_cashier_and_conflict(self, client: TestClient, admin_token: str) -> None:
        body = {"username": "sara", "password": "Sara12345", "role": "cashier"}
        resp = client.post("/api/v1/users", json=body, headers=auth(admin_token))
        assert resp.status_code == 201
        assert resp.json()["role"] == "cashier"

        again = client.post("/api/v1/users", json=body, headers=auth(admin_token))
        assert again.status_code == 409

    def test_weak_password_rejected(self, client: TestClient, admin_token: str) -> None:
        body = {"username": "sara", "password": "onlyletters"}
        resp = client.post("/api/v1/users", json=body, headers=auth(admin_token))
        assert resp.status_code == 422


class TestOrdersApi:
    def test_sale_then_till_close(
        self, client: TestClient, cashier_token: str, product_a: Product
    ) -> None:
        headers = auth(cashier_token)
        resp = client.post(
            "/api/v1/orders",
            json={"type": "sale", "items": [{"product_id": str(product_a.id), "quantity": 2}]},
            headers=headers,
        )
        assert resp.status_code == 201
        invoice = resp.json()
        assert invoice["status"] == "completed"
        assert invoice["payment_status"] == "paid"
        assert Decimal(invoice["total"]) == Decimal("20")

        summary = client.get("/api/v1/till/summary", headers=headers)
        assert summary.status_code == 200
        assert Decimal(summary.json()["net_cash_expected"]) == Decimal("20")
        assert summary.json()["invoice_ids"] == [invoice["id"]]

        close = client.post("/api/v1/till/close", json={"counted_cash": "25"}, headers=headers)
        assert close.status_code == 201
        assert Decimal(close.json()["difference"]) == Decimal("5")

        again = client.post("/api/v1/till/close", json={"counted_cash": "25"}, headers=headers)
        assert again.status_code == 400

    def test_shipping_order_lifecycle(
        self,
        client: TestClient,
        cashier_token: str,
        product_b: Product,
        customer: Customer,
    ) -> None:
        headers = auth(cashier_token)
        resp = client.post(
            "/api/v1/orders",
            json={
                "type": "shipping",
                "items": [{"product_id": str(product_b.id), "quantity": 1}],
                "customer": {
                    "id": str(customer.id),
                    "name": customer.name,
                    "phone": customer.phone,
                    "address": customer.address,
                },
                "shipping_fee": "20",
            },
            headers=headers,
        )
        assert resp.status_code == 201
        order = resp.json()
        assert order["status"] == "pending"
        assert Decimal(order["total"]) == Decimal("70")

        shipped = client.patch(
            f"/api/v1/orders/{order['id']}/status", json={"status": "shipped"}, headers=headers
        )
        assert shipped.json()["status"] == "shipped"

        back = client.patch(
            f"/api/v1/orders/{order['id']}/status", json={"status": "pending"}, headers=headers
        )
        assert back.status_code == 400

    def test_empty_cart_is_invalid(self, client: TestClient, cashier_token: str) -> None:
        resp = client.post(
            "/api/v1/orders", json={"type": "sale", "items": []}, headers=auth(cashier_token)
        )
        assert resp.status_code == 422

    def test_unknown_order_is_404(self, client: TestClient, cashier_token: str) -> None:
        resp = client.get(f"/api/v1/orders/{uuid4()}", headers=auth(cashier_token))
        assert resp.status_code == 404

    def test_oversell_is_accepted_and_stock_clamped(
        self, client: TestClient, db: Session, cashier_token: str, product_b: Product
    ) -> None:
        """5 on the shelf, 6 sold: the sale goes through and stock stops at 0."""
        resp = client.post(
            "/api/v1/orders",
            json={"type": "sale", "items": [{"product_id": str(product_b.id), "quantity": 6}]},
            headers=auth(cashier_token),
        )
        assert resp.status_code == 201
        assert Decimal(resp.json()["total"]) == Decimal("300")
        db.refresh(product_b)
        assert product_b.quantity == 0


class TestReturnsApi:
    def test_request_then_approve(
        self,
        client: TestClient,
        cashier_token: str,
        admin_token: str,
        product_a: Product,
    ) -> None:
        sale = client.post(
            "/api/v1/orders",
            json={"type": "sale", "items": [{"product_id": str(product_a.id), "quantity": 3}]},
            headers=auth(cashier_token),
        ).json()

        req = client.post(
            "/api/v1/returns/requests",
            json={
                "original_invoice_id": sale["id"],
                "items": [{"product_id": str(product_a.id), "quantity": 1}],
            },
            headers=auth(cashier_token),
        )
        assert req.status_code == 201
        assert req.json()["status"] == "pending"

        forbidden = client.post(
            f"/api/v1/returns/requests/{req.json()['id']}/approve", headers=auth(cashier_token)
        )
        assert forbidden.status_code == 403

        approved = client.post(
            f"/api/v1/returns/requests/{req.json()['id']}/approve", headers=auth(admin_token)
        )
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert approved.json()["return_invoice_id"] is not None

        returnable = client.get(
            f"/api/v1/orders/{sale['id']}/returnable", headers=auth(cashier_token)
        ).json()
        assert returnable[0]["returnable_quantity"] == 2


class TestBackupApi:
    def test_export_and_import(
        self, client: TestClient, admin_token: str, product_a: Product
    ) -> None:
        exported = client.get("/api/v1/backup/export", headers=auth(admin_token))
        assert exported.status_code == 200
        data = exported.json()
        assert [p["name"] for p in data["products"]] == ["Book A"]

        resp = client.post("/api/v1/backup/import", json=data, headers=auth(admin_token))
        assert resp.status_code == 200
        assert resp.json()["restored"]["products"] == 1

    def test_bad_backup_is_400(self, client: TestClient, admin_token: str) -> None:
        resp = client.post("/api/v1/backup/import", json={"nothing": []}, headers=auth(admin_token))
        assert resp.status_code == 400
