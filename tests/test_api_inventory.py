"""Tests for inventory API endpoints."""
import uuid

from inventra.core.config import settings
from inventra.core.security import create_access_token


class TestInventoryAuth:
    """Tests for authentication and roles on inventory endpoints."""

    async def test_missing_token_returns_401(self, client, seed):
        """Test that requests without a bearer token are rejected."""
        response = await client.get("/api/v1/inventory", params={"branch_id": str(seed.branch.id)})

        assert response.status_code == 401
        assert response.json()["kind"] == "unauthorized"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_invalid_token_returns_401(self, client, seed):
        """Test that a garbage token is rejected."""
        response = await client.get(
            "/api/v1/inventory",
            params={"branch_id": str(seed.branch.id)},
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401

    async def test_unknown_role_returns_401(self, client, seed):
        """Test that tokens with roles outside MANAGER/EMPLOYEE are rejected."""
        token = create_access_token(seed.employee.id, role="ADMIN")
        response = await client.get(
            "/api/v1/inventory",
            params={"branch_id": str(seed.branch.id)},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 401

    async def test_employee_cannot_receive(self, client, seed, employee_headers):
        """Test that stock mutations are limited to managers."""
        response = await client.post(
            "/api/v1/inventory/receive",
            json={"branch_id": str(seed.branch.id), "product_id": str(seed.cola.id), "quantity": 5},
            headers=employee_headers,
        )

        assert response.status_code == 403
        assert response.json()["kind"] == "forbidden"


class TestInventoryAPI:
    """Tests for inventory mutations and reads over HTTP."""

    async def test_receive_and_list(self, client, seed, manager_headers, employee_headers):
        """Test receiving stock and reading it back."""
        response = await client.post(
            "/api/v1/inventory/receive",
            json={"branch_id": str(seed.branch.id), "product_id": str(seed.cola.id), "quantity": 10},
            headers=manager_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["item"]["quantity"] == 10
        assert data["item"]["product"]["sku"] == "COLA-330"
        assert data["txn"]["type"] == "RECEIVE"
        assert data["txn"]["qty_change"] == 10
        assert data["txn"]["created_by_id"] == str(seed.manager.id)

        response = await client.get(
            "/api/v1/inventory",
            params={"branch_id": str(seed.branch.id), "search": "cola"},
            headers=employee_headers,
        )
        assert response.status_code == 200
        items = response.json()["items"]
        assert [(i["product"]["name"], i["quantity"]) for i in items] == [("Cola 330ml", 10)]

    async def test_adjust_returns_200_with_zero_change(self, client, seed, manager_headers):
        """Test a confirming recount over HTTP."""
        body = {"branch_id": str(seed.branch.id), "product_id": str(seed.cola.id)}
        await client.post("/api/v1/inventory/receive", json={**body, "quantity": 5}, headers=manager_headers)

        response = await client.post(
            "/api/v1/inventory/adjust", json={**body, "new_quantity": 5}, headers=manager_headers
        )

        assert response.status_code == 200
        assert response.json()["txn"]["qty_change"] == 0
        assert response.json()["txn"]["note"] == "Manual adjustment"

    async def test_damage_beyond_stock_returns_409(self, client, seed, manager_headers):
        """Test the insufficient stock error body."""
        body = {"branch_id": str(seed.branch.id), "product_id": str(seed.cola.id)}
        await client.post("/api/v1/inventory/receive", json={**body, "quantity": 2}, headers=manager_headers)

        response = await client.post(
            "/api/v1/inventory/damage", json={**body, "quantity": 3}, headers=manager_headers
        )

        assert response.status_code == 409
        data = response.json()
        assert data["kind"] == "insufficient_stock"
        assert data["details"]["available"] == 2
        assert data["details"]["requested"] == 3
        assert data["path"] == "/api/v1/inventory/damage"

    async def test_sale_records_entry(self, client, seed, manager_headers):
        """Test a manual sale."""
        body = {"branch_id": str(seed.branch.id), "product_id": str(seed.cola.id)}
        await client.post("/api/v1/inventory/receive", json={**body, "quantity": 4}, headers=manager_headers)

        response = await client.post(
            "/api/v1/inventory/sale", json={**body, "quantity": 1, "note": "staff"}, headers=manager_headers
        )

        assert response.status_code == 201
        assert response.json()["item"]["quantity"] == 3
        assert response.json()["txn"]["type"] == "SALE"
        assert response.json()["txn"]["note"] == "staff"

    async def test_non_positive_quantity_returns_422(self, client, seed, manager_headers):
        """Test boundary validation of quantities."""
        response = await client.post(
            "/api/v1/inventory/receive",
            json={"branch_id": str(seed.branch.id), "product_id": str(seed.cola.id), "quantity": 0},
            headers=manager_headers,
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "validation"

    async def test_inactive_branch_returns_409(self, client, seed, manager_headers):
        """Test the conflict kind for deactivated branches."""
        response = await client.post(
            "/api/v1/inventory/receive",
            json={"branch_id": str(seed.closed_branch.id), "product_id": str(seed.cola.id), "quantity": 1},
            headers=manager_headers,
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "conflict"

    async def test_unknown_product_returns_404(self, client, seed, manager_headers):
        """Test the not found kind."""
        response = await client.post(
            "/api/v1/inventory/receive",
            json={"branch_id": str(seed.branch.id), "product_id": str(uuid.uuid4()), "quantity": 1},
            headers=manager_headers,
        )

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    async def test_ledger_listing(self, client, seed, manager_headers, employee_headers):
        """Test the paginated ledger newest first."""
        body = {"branch_id": str(seed.branch.id), "product_id": str(seed.cola.id)}
        await client.post("/api/v1/inventory/receive", json={**body, "quantity": 10}, headers=manager_headers)
        await client.post("/api/v1/inventory/damage", json={**body, "quantity": 1}, headers=manager_headers)
        await client.post("/api/v1/inventory/sale", json={**body, "quantity": 2}, headers=manager_headers)

        response = await client.get(
            "/api/v1/inventory/txns",
            params={"branch_id": str(seed.branch.id), "page_size": 2},
            headers=employee_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert data["page_size"] == 2
        assert [t["type"] for t in data["items"]] == ["SALE", "DAMAGE"]
        assert data["items"][0]["created_by"]["full_name"] == "Mira Manager"
        assert data["items"][0]["branch"]["name"] == "Downtown"

    async def test_ledger_page_size_is_capped(self, client, seed, employee_headers):
        """Test that oversized pages are served at the configured maximum."""
        response = await client.get(
            "/api/v1/inventory/txns",
            params={"branch_id": str(seed.branch.id), "page_size": 500},
            headers=employee_headers,
        )

        assert response.status_code == 200
        assert response.json()["page_size"] == settings.ledger_page_size

    async def test_ledger_page_size_follows_setting(
        self, client, seed, manager_headers, employee_headers, monkeypatch
    ):
        """Test that the configured ledger page size is the only cap."""
        body = {"branch_id": str(seed.branch.id), "product_id": str(seed.cola.id)}
        for quantity in (1, 2, 3):
            await client.post("/api/v1/inventory/receive", json={**body, "quantity": quantity}, headers=manager_headers)

        monkeypatch.setattr(settings, "ledger_page_size", 2)
        capped = await client.get(
            "/api/v1/inventory/txns",
            params={"branch_id": str(seed.branch.id), "page_size": 50},
            headers=employee_headers,
        )

        monkeypatch.setattr(settings, "ledger_page_size", 500)
        widened = await client.get(
            "/api/v1/inventory/txns",
            params={"branch_id": str(seed.branch.id), "page_size": 300},
            headers=employee_headers,
        )

        assert capped.status_code == 200
        assert capped.json()["page_size"] == 2
        assert len(capped.json()["items"]) == 2
        assert capped.json()["pages"] == 2
        assert widened.status_code == 200
        assert widened.json()["page_size"] == 300
        assert len(widened.json()["items"]) == 3

    async def test_ledger_page_size_zero_returns_422(self, client, seed, employee_headers):
        """Test that page sizes start at 1."""
        response = await client.get(
            "/api/v1/inventory/txns",
            params={"branch_id": str(seed.branch.id), "page_size": 0},
            headers=employee_headers,
        )

        assert response.status_code == 422

    async def test_ledger_unknown_branch_returns_404(self, client, seed, employee_headers):
        """Test listing the ledger of an unknown branch."""
        response = await client.get(
            "/api/v1/inventory/txns",
            params={"branch_id": str(uuid.uuid4())},
            headers=employee_headers,
        )

        assert response.status_code == 404


class TestHealth:
    """Tests for the health endpoint."""

    async def test_health_reports_database(self, client):
        """Test liveness plus database ping."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["database"] == "up"
        assert "X-Process-Time" in response.headers
