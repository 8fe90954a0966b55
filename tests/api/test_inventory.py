"""API tests for inventory endpoints and error mapping."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_stock_ledger
from src.api.main import app
from src.core.entities import (
    LedgerDiscrepancy,
    MovementDirection,
    MovementReference,
    Product,
    ProductCategory,
    StockMovement,
)
from src.core.exceptions import (
    DuplicateIdentifierError,
    InsufficientStockError,
    ProductNotFoundError,
    ResourceInUseError,
)
from src.core.services import MovementResult, StockLedger


def make_product(**overrides) -> Product:
    data = {
        "id": 1,
        "sku": "RM-1",
        "name": "Steel",
        "category": ProductCategory.RAW_MATERIAL,
        "current_stock": 40,
        "min_stock_level": 10,
        "max_stock_level": 100,
        "unit_cost": 2.5,
        "supplier_id": "SUP-1",
    }
    data.update(overrides)
    return Product(**data)


@pytest.fixture
def mock_ledger():
    return AsyncMock(spec=StockLedger)


@pytest.fixture
async def client(mock_ledger):
    app.dependency_overrides[get_stock_ledger] = lambda: mock_ledger
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_stock_ledger, None)


class TestProductsAPI:
    async def test_create_returns_201(self, client: AsyncClient, mock_ledger):
        mock_ledger.create_product.return_value = make_product()

        response = await client.post(
            "/api/inventory/products",
            json={"sku": "RM-1", "name": "Steel", "category": "raw-material", "current_stock": 40},
            headers={"X-User-Id": "u-7"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["current_value"] == 100.0
        assert data["needs_replenishment"] is False
        (product,) = mock_ledger.create_product.await_args.args
        assert product.sku == "RM-1"
        assert mock_ledger.create_product.await_args.kwargs["actor"].user_id == "u-7"

    async def test_create_rejects_negative_stock(self, client: AsyncClient, mock_ledger):
        response = await client.post(
            "/api/inventory/products",
            json={"sku": "RM-1", "name": "Steel", "category": "raw-material", "current_stock": -1},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        mock_ledger.create_product.assert_not_awaited()

    async def test_duplicate_sku_is_409(self, client: AsyncClient, mock_ledger):
        mock_ledger.create_product.side_effect = DuplicateIdentifierError("Product", "sku", "RM-1")

        response = await client.post(
            "/api/inventory/products",
            json={"sku": "RM-1", "name": "Steel", "category": "raw-material"},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_IDENTIFIER"

    async def test_get_missing_is_404(self, client: AsyncClient, mock_ledger):
        mock_ledger.get_product.side_effect = ProductNotFoundError(9)

        response = await client.get("/api/inventory/products/9")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "PRODUCT_NOT_FOUND"
        assert data["path"] == "/api/inventory/products/9"
        assert data["hint"]

    async def test_update_sends_only_set_fields(self, client: AsyncClient, mock_ledger):
        mock_ledger.update_product.return_value = make_product(min_stock_level=20)

        response = await client.patch("/api/inventory/products/1", json={"min_stock_level": 20})

        assert response.status_code == 200
        mock_ledger.update_product.assert_awaited_once_with(1, {"min_stock_level": 20})

    async def test_delete_referenced_is_409(self, client: AsyncClient, mock_ledger):
        mock_ledger.delete_product.side_effect = ResourceInUseError(
            "product", 1, "referenced by orders"
        )

        response = await client.delete("/api/inventory/products/1")

        assert response.status_code == 409
        assert response.json()["error_code"] == "RESOURCE_IN_USE"

    async def test_list_low_stock(self, client: AsyncClient, mock_ledger):
        mock_ledger.list_products.return_value = [make_product(current_stock=5)]

        response = await client.get("/api/inventory/products", params={"low_stock": "true"})

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["items"][0]["is_low_stock"] is True
        assert mock_ledger.list_products.await_args.kwargs["low_stock"] is True


class TestMovementsAPI:
    async def test_adjust_out(self, client: AsyncClient, mock_ledger):
        movement = StockMovement(
            id=3,
            product_id=1,
            direction=MovementDirection.OUT,
            quantity=5,
            delta=-5,
            unit_cost=2.5,
            reference=MovementReference.ADJUSTMENT,
        )
        mock_ledger.adjust_stock.return_value = MovementResult(
            product=make_product(current_stock=35), movement=movement
        )

        response = await client.post(
            "/api/inventory/products/1/adjust", json={"direction": "out", "quantity": 5}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["product"]["current_stock"] == 35
        assert data["movement"]["delta"] == -5
        assert data["movement"]["total_cost"] == 12.5
        args = mock_ledger.adjust_stock.await_args.args
        assert args == (1, MovementDirection.OUT, 5)

    async def test_adjust_below_zero_is_400(self, client: AsyncClient, mock_ledger):
        mock_ledger.adjust_stock.side_effect = InsufficientStockError(
            product_id=1, required=50, available=40, sku="RM-1"
        )

        response = await client.post(
            "/api/inventory/products/1/adjust", json={"direction": "out", "quantity": 50}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "INSUFFICIENT_STOCK"
        assert data["detail"]["required"] == 50
        assert data["detail"]["available"] == 40

    async def test_adjust_rejects_zero_quantity(self, client: AsyncClient):
        response = await client.post(
            "/api/inventory/products/1/adjust", json={"direction": "in", "quantity": 0}
        )
        assert response.status_code == 422

    async def test_count_without_change(self, client: AsyncClient, mock_ledger):
        mock_ledger.count_stock.return_value = MovementResult(
            product=make_product(), movement=None
        )

        response = await client.post(
            "/api/inventory/products/1/count", json={"counted_quantity": 40}
        )

        assert response.status_code == 200
        assert response.json()["movement"] is None

    async def test_list_movements_filters(self, client: AsyncClient, mock_ledger):
        mock_ledger.list_movements.return_value = []

        response = await client.get(
            "/api/inventory/movements", params={"product_id": 1, "reference": "sale"}
        )

        assert response.status_code == 200
        kwargs = mock_ledger.list_movements.await_args.kwargs
        assert kwargs["product_id"] == 1
        assert kwargs["reference"] == MovementReference.SALE


class TestLedgerAuditAPI:
    async def test_verify_reports_discrepancies(self, client: AsyncClient, mock_ledger):
        mock_ledger.verify_ledger.return_value = [
            LedgerDiscrepancy(product_id=1, sku="RM-1", current_stock=40, ledger_stock=38)
        ]

        response = await client.get("/api/inventory/verify")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is False
        assert data["discrepancies"][0]["difference"] == 2

    async def test_verify_clean(self, client: AsyncClient, mock_ledger):
        mock_ledger.verify_ledger.return_value = []

        response = await client.get("/api/inventory/verify")

        assert response.json() == {"ok": True, "discrepancies": []}

    async def test_product_ledger_stock(self, client: AsyncClient, mock_ledger):
        mock_ledger.recompute_stock.return_value = 40.0
        mock_ledger.get_product.return_value = make_product()

        response = await client.get("/api/inventory/products/1/ledger")

        assert response.json() == {"product_id": 1, "current_stock": 40.0, "ledger_stock": 40.0}
