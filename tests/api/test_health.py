"""Tests for health and scheduler status endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_scheduler
from src.api.main import app
from src.core.entities.replenishment import ReplenishmentReport, ReplenishmentRequest
from src.core.services import ReplenishmentScheduler


@pytest.fixture
def mock_scheduler():
    scheduler = MagicMock(spec=ReplenishmentScheduler)
    scheduler.is_started = True
    scheduler.is_running = False
    scheduler.last_report = None
    scheduler.auto_requests = AsyncMock(return_value=[])
    scheduler.generate_auto_purchase_orders = AsyncMock()
    return scheduler


@pytest.fixture
async def client(mock_scheduler):
    app.dependency_overrides[get_scheduler] = lambda: mock_scheduler
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_scheduler, None)


async def test_root_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_api_health(client: AsyncClient):
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "uptime_seconds" in data


async def test_request_id_header(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"


class TestSchedulerAPI:
    async def test_status(self, client: AsyncClient):
        response = await client.get("/api/scheduler/status")
        assert response.status_code == 200
        data = response.json()
        assert data["started"] is True
        assert data["running"] is False
        assert data["last_report"] is None

    async def test_run_returns_report(self, client: AsyncClient, mock_scheduler):
        mock_scheduler.generate_auto_purchase_orders.return_value = ReplenishmentReport(
            reason="api", created=["PO0001"], skipped=[3]
        )

        response = await client.post("/api/scheduler/run")

        assert response.status_code == 200
        data = response.json()
        assert data["started"] is True
        assert data["report"]["created"] == ["PO0001"]
        assert data["report"]["created_count"] == 1
        assert data["report"]["ok"] is True
        mock_scheduler.generate_auto_purchase_orders.assert_awaited_once_with(reason="api")

    async def test_run_while_busy(self, client: AsyncClient, mock_scheduler):
        mock_scheduler.generate_auto_purchase_orders.return_value = None

        response = await client.post("/api/scheduler/run")

        assert response.status_code == 200
        assert response.json() == {"started": False, "report": None}

    async def test_preview(self, client: AsyncClient, mock_scheduler):
        mock_scheduler.auto_requests.return_value = [
            ReplenishmentRequest(
                product_id=1,
                sku="RM-1",
                name="Steel",
                supplier_id="S",
                current_stock=0,
                min_stock_level=10,
                max_stock_level=100,
                suggested_quantity=100,
                unit_cost=2,
                priority="high",
            )
        ]

        response = await client.get("/api/scheduler/requests")

        assert response.status_code == 200
        assert response.json()[0]["priority"] == "high"
        assert response.json()[0]["suggested_quantity"] == 100
