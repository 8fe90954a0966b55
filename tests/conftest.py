"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.application.services import ServiceContainer, build_services
from src.config.settings import SchedulerSettings, Settings, StorageSettings
from src.core.entities.product import Product, ProductCategory
from src.core.interfaces.notifier import INotifier
from src.infrastructure.storage.sqlite import ConnectionPool
from src.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway database."""
    return Settings(
        storage=StorageSettings(data_dir=tmp_path, pool_size=3, busy_timeout=5000),
        scheduler=SchedulerSettings(enabled=False, run_timeout_seconds=30),
    )


@pytest.fixture
async def pool(settings: Settings) -> AsyncGenerator[ConnectionPool, None]:
    """Connection pool over a freshly migrated database."""
    results = await initialize_database(settings.storage.db_path, create_backup_before=False)
    assert results and all(r.success for r in results)

    pool = ConnectionPool(
        settings.storage.db_path,
        pool_size=settings.storage.pool_size,
        busy_timeout=settings.storage.busy_timeout,
    )
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock(spec=INotifier)


@pytest.fixture
async def services(
    pool: ConnectionPool, settings: Settings, notifier: AsyncMock
) -> AsyncGenerator[ServiceContainer, None]:
    """Full service graph, with low-stock events reaching the scheduler."""
    container = build_services(pool, settings=settings, notifier=notifier)
    yield container
    await container.scheduler.stop()


@pytest.fixture
async def quiet_services(services: ServiceContainer) -> ServiceContainer:
    """Service graph whose committed events are not published."""
    services.uow_factory.publisher = None
    return services


@pytest.fixture
def make_product(
    services: ServiceContainer,
) -> Callable[..., Awaitable[Product]]:
    """Register a product through the stock ledger."""
    counter = iter(range(1, 10_000))

    async def _make(**overrides) -> Product:
        n = next(counter)
        fields = {
            "sku": f"SKU-{n:03d}",
            "name": f"Product {n}",
            "category": ProductCategory.RAW_MATERIAL,
            "current_stock": 100.0,
            "min_stock_level": 10.0,
            "max_stock_level": 500.0,
            "unit_cost": 5.0,
            "selling_price": 8.0,
            "supplier_id": "SUP-1",
        }
        fields.update(overrides)
        return await services.ledger.create_product(Product(**fields))

    return _make
