"""
Service factory functions for dependency injection.

This module wires infrastructure implementations to core services.
API handlers and the CLI import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.config import Settings, get_logger, get_settings
from src.core.interfaces import INotifier, IUnitOfWorkFactory
from src.core.services import (
    FinancialLedger,
    ProductionOrderService,
    PurchaseOrderService,
    ReplenishmentDispatcher,
    ReplenishmentScheduler,
    SalesOrderService,
    StockLedger,
)

if TYPE_CHECKING:
    from src.infrastructure.storage.sqlite import ConnectionPool

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Every ledger service, sharing one unit-of-work factory."""

    uow_factory: IUnitOfWorkFactory
    ledger: StockLedger
    finance: FinancialLedger
    production: ProductionOrderService
    purchases: PurchaseOrderService
    sales: SalesOrderService
    scheduler: ReplenishmentScheduler
    dispatcher: ReplenishmentDispatcher


def build_services(
    pool: "ConnectionPool",
    settings: Settings | None = None,
    notifier: INotifier | None = None,
) -> ServiceContainer:
    """
    Build the service graph over a connection pool.

    The dispatcher needs the scheduler, which needs the purchase service,
    which needs the unit-of-work factory. The factory is therefore created
    without a publisher and the dispatcher attached last.

    Args:
        pool: Initialized connection pool
        settings: Optional settings override
        notifier: Optional shortfall notifier override

    Returns:
        Configured ServiceContainer
    """
    # Lazy import infrastructure to avoid circular imports
    from src.infrastructure.notifications import LoggingNotifier
    from src.infrastructure.storage.sqlite import SQLiteUnitOfWorkFactory

    settings = settings or get_settings()
    notifier = notifier or LoggingNotifier()

    uow_factory = SQLiteUnitOfWorkFactory(pool)
    ledger = StockLedger(uow_factory, notifier=notifier)
    finance = FinancialLedger(uow_factory, settings=settings.ledger, notifier=notifier)
    production = ProductionOrderService(
        uow_factory, ledger, settings=settings.ledger, notifier=notifier
    )
    purchases = PurchaseOrderService(uow_factory, ledger, finance, settings=settings.ledger)
    sales = SalesOrderService(
        uow_factory,
        ledger,
        production,
        finance,
        settings=settings.ledger,
        notifier=notifier,
    )
    scheduler = ReplenishmentScheduler(uow_factory, purchases, settings=settings.scheduler)
    dispatcher = ReplenishmentDispatcher(scheduler)
    uow_factory.publisher = dispatcher

    return ServiceContainer(
        uow_factory=uow_factory,
        ledger=ledger,
        finance=finance,
        production=production,
        purchases=purchases,
        sales=sales,
        scheduler=scheduler,
        dispatcher=dispatcher,
    )


# Singleton container
_services: ServiceContainer | None = None


async def get_services() -> ServiceContainer:
    """
    Get or create the service container over the global pool.

    Async because pool initialization is async.
    """
    global _services

    if _services is None:
        from src.infrastructure.storage.sqlite import get_pool

        _services = build_services(await get_pool())
        logger.info("services_initialized")

    return _services


async def shutdown_services() -> None:
    """Stop the scheduler, wait for background runs and close the pool."""
    global _services

    from src.infrastructure.storage.sqlite import close_pool

    if _services is not None:
        await _services.scheduler.stop()
        _services = None
    await close_pool()


def reset_services() -> None:
    """
    Reset the singleton container.

    Useful for testing or when configuration changes.
    """
    global _services
    _services = None


__all__ = [
    "ServiceContainer",
    "build_services",
    "get_services",
    "shutdown_services",
    "reset_services",
]
