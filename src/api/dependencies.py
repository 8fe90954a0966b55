"""
Dependency injection container for FastAPI.

Provides service instances and the acting user to route handlers.
"""

from functools import lru_cache

from fastapi import Header

from src.application.services import get_services
from src.config import Settings, get_settings
from src.core.entities import Actor
from src.core.services import (
    FinancialLedger,
    ProductionOrderService,
    PurchaseOrderService,
    ReplenishmentScheduler,
    SalesOrderService,
    StockLedger,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
async def get_stock_ledger() -> StockLedger:
    """Get stock ledger service."""
    return (await get_services()).ledger


async def get_sales_service() -> SalesOrderService:
    """Get sales order service."""
    return (await get_services()).sales


async def get_purchase_service() -> PurchaseOrderService:
    """Get purchase order service."""
    return (await get_services()).purchases


async def get_production_service() -> ProductionOrderService:
    """Get production order service."""
    return (await get_services()).production


async def get_financial_ledger() -> FinancialLedger:
    """Get financial ledger service."""
    return (await get_services()).finance


async def get_scheduler() -> ReplenishmentScheduler:
    """Get replenishment scheduler."""
    return (await get_services()).scheduler


# Actor dependency
def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Actor | None:
    """Read the acting user from X-User-Id / X-User-Role headers."""
    if not x_user_id:
        return None
    return Actor(user_id=x_user_id, role=x_user_role or "user")
