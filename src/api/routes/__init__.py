"""API route modules."""

from src.api.routes.finance import router as finance_router
from src.api.routes.health import router as health_router
from src.api.routes.inventory import router as inventory_router
from src.api.routes.manufacturing import router as manufacturing_router
from src.api.routes.purchasing import router as purchasing_router
from src.api.routes.sales import router as sales_router
from src.api.routes.scheduler import router as scheduler_router

__all__ = [
    "health_router",
    "inventory_router",
    "sales_router",
    "purchasing_router",
    "manufacturing_router",
    "finance_router",
    "scheduler_router",
]
