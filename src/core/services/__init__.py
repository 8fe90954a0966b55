"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.alerts import send_alert
from src.core.services.financial_ledger import (
    ExpenseResult,
    FinancialLedger,
    PaymentResult,
)
from src.core.services.production_orders import ProductionOrderService
from src.core.services.purchase_orders import PurchaseOrderResult, PurchaseOrderService
from src.core.services.replenishment import ReplenishmentDispatcher, ReplenishmentScheduler
from src.core.services.sales_orders import SalesOrderResult, SalesOrderService
from src.core.services.stock_ledger import MovementResult, StockLedger

__all__ = [
    # Stock
    "StockLedger",
    "MovementResult",
    # Orders
    "SalesOrderService",
    "SalesOrderResult",
    "PurchaseOrderService",
    "PurchaseOrderResult",
    "ProductionOrderService",
    # Replenishment
    "ReplenishmentScheduler",
    "ReplenishmentDispatcher",
    # Finance
    "FinancialLedger",
    "PaymentResult",
    "ExpenseResult",
    # Alerts
    "send_alert",
]
