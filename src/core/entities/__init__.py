"""Core domain entities."""

from src.core.entities.common import SYSTEM_ACTOR, Actor, utc_now
from src.core.entities.events import ReplenishmentRequested
from src.core.entities.finance import (
    BankAccount,
    CashSummary,
    Expense,
    Invoice,
    InvoiceKind,
    InvoiceStatus,
    Transaction,
    TransactionDirection,
    TransactionSourceType,
)
from src.core.entities.inventory import (
    LedgerDiscrepancy,
    MovementDirection,
    MovementReference,
    StockMovement,
    StockValuation,
)
from src.core.entities.order import OrderLine, PricedOrder, StatefulOrder
from src.core.entities.product import Product, ProductCategory
from src.core.entities.production_order import (
    ProductionMaterial,
    ProductionOrder,
    ProductionOrderStatus,
)
from src.core.entities.purchase_order import (
    OPEN_PURCHASE_STATUSES,
    PurchaseOrder,
    PurchaseOrderSource,
    PurchaseOrderStatus,
)
from src.core.entities.replenishment import (
    ReplenishmentFailure,
    ReplenishmentPriority,
    ReplenishmentReport,
    ReplenishmentRequest,
)
from src.core.entities.sales_order import SalesOrder, SalesOrderStatus

__all__ = [
    # Common
    "Actor",
    "SYSTEM_ACTOR",
    "utc_now",
    # Stock ledger
    "Product",
    "ProductCategory",
    "StockMovement",
    "MovementDirection",
    "MovementReference",
    "StockValuation",
    "LedgerDiscrepancy",
    # Orders
    "StatefulOrder",
    "PricedOrder",
    "OrderLine",
    "SalesOrder",
    "SalesOrderStatus",
    "PurchaseOrder",
    "PurchaseOrderStatus",
    "PurchaseOrderSource",
    "OPEN_PURCHASE_STATUSES",
    "ProductionOrder",
    "ProductionOrderStatus",
    "ProductionMaterial",
    # Replenishment
    "ReplenishmentRequested",
    "ReplenishmentRequest",
    "ReplenishmentPriority",
    "ReplenishmentReport",
    "ReplenishmentFailure",
    # Finance
    "BankAccount",
    "Transaction",
    "TransactionDirection",
    "TransactionSourceType",
    "Invoice",
    "InvoiceKind",
    "InvoiceStatus",
    "Expense",
    "CashSummary",
]
