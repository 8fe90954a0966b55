"""Purchase order domain entities."""

from datetime import date, datetime
from enum import Enum
from typing import ClassVar

from src.core.entities.order import PricedOrder


class PurchaseOrderStatus(str, Enum):
    """Purchase order lifecycle."""

    PENDING = "pending"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PurchaseOrderSource(str, Enum):
    """Who raised the purchase order."""

    MANUAL = "manual"
    INVENTORY = "inventory"  # replenishment scheduler


OPEN_PURCHASE_STATUSES = (PurchaseOrderStatus.PENDING, PurchaseOrderStatus.ORDERED)


class PurchaseOrder(PricedOrder):
    """A supplier order. Only receipt puts stock into the ledger."""

    ENTITY: ClassVar[str] = "Purchase order"
    TRANSITIONS: ClassVar[dict] = {
        PurchaseOrderStatus.ORDERED: (PurchaseOrderStatus.PENDING,),
        PurchaseOrderStatus.RECEIVED: (PurchaseOrderStatus.ORDERED,),
        PurchaseOrderStatus.CANCELLED: (PurchaseOrderStatus.PENDING,),
    }

    supplier_id: str
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING
    auto_generated: bool = False
    source: PurchaseOrderSource = PurchaseOrderSource.MANUAL
    expected_delivery: date | None = None
    received_date: datetime | None = None
    created_by: str | None = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_PURCHASE_STATUSES
