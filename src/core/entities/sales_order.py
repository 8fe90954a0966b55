"""Sales order domain entities."""

from datetime import datetime
from enum import Enum
from typing import ClassVar

from src.core.entities.order import PricedOrder


class SalesOrderStatus(str, Enum):
    """Sales order lifecycle."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class SalesOrder(PricedOrder):
    """A customer order. Only confirmation takes stock out of the ledger."""

    ENTITY: ClassVar[str] = "Sales order"
    TRANSITIONS: ClassVar[dict] = {
        SalesOrderStatus.CONFIRMED: (SalesOrderStatus.PENDING,),
        SalesOrderStatus.SHIPPED: (SalesOrderStatus.CONFIRMED,),
        SalesOrderStatus.DELIVERED: (SalesOrderStatus.SHIPPED,),
        SalesOrderStatus.CANCELLED: (SalesOrderStatus.PENDING,),
    }

    customer_id: str
    status: SalesOrderStatus = SalesOrderStatus.PENDING
    production_order_id: int | None = None
    delivery_date: datetime | None = None
    sales_rep_id: str | None = None
