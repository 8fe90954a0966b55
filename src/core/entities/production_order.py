"""Production order domain entities."""

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field

from src.core.entities.common import round_money
from src.core.entities.order import StatefulOrder


class ProductionOrderStatus(str, Enum):
    """Production order lifecycle."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProductionMaterial(BaseModel):
    """A material consumed when production starts."""

    id: int | None = None
    production_order_id: int | None = None
    product_id: int
    quantity: float = Field(gt=0)
    unit_cost: float | None = Field(default=None, ge=0)  # None: use the product cost

    @property
    def total_cost(self) -> float:
        return round_money(self.quantity * (self.unit_cost or 0.0))


class ProductionOrder(StatefulOrder):
    """Builds ``quantity`` of a finished product from its materials."""

    ENTITY: ClassVar[str] = "Production order"
    TRANSITIONS: ClassVar[dict] = {
        ProductionOrderStatus.IN_PROGRESS: (ProductionOrderStatus.PENDING,),
        ProductionOrderStatus.COMPLETED: (ProductionOrderStatus.IN_PROGRESS,),
        ProductionOrderStatus.CANCELLED: (ProductionOrderStatus.PENDING,),
    }

    product_id: int
    quantity: float = Field(gt=0)
    status: ProductionOrderStatus = ProductionOrderStatus.PENDING
    materials: list[ProductionMaterial] = Field(default_factory=list)
    sales_order_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    @property
    def material_cost(self) -> float:
        return round_money(sum(m.total_cost for m in self.materials))
