"""Stock ledger domain entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from src.core.entities.common import round_money, utc_now


class MovementDirection(str, Enum):
    """Direction of a stock movement."""

    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class MovementReference(str, Enum):
    """What caused a stock movement."""

    PURCHASE = "purchase"
    SALE = "sale"
    PRODUCTION = "production"
    ADJUSTMENT = "adjustment"


class StockMovement(BaseModel):
    """
    One immutable row of the stock ledger.

    ``quantity`` is always positive; ``delta`` is the signed change that
    was applied to the product's current_stock.
    """

    id: int | None = None
    product_id: int
    direction: MovementDirection
    quantity: float = Field(gt=0)
    delta: float
    unit_cost: float = Field(default=0.0, ge=0)
    total_cost: float = 0.0
    reference: MovementReference
    reference_id: int | None = None
    notes: str | None = None
    actor_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def compute_total_cost(self) -> "StockMovement":
        """Compute total_cost from quantity and unit_cost."""
        self.total_cost = round_money(self.quantity * self.unit_cost)
        return self

    @property
    def is_decrease(self) -> bool:
        return self.delta < 0


class StockValuation(BaseModel):
    """Aggregate value of active stock."""

    total_value: float = 0.0
    product_count: int = 0
    total_items: float = 0.0
    average_value: float = 0.0


class LedgerDiscrepancy(BaseModel):
    """A product whose live stock disagrees with its movement log."""

    product_id: int
    sku: str
    current_stock: float
    ledger_stock: float

    @property
    def difference(self) -> float:
        return self.current_stock - self.ledger_stock
