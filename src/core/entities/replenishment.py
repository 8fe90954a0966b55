"""Replenishment scan results."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.common import utc_now


class ReplenishmentPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class ReplenishmentRequest(BaseModel):
    """Preview of a purchase the scheduler would raise for a product."""

    product_id: int
    sku: str
    name: str
    supplier_id: str | None = None
    current_stock: float
    min_stock_level: float
    max_stock_level: float
    suggested_quantity: float
    unit_cost: float
    priority: ReplenishmentPriority


class ReplenishmentFailure(BaseModel):
    product_id: int
    sku: str | None = None
    error: str
    error_code: str | None = None


class ReplenishmentReport(BaseModel):
    """Outcome of one scheduler run."""

    reason: str = "manual"
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: datetime | None = None
    created: list[str] = Field(default_factory=list)  # order numbers
    skipped: list[int] = Field(default_factory=list)  # product ids
    failures: list[ReplenishmentFailure] = Field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def ok(self) -> bool:
        return not self.failures
