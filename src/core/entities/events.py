"""Domain events raised inside a unit of work and published after commit."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.core.entities.common import utc_now


class ReplenishmentRequested(BaseModel):
    """A raw material dropped to or below its minimum stock level."""

    product_id: int
    sku: str
    current_stock: float
    min_stock_level: float
    reason: str = "low_stock"
    occurred_at: datetime = Field(default_factory=utc_now)
