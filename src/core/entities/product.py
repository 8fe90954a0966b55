"""Product domain entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.common import round_money, utc_now


class ProductCategory(str, Enum):
    """Where a product sits in the bill of materials."""

    RAW_MATERIAL = "raw-material"
    FINISHED_GOOD = "finished-good"
    COMPONENT = "component"


class Product(BaseModel):
    """A stocked item. Stock fields change only through the stock ledger."""

    id: int | None = None
    sku: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str | None = None
    category: ProductCategory
    unit: str = "pcs"
    current_stock: float = Field(default=0.0, ge=0)
    min_stock_level: float = Field(default=0.0, ge=0)
    max_stock_level: float = Field(default=1000.0, ge=0)
    unit_cost: float = Field(default=0.0, ge=0)
    selling_price: float | None = Field(default=None, ge=0)
    supplier_id: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def current_value(self) -> float:
        """Stock value = current_stock * unit_cost."""
        return round_money(self.current_stock * self.unit_cost)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock_level

    @property
    def needs_replenishment(self) -> bool:
        """Active raw material at or below minimum with a known supplier."""
        return (
            self.is_active
            and self.category == ProductCategory.RAW_MATERIAL
            and self.is_low_stock
            and bool(self.supplier_id)
        )

    @property
    def suggested_order_quantity(self) -> float:
        """Refill to max_stock_level, never less than min_stock_level."""
        return max(self.max_stock_level - self.current_stock, self.min_stock_level)
