"""Abstract interfaces for product and stock movement storage."""

from abc import ABC, abstractmethod

from src.core.entities.inventory import (
    MovementDirection,
    MovementReference,
    StockMovement,
    StockValuation,
)
from src.core.entities.product import Product, ProductCategory


class IProductStore(ABC):
    """Interface for product persistence."""

    @abstractmethod
    async def create(self, product: Product) -> Product:
        """Create a product. Raises DuplicateIdentifierError on a taken SKU."""
        pass

    @abstractmethod
    async def get(self, product_id: int) -> Product | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def get_by_sku(self, sku: str) -> Product | None:
        """Get product by SKU."""
        pass

    @abstractmethod
    async def update(self, product: Product) -> Product:
        """Update descriptive and threshold fields. Never touches stock."""
        pass

    @abstractmethod
    async def apply_stock_delta(
        self, product_id: int, delta: float, unit_cost: float | None = None
    ) -> Product | None:
        """
        Add ``delta`` to current_stock, optionally setting unit_cost.

        Decreases are conditional on enough stock being on hand.

        Returns:
            The updated product, or None if the guard rejected the change
        """
        pass

    @abstractmethod
    async def list_products(
        self,
        category: ProductCategory | None = None,
        low_stock: bool = False,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Product]:
        """List products with optional filters."""
        pass

    @abstractmethod
    async def list_low_stock(self, limit: int = 100) -> list[Product]:
        """Active products at or below minimum, lowest stock first."""
        pass

    @abstractmethod
    async def list_replenishment_candidates(self) -> list[Product]:
        """Active raw materials at or below minimum that have a supplier."""
        pass

    @abstractmethod
    async def is_referenced(self, product_id: int) -> bool:
        """True if any sales, purchase or production order uses the product."""
        pass

    @abstractmethod
    async def deactivate(self, product_id: int) -> bool:
        """Mark product inactive."""
        pass

    @abstractmethod
    async def valuation(self) -> StockValuation:
        """Aggregate value of active stock."""
        pass


class IMovementStore(ABC):
    """Interface for the append-only stock movement log."""

    @abstractmethod
    async def add(self, movement: StockMovement) -> StockMovement:
        """Append a movement."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        product_id: int | None = None,
        direction: MovementDirection | None = None,
        reference: MovementReference | None = None,
        reference_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        """List movements, newest first."""
        pass

    @abstractmethod
    async def sum_deltas(self, product_id: int) -> float:
        """Net stock according to the movement log."""
        pass

    @abstractmethod
    async def ledger_totals(self) -> dict[int, float]:
        """Net stock per product according to the movement log."""
        pass
