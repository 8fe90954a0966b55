"""Abstract interfaces for sales, purchase and production order storage."""

from abc import ABC, abstractmethod

from src.core.entities.production_order import ProductionOrder, ProductionOrderStatus
from src.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus
from src.core.entities.sales_order import SalesOrder, SalesOrderStatus


class ISalesOrderStore(ABC):
    """Interface for sales order persistence."""

    @abstractmethod
    async def next_number(self, prefix: str) -> str:
        """Next free order number for ``prefix``."""
        pass

    @abstractmethod
    async def create(self, order: SalesOrder) -> SalesOrder:
        """Create order with items. Raises DuplicateIdentifierError."""
        pass

    @abstractmethod
    async def get(self, order_id: int) -> SalesOrder | None:
        """Get order by ID with items."""
        pass

    @abstractmethod
    async def list_orders(
        self,
        status: SalesOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SalesOrder]:
        """List orders, newest first."""
        pass

    @abstractmethod
    async def save_transition(
        self, order: SalesOrder, expected: SalesOrderStatus
    ) -> bool:
        """
        Persist status and lifecycle fields if the stored status still
        equals ``expected``.

        Returns:
            False if the stored status had moved on
        """
        pass


class IPurchaseOrderStore(ABC):
    """Interface for purchase order persistence."""

    @abstractmethod
    async def next_number(self, prefix: str) -> str:
        """Next free order number for ``prefix``."""
        pass

    @abstractmethod
    async def create(self, order: PurchaseOrder) -> PurchaseOrder:
        """Create order with items. Raises DuplicateIdentifierError."""
        pass

    @abstractmethod
    async def get(self, order_id: int) -> PurchaseOrder | None:
        """Get order by ID with items."""
        pass

    @abstractmethod
    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        auto_generated: bool | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        """List orders, newest first."""
        pass

    @abstractmethod
    async def save_transition(
        self, order: PurchaseOrder, expected: PurchaseOrderStatus
    ) -> bool:
        """Persist status and lifecycle fields if still in ``expected``."""
        pass

    @abstractmethod
    async def has_open_auto_order(self, product_id: int) -> bool:
        """True if a pending or ordered auto-generated order covers the product."""
        pass


class IProductionOrderStore(ABC):
    """Interface for production order persistence."""

    @abstractmethod
    async def next_number(self, prefix: str) -> str:
        """Next free order number for ``prefix``."""
        pass

    @abstractmethod
    async def create(self, order: ProductionOrder) -> ProductionOrder:
        """Create order with materials. Raises DuplicateIdentifierError."""
        pass

    @abstractmethod
    async def get(self, order_id: int) -> ProductionOrder | None:
        """Get order by ID with materials."""
        pass

    @abstractmethod
    async def list_orders(
        self,
        status: ProductionOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ProductionOrder]:
        """List orders, newest first."""
        pass

    @abstractmethod
    async def save_transition(
        self, order: ProductionOrder, expected: ProductionOrderStatus
    ) -> bool:
        """Persist status and lifecycle fields if still in ``expected``."""
        pass
