"""
Production order state machine.

pending -> in-progress -> completed, or pending -> cancelled. Starting
consumes every material, completing adds the finished product.
"""

from src.config import get_logger
from src.config.settings import LedgerSettings
from src.core.entities.common import Actor, utc_now
from src.core.entities.inventory import MovementDirection, MovementReference
from src.core.entities.product import Product
from src.core.entities.production_order import (
    ProductionMaterial,
    ProductionOrder,
    ProductionOrderStatus,
)
from src.core.exceptions import (
    InsufficientMaterialError,
    OrderNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from src.core.interfaces.notifier import INotifier
from src.core.interfaces.unit_of_work import IUnitOfWork, IUnitOfWorkFactory
from src.core.services.alerts import send_alert
from src.core.services.order_workflow import assign_order_number, persist_transition
from src.core.services.stock_ledger import StockLedger

logger = get_logger(__name__)


class ProductionOrderService:
    """Creates production orders and drives their transitions."""

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        ledger: StockLedger,
        settings: LedgerSettings | None = None,
        notifier: INotifier | None = None,
    ):
        self._uow = uow_factory
        self._ledger = ledger
        self._settings = settings or LedgerSettings()
        self._notifier = notifier

    async def create(
        self,
        product_id: int,
        quantity: float,
        materials: list[ProductionMaterial],
        sales_order_id: int | None = None,
        order_number: str | None = None,
        notes: str | None = None,
    ) -> ProductionOrder:
        """Create a pending production order with its bill of materials."""
        if not materials:
            raise ValidationError("materials", "at least one material is required")
        async with self._uow() as uow:
            return await self.create_in(
                uow,
                product_id=product_id,
                quantity=quantity,
                materials=materials,
                sales_order_id=sales_order_id,
                order_number=order_number,
                notes=notes,
            )

    async def create_in(
        self,
        uow: IUnitOfWork,
        product_id: int,
        quantity: float,
        materials: list[ProductionMaterial],
        sales_order_id: int | None = None,
        order_number: str | None = None,
        notes: str | None = None,
    ) -> ProductionOrder:
        """Create a pending production order inside the caller's unit of work."""
        if quantity is None or quantity <= 0:
            raise ValidationError("quantity", "must be greater than 0", quantity)
        if await uow.products.get(product_id) is None:
            raise ProductNotFoundError(product_id)

        for material in materials:
            material_product = await uow.products.get(material.product_id)
            if material_product is None:
                raise ProductNotFoundError(material.product_id)
            if material.unit_cost is None:
                material.unit_cost = material_product.unit_cost

        order = ProductionOrder(
            order_number=await assign_order_number(
                uow.production_orders, order_number, self._settings.production_order_prefix
            ),
            product_id=product_id,
            quantity=quantity,
            materials=materials,
            sales_order_id=sales_order_id,
            notes=notes,
        )
        order = await uow.production_orders.create(order)
        logger.info(
            "production_order_created",
            order_id=order.id,
            order_number=order.order_number,
            product_id=product_id,
            quantity=quantity,
            sales_order_id=sales_order_id,
        )
        return order

    async def create_for_sales_order(
        self,
        uow: IUnitOfWork,
        product: Product,
        quantity: float,
        sales_order_id: int,
        sales_order_number: str | None = None,
    ) -> ProductionOrder:
        """Spawn a pending order to rebuild stock taken by a sales order."""
        return await self.create_in(
            uow,
            product_id=product.id,
            quantity=quantity,
            materials=[],
            sales_order_id=sales_order_id,
            notes=f"Production for sales order {sales_order_number or sales_order_id}",
        )

    async def start(self, order_id: int, actor: Actor | None = None) -> ProductionOrder:
        """
        Start production, consuming all materials.

        Materials are checked in order and the first shortfall is reported;
        nothing is consumed unless every material is available.

        Raises:
            InvalidStateError: order is not pending
            InsufficientMaterialError: a material is short
        """
        try:
            async with self._uow() as uow:
                order = await self._load(uow, order_id)
                previous = order.transition_to(ProductionOrderStatus.IN_PROGRESS)

                required: dict[int, float] = {}
                for material in order.materials:
                    required[material.product_id] = (
                        required.get(material.product_id, 0.0) + material.quantity
                    )
                    product = await uow.products.get(material.product_id)
                    available = product.current_stock if product else 0.0
                    if available < required[material.product_id]:
                        raise InsufficientMaterialError(
                            product_id=material.product_id,
                            required=required[material.product_id],
                            available=available,
                            sku=product.sku if product else None,
                            order_id=order.id,
                        )

                for material in order.materials:
                    await self._ledger.post_movement(
                        uow,
                        product_id=material.product_id,
                        direction=MovementDirection.OUT,
                        quantity=material.quantity,
                        reference=MovementReference.PRODUCTION,
                        unit_cost=material.unit_cost,
                        reference_id=order.id,
                        actor=actor,
                        notes=f"Material for production order {order.order_number}",
                    )

                order.start_date = utc_now()
                await persist_transition(uow.production_orders, order, previous)
        except InsufficientMaterialError as e:
            await send_alert(
                self._notifier, e, operation="start_production", order_id=order_id
            )
            raise

        logger.info(
            "production_started",
            order_id=order.id,
            order_number=order.order_number,
            materials=len(order.materials),
        )
        return order

    async def complete(self, order_id: int, actor: Actor | None = None) -> ProductionOrder:
        """Finish production and add the finished quantity to stock."""
        async with self._uow() as uow:
            order = await self._load(uow, order_id)
            previous = order.transition_to(ProductionOrderStatus.COMPLETED)

            await self._ledger.post_movement(
                uow,
                product_id=order.product_id,
                direction=MovementDirection.IN,
                quantity=order.quantity,
                reference=MovementReference.PRODUCTION,
                reference_id=order.id,
                actor=actor,
                notes=f"Production order {order.order_number} completed",
            )

            order.end_date = utc_now()
            await persist_transition(uow.production_orders, order, previous)

        logger.info(
            "production_completed",
            order_id=order.id,
            order_number=order.order_number,
            quantity=order.quantity,
        )
        return order

    async def cancel(self, order_id: int) -> ProductionOrder:
        async with self._uow() as uow:
            order = await self._load(uow, order_id)
            previous = order.transition_to(ProductionOrderStatus.CANCELLED)
            await persist_transition(uow.production_orders, order, previous)

        logger.info("production_cancelled", order_id=order.id, order_number=order.order_number)
        return order

    async def get(self, order_id: int) -> ProductionOrder:
        async with self._uow(read_only=True) as uow:
            return await self._load(uow, order_id)

    async def list_orders(
        self,
        status: ProductionOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ProductionOrder]:
        async with self._uow(read_only=True) as uow:
            return await uow.production_orders.list_orders(
                status=status, limit=limit, offset=offset
            )

    @staticmethod
    async def _load(uow: IUnitOfWork, order_id: int) -> ProductionOrder:
        order = await uow.production_orders.get(order_id)
        if order is None:
            raise OrderNotFoundError("Production order", order_id)
        return order
