"""
Sales order state machine.

pending -> confirmed -> shipped -> delivered, or pending -> cancelled.
Confirmation is the only step that takes stock: every line is written
in one unit of work, so a single short line leaves all stock untouched.
"""

from dataclasses import dataclass
from datetime import datetime

from src.config import get_logger
from src.config.settings import LedgerSettings
from src.core.entities.common import Actor, utc_now
from src.core.entities.finance import Invoice, InvoiceKind
from src.core.entities.inventory import MovementDirection, MovementReference
from src.core.entities.order import OrderLine
from src.core.entities.product import Product, ProductCategory
from src.core.entities.production_order import ProductionOrder
from src.core.entities.sales_order import SalesOrder, SalesOrderStatus
from src.core.exceptions import (
    InsufficientStockError,
    OrderNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from src.core.interfaces.notifier import INotifier
from src.core.interfaces.unit_of_work import IUnitOfWork, IUnitOfWorkFactory
from src.core.services.alerts import send_alert
from src.core.services.financial_ledger import FinancialLedger
from src.core.services.order_workflow import assign_order_number, persist_transition
from src.core.services.production_orders import ProductionOrderService
from src.core.services.stock_ledger import StockLedger

logger = get_logger(__name__)


@dataclass
class SalesOrderResult:
    """Sales order with the documents created alongside it."""

    order: SalesOrder
    invoice: Invoice | None = None
    production_orders: list[ProductionOrder] | None = None


class SalesOrderService:
    """Creates sales orders and drives their transitions."""

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        ledger: StockLedger,
        production: ProductionOrderService,
        finance: FinancialLedger,
        settings: LedgerSettings | None = None,
        notifier: INotifier | None = None,
    ):
        self._uow = uow_factory
        self._ledger = ledger
        self._production = production
        self._finance = finance
        self._settings = settings or LedgerSettings()
        self._notifier = notifier

    async def create(
        self,
        customer_id: str,
        items: list[OrderLine],
        delivery_date: datetime | None = None,
        notes: str | None = None,
        order_number: str | None = None,
        actor: Actor | None = None,
    ) -> SalesOrderResult:
        """
        Create a pending order and issue its sales invoice.

        Availability is checked per line but nothing is reserved; stock
        is only taken on confirmation.
        """
        if not items:
            raise ValidationError("items", "at least one item is required")
        if not customer_id:
            raise ValidationError("customer_id", "is required")

        try:
            async with self._uow() as uow:
                for item in items:
                    product = await self._product(uow, item.product_id)
                    if product.current_stock < item.quantity:
                        raise InsufficientStockError(
                            product_id=product.id,
                            required=item.quantity,
                            available=product.current_stock,
                            sku=product.sku,
                        )

                order = SalesOrder(
                    order_number=await assign_order_number(
                        uow.sales_orders, order_number, self._settings.sales_order_prefix
                    ),
                    customer_id=customer_id,
                    items=items,
                    delivery_date=delivery_date,
                    notes=notes,
                    sales_rep_id=actor.user_id if actor else None,
                )
                order.apply_tax(self._settings.tax_rate)
                order = await uow.sales_orders.create(order)

                invoice = await self._finance.issue_invoice(
                    uow,
                    kind=InvoiceKind.SALES,
                    order_id=order.id,
                    party_id=customer_id,
                    subtotal=order.subtotal,
                    tax=order.tax,
                    total=order.total,
                )
        except InsufficientStockError as e:
            await send_alert(self._notifier, e, operation="create_sales_order")
            raise

        logger.info(
            "sales_order_created",
            order_id=order.id,
            order_number=order.order_number,
            customer_id=customer_id,
            total=order.total,
        )
        return SalesOrderResult(order=order, invoice=invoice)

    async def confirm(self, order_id: int, actor: Actor | None = None) -> SalesOrderResult:
        """
        Confirm a pending order, taking every line out of stock.

        Finished goods left below the line quantity spawn a pending
        production order, linked back from the sales order.

        Raises:
            InvalidStateError: order is not pending
            InsufficientStockError: a line cannot be covered; no line is taken
        """
        spawned: list[ProductionOrder] = []
        try:
            async with self._uow() as uow:
                order = await self._load(uow, order_id)
                previous = order.transition_to(SalesOrderStatus.CONFIRMED)

                for product_id, quantity in order.quantities_by_product().items():
                    product = await self._product(uow, product_id)
                    if product.current_stock < quantity:
                        raise InsufficientStockError(
                            product_id=product_id,
                            required=quantity,
                            available=product.current_stock,
                            sku=product.sku,
                        )

                remaining: dict[int, Product] = {}
                for item in order.items:
                    result = await self._ledger.post_movement(
                        uow,
                        product_id=item.product_id,
                        direction=MovementDirection.OUT,
                        quantity=item.quantity,
                        reference=MovementReference.SALE,
                        reference_id=order.id,
                        actor=actor,
                        notes=(
                            f"Sales order {order.order_number} - "
                            f"{item.quantity:g} units sold"
                        ),
                    )
                    remaining[item.product_id] = result.product

                for item in order.items:
                    product = remaining[item.product_id]
                    if (
                        product.category == ProductCategory.FINISHED_GOOD
                        and product.current_stock < item.quantity
                    ):
                        spawned.append(
                            await self._production.create_for_sales_order(
                                uow,
                                product=product,
                                quantity=item.quantity,
                                sales_order_id=order.id,
                                sales_order_number=order.order_number,
                            )
                        )

                # One back-reference per sales order; the latest spawn wins
                if spawned:
                    order.production_order_id = spawned[-1].id
                await persist_transition(uow.sales_orders, order, previous)
        except InsufficientStockError as e:
            await send_alert(
                self._notifier, e, operation="confirm_sales_order", order_id=order_id
            )
            raise

        logger.info(
            "sales_order_confirmed",
            order_id=order.id,
            order_number=order.order_number,
            lines=len(order.items),
            production_orders=[p.order_number for p in spawned],
        )
        return SalesOrderResult(order=order, production_orders=spawned)

    async def ship(self, order_id: int) -> SalesOrder:
        async with self._uow() as uow:
            order = await self._load(uow, order_id)
            previous = order.transition_to(SalesOrderStatus.SHIPPED)
            await persist_transition(uow.sales_orders, order, previous)

        logger.info("sales_order_shipped", order_id=order.id, order_number=order.order_number)
        return order

    async def deliver(self, order_id: int) -> SalesOrder:
        async with self._uow() as uow:
            order = await self._load(uow, order_id)
            previous = order.transition_to(SalesOrderStatus.DELIVERED)
            order.delivery_date = utc_now()
            await persist_transition(uow.sales_orders, order, previous)

        logger.info("sales_order_delivered", order_id=order.id, order_number=order.order_number)
        return order

    async def cancel(self, order_id: int) -> SalesOrder:
        """Cancel a pending order and its unpaid invoice."""
        async with self._uow() as uow:
            order = await self._load(uow, order_id)
            previous = order.transition_to(SalesOrderStatus.CANCELLED)
            await persist_transition(uow.sales_orders, order, previous)
            await self._finance.cancel_order_invoice(uow, InvoiceKind.SALES, order.id)

        logger.info("sales_order_cancelled", order_id=order.id, order_number=order.order_number)
        return order

    async def get(self, order_id: int) -> SalesOrder:
        async with self._uow(read_only=True) as uow:
            return await self._load(uow, order_id)

    async def list_orders(
        self,
        status: SalesOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SalesOrder]:
        async with self._uow(read_only=True) as uow:
            return await uow.sales_orders.list_orders(status=status, limit=limit, offset=offset)

    @staticmethod
    async def _load(uow: IUnitOfWork, order_id: int) -> SalesOrder:
        order = await uow.sales_orders.get(order_id)
        if order is None:
            raise OrderNotFoundError("Sales order", order_id)
        return order

    @staticmethod
    async def _product(uow: IUnitOfWork, product_id: int) -> Product:
        product = await uow.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product
