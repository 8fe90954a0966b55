"""
Purchase order state machine.

pending -> ordered -> received, or pending -> cancelled. Receipt is the
only step that moves stock.
"""

from dataclasses import dataclass
from datetime import date

from src.config import get_logger
from src.config.settings import LedgerSettings
from src.core.entities.common import Actor, utc_now
from src.core.entities.finance import Invoice, InvoiceKind
from src.core.entities.inventory import MovementDirection, MovementReference
from src.core.entities.order import OrderLine
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderSource,
    PurchaseOrderStatus,
)
from src.core.exceptions import OrderNotFoundError, ProductNotFoundError, ValidationError
from src.core.interfaces.unit_of_work import IUnitOfWork, IUnitOfWorkFactory
from src.core.services.financial_ledger import FinancialLedger
from src.core.services.order_workflow import assign_order_number, persist_transition
from src.core.services.stock_ledger import StockLedger

logger = get_logger(__name__)


@dataclass
class PurchaseOrderResult:
    order: PurchaseOrder
    invoice: Invoice | None = None


class PurchaseOrderService:
    """Creates purchase orders and drives their transitions."""

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        ledger: StockLedger,
        finance: FinancialLedger,
        settings: LedgerSettings | None = None,
    ):
        self._uow = uow_factory
        self._ledger = ledger
        self._finance = finance
        self._settings = settings or LedgerSettings()

    async def create(
        self,
        supplier_id: str,
        items: list[OrderLine],
        expected_delivery: date | None = None,
        notes: str | None = None,
        order_number: str | None = None,
        actor: Actor | None = None,
    ) -> PurchaseOrderResult:
        """Create a manual pending purchase order and its purchase invoice."""
        async with self._uow() as uow:
            return await self.create_in(
                uow,
                supplier_id=supplier_id,
                items=items,
                expected_delivery=expected_delivery,
                notes=notes,
                order_number=order_number,
                actor=actor,
            )

    async def create_in(
        self,
        uow: IUnitOfWork,
        supplier_id: str,
        items: list[OrderLine],
        expected_delivery: date | None = None,
        notes: str | None = None,
        order_number: str | None = None,
        actor: Actor | None = None,
        auto_generated: bool = False,
        source: PurchaseOrderSource = PurchaseOrderSource.MANUAL,
    ) -> PurchaseOrderResult:
        """Create a pending purchase order inside the caller's unit of work."""
        if not items:
            raise ValidationError("items", "at least one item is required")
        if not supplier_id:
            raise ValidationError("supplier_id", "is required")
        for item in items:
            if await uow.products.get(item.product_id) is None:
                raise ProductNotFoundError(item.product_id)

        order = PurchaseOrder(
            order_number=await assign_order_number(
                uow.purchase_orders, order_number, self._settings.purchase_order_prefix
            ),
            supplier_id=supplier_id,
            items=items,
            expected_delivery=expected_delivery,
            notes=notes,
            auto_generated=auto_generated,
            source=source,
            created_by=actor.user_id if actor else None,
        )
        order.apply_tax(self._settings.tax_rate)
        order = await uow.purchase_orders.create(order)

        invoice = await self._finance.issue_invoice(
            uow,
            kind=InvoiceKind.PURCHASE,
            order_id=order.id,
            party_id=supplier_id,
            subtotal=order.subtotal,
            tax=order.tax,
            total=order.total,
        )

        logger.info(
            "purchase_order_created",
            order_id=order.id,
            order_number=order.order_number,
            supplier_id=supplier_id,
            auto_generated=auto_generated,
            total=order.total,
        )
        return PurchaseOrderResult(order=order, invoice=invoice)

    async def order(self, order_id: int) -> PurchaseOrder:
        """Mark a pending order as placed with the supplier."""
        async with self._uow() as uow:
            order = await self._load(uow, order_id)
            previous = order.transition_to(PurchaseOrderStatus.ORDERED)
            await persist_transition(uow.purchase_orders, order, previous)

        logger.info("purchase_order_placed", order_id=order.id, order_number=order.order_number)
        return order

    async def receive(self, order_id: int, actor: Actor | None = None) -> PurchaseOrder:
        """
        Receive an ordered purchase, adding every line to stock.

        Each line is booked at its purchase price, which becomes the
        product's unit cost.
        """
        async with self._uow() as uow:
            order = await self._load(uow, order_id)
            previous = order.transition_to(PurchaseOrderStatus.RECEIVED)

            for item in order.items:
                await self._ledger.post_movement(
                    uow,
                    product_id=item.product_id,
                    direction=MovementDirection.IN,
                    quantity=item.quantity,
                    reference=MovementReference.PURCHASE,
                    unit_cost=item.unit_price,
                    reference_id=order.id,
                    actor=actor,
                    notes=f"Purchase order {order.order_number} received",
                )

            order.received_date = utc_now()
            await persist_transition(uow.purchase_orders, order, previous)

        logger.info(
            "purchase_order_received",
            order_id=order.id,
            order_number=order.order_number,
            lines=len(order.items),
        )
        return order

    async def cancel(self, order_id: int) -> PurchaseOrder:
        """Cancel a pending order and its unpaid invoice."""
        async with self._uow() as uow:
            order = await self._load(uow, order_id)
            previous = order.transition_to(PurchaseOrderStatus.CANCELLED)
            await persist_transition(uow.purchase_orders, order, previous)
            await self._finance.cancel_order_invoice(uow, InvoiceKind.PURCHASE, order.id)

        logger.info("purchase_order_cancelled", order_id=order.id, order_number=order.order_number)
        return order

    async def get(self, order_id: int) -> PurchaseOrder:
        async with self._uow(read_only=True) as uow:
            return await self._load(uow, order_id)

    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        auto_generated: bool | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        async with self._uow(read_only=True) as uow:
            return await uow.purchase_orders.list_orders(
                status=status, auto_generated=auto_generated, limit=limit, offset=offset
            )

    @staticmethod
    async def _load(uow: IUnitOfWork, order_id: int) -> PurchaseOrder:
        order = await uow.purchase_orders.get(order_id)
        if order is None:
            raise OrderNotFoundError("Purchase order", order_id)
        return order
