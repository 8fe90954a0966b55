"""
Stock ledger service.

Owns current_stock for every product. Each stock change is one
conditional update of the product row plus one appended movement, inside
the caller's unit of work, so the movement log always sums to the live
stock figure.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.config import get_logger
from src.core.entities.common import SYSTEM_ACTOR, Actor, round_quantity
from src.core.entities.events import ReplenishmentRequested
from src.core.entities.inventory import (
    LedgerDiscrepancy,
    MovementDirection,
    MovementReference,
    StockMovement,
    StockValuation,
)
from src.core.entities.product import Product, ProductCategory
from src.core.exceptions import (
    InsufficientStockError,
    ProductNotFoundError,
    ResourceInUseError,
    ValidationError,
)
from src.core.interfaces.notifier import INotifier
from src.core.interfaces.unit_of_work import IUnitOfWork, IUnitOfWorkFactory
from src.core.services.alerts import send_alert

logger = get_logger(__name__)

UPDATABLE_PRODUCT_FIELDS = {
    "sku",
    "name",
    "description",
    "category",
    "unit",
    "min_stock_level",
    "max_stock_level",
    "unit_cost",
    "selling_price",
    "supplier_id",
    "is_active",
}


@dataclass
class MovementResult:
    """Product after a stock change and the movement that recorded it."""

    product: Product
    movement: StockMovement | None


class StockLedger:
    """Applies stock movements and answers stock questions."""

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        notifier: INotifier | None = None,
    ):
        self._uow = uow_factory
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    async def apply_movement(
        self,
        product_id: int,
        direction: MovementDirection,
        quantity: float,
        reference: MovementReference,
        unit_cost: float | None = None,
        reference_id: int | None = None,
        actor: Actor | None = None,
        notes: str | None = None,
        decrease: bool = False,
    ) -> MovementResult:
        """Apply one movement in its own unit of work."""
        try:
            async with self._uow() as uow:
                return await self.post_movement(
                    uow,
                    product_id=product_id,
                    direction=direction,
                    quantity=quantity,
                    reference=reference,
                    unit_cost=unit_cost,
                    reference_id=reference_id,
                    actor=actor,
                    notes=notes,
                    decrease=decrease,
                )
        except InsufficientStockError as e:
            await send_alert(
                self._notifier, e, operation="apply_movement", reference=reference.value
            )
            raise

    async def post_movement(
        self,
        uow: IUnitOfWork,
        product_id: int,
        direction: MovementDirection,
        quantity: float,
        reference: MovementReference,
        unit_cost: float | None = None,
        reference_id: int | None = None,
        actor: Actor | None = None,
        notes: str | None = None,
        decrease: bool = False,
    ) -> MovementResult:
        """
        Apply one movement inside the caller's unit of work.

        Args:
            uow: Open unit of work the change joins
            direction: in, out or adjustment
            quantity: Positive amount moved
            unit_cost: Cost per unit; defaults to the product's cost. An
                ``in`` movement makes it the product's new unit cost.
            decrease: For adjustments, whether stock goes down

        Raises:
            ValidationError: quantity is not positive
            ProductNotFoundError: unknown product
            InsufficientStockError: a decrease exceeds stock on hand
        """
        if quantity is None or quantity <= 0:
            raise ValidationError("quantity", "must be greater than 0", quantity)

        product = await uow.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        quantity = round_quantity(quantity)
        is_decrease = direction == MovementDirection.OUT or (
            direction == MovementDirection.ADJUSTMENT and decrease
        )
        delta = -quantity if is_decrease else quantity

        if is_decrease and product.current_stock < quantity:
            raise InsufficientStockError(
                product_id=product_id,
                required=quantity,
                available=product.current_stock,
                sku=product.sku,
            )

        cost = unit_cost if unit_cost is not None else product.unit_cost
        updated = await uow.products.apply_stock_delta(
            product_id,
            delta,
            unit_cost=cost if direction == MovementDirection.IN else None,
        )
        if updated is None:
            # Guarded update refused: stock moved since it was read
            current = await uow.products.get(product_id)
            raise InsufficientStockError(
                product_id=product_id,
                required=quantity,
                available=current.current_stock if current else 0.0,
                sku=product.sku,
            )

        movement = await uow.movements.add(
            StockMovement(
                product_id=product_id,
                direction=direction,
                quantity=quantity,
                delta=delta,
                unit_cost=cost,
                reference=reference,
                reference_id=reference_id,
                notes=notes,
                actor_id=(actor or SYSTEM_ACTOR).user_id,
            )
        )

        logger.info(
            "stock_movement_applied",
            product_id=product_id,
            sku=product.sku,
            direction=direction.value,
            reference=reference.value,
            reference_id=reference_id,
            delta=delta,
            stock=updated.current_stock,
        )

        if is_decrease:
            self.evaluate_trigger(uow, updated)

        return MovementResult(product=updated, movement=movement)

    def evaluate_trigger(self, uow: IUnitOfWork, product: Product) -> bool:
        """
        Queue a replenishment event if the product needs restocking.

        The event is published only if the unit of work commits.
        """
        if not product.needs_replenishment:
            return False
        uow.record_event(
            ReplenishmentRequested(
                product_id=product.id,
                sku=product.sku,
                current_stock=product.current_stock,
                min_stock_level=product.min_stock_level,
            )
        )
        logger.info(
            "replenishment_triggered",
            product_id=product.id,
            sku=product.sku,
            current_stock=product.current_stock,
            min_stock_level=product.min_stock_level,
        )
        return True

    async def adjust_stock(
        self,
        product_id: int,
        direction: MovementDirection,
        quantity: float,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> MovementResult:
        """Manual stock adjustment up (``in``) or down (``out``)."""
        if direction == MovementDirection.ADJUSTMENT:
            raise ValidationError("direction", "must be 'in' or 'out'", direction.value)
        return await self.apply_movement(
            product_id,
            MovementDirection.ADJUSTMENT,
            quantity,
            reference=MovementReference.ADJUSTMENT,
            actor=actor,
            notes=notes,
            decrease=direction == MovementDirection.OUT,
        )

    async def count_stock(
        self,
        product_id: int,
        counted_quantity: float,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> MovementResult:
        """
        Record a stock take.

        Applies a single adjustment for the difference between the counted
        and recorded quantity. Nothing is written when they agree.
        """
        if counted_quantity is None or counted_quantity < 0:
            raise ValidationError("counted_quantity", "must be 0 or more", counted_quantity)

        async with self._uow() as uow:
            product = await uow.products.get(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            difference = round_quantity(counted_quantity - product.current_stock)
            if difference == 0:
                logger.info("stock_count_matched", product_id=product_id)
                return MovementResult(product=product, movement=None)

            note = f"Stock count: counted {counted_quantity:g}, recorded {product.current_stock:g}"
            return await self.post_movement(
                uow,
                product_id=product_id,
                direction=MovementDirection.ADJUSTMENT,
                quantity=abs(difference),
                reference=MovementReference.ADJUSTMENT,
                actor=actor,
                notes=f"{note}. {notes}" if notes else note,
                decrease=difference < 0,
            )

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def create_product(self, product: Product, actor: Actor | None = None) -> Product:
        """
        Create a product.

        Opening stock is written as an adjustment movement so the
        movement log accounts for every unit from the first row.
        """
        opening_stock = round_quantity(product.current_stock)
        record = product.model_copy(update={"current_stock": 0.0})

        async with self._uow() as uow:
            created = await uow.products.create(record)
            if opening_stock > 0:
                result = await self.post_movement(
                    uow,
                    product_id=created.id,
                    direction=MovementDirection.ADJUSTMENT,
                    quantity=opening_stock,
                    reference=MovementReference.ADJUSTMENT,
                    actor=actor,
                    notes="Opening stock",
                )
                created = result.product
            self.evaluate_trigger(uow, created)

        logger.info(
            "product_registered",
            product_id=created.id,
            sku=created.sku,
            opening_stock=opening_stock,
        )
        return created

    async def update_product(self, product_id: int, changes: dict[str, Any]) -> Product:
        """Update non-stock fields, then re-evaluate the replenishment rule."""
        if "current_stock" in changes:
            raise ValidationError(
                "current_stock", "stock changes only through movements or counts"
            )
        unknown = set(changes) - UPDATABLE_PRODUCT_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(field, "field cannot be updated")

        async with self._uow() as uow:
            product = await uow.products.get(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            try:
                updated = Product.model_validate({**product.model_dump(), **changes})
            except PydanticValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(p) for p in first["loc"]) or "product"
                raise ValidationError(field, first["msg"]) from e

            updated = await uow.products.update(updated)
            self.evaluate_trigger(uow, updated)

        logger.info("product_changed", product_id=product_id, fields=sorted(changes))
        return updated

    async def get_product(self, product_id: int) -> Product:
        async with self._uow(read_only=True) as uow:
            product = await uow.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def list_products(
        self,
        category: ProductCategory | None = None,
        low_stock: bool = False,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Product]:
        async with self._uow(read_only=True) as uow:
            return await uow.products.list_products(
                category=category,
                low_stock=low_stock,
                include_inactive=include_inactive,
                limit=limit,
                offset=offset,
            )

    async def list_low_stock(self, limit: int = 100) -> list[Product]:
        """Active products at or below minimum, lowest stock first."""
        async with self._uow(read_only=True) as uow:
            return await uow.products.list_low_stock(limit=limit)

    async def list_movements(
        self,
        product_id: int | None = None,
        direction: MovementDirection | None = None,
        reference: MovementReference | None = None,
        reference_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        async with self._uow(read_only=True) as uow:
            return await uow.movements.list_movements(
                product_id=product_id,
                direction=direction,
                reference=reference,
                reference_id=reference_id,
                limit=limit,
                offset=offset,
            )

    async def current_value(self, product_id: int) -> float:
        product = await self.get_product(product_id)
        return product.current_value

    async def stock_value(self) -> StockValuation:
        async with self._uow(read_only=True) as uow:
            return await uow.products.valuation()

    async def delete_product(self, product_id: int) -> Product:
        """
        Retire a product.

        Refused while any order references it. Products are deactivated
        rather than removed so their movement history stays intact.
        """
        async with self._uow() as uow:
            product = await uow.products.get(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if await uow.products.is_referenced(product_id):
                raise ResourceInUseError(
                    "product", product_id, "it is used in orders or production"
                )
            await uow.products.deactivate(product_id)
            product.is_active = False

        logger.info("product_deactivated", product_id=product_id, sku=product.sku)
        return product

    # ------------------------------------------------------------------
    # Ledger audit
    # ------------------------------------------------------------------

    async def recompute_stock(self, product_id: int) -> float:
        """Stock according to the movement log alone."""
        async with self._uow(read_only=True) as uow:
            if await uow.products.get(product_id) is None:
                raise ProductNotFoundError(product_id)
            return await uow.movements.sum_deltas(product_id)

    async def verify_ledger(self, page_size: int = 500) -> list[LedgerDiscrepancy]:
        """Products whose live stock differs from the sum of their movements."""
        discrepancies = []
        async with self._uow(read_only=True) as uow:
            totals = await uow.movements.ledger_totals()
            offset = 0
            while True:
                products = await uow.products.list_products(
                    include_inactive=True, limit=page_size, offset=offset
                )
                for product in products:
                    ledger_stock = totals.get(product.id, 0.0)
                    if round_quantity(product.current_stock - ledger_stock) != 0:
                        discrepancies.append(
                            LedgerDiscrepancy(
                                product_id=product.id,
                                sku=product.sku,
                                current_stock=product.current_stock,
                                ledger_stock=ledger_stock,
                            )
                        )
                if len(products) < page_size:
                    break
                offset += page_size

        if discrepancies:
            logger.warning("ledger_discrepancies_found", count=len(discrepancies))
        else:
            logger.info("ledger_verified")
        return discrepancies
