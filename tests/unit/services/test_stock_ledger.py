"""Tests for the stock ledger service."""

import asyncio

import pytest

from src.core.entities.inventory import MovementDirection, MovementReference
from src.core.entities.order import OrderLine
from src.core.entities.product import Product, ProductCategory
from src.core.entities.purchase_order import PurchaseOrderSource
from src.core.exceptions import (
    InsufficientStockError,
    ProductNotFoundError,
    ResourceInUseError,
    ValidationError,
)


class TestMovements:
    async def test_out_movement_decrements(self, quiet_services, make_product):
        product = await make_product(current_stock=30)

        result = await quiet_services.ledger.apply_movement(
            product.id, MovementDirection.OUT, 12, reference=MovementReference.SALE
        )

        assert result.product.current_stock == 18
        assert result.movement.delta == -12
        assert result.movement.unit_cost == product.unit_cost

    async def test_in_movement_updates_unit_cost(self, quiet_services, make_product):
        product = await make_product(current_stock=0, unit_cost=5)

        result = await quiet_services.ledger.apply_movement(
            product.id,
            MovementDirection.IN,
            10,
            reference=MovementReference.PURCHASE,
            unit_cost=7.5,
        )

        assert result.product.current_stock == 10
        assert result.product.unit_cost == 7.5
        assert result.movement.total_cost == 75.0

    async def test_overdraw_rejected_and_alerted(self, quiet_services, make_product, notifier):
        product = await make_product(current_stock=5)

        with pytest.raises(InsufficientStockError) as exc:
            await quiet_services.ledger.apply_movement(
                product.id, MovementDirection.OUT, 6, reference=MovementReference.SALE
            )

        assert exc.value.details["available"] == 5
        assert (await quiet_services.ledger.get_product(product.id)).current_stock == 5
        notifier.notify.assert_awaited_once()

    @pytest.mark.parametrize("quantity", [0, -3])
    async def test_quantity_must_be_positive(self, quiet_services, make_product, quantity):
        product = await make_product()
        with pytest.raises(ValidationError):
            await quiet_services.ledger.apply_movement(
                product.id, MovementDirection.IN, quantity, reference=MovementReference.PURCHASE
            )

    async def test_unknown_product(self, quiet_services):
        with pytest.raises(ProductNotFoundError):
            await quiet_services.ledger.apply_movement(
                999, MovementDirection.IN, 1, reference=MovementReference.PURCHASE
            )

    async def test_movement_log_is_filterable(self, quiet_services, make_product):
        product = await make_product(current_stock=10)
        await quiet_services.ledger.adjust_stock(product.id, MovementDirection.OUT, 3)

        movements = await quiet_services.ledger.list_movements(product_id=product.id)
        assert sorted(m.delta for m in movements) == [-3, 10]
        adjustments = await quiet_services.ledger.list_movements(
            reference=MovementReference.ADJUSTMENT, product_id=product.id
        )
        assert len(adjustments) == 2


class TestAdjustAndCount:
    async def test_adjust_rejects_adjustment_direction(self, quiet_services, make_product):
        product = await make_product()
        with pytest.raises(ValidationError):
            await quiet_services.ledger.adjust_stock(
                product.id, MovementDirection.ADJUSTMENT, 1
            )

    async def test_count_writes_difference(self, quiet_services, make_product):
        product = await make_product(current_stock=40)

        result = await quiet_services.ledger.count_stock(product.id, 35, notes="cycle count")

        assert result.product.current_stock == 35
        assert result.movement.direction == MovementDirection.ADJUSTMENT
        assert result.movement.delta == -5
        assert "cycle count" in result.movement.notes

    async def test_matching_count_writes_nothing(self, quiet_services, make_product):
        product = await make_product(current_stock=40)

        result = await quiet_services.ledger.count_stock(product.id, 40)

        assert result.movement is None
        assert len(await quiet_services.ledger.list_movements(product_id=product.id)) == 1


class TestProducts:
    async def test_opening_stock_is_a_movement(self, quiet_services, make_product):
        product = await make_product(current_stock=25)

        assert product.current_stock == 25
        assert await quiet_services.ledger.recompute_stock(product.id) == 25

    async def test_create_leaves_caller_model_untouched(self, quiet_services):
        draft = Product(
            sku="BOLT-1", name="Bolt", category=ProductCategory.COMPONENT, current_stock=25
        )

        created = await quiet_services.ledger.create_product(draft)

        assert created.current_stock == 25
        assert draft.current_stock == 25
        assert draft.id is None
        assert created.id is not None

    async def test_update_cannot_touch_stock(self, quiet_services, make_product):
        product = await make_product()
        with pytest.raises(ValidationError):
            await quiet_services.ledger.update_product(product.id, {"current_stock": 1})

    async def test_update_validates_fields(self, quiet_services, make_product):
        product = await make_product()
        with pytest.raises(ValidationError):
            await quiet_services.ledger.update_product(product.id, {"unit_cost": -1})

        updated = await quiet_services.ledger.update_product(product.id, {"name": "Renamed"})
        assert updated.name == "Renamed"

    async def test_delete_refused_while_referenced(self, quiet_services, make_product):
        product = await make_product()
        await quiet_services.purchases.create(
            "SUP-1", [OrderLine(product_id=product.id, quantity=1, unit_price=1)]
        )

        with pytest.raises(ResourceInUseError):
            await quiet_services.ledger.delete_product(product.id)

    async def test_delete_deactivates(self, quiet_services, make_product):
        product = await make_product()

        await quiet_services.ledger.delete_product(product.id)

        assert (await quiet_services.ledger.get_product(product.id)).is_active is False
        assert await quiet_services.ledger.list_products() == []

    async def test_valuation(self, quiet_services, make_product):
        await make_product(current_stock=10, unit_cost=2)
        await make_product(current_stock=4, unit_cost=5)

        valuation = await quiet_services.ledger.stock_value()

        assert valuation.total_value == 40.0
        assert valuation.average_value == 20.0


class TestReplenishmentTrigger:
    async def test_decrease_below_minimum_queues_scan(self, services, make_product):
        product = await make_product(current_stock=20, min_stock_level=10, max_stock_level=100)

        await services.ledger.adjust_stock(product.id, MovementDirection.OUT, 15)
        await services.dispatcher.drain()

        orders = await services.purchases.list_orders(auto_generated=True)
        assert len(orders) == 1
        assert orders[0].source == PurchaseOrderSource.INVENTORY
        assert orders[0].items[0].quantity == 95

    async def test_finished_goods_do_not_trigger(self, services, make_product):
        product = await make_product(
            category=ProductCategory.FINISHED_GOOD, current_stock=20, min_stock_level=10
        )

        await services.ledger.adjust_stock(product.id, MovementDirection.OUT, 15)
        await services.dispatcher.drain()

        assert await services.purchases.list_orders(auto_generated=True) == []

    async def test_failed_movement_publishes_nothing(self, services, make_product):
        product = await make_product(current_stock=20, min_stock_level=10)

        with pytest.raises(InsufficientStockError):
            await services.ledger.adjust_stock(product.id, MovementDirection.OUT, 25)
        await services.dispatcher.drain()

        assert await services.purchases.list_orders() == []


class TestLedgerInvariant:
    async def test_concurrent_decrements_never_oversell(self, quiet_services, make_product):
        product = await make_product(current_stock=10, category=ProductCategory.COMPONENT)

        results = await asyncio.gather(
            *(
                quiet_services.ledger.apply_movement(
                    product.id, MovementDirection.OUT, 3, reference=MovementReference.SALE
                )
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(succeeded) == 3
        assert len(failed) == 2
        assert (await quiet_services.ledger.get_product(product.id)).current_stock == 1
        assert await quiet_services.ledger.verify_ledger() == []

    async def test_verify_ledger_reports_drift(self, quiet_services, make_product, pool):
        product = await make_product(current_stock=10)
        async with pool.acquire() as conn:
            await conn.execute(
                "UPDATE products SET current_stock = 12 WHERE id = ?", (product.id,)
            )

        discrepancies = await quiet_services.ledger.verify_ledger()

        assert len(discrepancies) == 1
        assert discrepancies[0].difference == 2
