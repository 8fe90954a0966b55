"""Tests for the production order service."""

import pytest

from src.core.entities.inventory import MovementReference
from src.core.entities.product import ProductCategory
from src.core.entities.production_order import ProductionMaterial, ProductionOrderStatus
from src.core.exceptions import (
    InsufficientMaterialError,
    InvalidStateError,
    ProductNotFoundError,
    ValidationError,
)


@pytest.fixture
async def bom(make_product):
    """A finished good with two raw materials."""
    finished = await make_product(
        category=ProductCategory.FINISHED_GOOD, current_stock=0, supplier_id=None
    )
    steel = await make_product(current_stock=10, min_stock_level=0, unit_cost=2)
    paint = await make_product(current_stock=50, min_stock_level=0, unit_cost=1)
    return finished, steel, paint


class TestProductionOrders:
    async def test_create_defaults_material_cost(self, quiet_services, bom):
        finished, steel, _ = bom

        order = await quiet_services.production.create(
            finished.id, 5, [ProductionMaterial(product_id=steel.id, quantity=4)]
        )

        assert order.status == ProductionOrderStatus.PENDING
        assert order.order_number == "MO0001"
        assert order.materials[0].unit_cost == 2
        assert order.material_cost == 8.0

    async def test_create_requires_materials(self, quiet_services, bom):
        with pytest.raises(ValidationError):
            await quiet_services.production.create(bom[0].id, 5, [])

    async def test_create_unknown_material(self, quiet_services, bom):
        with pytest.raises(ProductNotFoundError):
            await quiet_services.production.create(
                bom[0].id, 5, [ProductionMaterial(product_id=999, quantity=1)]
            )

    async def test_start_consumes_materials(self, quiet_services, bom):
        finished, steel, paint = bom
        order = await quiet_services.production.create(
            finished.id,
            5,
            [
                ProductionMaterial(product_id=steel.id, quantity=4),
                ProductionMaterial(product_id=paint.id, quantity=10),
            ],
        )

        started = await quiet_services.production.start(order.id)

        assert started.status == ProductionOrderStatus.IN_PROGRESS
        assert started.start_date is not None
        assert (await quiet_services.ledger.get_product(steel.id)).current_stock == 6
        assert (await quiet_services.ledger.get_product(paint.id)).current_stock == 40

    async def test_material_shortfall_consumes_nothing(self, quiet_services, bom, notifier):
        finished, steel, paint = bom
        order = await quiet_services.production.create(
            finished.id,
            1,
            [
                ProductionMaterial(product_id=paint.id, quantity=10),
                ProductionMaterial(product_id=steel.id, quantity=20),
            ],
        )

        with pytest.raises(InsufficientMaterialError) as exc:
            await quiet_services.production.start(order.id)

        assert exc.value.details["required"] == 20
        assert exc.value.details["available"] == 10
        assert exc.value.details["product_id"] == steel.id
        assert (await quiet_services.production.get(order.id)).status == (
            ProductionOrderStatus.PENDING
        )
        assert (await quiet_services.ledger.get_product(paint.id)).current_stock == 50
        assert (
            await quiet_services.ledger.list_movements(reference=MovementReference.PRODUCTION)
            == []
        )
        notifier.notify.assert_awaited_once()

    async def test_complete_adds_finished_goods(self, quiet_services, bom):
        finished, steel, _ = bom
        order = await quiet_services.production.create(
            finished.id, 5, [ProductionMaterial(product_id=steel.id, quantity=4)]
        )
        await quiet_services.production.start(order.id)

        completed = await quiet_services.production.complete(order.id)

        assert completed.status == ProductionOrderStatus.COMPLETED
        assert completed.end_date is not None
        assert (await quiet_services.ledger.get_product(finished.id)).current_stock == 5

    async def test_complete_requires_start(self, quiet_services, bom):
        finished, steel, _ = bom
        order = await quiet_services.production.create(
            finished.id, 5, [ProductionMaterial(product_id=steel.id, quantity=4)]
        )
        with pytest.raises(InvalidStateError):
            await quiet_services.production.complete(order.id)

    async def test_cancel_pending_only(self, quiet_services, bom):
        finished, steel, _ = bom
        order = await quiet_services.production.create(
            finished.id, 5, [ProductionMaterial(product_id=steel.id, quantity=4)]
        )
        await quiet_services.production.start(order.id)

        with pytest.raises(InvalidStateError):
            await quiet_services.production.cancel(order.id)
