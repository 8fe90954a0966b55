"""Tests for the SQLite unit of work and its stores."""

from unittest.mock import AsyncMock

import pytest

from src.core.entities.events import ReplenishmentRequested
from src.core.entities.finance import BankAccount
from src.core.entities.inventory import MovementDirection, MovementReference, StockMovement
from src.core.entities.order import OrderLine
from src.core.entities.product import Product, ProductCategory
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderSource,
    PurchaseOrderStatus,
)
from src.core.entities.sales_order import SalesOrder, SalesOrderStatus
from src.core.exceptions import DuplicateIdentifierError
from src.core.interfaces.unit_of_work import IEventPublisher
from src.infrastructure.storage.sqlite import ConnectionPool, SQLiteUnitOfWorkFactory


@pytest.fixture
def publisher() -> AsyncMock:
    return AsyncMock(spec=IEventPublisher)


@pytest.fixture
def uow_factory(pool: ConnectionPool, publisher: AsyncMock) -> SQLiteUnitOfWorkFactory:
    return SQLiteUnitOfWorkFactory(pool, publisher)


def _product(sku: str = "RM-1", **overrides) -> Product:
    fields = {
        "sku": sku,
        "name": "Resin",
        "category": ProductCategory.RAW_MATERIAL,
        "current_stock": 20,
        "min_stock_level": 5,
        "unit_cost": 3.0,
        "supplier_id": "S",
    }
    fields.update(overrides)
    return Product(**fields)


def _event(product_id: int) -> ReplenishmentRequested:
    return ReplenishmentRequested(
        product_id=product_id, sku="RM-1", current_stock=1, min_stock_level=5
    )


class TestUnitOfWork:
    async def test_commit_persists_and_publishes(self, uow_factory, publisher):
        async with uow_factory() as uow:
            product = await uow.products.create(_product())
            uow.record_event(_event(product.id))

        async with uow_factory(read_only=True) as uow:
            assert await uow.products.get(product.id) is not None

        publisher.publish.assert_awaited_once()
        (events,), _ = publisher.publish.call_args
        assert events[0].product_id == product.id

    async def test_rollback_discards_writes_and_events(self, uow_factory, publisher):
        with pytest.raises(RuntimeError):
            async with uow_factory() as uow:
                product = await uow.products.create(_product())
                uow.record_event(_event(product.id))
                raise RuntimeError("abort")

        async with uow_factory(read_only=True) as uow:
            assert await uow.products.get_by_sku("RM-1") is None
        publisher.publish.assert_not_awaited()

    async def test_connection_returns_to_pool(self, uow_factory, pool):
        for _ in range(pool.pool_size * 2):
            async with uow_factory(read_only=True) as uow:
                await uow.products.list_products()

    async def test_pool_ping(self, pool):
        assert await pool.ping() >= 0


class TestProductStore:
    async def test_duplicate_sku(self, uow_factory):
        async with uow_factory() as uow:
            await uow.products.create(_product())
        with pytest.raises(DuplicateIdentifierError):
            async with uow_factory() as uow:
                await uow.products.create(_product())

    async def test_guarded_decrease(self, uow_factory):
        async with uow_factory() as uow:
            product = await uow.products.create(_product(current_stock=10))
            assert await uow.products.apply_stock_delta(product.id, -11) is None
            updated = await uow.products.apply_stock_delta(product.id, -10)
            assert updated.current_stock == 0

    async def test_increase_sets_unit_cost(self, uow_factory):
        async with uow_factory() as uow:
            product = await uow.products.create(_product())
            updated = await uow.products.apply_stock_delta(product.id, 5, unit_cost=4.5)
        assert updated.current_stock == 25
        assert updated.unit_cost == 4.5

    async def test_replenishment_candidates(self, uow_factory):
        async with uow_factory() as uow:
            low = await uow.products.create(_product("LOW", current_stock=5))
            await uow.products.create(_product("OK", current_stock=50))
            await uow.products.create(_product("NOSUP", current_stock=0, supplier_id=None))
            await uow.products.create(
                _product("FG", current_stock=0, category=ProductCategory.FINISHED_GOOD)
            )
            candidates = await uow.products.list_replenishment_candidates()
        assert [p.id for p in candidates] == [low.id]

    async def test_valuation(self, uow_factory):
        async with uow_factory() as uow:
            await uow.products.create(_product("A", current_stock=10, unit_cost=2))
            await uow.products.create(_product("B", current_stock=5, unit_cost=4))
            valuation = await uow.products.valuation()
        assert valuation.total_value == 40.0
        assert valuation.product_count == 2


class TestMovementStore:
    async def test_sum_deltas(self, uow_factory):
        async with uow_factory() as uow:
            product = await uow.products.create(_product())
            for direction, delta in (
                (MovementDirection.IN, 10.0),
                (MovementDirection.OUT, -4.0),
            ):
                await uow.movements.add(
                    StockMovement(
                        product_id=product.id,
                        direction=direction,
                        quantity=abs(delta),
                        delta=delta,
                        reference=MovementReference.ADJUSTMENT,
                    )
                )
            assert await uow.movements.sum_deltas(product.id) == 6.0
            assert (await uow.movements.ledger_totals())[product.id] == 6.0


class TestOrderStores:
    async def test_sales_numbering_and_guarded_transition(self, uow_factory):
        async with uow_factory() as uow:
            product = await uow.products.create(_product())
            number = await uow.sales_orders.next_number("SO")
            order = await uow.sales_orders.create(
                SalesOrder(
                    order_number=number,
                    customer_id="C1",
                    items=[OrderLine(product_id=product.id, quantity=1, unit_price=2)],
                )
            )
            assert number == "SO0001"
            assert await uow.sales_orders.next_number("SO") == "SO0002"

            order.transition_to(SalesOrderStatus.CONFIRMED)
            assert await uow.sales_orders.save_transition(order, SalesOrderStatus.PENDING)
            # Stale expectation no longer matches
            assert not await uow.sales_orders.save_transition(order, SalesOrderStatus.PENDING)

            loaded = await uow.sales_orders.get(order.id)
        assert loaded.status == SalesOrderStatus.CONFIRMED
        assert loaded.items[0].line_total == 2.0

    async def test_free_form_number_does_not_break_sequence(self, uow_factory):
        async with uow_factory() as uow:
            product = await uow.products.create(_product())
            await uow.sales_orders.create(
                SalesOrder(
                    order_number="SO-custom",
                    customer_id="C1",
                    items=[OrderLine(product_id=product.id, quantity=1, unit_price=2)],
                )
            )
            assert await uow.sales_orders.next_number("SO") == "SO0001"

    async def test_open_auto_order_lookup(self, uow_factory):
        async with uow_factory() as uow:
            product = await uow.products.create(_product())
            order = await uow.purchase_orders.create(
                PurchaseOrder(
                    order_number="PO0001",
                    supplier_id="S",
                    items=[OrderLine(product_id=product.id, quantity=5, unit_price=3)],
                    auto_generated=True,
                    source=PurchaseOrderSource.INVENTORY,
                )
            )
            assert await uow.purchase_orders.has_open_auto_order(product.id)

            order.transition_to(PurchaseOrderStatus.CANCELLED)
            await uow.purchase_orders.save_transition(order, PurchaseOrderStatus.PENDING)
            assert not await uow.purchase_orders.has_open_auto_order(product.id)


class TestBankAccountStore:
    async def test_balance_never_negative(self, uow_factory):
        async with uow_factory() as uow:
            account = await uow.bank_accounts.create(BankAccount(name="Main", balance=100))
            assert await uow.bank_accounts.apply_balance_delta(account.id, -150) is None
            updated = await uow.bank_accounts.apply_balance_delta(account.id, -100)
        assert updated.balance == 0
