"""Tests for the replenishment scheduler and dispatcher."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config.settings import SchedulerSettings
from src.core.entities.events import ReplenishmentRequested
from src.core.entities.inventory import MovementDirection
from src.core.entities.order import OrderLine
from src.core.entities.product import ProductCategory
from src.core.entities.purchase_order import PurchaseOrderSource, PurchaseOrderStatus
from src.core.entities.replenishment import ReplenishmentPriority, ReplenishmentReport
from src.core.exceptions import DatabaseError, SchedulerTimeoutError
from src.core.services.purchase_orders import PurchaseOrderService
from src.core.services.replenishment import ReplenishmentDispatcher, ReplenishmentScheduler


@pytest.fixture
async def low_raw(make_product):
    """Raw material 50 units under a minimum of 100."""
    return await make_product(
        current_stock=50, min_stock_level=100, max_stock_level=500, supplier_id="S"
    )


class TestScan:
    async def test_creates_auto_order_to_max(self, quiet_services, low_raw):
        report = await quiet_services.scheduler.generate_auto_purchase_orders()

        assert report.created_count == 1
        assert report.ok
        orders = await quiet_services.purchases.list_orders()
        assert len(orders) == 1
        order = orders[0]
        assert order.status == PurchaseOrderStatus.PENDING
        assert order.auto_generated is True
        assert order.source == PurchaseOrderSource.INVENTORY
        assert order.supplier_id == "S"
        assert order.items[0].product_id == low_raw.id
        assert order.items[0].quantity == 450
        assert order.items[0].unit_price == low_raw.unit_cost
        assert low_raw.sku in order.notes

    async def test_ignores_products_that_do_not_qualify(self, quiet_services, make_product):
        await make_product(current_stock=500, min_stock_level=100)
        await make_product(current_stock=0, min_stock_level=10, supplier_id=None)
        await make_product(
            category=ProductCategory.FINISHED_GOOD, current_stock=0, min_stock_level=10
        )

        report = await quiet_services.scheduler.generate_auto_purchase_orders()

        assert report.created == []
        assert await quiet_services.purchases.list_orders() == []

    async def test_open_auto_order_is_not_duplicated(self, quiet_services, low_raw):
        await quiet_services.scheduler.generate_auto_purchase_orders()
        report = await quiet_services.scheduler.generate_auto_purchase_orders()

        assert report.created == []
        assert report.skipped == [low_raw.id]
        assert len(await quiet_services.purchases.list_orders()) == 1

    async def test_cancelled_auto_order_allows_a_new_one(self, quiet_services, low_raw):
        await quiet_services.scheduler.generate_auto_purchase_orders()
        (order,) = await quiet_services.purchases.list_orders()
        await quiet_services.purchases.cancel(order.id)

        report = await quiet_services.scheduler.generate_auto_purchase_orders()

        assert report.created_count == 1

    async def test_dedupe_can_be_disabled(self, quiet_services, low_raw):
        scheduler = ReplenishmentScheduler(
            quiet_services.uow_factory,
            quiet_services.purchases,
            SchedulerSettings(dedupe_open_orders=False),
        )
        await scheduler.generate_auto_purchase_orders()
        await scheduler.generate_auto_purchase_orders()

        assert len(await quiet_services.purchases.list_orders(auto_generated=True)) == 2

    async def test_failures_are_reported_per_product(self, quiet_services, make_product):
        await make_product(current_stock=0, min_stock_level=10)
        await make_product(current_stock=1, min_stock_level=10)
        purchases = AsyncMock(spec=PurchaseOrderService)
        purchases.create_in.side_effect = DatabaseError("insert", "disk full")
        scheduler = ReplenishmentScheduler(quiet_services.uow_factory, purchases)

        report = await scheduler.generate_auto_purchase_orders()

        assert not report.ok
        assert len(report.failures) == 2
        assert report.failures[0].error_code == "DATABASE_ERROR"
        assert scheduler.last_report is report

    async def test_zero_refill_target_is_skipped(self, quiet_services, make_product):
        product = await make_product(current_stock=0, min_stock_level=0, max_stock_level=0)

        report = await quiet_services.scheduler.generate_auto_purchase_orders()

        assert report.ok
        assert report.created == []
        assert report.skipped == [product.id]
        assert await quiet_services.scheduler.auto_requests() == []
        assert await quiet_services.purchases.list_orders() == []

    async def test_preview_does_not_create(self, quiet_services, make_product):
        empty = await make_product(current_stock=0, min_stock_level=10, max_stock_level=40)
        await make_product(current_stock=5, min_stock_level=10)

        requests = await quiet_services.scheduler.auto_requests()

        assert [r.product_id for r in requests][0] == empty.id
        assert requests[0].priority == ReplenishmentPriority.HIGH
        assert requests[0].suggested_quantity == 40
        assert requests[1].priority == ReplenishmentPriority.MEDIUM
        assert await quiet_services.purchases.list_orders() == []


class TestConcurrency:
    async def test_run_while_running_is_skipped(self, quiet_services, low_raw):
        scheduler = quiet_services.scheduler
        async with scheduler._lock:
            assert scheduler.is_running
            assert await scheduler.generate_auto_purchase_orders() is None
            assert scheduler.request_run("low_stock") is False

        assert await quiet_services.purchases.list_orders() == []

    async def test_skipped_request_runs_once_afterwards(self, quiet_services, low_raw):
        scheduler = quiet_services.scheduler
        async with scheduler._lock:
            scheduler.request_run("first")
            scheduler.request_run("second")
        report = await scheduler.generate_auto_purchase_orders()
        await scheduler.drain()

        assert report.created_count == 1
        assert scheduler.last_report.reason == "follow_up"
        assert len(await quiet_services.purchases.list_orders()) == 1

    async def test_parallel_runs_create_one_order(self, quiet_services, low_raw):
        reports = await asyncio.gather(
            quiet_services.scheduler.generate_auto_purchase_orders(),
            quiet_services.scheduler.generate_auto_purchase_orders(),
        )
        await quiet_services.scheduler.drain()

        assert reports.count(None) == 1
        assert len(await quiet_services.purchases.list_orders()) == 1

    async def test_timeout(self, quiet_services, monkeypatch):
        scheduler = ReplenishmentScheduler(
            quiet_services.uow_factory,
            quiet_services.purchases,
            SchedulerSettings(run_timeout_seconds=0.05),
        )

        async def slow_scan(report):
            await asyncio.sleep(1)

        monkeypatch.setattr(scheduler, "_scan", slow_scan)

        with pytest.raises(SchedulerTimeoutError):
            await scheduler.generate_auto_purchase_orders()
        assert not scheduler.is_running
        assert scheduler.last_report.finished_at is not None


class TestLifecycle:
    async def test_disabled_scheduler_does_not_start(self, quiet_services):
        await quiet_services.scheduler.start()
        assert not quiet_services.scheduler.is_started

    async def test_start_and_stop(self, quiet_services, low_raw):
        scheduler = ReplenishmentScheduler(
            quiet_services.uow_factory,
            quiet_services.purchases,
            SchedulerSettings(interval_seconds=3600, run_on_startup=True),
        )
        await scheduler.start()
        assert scheduler.is_started

        for _ in range(100):
            if scheduler.last_report is not None:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()

        assert not scheduler.is_started
        assert scheduler.last_report.reason == "startup"
        assert len(await quiet_services.purchases.list_orders()) == 1


class TestDispatcher:
    async def test_forwards_replenishment_events(self):
        scheduler = MagicMock(spec=ReplenishmentScheduler)
        scheduler.request_run.return_value = True
        dispatcher = ReplenishmentDispatcher(scheduler)

        await dispatcher.publish(
            [
                ReplenishmentRequested(
                    product_id=1, sku="RM-1", current_stock=1, min_stock_level=5
                ),
                ReplenishmentRequested(
                    product_id=2, sku="RM-2", current_stock=0, min_stock_level=5
                ),
            ]
        )

        scheduler.request_run.assert_called_once_with("low_stock:RM-1,RM-2")

    async def test_ignores_other_events(self):
        scheduler = MagicMock(spec=ReplenishmentScheduler)
        dispatcher = ReplenishmentDispatcher(scheduler)

        await dispatcher.publish([ReplenishmentReport()])

        scheduler.request_run.assert_not_called()

    async def test_never_raises_into_committer(self):
        scheduler = MagicMock(spec=ReplenishmentScheduler)
        scheduler.request_run.side_effect = RuntimeError("no loop")
        dispatcher = ReplenishmentDispatcher(scheduler)

        await dispatcher.publish(
            [ReplenishmentRequested(product_id=1, sku="A", current_stock=0, min_stock_level=1)]
        )

    async def test_sales_confirmation_triggers_scan(self, services, make_product):
        resin = await make_product(current_stock=30, min_stock_level=20, max_stock_level=100)

        created = await services.sales.create(
            "CUST-1", [OrderLine(product_id=resin.id, quantity=15, unit_price=9)]
        )
        await services.sales.confirm(created.order.id)
        await services.dispatcher.drain()

        (order,) = await services.purchases.list_orders(auto_generated=True)
        assert order.items[0].quantity == 85
        assert (await services.ledger.get_product(resin.id)).current_stock == 15

    async def test_manual_decrease_then_scan_is_idempotent(self, services, make_product):
        resin = await make_product(current_stock=30, min_stock_level=20)
        await services.ledger.adjust_stock(resin.id, MovementDirection.OUT, 20)
        await services.dispatcher.drain()
        await services.scheduler.generate_auto_purchase_orders()

        assert len(await services.purchases.list_orders(auto_generated=True)) == 1
