"""
Replenishment scheduler.

Scans active raw materials at or below their minimum stock level and
raises one auto-generated purchase order per product. Runs on a periodic
loop, on demand, and after any committed unit of work that queued a
ReplenishmentRequested event.
"""

import asyncio
import contextlib

from pydantic import BaseModel

from src.config import get_logger
from src.config.settings import SchedulerSettings
from src.core.entities.common import SYSTEM_ACTOR, utc_now
from src.core.entities.events import ReplenishmentRequested
from src.core.entities.order import OrderLine
from src.core.entities.purchase_order import PurchaseOrderSource
from src.core.entities.replenishment import (
    ReplenishmentFailure,
    ReplenishmentPriority,
    ReplenishmentReport,
    ReplenishmentRequest,
)
from src.core.exceptions import ERPError, SchedulerTimeoutError
from src.core.interfaces.unit_of_work import IEventPublisher, IUnitOfWorkFactory
from src.core.services.purchase_orders import PurchaseOrderService

logger = get_logger(__name__)


class ReplenishmentScheduler:
    """
    Creates auto-generated purchase orders for low-stock raw materials.

    Only one run is active at a time. A run requested while another is in
    progress is not queued; it marks a single follow-up run instead.
    """

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        purchases: PurchaseOrderService,
        settings: SchedulerSettings | None = None,
    ):
        self._uow = uow_factory
        self._purchases = purchases
        self._settings = settings or SchedulerSettings()
        self._lock = asyncio.Lock()
        self._rerun_requested = False
        self._loop_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self.last_report: ReplenishmentReport | None = None

    @property
    def is_running(self) -> bool:
        """True while a scan is in progress."""
        return self._lock.locked()

    @property
    def is_started(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def generate_auto_purchase_orders(
        self, reason: str = "manual"
    ) -> ReplenishmentReport | None:
        """
        Run one scan now.

        Returns:
            The run report, or None if a run was already in progress

        Raises:
            SchedulerTimeoutError: the scan exceeded run_timeout_seconds
        """
        if self._lock.locked():
            self._rerun_requested = True
            logger.info("replenishment_run_skipped", reason=reason)
            return None

        async with self._lock:
            report = ReplenishmentReport(reason=reason)
            logger.info("replenishment_run_started", reason=reason)
            try:
                await asyncio.wait_for(
                    self._scan(report), timeout=self._settings.run_timeout_seconds
                )
            except asyncio.TimeoutError:
                logger.error(
                    "replenishment_run_timeout",
                    reason=reason,
                    timeout=self._settings.run_timeout_seconds,
                    created=report.created,
                )
                raise SchedulerTimeoutError(self._settings.run_timeout_seconds) from None
            finally:
                report.finished_at = utc_now()
                self.last_report = report

        logger.info(
            "replenishment_run_finished",
            reason=reason,
            created=report.created,
            skipped=len(report.skipped),
            failures=len(report.failures),
        )

        if self._rerun_requested:
            self._rerun_requested = False
            self.request_run("follow_up")
        return report

    run_once = generate_auto_purchase_orders

    async def _scan(self, report: ReplenishmentReport) -> None:
        async with self._uow(read_only=True) as uow:
            candidates = await uow.products.list_replenishment_candidates()

        for candidate in candidates:
            try:
                order_number = await self._replenish(candidate.id)
            except ERPError as e:
                report.failures.append(
                    ReplenishmentFailure(
                        product_id=candidate.id,
                        sku=candidate.sku,
                        error=e.message,
                        error_code=e.code,
                    )
                )
                logger.warning(
                    "replenishment_product_failed",
                    product_id=candidate.id,
                    sku=candidate.sku,
                    error_code=e.code,
                    error=e.message,
                )
                continue
            except Exception as e:
                report.failures.append(
                    ReplenishmentFailure(product_id=candidate.id, sku=candidate.sku, error=str(e))
                )
                logger.error(
                    "replenishment_product_failed",
                    product_id=candidate.id,
                    sku=candidate.sku,
                    error=str(e),
                    exc_info=True,
                )
                continue

            if order_number is None:
                report.skipped.append(candidate.id)
            else:
                report.created.append(order_number)

    async def _replenish(self, product_id: int) -> str | None:
        """
        Raise an auto purchase order for one product.

        The product is re-read and the open-order check made in the same
        unit of work that creates the order.
        """
        async with self._uow() as uow:
            product = await uow.products.get(product_id)
            if product is None or not product.needs_replenishment:
                return None
            if self._settings.dedupe_open_orders and (
                await uow.purchase_orders.has_open_auto_order(product.id)
            ):
                logger.debug("replenishment_open_order_exists", product_id=product.id)
                return None

            quantity = product.suggested_order_quantity
            if quantity <= 0:
                logger.debug("replenishment_nothing_to_order", product_id=product.id)
                return None
            result = await self._purchases.create_in(
                uow,
                supplier_id=product.supplier_id,
                items=[
                    OrderLine(
                        product_id=product.id,
                        quantity=quantity,
                        unit_price=product.unit_cost,
                    )
                ],
                notes=(
                    f"Auto-generated for {product.sku}: stock {product.current_stock:g} "
                    f"at or below minimum {product.min_stock_level:g}"
                ),
                actor=SYSTEM_ACTOR,
                auto_generated=True,
                source=PurchaseOrderSource.INVENTORY,
            )

        logger.info(
            "auto_purchase_order_created",
            product_id=product.id,
            sku=product.sku,
            order_number=result.order.order_number,
            quantity=quantity,
        )
        return result.order.order_number

    async def auto_requests(self) -> list[ReplenishmentRequest]:
        """Preview the purchases a run would raise, without creating them."""
        async with self._uow(read_only=True) as uow:
            candidates = await uow.products.list_replenishment_candidates()

        return [
            ReplenishmentRequest(
                product_id=p.id,
                sku=p.sku,
                name=p.name,
                supplier_id=p.supplier_id,
                current_stock=p.current_stock,
                min_stock_level=p.min_stock_level,
                max_stock_level=p.max_stock_level,
                suggested_quantity=p.suggested_order_quantity,
                unit_cost=p.unit_cost,
                priority=(
                    ReplenishmentPriority.HIGH
                    if p.current_stock == 0
                    else ReplenishmentPriority.MEDIUM
                ),
            )
            for p in candidates
            if p.suggested_order_quantity > 0
        ]

    # ------------------------------------------------------------------
    # Background runs
    # ------------------------------------------------------------------

    def request_run(self, reason: str) -> bool:
        """
        Schedule a run in the background without waiting for it.

        Returns:
            True if a run was scheduled, False if it was folded into the
            follow-up of a run already in progress
        """
        if self._lock.locked():
            self._rerun_requested = True
            return False
        task = asyncio.create_task(self._run_in_background(reason))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _run_in_background(self, reason: str) -> None:
        try:
            await self.generate_auto_purchase_orders(reason)
        except Exception as e:
            logger.error("replenishment_run_failed", reason=reason, error=str(e))

    async def drain(self) -> None:
        """Wait for every background run, including follow-ups."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def start(self) -> None:
        """Start the periodic loop."""
        if not self._settings.enabled:
            logger.info("replenishment_scheduler_disabled")
            return
        if self.is_started:
            return
        self._loop_task = asyncio.create_task(self._periodic())
        logger.info(
            "replenishment_scheduler_started",
            interval_seconds=self._settings.interval_seconds,
        )

    async def stop(self) -> None:
        """Stop the loop and wait for background runs to finish."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None
        await self.drain()
        logger.info("replenishment_scheduler_stopped")

    async def _periodic(self) -> None:
        if self._settings.run_on_startup:
            await self._run_in_background("startup")
        while True:
            await asyncio.sleep(self._settings.interval_seconds)
            await self._run_in_background("scheduled")


class ReplenishmentDispatcher(IEventPublisher):
    """Hands committed ReplenishmentRequested events to the scheduler."""

    def __init__(self, scheduler: ReplenishmentScheduler):
        self._scheduler = scheduler

    async def publish(self, events: list[BaseModel]) -> None:
        requested = [e for e in events if isinstance(e, ReplenishmentRequested)]
        if not requested:
            return
        try:
            scheduled = self._scheduler.request_run(
                "low_stock:" + ",".join(e.sku for e in requested)
            )
        except Exception as e:
            logger.error("replenishment_dispatch_failed", error=str(e))
            return
        logger.info(
            "replenishment_dispatched",
            products=[e.product_id for e in requested],
            scheduled=scheduled,
        )

    async def drain(self) -> None:
        await self._scheduler.drain()
