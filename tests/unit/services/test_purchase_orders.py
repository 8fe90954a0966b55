"""Tests for the purchase order service."""

import pytest

from src.core.entities.finance import InvoiceKind, InvoiceStatus
from src.core.entities.inventory import MovementDirection, MovementReference
from src.core.entities.order import OrderLine
from src.core.entities.purchase_order import PurchaseOrderSource, PurchaseOrderStatus
from src.core.exceptions import InvalidStateError, ProductNotFoundError, ValidationError


class TestPurchaseOrders:
    async def test_create_issues_purchase_invoice(self, quiet_services, make_product):
        product = await make_product()

        result = await quiet_services.purchases.create(
            "SUP-1", [OrderLine(product_id=product.id, quantity=10, unit_price=4)]
        )

        assert result.order.status == PurchaseOrderStatus.PENDING
        assert result.order.auto_generated is False
        assert result.order.source == PurchaseOrderSource.MANUAL
        assert result.order.total == 44.0
        assert result.invoice.kind == InvoiceKind.PURCHASE
        assert result.invoice.invoice_number == "PINV0001"
        assert result.invoice.party_id == "SUP-1"

    async def test_unknown_product(self, quiet_services):
        with pytest.raises(ProductNotFoundError):
            await quiet_services.purchases.create(
                "SUP-1", [OrderLine(product_id=77, quantity=1, unit_price=1)]
            )

    async def test_supplier_required(self, quiet_services, make_product):
        product = await make_product()
        with pytest.raises(ValidationError):
            await quiet_services.purchases.create(
                "", [OrderLine(product_id=product.id, quantity=1, unit_price=1)]
            )

    async def test_receive_requires_ordered(self, quiet_services, make_product):
        product = await make_product()
        created = await quiet_services.purchases.create(
            "SUP-1", [OrderLine(product_id=product.id, quantity=1, unit_price=1)]
        )
        with pytest.raises(InvalidStateError):
            await quiet_services.purchases.receive(created.order.id)

    async def test_receive_adds_stock_at_purchase_price(self, quiet_services, make_product):
        product = await make_product(current_stock=20, unit_cost=5)
        created = await quiet_services.purchases.create(
            "SUP-1", [OrderLine(product_id=product.id, quantity=30, unit_price=6)]
        )
        await quiet_services.purchases.order(created.order.id)

        received = await quiet_services.purchases.receive(created.order.id)

        assert received.status == PurchaseOrderStatus.RECEIVED
        assert received.received_date is not None
        stocked = await quiet_services.ledger.get_product(product.id)
        assert stocked.current_stock == 50
        assert stocked.unit_cost == 6

        movements = await quiet_services.ledger.list_movements(
            reference=MovementReference.PURCHASE, reference_id=created.order.id
        )
        assert len(movements) == 1
        assert movements[0].direction == MovementDirection.IN
        assert movements[0].total_cost == 180.0

    async def test_receive_twice_rejected(self, quiet_services, make_product):
        product = await make_product(current_stock=0)
        created = await quiet_services.purchases.create(
            "SUP-1", [OrderLine(product_id=product.id, quantity=3, unit_price=1)]
        )
        await quiet_services.purchases.order(created.order.id)
        await quiet_services.purchases.receive(created.order.id)

        with pytest.raises(InvalidStateError):
            await quiet_services.purchases.receive(created.order.id)
        assert (await quiet_services.ledger.get_product(product.id)).current_stock == 3

    async def test_cancel_only_pending(self, quiet_services, make_product):
        product = await make_product()
        created = await quiet_services.purchases.create(
            "SUP-1", [OrderLine(product_id=product.id, quantity=1, unit_price=1)]
        )
        await quiet_services.purchases.order(created.order.id)

        with pytest.raises(InvalidStateError):
            await quiet_services.purchases.cancel(created.order.id)

    async def test_cancel_cancels_invoice(self, quiet_services, make_product):
        product = await make_product()
        created = await quiet_services.purchases.create(
            "SUP-1", [OrderLine(product_id=product.id, quantity=1, unit_price=1)]
        )

        await quiet_services.purchases.cancel(created.order.id)

        invoice = await quiet_services.finance.get_order_invoice(
            InvoiceKind.PURCHASE, created.order.id
        )
        assert invoice.status == InvoiceStatus.CANCELLED
