"""Tests for product and stock movement entities."""

import pytest
from pydantic import ValidationError

from src.core.entities.inventory import (
    LedgerDiscrepancy,
    MovementDirection,
    MovementReference,
    StockMovement,
)
from src.core.entities.product import Product, ProductCategory


def _raw(**overrides) -> Product:
    fields = {
        "sku": "RM-1",
        "name": "Steel sheet",
        "category": ProductCategory.RAW_MATERIAL,
        "current_stock": 50,
        "min_stock_level": 100,
        "max_stock_level": 500,
        "unit_cost": 2.5,
        "supplier_id": "S",
    }
    fields.update(overrides)
    return Product(**fields)


class TestProduct:
    def test_current_value(self):
        assert _raw(current_stock=4, unit_cost=2.5).current_value == 10.0

    def test_low_stock_is_inclusive(self):
        assert _raw(current_stock=100).is_low_stock
        assert not _raw(current_stock=101).is_low_stock

    def test_needs_replenishment(self):
        assert _raw().needs_replenishment

    @pytest.mark.parametrize(
        "overrides",
        [
            {"category": ProductCategory.FINISHED_GOOD},
            {"supplier_id": None},
            {"supplier_id": ""},
            {"is_active": False},
            {"current_stock": 150},
        ],
    )
    def test_no_replenishment(self, overrides):
        assert not _raw(**overrides).needs_replenishment

    def test_suggested_quantity_refills_to_max(self):
        assert _raw().suggested_order_quantity == 450

    def test_suggested_quantity_never_below_min(self):
        # max - stock = 10, min = 100
        assert _raw(current_stock=90, max_stock_level=100).suggested_order_quantity == 100

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            _raw(current_stock=-1)


class TestStockMovement:
    def test_total_cost(self):
        movement = StockMovement(
            product_id=1,
            direction=MovementDirection.OUT,
            quantity=4,
            delta=-4,
            unit_cost=2.5,
            reference=MovementReference.SALE,
        )
        assert movement.total_cost == 10.0
        assert movement.is_decrease

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            StockMovement(
                product_id=1,
                direction=MovementDirection.IN,
                quantity=0,
                delta=0,
                reference=MovementReference.PURCHASE,
            )

    def test_discrepancy_difference(self):
        d = LedgerDiscrepancy(product_id=1, sku="A", current_stock=10, ledger_stock=7)
        assert d.difference == 3
