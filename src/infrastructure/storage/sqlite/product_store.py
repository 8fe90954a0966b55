"""SQLite implementation of product and stock movement storage."""

import aiosqlite

from src.config import get_logger
from src.core.entities.common import round_money, round_quantity, utc_now
from src.core.entities.inventory import (
    MovementDirection,
    MovementReference,
    StockMovement,
    StockValuation,
)
from src.core.entities.product import Product, ProductCategory
from src.core.exceptions import DatabaseError, DuplicateIdentifierError
from src.core.interfaces.product_store import IMovementStore, IProductStore
from src.infrastructure.storage.sqlite.base import SQLiteStore, parse_datetime, to_iso

logger = get_logger(__name__)


class SQLiteProductStore(SQLiteStore, IProductStore):
    """SQLite implementation of product storage."""

    async def create(self, product: Product) -> Product:
        """Create a new product."""
        now = utc_now()
        product.created_at = now
        product.updated_at = now
        product.id = await self._insert(
            """
            INSERT INTO products (
                sku, name, description, category, unit, current_stock,
                min_stock_level, max_stock_level, unit_cost, selling_price,
                supplier_id, is_active, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                product.sku,
                product.name,
                product.description,
                product.category.value,
                product.unit,
                product.current_stock,
                product.min_stock_level,
                product.max_stock_level,
                product.unit_cost,
                product.selling_price,
                product.supplier_id,
                int(product.is_active),
                to_iso(product.created_at),
                to_iso(product.updated_at),
            ),
            entity="Product",
            field="sku",
            value=product.sku,
        )
        logger.info("product_created", product_id=product.id, sku=product.sku)
        return product

    async def get(self, product_id: int) -> Product | None:
        cursor = await self._conn.execute(
            "SELECT * FROM products WHERE id = ?", (product_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_product(row) if row else None

    async def get_by_sku(self, sku: str) -> Product | None:
        cursor = await self._conn.execute(
            "SELECT * FROM products WHERE sku = ?", (sku,)
        )
        row = await cursor.fetchone()
        return self._row_to_product(row) if row else None

    async def update(self, product: Product) -> Product:
        """Update descriptive and threshold fields."""
        product.updated_at = utc_now()
        try:
            await self._conn.execute(
                """
                UPDATE products SET
                    sku = ?, name = ?, description = ?, category = ?, unit = ?,
                    min_stock_level = ?, max_stock_level = ?, unit_cost = ?,
                    selling_price = ?, supplier_id = ?, is_active = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    product.sku,
                    product.name,
                    product.description,
                    product.category.value,
                    product.unit,
                    product.min_stock_level,
                    product.max_stock_level,
                    product.unit_cost,
                    product.selling_price,
                    product.supplier_id,
                    int(product.is_active),
                    to_iso(product.updated_at),
                    product.id,
                ),
            )
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateIdentifierError("Product", "sku", product.sku) from e
            raise DatabaseError("update product", str(e)) from e
        logger.info("product_updated", product_id=product.id)
        return product

    async def apply_stock_delta(
        self, product_id: int, delta: float, unit_cost: float | None = None
    ) -> Product | None:
        """Conditionally add ``delta`` to current_stock."""
        now = to_iso(utc_now())
        if delta < 0:
            cursor = await self._conn.execute(
                """
                UPDATE products SET
                    current_stock = ROUND(current_stock + ?, 6),
                    unit_cost = COALESCE(?, unit_cost),
                    updated_at = ?
                WHERE id = ? AND current_stock >= ?
                """,
                (delta, unit_cost, now, product_id, round_quantity(-delta)),
            )
        else:
            cursor = await self._conn.execute(
                """
                UPDATE products SET
                    current_stock = ROUND(current_stock + ?, 6),
                    unit_cost = COALESCE(?, unit_cost),
                    updated_at = ?
                WHERE id = ?
                """,
                (delta, unit_cost, now, product_id),
            )
        if cursor.rowcount == 0:
            return None
        return await self.get(product_id)

    async def list_products(
        self,
        category: ProductCategory | None = None,
        low_stock: bool = False,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Product]:
        conditions = []
        params: list = []
        if category:
            conditions.append("category = ?")
            params.append(category.value)
        if low_stock:
            conditions.append("current_stock <= min_stock_level")
        if not include_inactive:
            conditions.append("is_active = 1")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM products {where} ORDER BY name, id LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_product(row) for row in rows]

    async def list_low_stock(self, limit: int = 100) -> list[Product]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM products
            WHERE is_active = 1 AND current_stock <= min_stock_level
            ORDER BY current_stock ASC, id
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_product(row) for row in rows]

    async def list_replenishment_candidates(self) -> list[Product]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM products
            WHERE is_active = 1
              AND category = ?
              AND current_stock <= min_stock_level
              AND supplier_id IS NOT NULL AND supplier_id != ''
            ORDER BY current_stock ASC, id
            """,
            (ProductCategory.RAW_MATERIAL.value,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_product(row) for row in rows]

    async def is_referenced(self, product_id: int) -> bool:
        cursor = await self._conn.execute(
            """
            SELECT
                EXISTS(SELECT 1 FROM sales_order_items WHERE product_id = :id)
                OR EXISTS(SELECT 1 FROM purchase_order_items WHERE product_id = :id)
                OR EXISTS(SELECT 1 FROM production_orders WHERE product_id = :id)
                OR EXISTS(SELECT 1 FROM production_materials WHERE product_id = :id)
            """,
            {"id": product_id},
        )
        row = await cursor.fetchone()
        return bool(row[0])

    async def deactivate(self, product_id: int) -> bool:
        cursor = await self._conn.execute(
            "UPDATE products SET is_active = 0, updated_at = ? WHERE id = ?",
            (to_iso(utc_now()), product_id),
        )
        return cursor.rowcount > 0

    async def valuation(self) -> StockValuation:
        cursor = await self._conn.execute(
            """
            SELECT
                COALESCE(SUM(current_stock * unit_cost), 0) AS total_value,
                COUNT(*) AS product_count,
                COALESCE(SUM(current_stock), 0) AS total_items
            FROM products
            WHERE is_active = 1
            """
        )
        row = await cursor.fetchone()
        count = row["product_count"]
        total_value = round_money(row["total_value"])
        return StockValuation(
            total_value=total_value,
            product_count=count,
            total_items=round_quantity(row["total_items"]),
            average_value=round_money(total_value / count) if count else 0.0,
        )

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert a database row to a Product entity."""
        return Product(
            id=row["id"],
            sku=row["sku"],
            name=row["name"],
            description=row["description"],
            category=ProductCategory(row["category"]),
            unit=row["unit"],
            current_stock=float(row["current_stock"]),
            min_stock_level=float(row["min_stock_level"]),
            max_stock_level=float(row["max_stock_level"]),
            unit_cost=float(row["unit_cost"]),
            selling_price=row["selling_price"],
            supplier_id=row["supplier_id"],
            is_active=bool(row["is_active"]),
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )


class SQLiteMovementStore(SQLiteStore, IMovementStore):
    """SQLite implementation of the stock movement log."""

    async def add(self, movement: StockMovement) -> StockMovement:
        cursor = await self._conn.execute(
            """
            INSERT INTO stock_movements (
                product_id, direction, quantity, delta, unit_cost, total_cost,
                reference, reference_id, notes, actor_id, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                movement.product_id,
                movement.direction.value,
                movement.quantity,
                movement.delta,
                movement.unit_cost,
                movement.total_cost,
                movement.reference.value,
                movement.reference_id,
                movement.notes,
                movement.actor_id,
                to_iso(movement.created_at),
            ),
        )
        movement.id = cursor.lastrowid
        logger.debug(
            "stock_movement_recorded",
            movement_id=movement.id,
            product_id=movement.product_id,
            direction=movement.direction.value,
            delta=movement.delta,
        )
        return movement

    async def list_movements(
        self,
        product_id: int | None = None,
        direction: MovementDirection | None = None,
        reference: MovementReference | None = None,
        reference_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        conditions = []
        params: list = []
        if product_id is not None:
            conditions.append("product_id = ?")
            params.append(product_id)
        if direction:
            conditions.append("direction = ?")
            params.append(direction.value)
        if reference:
            conditions.append("reference = ?")
            params.append(reference.value)
        if reference_id is not None:
            conditions.append("reference_id = ?")
            params.append(reference_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM stock_movements {where} ORDER BY id DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_movement(row) for row in rows]

    async def sum_deltas(self, product_id: int) -> float:
        cursor = await self._conn.execute(
            "SELECT COALESCE(SUM(delta), 0) FROM stock_movements WHERE product_id = ?",
            (product_id,),
        )
        row = await cursor.fetchone()
        return round_quantity(row[0])

    async def ledger_totals(self) -> dict[int, float]:
        cursor = await self._conn.execute(
            "SELECT product_id, SUM(delta) FROM stock_movements GROUP BY product_id"
        )
        rows = await cursor.fetchall()
        return {row[0]: round_quantity(row[1]) for row in rows}

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        return StockMovement(
            id=row["id"],
            product_id=row["product_id"],
            direction=MovementDirection(row["direction"]),
            quantity=float(row["quantity"]),
            delta=float(row["delta"]),
            unit_cost=float(row["unit_cost"]),
            reference=MovementReference(row["reference"]),
            reference_id=row["reference_id"],
            notes=row["notes"],
            actor_id=row["actor_id"],
            created_at=parse_datetime(row["created_at"]) or utc_now(),
        )
