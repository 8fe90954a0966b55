"""SQLite implementation of sales, purchase and production order storage."""

import aiosqlite

from src.config import get_logger
from src.core.entities.common import utc_now
from src.core.entities.order import OrderLine
from src.core.entities.production_order import (
    ProductionMaterial,
    ProductionOrder,
    ProductionOrderStatus,
)
from src.core.entities.purchase_order import (
    OPEN_PURCHASE_STATUSES,
    PurchaseOrder,
    PurchaseOrderSource,
    PurchaseOrderStatus,
)
from src.core.entities.sales_order import SalesOrder, SalesOrderStatus
from src.core.interfaces.order_store import (
    IProductionOrderStore,
    IPurchaseOrderStore,
    ISalesOrderStore,
)
from src.infrastructure.storage.sqlite.base import (
    SQLiteStore,
    parse_date,
    parse_datetime,
    to_iso,
)

logger = get_logger(__name__)


class _LineItemsMixin(SQLiteStore):
    """Line item persistence shared by sales and purchase orders."""

    ITEMS_TABLE: str = ""

    async def _insert_items(self, order_id: int, items: list[OrderLine]) -> None:
        for item in items:
            item.order_id = order_id
            cursor = await self._conn.execute(
                f"""
                INSERT INTO {self.ITEMS_TABLE} (
                    order_id, product_id, quantity, unit_price, line_total
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (order_id, item.product_id, item.quantity, item.unit_price, item.line_total),
            )
            item.id = cursor.lastrowid

    async def _load_items(self, order_id: int) -> list[OrderLine]:
        cursor = await self._conn.execute(
            f"SELECT * FROM {self.ITEMS_TABLE} WHERE order_id = ? ORDER BY id",
            (order_id,),
        )
        rows = await cursor.fetchall()
        return [
            OrderLine(
                id=row["id"],
                order_id=row["order_id"],
                product_id=row["product_id"],
                quantity=float(row["quantity"]),
                unit_price=float(row["unit_price"]),
            )
            for row in rows
        ]


class SQLiteSalesOrderStore(_LineItemsMixin, ISalesOrderStore):
    """SQLite implementation of sales order storage."""

    ITEMS_TABLE = "sales_order_items"

    async def next_number(self, prefix: str) -> str:
        return await self._next_number("sales_orders", prefix)

    async def create(self, order: SalesOrder) -> SalesOrder:
        """Create a sales order with all its items."""
        now = utc_now()
        order.created_at = now
        order.updated_at = now
        order.id = await self._insert(
            """
            INSERT INTO sales_orders (
                order_number, customer_id, status, subtotal, tax, total,
                production_order_id, delivery_date, sales_rep_id, notes,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                order.order_number,
                order.customer_id,
                order.status.value,
                order.subtotal,
                order.tax,
                order.total,
                order.production_order_id,
                to_iso(order.delivery_date),
                order.sales_rep_id,
                order.notes,
                to_iso(order.created_at),
                to_iso(order.updated_at),
            ),
            entity="Sales order",
            field="order_number",
            value=order.order_number,
        )
        await self._insert_items(order.id, order.items)
        logger.info(
            "sales_order_stored",
            order_id=order.id,
            order_number=order.order_number,
            items=len(order.items),
        )
        return order

    async def get(self, order_id: int) -> SalesOrder | None:
        cursor = await self._conn.execute(
            "SELECT * FROM sales_orders WHERE id = ?", (order_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_order(row, await self._load_items(row["id"]))

    async def list_orders(
        self,
        status: SalesOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SalesOrder]:
        if status:
            cursor = await self._conn.execute(
                "SELECT * FROM sales_orders WHERE status = ? ORDER BY id DESC LIMIT ? OFFSET ?",
                (status.value, limit, offset),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM sales_orders ORDER BY id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
        rows = await cursor.fetchall()
        return [self._row_to_order(row, await self._load_items(row["id"])) for row in rows]

    async def save_transition(
        self, order: SalesOrder, expected: SalesOrderStatus
    ) -> bool:
        cursor = await self._conn.execute(
            """
            UPDATE sales_orders SET
                status = ?, production_order_id = ?, delivery_date = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                order.status.value,
                order.production_order_id,
                to_iso(order.delivery_date),
                to_iso(order.updated_at),
                order.id,
                expected.value,
            ),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_order(row: aiosqlite.Row, items: list[OrderLine]) -> SalesOrder:
        """Convert a database row to a SalesOrder entity."""
        return SalesOrder(
            id=row["id"],
            order_number=row["order_number"],
            customer_id=row["customer_id"],
            status=SalesOrderStatus(row["status"]),
            items=items,
            subtotal=float(row["subtotal"]),
            tax=float(row["tax"]),
            total=float(row["total"]),
            production_order_id=row["production_order_id"],
            delivery_date=parse_datetime(row["delivery_date"]),
            sales_rep_id=row["sales_rep_id"],
            notes=row["notes"],
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )


class SQLitePurchaseOrderStore(_LineItemsMixin, IPurchaseOrderStore):
    """SQLite implementation of purchase order storage."""

    ITEMS_TABLE = "purchase_order_items"

    async def next_number(self, prefix: str) -> str:
        return await self._next_number("purchase_orders", prefix)

    async def create(self, order: PurchaseOrder) -> PurchaseOrder:
        """Create a purchase order with all its items."""
        now = utc_now()
        order.created_at = now
        order.updated_at = now
        order.id = await self._insert(
            """
            INSERT INTO purchase_orders (
                order_number, supplier_id, status, subtotal, tax, total,
                auto_generated, source, expected_delivery, received_date,
                created_by, notes, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                order.order_number,
                order.supplier_id,
                order.status.value,
                order.subtotal,
                order.tax,
                order.total,
                int(order.auto_generated),
                order.source.value,
                to_iso(order.expected_delivery),
                to_iso(order.received_date),
                order.created_by,
                order.notes,
                to_iso(order.created_at),
                to_iso(order.updated_at),
            ),
            entity="Purchase order",
            field="order_number",
            value=order.order_number,
        )
        await self._insert_items(order.id, order.items)
        logger.info(
            "purchase_order_stored",
            order_id=order.id,
            order_number=order.order_number,
            auto_generated=order.auto_generated,
        )
        return order

    async def get(self, order_id: int) -> PurchaseOrder | None:
        cursor = await self._conn.execute(
            "SELECT * FROM purchase_orders WHERE id = ?", (order_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_order(row, await self._load_items(row["id"]))

    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        auto_generated: bool | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        conditions = []
        params: list = []
        if status:
            conditions.append("status = ?")
            params.append(status.value)
        if auto_generated is not None:
            conditions.append("auto_generated = ?")
            params.append(int(auto_generated))

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM purchase_orders {where} ORDER BY id DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_order(row, await self._load_items(row["id"])) for row in rows]

    async def save_transition(
        self, order: PurchaseOrder, expected: PurchaseOrderStatus
    ) -> bool:
        cursor = await self._conn.execute(
            """
            UPDATE purchase_orders SET status = ?, received_date = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                order.status.value,
                to_iso(order.received_date),
                to_iso(order.updated_at),
                order.id,
                expected.value,
            ),
        )
        return cursor.rowcount > 0

    async def has_open_auto_order(self, product_id: int) -> bool:
        placeholders = ", ".join("?" for _ in OPEN_PURCHASE_STATUSES)
        cursor = await self._conn.execute(
            f"""
            SELECT EXISTS(
                SELECT 1 FROM purchase_orders po
                JOIN purchase_order_items i ON i.order_id = po.id
                WHERE po.auto_generated = 1
                  AND po.status IN ({placeholders})
                  AND i.product_id = ?
            )
            """,
            (*(s.value for s in OPEN_PURCHASE_STATUSES), product_id),
        )
        row = await cursor.fetchone()
        return bool(row[0])

    @staticmethod
    def _row_to_order(row: aiosqlite.Row, items: list[OrderLine]) -> PurchaseOrder:
        """Convert a database row to a PurchaseOrder entity."""
        return PurchaseOrder(
            id=row["id"],
            order_number=row["order_number"],
            supplier_id=row["supplier_id"],
            status=PurchaseOrderStatus(row["status"]),
            items=items,
            subtotal=float(row["subtotal"]),
            tax=float(row["tax"]),
            total=float(row["total"]),
            auto_generated=bool(row["auto_generated"]),
            source=PurchaseOrderSource(row["source"]),
            expected_delivery=parse_date(row["expected_delivery"]),
            received_date=parse_datetime(row["received_date"]),
            created_by=row["created_by"],
            notes=row["notes"],
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )


class SQLiteProductionOrderStore(SQLiteStore, IProductionOrderStore):
    """SQLite implementation of production order storage."""

    async def next_number(self, prefix: str) -> str:
        return await self._next_number("production_orders", prefix)

    async def create(self, order: ProductionOrder) -> ProductionOrder:
        """Create a production order with its materials."""
        now = utc_now()
        order.created_at = now
        order.updated_at = now
        order.id = await self._insert(
            """
            INSERT INTO production_orders (
                order_number, product_id, quantity, status, sales_order_id,
                start_date, end_date, notes, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                order.order_number,
                order.product_id,
                order.quantity,
                order.status.value,
                order.sales_order_id,
                to_iso(order.start_date),
                to_iso(order.end_date),
                order.notes,
                to_iso(order.created_at),
                to_iso(order.updated_at),
            ),
            entity="Production order",
            field="order_number",
            value=order.order_number,
        )
        for material in order.materials:
            material.production_order_id = order.id
            cursor = await self._conn.execute(
                """
                INSERT INTO production_materials (
                    production_order_id, product_id, quantity, unit_cost
                ) VALUES (?, ?, ?, ?)
                """,
                (order.id, material.product_id, material.quantity, material.unit_cost),
            )
            material.id = cursor.lastrowid
        logger.info(
            "production_order_stored",
            order_id=order.id,
            order_number=order.order_number,
            materials=len(order.materials),
        )
        return order

    async def get(self, order_id: int) -> ProductionOrder | None:
        cursor = await self._conn.execute(
            "SELECT * FROM production_orders WHERE id = ?", (order_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_order(row, await self._load_materials(row["id"]))

    async def list_orders(
        self,
        status: ProductionOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ProductionOrder]:
        if status:
            cursor = await self._conn.execute(
                "SELECT * FROM production_orders WHERE status = ? ORDER BY id DESC LIMIT ? OFFSET ?",
                (status.value, limit, offset),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM production_orders ORDER BY id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
        rows = await cursor.fetchall()
        return [
            self._row_to_order(row, await self._load_materials(row["id"])) for row in rows
        ]

    async def save_transition(
        self, order: ProductionOrder, expected: ProductionOrderStatus
    ) -> bool:
        cursor = await self._conn.execute(
            """
            UPDATE production_orders SET
                status = ?, start_date = ?, end_date = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                order.status.value,
                to_iso(order.start_date),
                to_iso(order.end_date),
                to_iso(order.updated_at),
                order.id,
                expected.value,
            ),
        )
        return cursor.rowcount > 0

    async def _load_materials(self, order_id: int) -> list[ProductionMaterial]:
        cursor = await self._conn.execute(
            "SELECT * FROM production_materials WHERE production_order_id = ? ORDER BY id",
            (order_id,),
        )
        rows = await cursor.fetchall()
        return [
            ProductionMaterial(
                id=row["id"],
                production_order_id=row["production_order_id"],
                product_id=row["product_id"],
                quantity=float(row["quantity"]),
                unit_cost=float(row["unit_cost"]),
            )
            for row in rows
        ]

    @staticmethod
    def _row_to_order(
        row: aiosqlite.Row, materials: list[ProductionMaterial]
    ) -> ProductionOrder:
        """Convert a database row to a ProductionOrder entity."""
        return ProductionOrder(
            id=row["id"],
            order_number=row["order_number"],
            product_id=row["product_id"],
            quantity=float(row["quantity"]),
            status=ProductionOrderStatus(row["status"]),
            materials=materials,
            sales_order_id=row["sales_order_id"],
            start_date=parse_datetime(row["start_date"]),
            end_date=parse_datetime(row["end_date"]),
            notes=row["notes"],
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )
