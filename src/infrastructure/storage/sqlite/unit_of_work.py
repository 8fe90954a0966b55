"""
SQLite unit of work.

Binds every store to one pooled connection. Write units open the
transaction with BEGIN IMMEDIATE, which takes the database write lock up
front, so two units can never interleave their read-check-write steps.
"""

from types import TracebackType

import aiosqlite

from src.config import get_logger
from src.core.interfaces.unit_of_work import (
    IEventPublisher,
    IUnitOfWork,
    IUnitOfWorkFactory,
)
from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.finance_store import (
    SQLiteBankAccountStore,
    SQLiteExpenseStore,
    SQLiteInvoiceStore,
    SQLiteTransactionStore,
)
from src.infrastructure.storage.sqlite.order_store import (
    SQLiteProductionOrderStore,
    SQLitePurchaseOrderStore,
    SQLiteSalesOrderStore,
)
from src.infrastructure.storage.sqlite.product_store import (
    SQLiteMovementStore,
    SQLiteProductStore,
)

logger = get_logger(__name__)


class SQLiteUnitOfWork(IUnitOfWork):
    """Unit of work over a single aiosqlite connection."""

    def __init__(
        self,
        pool: ConnectionPool,
        publisher: IEventPublisher | None = None,
        read_only: bool = False,
    ):
        super().__init__()
        self._pool = pool
        self._publisher = publisher
        self._read_only = read_only
        self._acquire = None
        self._conn: aiosqlite.Connection | None = None

    async def __aenter__(self) -> "SQLiteUnitOfWork":
        self._acquire = self._pool.acquire()
        conn = await self._acquire.__aenter__()
        self._conn = conn
        try:
            if not self._read_only:
                await conn.execute("BEGIN IMMEDIATE")
        except BaseException as e:
            await self._acquire.__aexit__(type(e), e, e.__traceback__)
            raise

        self.products = SQLiteProductStore(conn)
        self.movements = SQLiteMovementStore(conn)
        self.sales_orders = SQLiteSalesOrderStore(conn)
        self.purchase_orders = SQLitePurchaseOrderStore(conn)
        self.production_orders = SQLiteProductionOrderStore(conn)
        self.bank_accounts = SQLiteBankAccountStore(conn)
        self.transactions = SQLiteTransactionStore(conn)
        self.invoices = SQLiteInvoiceStore(conn)
        self.expenses = SQLiteExpenseStore(conn)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        committed = False
        try:
            if not self._read_only:
                if exc_type is None:
                    try:
                        await self._conn.commit()
                    except aiosqlite.Error:
                        await self._conn.rollback()
                        raise
                    committed = True
                else:
                    await self._conn.rollback()
                    logger.debug(
                        "unit_of_work_rolled_back",
                        error=exc_type.__name__,
                        discarded_events=len(self.events),
                    )
        finally:
            await self._acquire.__aexit__(exc_type, exc, tb)
            self._conn = None

        if committed and self.events and self._publisher is not None:
            events, self.events = self.events, []
            await self._publisher.publish(events)


class SQLiteUnitOfWorkFactory(IUnitOfWorkFactory):
    """Creates SQLite units of work sharing one pool and publisher."""

    def __init__(self, pool: ConnectionPool, publisher: IEventPublisher | None = None):
        self.pool = pool
        self.publisher = publisher

    def __call__(self, read_only: bool = False) -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(self.pool, self.publisher, read_only=read_only)
