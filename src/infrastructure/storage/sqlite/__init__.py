"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
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
from src.infrastructure.storage.sqlite.unit_of_work import (
    SQLiteUnitOfWork,
    SQLiteUnitOfWorkFactory,
)

__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Stores
    "SQLiteProductStore",
    "SQLiteMovementStore",
    "SQLiteSalesOrderStore",
    "SQLitePurchaseOrderStore",
    "SQLiteProductionOrderStore",
    "SQLiteBankAccountStore",
    "SQLiteTransactionStore",
    "SQLiteInvoiceStore",
    "SQLiteExpenseStore",
    # Unit of work
    "SQLiteUnitOfWork",
    "SQLiteUnitOfWorkFactory",
]
