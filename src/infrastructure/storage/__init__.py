"""Ledger persistence."""

from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteUnitOfWorkFactory,
    close_pool,
    get_pool,
)

__all__ = ["ConnectionPool", "SQLiteUnitOfWorkFactory", "get_pool", "close_pool"]
