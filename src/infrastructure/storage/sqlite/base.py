"""Shared helpers for SQLite stores bound to a unit-of-work connection."""

from datetime import date, datetime

import aiosqlite

from src.config import get_logger
from src.core.exceptions import DatabaseError, DuplicateIdentifierError

logger = get_logger(__name__)


class SQLiteStore:
    """Base for stores that run on a connection owned by a unit of work."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def _insert(
        self,
        sql: str,
        params: tuple,
        entity: str,
        field: str,
        value: str,
    ) -> int:
        """
        Run an INSERT and return the new row id.

        Unique constraint violations become DuplicateIdentifierError.
        """
        try:
            cursor = await self._conn.execute(sql, params)
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateIdentifierError(entity, field, value) from e
            raise DatabaseError(f"insert {entity}", str(e)) from e
        return cursor.lastrowid

    async def _next_number(self, table: str, prefix: str) -> str:
        """
        Next sequential document number, e.g. SO0001.

        Only numbers made of the prefix and digits count towards the
        sequence, so caller-supplied free-form numbers never collide.
        """
        cursor = await self._conn.execute(
            f"""
            SELECT MAX(CAST(SUBSTR({table_number_column(table)}, ?) AS INTEGER))
            FROM {table}
            WHERE {table_number_column(table)} GLOB ?
            """,
            (len(prefix) + 1, f"{prefix}[0-9]*"),
        )
        row = await cursor.fetchone()
        current = row[0] if row and row[0] is not None else 0
        return f"{prefix}{current + 1:04d}"


def table_number_column(table: str) -> str:
    return "invoice_number" if table == "invoices" else "order_number"


def to_iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value else None


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO timestamp column, tolerating legacy or empty values."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        logger.warning("invalid_timestamp_column", value=value)
        return None


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        logger.warning("invalid_date_column", value=value)
        return None
