"""
Versioned schema migrations for the ledger database.

Migration files are named ``vNNN_description.sql`` and live next to this
module. Each applied file is recorded in ``schema_migrations`` with a
checksum; an applied file whose content later changes stops the run, since
the ledger tables it created may no longer match what the stores expect.
"""

import hashlib
import re
import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = (
    "products",
    "stock_movements",
    "sales_orders",
    "sales_order_items",
    "purchase_orders",
    "purchase_order_items",
    "production_orders",
    "production_materials",
    "bank_accounts",
    "transactions",
    "invoices",
    "expenses",
    "schema_migrations",
)

# Stock movements and money transactions are append-only
IMMUTABILITY_TRIGGERS = (
    "stock_movements_immutable_update",
    "stock_movements_immutable_delete",
    "transactions_immutable_update",
    "transactions_immutable_delete",
)


@dataclass(frozen=True)
class MigrationInfo:
    """One migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest)

    def read_sql(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass
class MigrationResult:
    """Outcome of applying (or refusing) one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int = 0
    error: str | None = None


@dataclass
class IntegrityCheck:
    check: str
    passed: bool
    details: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {"check": self.check, "status": "PASS" if self.passed else "FAIL", **self.details}


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration files sorted by version; badly named files are skipped."""
    found = []
    for path in sorted(directory.glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Map of applied version to recorded checksum; empty before v001."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def apply_migration(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    """Run one migration script and record it."""
    started = time.monotonic()
    logger.info("applying_migration", version=migration.version, name=migration.name)

    try:
        await conn.executescript(migration.read_sql())
        elapsed = int((time.monotonic() - started) * 1000)
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms) "
            "VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=int((time.monotonic() - started) * 1000),
            error=str(e),
        )

    logger.info("migration_applied", version=migration.version, execution_time_ms=elapsed)
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=elapsed,
    )


def create_backup(db_path: Path) -> Path:
    """Copy the database file aside before migrating it."""
    backup_path = db_path.with_suffix(f".backup_{time.strftime('%Y%m%d_%H%M%S')}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


@contextmanager
def _backup_guard(db_path: Path, enabled: bool) -> Iterator[None]:
    """Restore the pre-migration copy if migrating raises; drop it otherwise."""
    backup_path = create_backup(db_path) if enabled and db_path.exists() else None
    try:
        yield
    except Exception:
        if backup_path is not None:
            restore_backup(db_path, backup_path)
        raise
    if backup_path is not None:
        backup_path.unlink()


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the database up to the latest schema version.

    Returns one result per migration attempted. Already applied migrations
    are skipped silently; the run stops at the first failure or at an
    applied migration whose checksum changed.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    results: list[MigrationResult] = []
    with _backup_guard(db_path, create_backup_before):
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")

            applied = await get_applied_migrations(conn)
            for migration in discover_migrations():
                recorded = applied.get(migration.version)
                if recorded == migration.checksum:
                    continue
                if recorded is not None:
                    logger.error("migration_checksum_changed", version=migration.version)
                    results.append(
                        MigrationResult(
                            version=migration.version,
                            name=migration.name,
                            success=False,
                            error="applied migration was modified (checksum mismatch)",
                        )
                    )
                    break

                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break

                cursor = await conn.execute("PRAGMA foreign_key_check")
                if await cursor.fetchall():
                    logger.error("foreign_key_violations", version=migration.version)
                    result.success = False
                    result.error = "foreign key violations after migration"
                    break

    return results


run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Applied and pending versions for the database at ``db_path``."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations()

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [m.version for m in discovered],
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return {
        "exists": True,
        "current_version": max(applied) if applied else None,
        "applied_migrations": sorted(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """Check SQLite integrity, the ledger tables and the append-only triggers."""
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()
        cursor = await conn.execute("SELECT type, name FROM sqlite_master")
        objects = await cursor.fetchall()

    tables = {name for kind, name in objects if kind == "table"}
    triggers = {name for kind, name in objects if kind == "trigger"}
    missing_tables = [t for t in REQUIRED_TABLES if t not in tables]
    missing_triggers = [t for t in IMMUTABILITY_TRIGGERS if t not in triggers]

    checks = [
        IntegrityCheck("integrity", integrity == "ok", {"result": integrity}),
        IntegrityCheck("foreign_keys", not fk_violations, {"violations": len(fk_violations)}),
        IntegrityCheck("required_tables", not missing_tables, {"missing": missing_tables}),
        IntegrityCheck(
            "immutability_triggers", not missing_triggers, {"missing": missing_triggers}
        ),
    ]
    return [c.as_dict() for c in checks]
