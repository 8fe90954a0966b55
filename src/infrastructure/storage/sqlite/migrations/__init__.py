"""Ledger schema migrations."""

from src.infrastructure.storage.sqlite.migrations.migrator import (
    IMMUTABILITY_TRIGGERS,
    REQUIRED_TABLES,
    MigrationResult,
    get_migration_status,
    initialize_database,
    run_migrations,
    verify_schema_integrity,
)

__all__ = [
    "initialize_database",
    "run_migrations",
    "get_migration_status",
    "verify_schema_integrity",
    "MigrationResult",
    "REQUIRED_TABLES",
    "IMMUTABILITY_TRIGGERS",
]
