"""Tests for the SQLite migrator."""

from pathlib import Path

import aiosqlite
import pytest

from src.infrastructure.storage.sqlite.migrations.migrator import (
    discover_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


@pytest.fixture
async def migrated_db(tmp_path: Path) -> Path:
    db_path = tmp_path / "migrated.db"
    await initialize_database(db_path, create_backup_before=False)
    return db_path


class TestMigrator:
    def test_discovers_initial_schema(self):
        versions = [m.version for m in discover_migrations()]
        assert versions[0] == "001"

    async def test_initialize_applies_all(self, tmp_path: Path):
        results = await initialize_database(tmp_path / "fresh.db", create_backup_before=False)
        assert results
        assert all(r.success for r in results)

    async def test_second_run_is_noop(self, migrated_db: Path):
        results = await initialize_database(migrated_db, create_backup_before=False)
        assert results == []

    async def test_status(self, migrated_db: Path):
        status = await get_migration_status(migrated_db)
        assert status["exists"] is True
        assert status["pending_migrations"] == []
        assert status["current_version"] == "001"

    async def test_status_missing_db(self, tmp_path: Path):
        status = await get_migration_status(tmp_path / "missing.db")
        assert status["exists"] is False
        assert status["pending_migrations"] == ["001"]

    async def test_modified_migration_stops_run(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute("UPDATE schema_migrations SET checksum = 'stale'")
            await conn.commit()

        results = await initialize_database(migrated_db, create_backup_before=False)

        assert len(results) == 1
        assert results[0].success is False
        assert "checksum" in results[0].error

    async def test_backup_removed_after_success(self, migrated_db: Path):
        await initialize_database(migrated_db, create_backup_before=True)
        assert list(migrated_db.parent.glob("*.backup_*")) == []

    async def test_schema_integrity(self, migrated_db: Path):
        checks = await verify_schema_integrity(migrated_db)
        assert all(c["status"] == "PASS" for c in checks), checks


class TestImmutableLogs:
    async def test_movement_rows_cannot_change(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute(
                """
                INSERT INTO products (sku, name, category, created_at, updated_at)
                VALUES ('A', 'A', 'raw-material', '2024-01-01', '2024-01-01')
                """
            )
            await conn.execute(
                """
                INSERT INTO stock_movements
                    (product_id, direction, quantity, delta, reference, created_at)
                VALUES (1, 'in', 5, 5, 'adjustment', '2024-01-01')
                """
            )
            await conn.commit()

            with pytest.raises(aiosqlite.IntegrityError, match="immutable"):
                await conn.execute("UPDATE stock_movements SET delta = 50")
            with pytest.raises(aiosqlite.IntegrityError, match="immutable"):
                await conn.execute("DELETE FROM stock_movements")
