"""Unit tests for database migrator."""

from pathlib import Path

import aiosqlite
import pytest

from venue_inventory.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    MigrationInfo,
    discover_migrations,
    get_applied_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


class TestMigrationInfo:
    """Tests for MigrationInfo dataclass."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v001_initial_schema.sql"
        migration_file.write_text("-- Test migration\nSELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "001"
        assert info.name == "initial_schema"
        assert len(info.checksum) == 16

    def test_from_file_rejects_bad_name(self, tmp_path: Path):
        bad = tmp_path / "initial.sql"
        bad.write_text("SELECT 1;")
        with pytest.raises(ValueError):
            MigrationInfo.from_file(bad)

    def test_discover_sorted(self, tmp_path: Path):
        (tmp_path / "v002_second.sql").write_text("SELECT 2;")
        (tmp_path / "v001_first.sql").write_text("SELECT 1;")
        assert [m.version for m in discover_migrations(tmp_path)] == ["001", "002"]

    def test_packaged_migrations_found(self):
        assert [m.name for m in discover_migrations()][0] == "initial"


class TestInitializeDatabase:
    async def test_creates_schema(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path)

        assert [r.version for r in results] == ["001"]
        assert all(r.success for r in results)
        checks = await verify_schema_integrity(temp_db_path)
        assert all(c["status"] == "PASS" for c in checks)

    async def test_rerun_applies_nothing(self, temp_db_path: Path):
        await initialize_database(temp_db_path)
        assert await initialize_database(temp_db_path) == []
        # Successful runs remove their backup
        assert list(temp_db_path.parent.glob("*.backup_*")) == []

    async def test_failed_migration_stops(self, tmp_path: Path, temp_db_path: Path):
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "v001_base.sql").write_text(
            "CREATE TABLE schema_migrations (version TEXT PRIMARY KEY, name TEXT, "
            "checksum TEXT, applied_at TEXT, execution_time_ms INTEGER);"
        )
        (migrations / "v002_broken.sql").write_text("CREATE TABLE oops (;")
        (migrations / "v003_never.sql").write_text("CREATE TABLE never (id INTEGER);")

        results = await initialize_database(temp_db_path, migrations_dir=migrations)

        assert [(r.version, r.success) for r in results] == [("001", True), ("002", False)]
        async with aiosqlite.connect(temp_db_path) as conn:
            assert list(await get_applied_migrations(conn)) == ["001"]

    async def test_status(self, temp_db_path: Path):
        before = await get_migration_status(temp_db_path)
        assert before["exists"] is False
        assert before["pending_migrations"] == ["001"]

        await initialize_database(temp_db_path)
        after = await get_migration_status(temp_db_path)
        assert after["current_version"] == "001"
        assert after["pending_migrations"] == []

    async def test_integrity_reports_missing_tables(self, temp_db_path: Path):
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("CREATE TABLE unrelated (id INTEGER)")
            await conn.commit()

        checks = {c["check"]: c for c in await verify_schema_integrity(temp_db_path)}
        assert checks["integrity"]["status"] == "PASS"
        assert checks["required_tables"]["status"] == "FAIL"
        assert checks["required_tables"]["missing"] == list(REQUIRED_TABLES)

    async def test_integrity_flags_orders_without_sequence(self, temp_db_path: Path):
        await initialize_database(temp_db_path)
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute(
                "INSERT INTO purchase_orders (purchase_order_id, supplier_id, status, "
                "document, created_at, updated_at) VALUES ('PO000001', 'SUP-1', 'draft', "
                "'{}', '2024-06-01', '2024-06-01')"
            )
            await conn.commit()

        checks = {c["check"]: c for c in await verify_schema_integrity(temp_db_path)}
        assert checks["purchase_order_sequence"]["status"] == "FAIL"
        assert checks["purchase_order_sequence"]["orders"] == 1
