"""
Versioned SQL migrations for the ledger database.

Migrations are `v###_name.sql` files next to this module. They run in version
order and each applied one is recorded in `schema_migrations` with a checksum
of its file. Before touching an existing database a snapshot is taken with
SQLite's online backup API; the snapshot is restored if the run raises and
removed once every migration succeeded.
"""

import hashlib
import re
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from venue_inventory.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

REQUIRED_TABLES = (
    "inventories",
    "stock_movements",
    "purchase_orders",
    "sequences",
    "schema_migrations",
)

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")


@dataclass
class MigrationInfo:
    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        return cls(version=match[1], name=match[2], path=path, checksum=digest[:16])

    def sql(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration files in `directory`, oldest first. Misnamed files are skipped."""
    found = []
    for path in directory.glob("v*.sql"):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("migration_file_ignored", path=str(path), error=str(e))
    return sorted(found, key=lambda m: int(m.version))


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to the checksum recorded when they ran."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        # Fresh database
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def apply_migration(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    started = time.perf_counter()
    error = None
    try:
        await conn.executescript(migration.sql())
        elapsed = int((time.perf_counter() - started) * 1000)
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations "
            "(version, name, checksum, execution_time_ms) VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        elapsed = int((time.perf_counter() - started) * 1000)
        error = str(e)

    log = logger.error if error else logger.info
    log(
        "migration_failed" if error else "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=elapsed,
        error=error,
    )
    return MigrationResult(migration.version, migration.name, error is None, elapsed, error)


async def _copy_database(source: Path, target: Path) -> None:
    async with aiosqlite.connect(source) as src, aiosqlite.connect(target) as dst:
        await src.backup(dst)


async def create_backup(db_path: Path) -> Path:
    stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    await _copy_database(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def restore_backup(db_path: Path, backup_path: Path) -> None:
    await _copy_database(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def _apply_pending(db_path: Path, migrations: list[MigrationInfo]) -> list[MigrationResult]:
    results: list[MigrationResult] = []
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        applied = await get_applied_migrations(conn)

        for migration in migrations:
            recorded = applied.get(migration.version)
            if recorded is not None:
                if recorded != migration.checksum:
                    logger.warning(
                        "migration_checksum_changed",
                        version=migration.version,
                        recorded=recorded,
                        current=migration.checksum,
                    )
                continue

            result = await apply_migration(conn, migration)
            results.append(result)
            if not result.success:
                break
    return results


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Apply every pending migration and return one result per attempt.

    Stops at the first failed migration. An applied migration whose file
    changed since is reported in the log and not re-run.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)

    migrations = discover_migrations(migrations_dir)
    if not migrations:
        logger.warning("no_migrations_found", directory=str(migrations_dir))
        return []

    backup_path = None
    if create_backup_before and db_path.exists():
        backup_path = await create_backup(db_path)

    try:
        results = await _apply_pending(db_path, migrations)
    except Exception:
        logger.exception("database_migration_aborted", db_path=str(db_path))
        if backup_path is not None:
            await restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()

    logger.info(
        "database_migrated",
        db_path=str(db_path),
        applied=[r.version for r in results if r.success],
        failed=[r.version for r in results if not r.success],
    )
    return results


run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    db_path = db_path or get_settings().storage.db_path
    versions = [m.version for m in discover_migrations()]

    applied: dict[str, str] = {}
    if db_path.exists():
        async with aiosqlite.connect(db_path) as conn:
            applied = await get_applied_migrations(conn)

    return {
        "exists": db_path.exists(),
        "current_version": max(applied, key=int) if applied else None,
        "applied_migrations": sorted(applied, key=int),
        "pending_migrations": [v for v in versions if v not in applied],
        "total_migrations": len(versions),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Run SQLite's integrity check plus ledger-specific consistency checks.

    Each check is a dict with `check` and `status` (PASS or FAIL).
    """
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()
        checks = [
            {
                "check": "integrity",
                "status": "PASS" if integrity == "ok" else "FAIL",
                "result": integrity,
            }
        ]

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {name for (name,) in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in tables]
        checks.append(
            {
                "check": "required_tables",
                "status": "FAIL" if missing else "PASS",
                "missing": missing,
            }
        )

        if not missing:
            checks.append(await _check_order_sequence(conn))

    return checks


async def _check_order_sequence(conn: aiosqlite.Connection) -> dict:
    # Orders are only numbered from the sequence, so it can never trail them
    cursor = await conn.execute("SELECT COUNT(*) FROM purchase_orders")
    (orders,) = await cursor.fetchone()
    cursor = await conn.execute(
        "SELECT COALESCE(MAX(value), 0) FROM sequences WHERE name = 'purchase_order'"
    )
    (issued,) = await cursor.fetchone()
    return {
        "check": "purchase_order_sequence",
        "status": "PASS" if issued >= orders else "FAIL",
        "orders": orders,
        "issued": issued,
    }
