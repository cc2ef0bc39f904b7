"""Unit tests for the SQLite connection pool."""

from pathlib import Path

import pytest

from venue_inventory.core.exceptions import DatabaseError
from venue_inventory.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    get_connection,
    get_transaction,
)


@pytest.fixture
async def pool(initialized_db: Path):
    pool = ConnectionPool(initialized_db, pool_size=2, busy_timeout=1000)
    await pool.initialize()
    try:
        yield pool
    finally:
        await pool.close()


class TestConnectionPool:
    async def test_connections_are_tuned(self, pool: ConnectionPool):
        async with pool.acquire() as conn:
            cursor = await conn.execute("PRAGMA journal_mode")
            assert (await cursor.fetchone())[0] == "wal"
            cursor = await conn.execute("PRAGMA busy_timeout")
            assert (await cursor.fetchone())[0] == 1000

    async def test_acquire_returns_connection(self, pool: ConnectionPool):
        async with pool.acquire():
            assert pool.in_use == 1
        assert pool.in_use == 0

    async def test_ping(self, pool: ConnectionPool):
        assert await pool.ping() is True

    async def test_close_resets(self, pool: ConnectionPool):
        await pool.close()
        assert pool.in_use == 0
        assert await pool.ping() is True


class TestTransaction:
    async def test_commits_on_success(self, pool: ConnectionPool):
        async with pool.transaction() as conn:
            await conn.execute("INSERT INTO sequences (name, value) VALUES ('t', 1)")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT value FROM sequences WHERE name = 't'")
            assert (await cursor.fetchone())[0] == 1

    async def test_rolls_back_on_error(self, pool: ConnectionPool):
        with pytest.raises(RuntimeError):
            async with pool.transaction() as conn:
                await conn.execute("INSERT INTO sequences (name, value) VALUES ('t', 1)")
                raise RuntimeError("abort")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM sequences")
            assert (await cursor.fetchone())[0] == 0

    async def test_operational_error_becomes_database_error(self, pool: ConnectionPool):
        with pytest.raises(DatabaseError) as exc_info:
            async with pool.transaction() as conn:
                await conn.execute("SELECT * FROM no_such_table")

        assert exc_info.value.code == "DATABASE_ERROR"
        assert exc_info.value.details["operation"] == "transaction"


class TestGlobalPool:
    async def test_helpers_use_settings_path(self, pooled_db: Path):
        async with get_transaction() as conn:
            await conn.execute("INSERT INTO sequences (name, value) VALUES ('g', 7)")
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT value FROM sequences WHERE name = 'g'")
            assert (await cursor.fetchone())[0] == 7
