"""
Shared aiosqlite connections for the ledger stores.

Reads borrow a pooled connection. Writes run inside BEGIN IMMEDIATE, so a
version check and the write it guards happen under the same database write
lock.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from venue_inventory.config import get_logger, get_settings
from venue_inventory.core.exceptions import DatabaseError

logger = get_logger(__name__)

PRAGMAS = ("journal_mode=WAL", "synchronous=NORMAL")


class ConnectionPool:
    """
    Bounded set of connections to one database file.

    Connections are opened on demand, at most `pool_size` of them, and reused
    once returned.
    """

    def __init__(self, db_path: Path, pool_size: int = 5, busy_timeout: int = 30000):
        self.db_path = Path(db_path)
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout
        self._slots = asyncio.Semaphore(pool_size)
        self._opened: list[aiosqlite.Connection] = []
        self._idle: list[aiosqlite.Connection] = []

    @property
    def in_use(self) -> int:
        return len(self._opened) - len(self._idle)

    async def initialize(self) -> None:
        """Create the data directory and prove the database opens."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self.acquire():
            pass
        logger.info("connection_pool_ready", db_path=str(self.db_path), pool_size=self.pool_size)

    async def _open(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        for pragma in PRAGMAS:
            await conn.execute(f"PRAGMA {pragma}")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        self._opened.append(conn)
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        async with self._slots:
            conn = self._idle.pop() if self._idle else await self._open()
            try:
                yield conn
            finally:
                self._idle.append(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside BEGIN IMMEDIATE.

        Commits when the block exits normally, rolls back on any exception.
        SQLite operational failures such as a lock timeout surface as
        `DatabaseError`.
        """
        async with self.acquire() as conn:
            try:
                await conn.execute("BEGIN IMMEDIATE")
                yield conn
                await conn.commit()
            except aiosqlite.OperationalError as e:
                await conn.rollback()
                raise DatabaseError("transaction", str(e)) from e
            except Exception:
                await conn.rollback()
                raise

    async def ping(self) -> bool:
        async with self.acquire() as conn:
            cursor = await conn.execute("SELECT 1")
            row = await cursor.fetchone()
            return row is not None and row[0] == 1

    async def close(self) -> None:
        opened, self._opened, self._idle = self._opened, [], []
        for conn in opened:
            await conn.close()
        logger.info("connection_pool_closed", db_path=str(self.db_path), closed=len(opened))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """The process-wide pool, built from storage settings on first use."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        pool = ConnectionPool(storage.db_path, storage.pool_size, storage.busy_timeout)
        await pool.initialize()
        _pool = pool
    return _pool


async def close_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is not None:
        await pool.close()


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.transaction() as conn:
        yield conn
