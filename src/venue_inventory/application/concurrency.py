"""
Per-record serialization and optimistic-conflict retry for commands.

Inside one process, commands on the same record key run one at a time under
an asyncio lock. Across processes the store's version check catches lost
races; the losing command is reloaded and reapplied with tenacity.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar, cast

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from venue_inventory.config import get_logger, get_settings
from venue_inventory.core.exceptions import VersionConflictError

logger = get_logger(__name__)

T = TypeVar("T")


class KeyedLocks:
    """asyncio locks created on demand per key and dropped once idle."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]


_inventory_locks = KeyedLocks()
_purchase_order_locks = KeyedLocks()


def get_inventory_locks() -> KeyedLocks:
    return _inventory_locks


def get_purchase_order_locks() -> KeyedLocks:
    return _purchase_order_locks


def _log_retry(retry_state: RetryCallState) -> None:
    """Log conflict retries."""
    logger.warning(
        "version_conflict_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


def _get_retry_decorator() -> Any:
    ledger = get_settings().ledger
    return retry(
        stop=stop_after_attempt(ledger.conflict_max_attempts),
        wait=wait_exponential(
            multiplier=ledger.conflict_retry_delay,
            min=ledger.conflict_retry_delay,
            max=ledger.conflict_retry_max_delay,
        ),
        retry=retry_if_exception_type(VersionConflictError),
        before_sleep=_log_retry,
        reraise=True,
    )


async def retry_on_conflict(operation: Callable[[], Awaitable[T]]) -> T:
    """
    Run a load-mutate-save operation, rerunning it after a version conflict.

    The operation must reload its record on every call. The last
    VersionConflictError is re-raised once attempts run out.
    """
    result = await _get_retry_decorator()(operation)()
    return cast(T, result)
