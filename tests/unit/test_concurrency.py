"""Tests for per-record locks and conflict retry."""

import asyncio

import pytest

from venue_inventory.application.concurrency import KeyedLocks, retry_on_conflict
from venue_inventory.core.exceptions import InvalidStateError, VersionConflictError


class TestKeyedLocks:
    async def test_same_key_serialized(self):
        locks = KeyedLocks()
        events = []

        async def worker(name: str):
            async with locks.hold("P1:L1"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events == ["a-in", "a-out", "b-in", "b-out"]

    async def test_different_keys_interleave(self):
        locks = KeyedLocks()
        events = []

        async def worker(key: str):
            async with locks.hold(key):
                events.append(f"{key}-in")
                await asyncio.sleep(0.01)
                events.append(f"{key}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events[:2] == ["a-in", "b-in"]

    async def test_idle_locks_dropped(self):
        locks = KeyedLocks()
        async with locks.hold("P1:L1"):
            assert len(locks) == 1
        assert len(locks) == 0

    async def test_released_on_error(self):
        locks = KeyedLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold("P1:L1"):
                raise RuntimeError("boom")
        assert len(locks) == 0


class TestRetryOnConflict:
    async def test_retries_then_succeeds(self):
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) < 3:
                raise VersionConflictError("inventory", "P1:L1", len(calls))
            return "saved"

        assert await retry_on_conflict(operation) == "saved"
        assert len(calls) == 3

    async def test_reraises_after_max_attempts(self, monkeypatch):
        from venue_inventory.config import reset_settings

        monkeypatch.setenv("LEDGER_CONFLICT_MAX_ATTEMPTS", "2")
        reset_settings()
        calls = []

        async def operation():
            calls.append(1)
            raise VersionConflictError("inventory", "P1:L1", 1)

        with pytest.raises(VersionConflictError):
            await retry_on_conflict(operation)
        assert len(calls) == 2

    async def test_other_errors_not_retried(self):
        calls = []

        async def operation():
            calls.append(1)
            raise InvalidStateError("batch", "B1", "reserved", "consume")

        with pytest.raises(InvalidStateError):
            await retry_on_conflict(operation)
        assert len(calls) == 1
