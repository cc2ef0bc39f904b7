"""Shared load-mutate-save cycle for purchase order use cases."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from venue_inventory.application.concurrency import (
    KeyedLocks,
    get_purchase_order_locks,
    retry_on_conflict,
)
from venue_inventory.core.entities.purchase_order import PurchaseOrder
from venue_inventory.core.exceptions import PurchaseOrderNotFoundError
from venue_inventory.core.interfaces.purchase_order_store import IPurchaseOrderStore

R = TypeVar("R")


class PurchaseOrderCommand:
    """Base for use cases that change one purchase order."""

    def __init__(
        self,
        purchase_order_store: IPurchaseOrderStore | None = None,
        locks: KeyedLocks | None = None,
    ):
        self._purchase_order_store = purchase_order_store
        self._locks = locks or get_purchase_order_locks()

    async def _get_purchase_order_store(self) -> IPurchaseOrderStore:
        if self._purchase_order_store is None:
            from venue_inventory.infrastructure.storage.sqlite import get_purchase_order_store

            self._purchase_order_store = await get_purchase_order_store()
        return self._purchase_order_store

    async def _apply(
        self,
        purchase_order_id: str,
        mutate: Callable[[PurchaseOrder], R],
        before_save: Callable[[PurchaseOrder], Awaitable[None]] | None = None,
    ) -> tuple[PurchaseOrder, R]:
        """
        Load the order, mutate it and save it under the order's lock.

        `before_save` sees the mutated order and may raise to abandon the
        change before anything is written.
        """
        store = await self._get_purchase_order_store()

        async def attempt() -> tuple[PurchaseOrder, R]:
            order = await store.get_order(purchase_order_id)
            if order is None:
                raise PurchaseOrderNotFoundError(purchase_order_id)
            value = mutate(order)
            if before_save is not None:
                await before_save(order)
            order = await store.save_order(order)
            return order, value

        async with self._locks.hold(purchase_order_id):
            return await retry_on_conflict(attempt)
