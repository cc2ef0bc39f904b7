"""Read-side lookups for inventory records and purchase orders."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from venue_inventory.config import get_settings
from venue_inventory.core.entities.inventory import Batch, Inventory
from venue_inventory.core.entities.movement import StockMovement
from venue_inventory.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus
from venue_inventory.core.exceptions import InventoryNotFoundError, PurchaseOrderNotFoundError
from venue_inventory.core.interfaces.inventory_store import IInventoryStore
from venue_inventory.core.interfaces.purchase_order_store import IPurchaseOrderStore
from venue_inventory.core.validation import as_utc, utcnow


@dataclass
class ExpiringBatch:
    inventory: Inventory
    batch: Batch
    days_until_expiry: int


class InventoryQueries:
    def __init__(self, inventory_store: IInventoryStore | None = None):
        self._inventory_store = inventory_store

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from venue_inventory.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def get_inventory(self, product_id: str, location_id: str) -> Inventory:
        """Load a record or raise InventoryNotFoundError."""
        store = await self._get_inventory_store()
        inventory = await store.get_inventory(product_id, location_id)
        if inventory is None:
            raise InventoryNotFoundError(product_id, location_id)
        return inventory

    async def list_inventories(
        self,
        product_id: str | None = None,
        location_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Inventory]:
        store = await self._get_inventory_store()
        return await store.list_inventories(product_id, location_id, limit, offset)

    async def get_movements(
        self, product_id: str, location_id: str, limit: int = 100, offset: int = 0
    ) -> list[StockMovement]:
        # Raise for unknown records rather than returning an empty history
        await self.get_inventory(product_id, location_id)
        store = await self._get_inventory_store()
        return await store.get_movements(product_id, location_id, limit, offset)

    async def expiring_batches(
        self,
        within_days: int | None = None,
        now: datetime | None = None,
        limit: int = 100,
    ) -> list[ExpiringBatch]:
        """Available batches expiring within the window, soonest first."""
        if within_days is None:
            within_days = get_settings().ledger.expiry_warning_days
        now = as_utc(now) or utcnow()
        store = await self._get_inventory_store()
        records = await store.list_expiring(before=now + timedelta(days=within_days), limit=limit)

        found = []
        for inventory in records:
            for batch in inventory.expiring_batches(within_days, now):
                days = math.ceil((batch.expiry_date - now).total_seconds() / 86400)
                found.append(ExpiringBatch(inventory, batch, days))
        found.sort(key=lambda e: e.batch.expiry_date)
        return found


class PurchaseOrderQueries:
    def __init__(self, purchase_order_store: IPurchaseOrderStore | None = None):
        self._purchase_order_store = purchase_order_store

    async def _get_purchase_order_store(self) -> IPurchaseOrderStore:
        if self._purchase_order_store is None:
            from venue_inventory.infrastructure.storage.sqlite import get_purchase_order_store

            self._purchase_order_store = await get_purchase_order_store()
        return self._purchase_order_store

    async def get_purchase_order(self, purchase_order_id: str) -> PurchaseOrder:
        """Load an order or raise PurchaseOrderNotFoundError."""
        store = await self._get_purchase_order_store()
        order = await store.get_order(purchase_order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(purchase_order_id)
        return order

    async def list_purchase_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[PurchaseOrder], int]:
        """A page of orders plus the total count for the same filters."""
        store = await self._get_purchase_order_store()
        orders = await store.list_orders(status, supplier_id, limit, offset)
        total = await store.count_orders(status, supplier_id)
        return orders, total
