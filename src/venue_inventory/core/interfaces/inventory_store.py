"""Abstract interface for inventory storage."""

from abc import ABC, abstractmethod
from datetime import datetime

from venue_inventory.core.entities.inventory import Inventory
from venue_inventory.core.entities.movement import StockMovement


class IInventoryStore(ABC):
    """
    Interface for inventory record and stock movement persistence.

    One document per (product_id, location_id). Writes are guarded by the
    record's version: `save_inventory` raises VersionConflictError when the
    stored version no longer matches, and `create_inventory` raises it when
    the key already exists.
    """

    @abstractmethod
    async def get_inventory(self, product_id: str, location_id: str) -> Inventory | None:
        """Get inventory record by key."""
        pass

    @abstractmethod
    async def create_inventory(
        self, inventory: Inventory, movement: StockMovement | None = None
    ) -> Inventory:
        """Insert a new record (and its first movement) at version 1."""
        pass

    @abstractmethod
    async def save_inventory(
        self, inventory: Inventory, movement: StockMovement | None = None
    ) -> Inventory:
        """Write a loaded record back (with its movement), bumping the version."""
        pass

    @abstractmethod
    async def delete_inventory(self, product_id: str, location_id: str) -> bool:
        """Delete a record. Returns False when it did not exist."""
        pass

    @abstractmethod
    async def list_inventories(
        self,
        product_id: str | None = None,
        location_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Inventory]:
        """List records, optionally filtered by product or location."""
        pass

    @abstractmethod
    async def list_expiring(
        self, before: datetime, limit: int = 100
    ) -> list[Inventory]:
        """Records holding a non-expired batch whose expiry is at or before `before`."""
        pass

    @abstractmethod
    async def add_movement(self, movement: StockMovement) -> StockMovement:
        """Record a stock movement."""
        pass

    @abstractmethod
    async def get_movements(
        self, product_id: str, location_id: str, limit: int = 100, offset: int = 0
    ) -> list[StockMovement]:
        """Get movements for a record, newest first."""
        pass
