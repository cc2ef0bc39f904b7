"""Abstract interface for purchase order storage."""

from abc import ABC, abstractmethod

from venue_inventory.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus


class IPurchaseOrderStore(ABC):
    """Interface for purchase order persistence with version-guarded writes."""

    @abstractmethod
    async def next_order_number(self) -> int:
        """Allocate the next purchase order sequence number (starts at 1)."""
        pass

    @abstractmethod
    async def create_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Insert a new order at version 1."""
        pass

    @abstractmethod
    async def get_order(self, purchase_order_id: str) -> PurchaseOrder | None:
        """Get order by ID."""
        pass

    @abstractmethod
    async def save_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Write a loaded order back, bumping the version."""
        pass

    @abstractmethod
    async def delete_order(self, purchase_order_id: str) -> bool:
        """Delete an order. Returns False when it did not exist."""
        pass

    @abstractmethod
    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        """List orders, newest first."""
        pass

    @abstractmethod
    async def count_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: str | None = None,
    ) -> int:
        """Count orders matching the same filters as list_orders."""
        pass
