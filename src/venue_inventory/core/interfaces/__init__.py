"""Store interfaces (ports)."""

from venue_inventory.core.ids import IIdGenerator
from venue_inventory.core.interfaces.inventory_store import IInventoryStore
from venue_inventory.core.interfaces.purchase_order_store import IPurchaseOrderStore

__all__ = [
    "IIdGenerator",
    "IInventoryStore",
    "IPurchaseOrderStore",
]
