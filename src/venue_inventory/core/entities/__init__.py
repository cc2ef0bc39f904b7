"""Domain entities."""

from venue_inventory.core.entities.inventory import (
    Batch,
    BatchStatus,
    ConsumedBatch,
    ConsumptionMethod,
    Inventory,
    InventoryTotals,
    compute_totals,
)
from venue_inventory.core.entities.movement import (
    MovementReference,
    MovementType,
    ReferenceType,
    StockMovement,
)
from venue_inventory.core.entities.purchase_order import (
    DeliveryStatus,
    PaymentMethod,
    PaymentTerms,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)

__all__ = [
    # Ledger
    "Batch",
    "BatchStatus",
    "ConsumedBatch",
    "ConsumptionMethod",
    "Inventory",
    "InventoryTotals",
    "compute_totals",
    # Movements
    "MovementReference",
    "MovementType",
    "ReferenceType",
    "StockMovement",
    # Purchase orders
    "DeliveryStatus",
    "PaymentMethod",
    "PaymentTerms",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
]
