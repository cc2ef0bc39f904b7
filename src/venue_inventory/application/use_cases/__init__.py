"""Application use cases.

Each use case orchestrates entities and stores for one business operation.
"""

from venue_inventory.application.use_cases.change_purchase_order_status import (
    ChangePurchaseOrderStatusUseCase,
    PurchaseOrderAction,
    PurchaseOrderActionResult,
)
from venue_inventory.application.use_cases.consume_stock import (
    ConsumeStockResult,
    ConsumeStockUseCase,
)
from venue_inventory.application.use_cases.create_purchase_order import (
    CreatePurchaseOrderUseCase,
    format_purchase_order_id,
)
from venue_inventory.application.use_cases.edit_purchase_order import EditPurchaseOrderUseCase
from venue_inventory.application.use_cases.ledger_command import (
    LedgerCommand,
    LedgerCommandResult,
)
from venue_inventory.application.use_cases.manage_inventory import ManageInventoryUseCase
from venue_inventory.application.use_cases.receive_stock import (
    ReceiveStockResult,
    ReceiveStockUseCase,
)
from venue_inventory.application.use_cases.release_reservation import ReleaseReservationUseCase
from venue_inventory.application.use_cases.reserve_stock import ReserveStockUseCase
from venue_inventory.application.use_cases.sweep_expired_batches import (
    ExpirySweepResult,
    SweepExpiredBatchesUseCase,
)

__all__ = [
    # Batch ledger
    "LedgerCommand",
    "LedgerCommandResult",
    "ReceiveStockUseCase",
    "ReceiveStockResult",
    "ReserveStockUseCase",
    "ReleaseReservationUseCase",
    "ConsumeStockUseCase",
    "ConsumeStockResult",
    "ManageInventoryUseCase",
    "SweepExpiredBatchesUseCase",
    "ExpirySweepResult",
    # Purchase orders
    "CreatePurchaseOrderUseCase",
    "format_purchase_order_id",
    "EditPurchaseOrderUseCase",
    "ChangePurchaseOrderStatusUseCase",
    "PurchaseOrderAction",
    "PurchaseOrderActionResult",
]
