"""
Application layer - use cases, queries and DTOs.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that load, mutate and save records under a lock
3. Providing read-side queries

Use cases are the only entry point for API handlers that change state.
"""

from venue_inventory.application.queries import InventoryQueries, PurchaseOrderQueries
from venue_inventory.application.use_cases import (
    ChangePurchaseOrderStatusUseCase,
    ConsumeStockUseCase,
    CreatePurchaseOrderUseCase,
    EditPurchaseOrderUseCase,
    ManageInventoryUseCase,
    PurchaseOrderAction,
    ReceiveStockUseCase,
    ReleaseReservationUseCase,
    ReserveStockUseCase,
    SweepExpiredBatchesUseCase,
)

__all__ = [
    # Queries
    "InventoryQueries",
    "PurchaseOrderQueries",
    # Use Cases
    "ReceiveStockUseCase",
    "ReserveStockUseCase",
    "ReleaseReservationUseCase",
    "ConsumeStockUseCase",
    "ManageInventoryUseCase",
    "SweepExpiredBatchesUseCase",
    "CreatePurchaseOrderUseCase",
    "EditPurchaseOrderUseCase",
    "ChangePurchaseOrderStatusUseCase",
    "PurchaseOrderAction",
]
