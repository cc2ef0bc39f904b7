"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers. Tests replace these through
`app.dependency_overrides`.
"""

from functools import lru_cache

from venue_inventory.application.queries import InventoryQueries, PurchaseOrderQueries
from venue_inventory.application.use_cases import (
    ChangePurchaseOrderStatusUseCase,
    ConsumeStockUseCase,
    CreatePurchaseOrderUseCase,
    EditPurchaseOrderUseCase,
    ManageInventoryUseCase,
    ReceiveStockUseCase,
    ReleaseReservationUseCase,
    ReserveStockUseCase,
    SweepExpiredBatchesUseCase,
)
from venue_inventory.config import Settings, get_settings


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Ledger use case dependencies
def get_receive_stock_use_case() -> ReceiveStockUseCase:
    return ReceiveStockUseCase()


def get_reserve_stock_use_case() -> ReserveStockUseCase:
    return ReserveStockUseCase()


def get_release_reservation_use_case() -> ReleaseReservationUseCase:
    return ReleaseReservationUseCase()


def get_consume_stock_use_case() -> ConsumeStockUseCase:
    return ConsumeStockUseCase()


def get_manage_inventory_use_case() -> ManageInventoryUseCase:
    return ManageInventoryUseCase()


def get_sweep_expired_use_case() -> SweepExpiredBatchesUseCase:
    return SweepExpiredBatchesUseCase()


def get_inventory_queries() -> InventoryQueries:
    return InventoryQueries()


# Purchase order use case dependencies
def get_create_purchase_order_use_case() -> CreatePurchaseOrderUseCase:
    return CreatePurchaseOrderUseCase()


def get_edit_purchase_order_use_case() -> EditPurchaseOrderUseCase:
    return EditPurchaseOrderUseCase()


def get_change_purchase_order_status_use_case() -> ChangePurchaseOrderStatusUseCase:
    return ChangePurchaseOrderStatusUseCase()


def get_purchase_order_queries() -> PurchaseOrderQueries:
    return PurchaseOrderQueries()
