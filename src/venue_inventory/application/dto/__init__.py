"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from venue_inventory.application.dto.requests import (
    ConsumeStockRequest,
    CreatePurchaseOrderRequest,
    ExpireBatchesRequest,
    PaymentTermsRequest,
    PerformedByRequest,
    PurchaseOrderActionRequest,
    PurchaseOrderItemRequest,
    ReceiveStockRequest,
    ReleaseReservationRequest,
    RemoveBatchRequest,
    ReserveStockRequest,
    UpdateBatchRequest,
    UpdatePurchaseOrderItemRequest,
)
from venue_inventory.application.dto.responses import (
    BatchResponse,
    ConsumeStockResponse,
    DatabaseHealthResponse,
    ErrorResponse,
    ExpiringBatchesResponse,
    ExpirySweepResponse,
    HealthResponse,
    InventoryListResponse,
    InventoryResponse,
    LedgerCommandResponse,
    PurchaseOrderActionResponse,
    PurchaseOrderListResponse,
    PurchaseOrderResponse,
    ReceiveStockResponse,
    StockMovementResponse,
)

__all__ = [
    # Requests
    "ConsumeStockRequest",
    "CreatePurchaseOrderRequest",
    "ExpireBatchesRequest",
    "PaymentTermsRequest",
    "PerformedByRequest",
    "PurchaseOrderActionRequest",
    "PurchaseOrderItemRequest",
    "ReceiveStockRequest",
    "ReleaseReservationRequest",
    "RemoveBatchRequest",
    "ReserveStockRequest",
    "UpdateBatchRequest",
    "UpdatePurchaseOrderItemRequest",
    # Responses
    "BatchResponse",
    "ConsumeStockResponse",
    "DatabaseHealthResponse",
    "ErrorResponse",
    "ExpiringBatchesResponse",
    "ExpirySweepResponse",
    "HealthResponse",
    "InventoryListResponse",
    "InventoryResponse",
    "LedgerCommandResponse",
    "PurchaseOrderActionResponse",
    "PurchaseOrderListResponse",
    "PurchaseOrderResponse",
    "ReceiveStockResponse",
    "StockMovementResponse",
]
