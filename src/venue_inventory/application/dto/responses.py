"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# --- Batch Ledger ---


class BatchResponse(BaseModel):
    """Batch response DTO."""

    batch_id: str
    quantity: float
    unit: str
    cost_per_unit: float
    total_value: float
    received_date: datetime
    expiry_date: datetime | None = None
    supplier_batch_code: str | None = None
    status: str
    origin_batch_id: str | None = None
    reserved_at: datetime | None = None


class InventoryTotalsResponse(BaseModel):
    available: float
    reserved: float
    quarantine: float
    unit: str


class InventoryResponse(BaseModel):
    """Inventory record response DTO."""

    product_id: str
    location_id: str
    location_name: str
    product_name: str | None = None
    batches: list[BatchResponse]
    totals: InventoryTotalsResponse
    total_stock: float
    average_cost: float
    next_expiry_date: datetime | None = None
    last_movement_id: str | None = None
    last_updated: datetime
    last_updated_by: str
    version: int


class InventoryListResponse(BaseModel):
    items: list[InventoryResponse]
    total: int
    limit: int
    offset: int


class MovementReferenceResponse(BaseModel):
    type: str
    id: str


class StockMovementResponse(BaseModel):
    """Stock movement response DTO."""

    movement_id: str
    movement_type: str
    product_id: str
    location_id: str
    quantity: float
    unit: str
    batch_id: str | None = None
    unit_cost: float
    total_cost: float
    reference: MovementReferenceResponse | None = None
    performed_by: str
    notes: str | None = None
    created_at: datetime


class ReceiveStockResponse(BaseModel):
    """Response for stock receive operation."""

    inventory: InventoryResponse
    batch: BatchResponse
    movement: StockMovementResponse
    created: bool = False  # True if the inventory record was created


class LedgerCommandResponse(BaseModel):
    """Response for reserve, release and batch maintenance operations."""

    inventory: InventoryResponse
    movement: StockMovementResponse | None = None
    affected_batch_ids: list[str] = Field(default_factory=list)


class ConsumedBatchResponse(BaseModel):
    batch_id: str
    quantity: float
    cost_per_unit: float
    total_cost: float


class ConsumeStockResponse(BaseModel):
    """Response for stock consumption with the per-batch breakdown."""

    inventory: InventoryResponse
    consumed: list[ConsumedBatchResponse]
    total_cost: float
    movement: StockMovementResponse


class ExpiredBatchResponse(BaseModel):
    product_id: str
    location_id: str
    batch_id: str
    quantity: float


class ExpirySweepResponse(BaseModel):
    """Response for the expiry sweep."""

    as_of: datetime
    inventories_checked: int
    inventories_updated: int
    expired: list[ExpiredBatchResponse]


class ExpiringBatchResponse(BaseModel):
    product_id: str
    location_id: str
    location_name: str
    batch: BatchResponse
    days_until_expiry: int


class ExpiringBatchesResponse(BaseModel):
    within_days: int
    items: list[ExpiringBatchResponse]


# --- Purchase Orders ---


class PurchaseOrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    quantity: float
    unit: str
    unit_price: float
    total_price: float
    notes: str | None = None


class PaymentTermsResponse(BaseModel):
    method: str
    credit_days: int
    due_date: datetime | None = None


class PurchaseOrderResponse(BaseModel):
    """Purchase order response DTO."""

    purchase_order_id: str
    supplier_id: str
    supplier_name: str
    status: str
    items: list[PurchaseOrderItemResponse]
    subtotal: float
    tax_rate: float
    tax: float
    total: float
    currency: str
    payment_terms: PaymentTermsResponse
    expected_delivery_date: datetime | None = None
    actual_delivery_date: datetime | None = None
    delivery_location: str
    delivery_status: str
    days_until_delivery: int | None = None
    is_overdue: bool
    notes: str | None = None
    internal_notes: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    ordered_by: str | None = None
    ordered_at: datetime | None = None
    received_by: str | None = None
    received_at: datetime | None = None
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    created_by: str
    updated_by: str | None = None
    created_at: datetime
    updated_at: datetime
    version: int


class PurchaseOrderListResponse(BaseModel):
    items: list[PurchaseOrderResponse]
    total: int
    limit: int
    offset: int


class PurchaseOrderActionResponse(BaseModel):
    """Response for a lifecycle transition."""

    purchase_order: PurchaseOrderResponse
    received_batches: list[ReceiveStockResponse] = Field(default_factory=list)


# --- Health & Errors ---


class DatabaseHealthResponse(BaseModel):
    name: str
    available: bool
    latency_ms: float | None = None
    schema_version: str | None = None
    pending_migrations: list[str] = Field(default_factory=list)
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: DatabaseHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
