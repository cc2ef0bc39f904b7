"""
Inventory ledger endpoints.

Records are addressed by product and location. Every mutating call names
the actor in its body.
"""

from fastapi import APIRouter, Depends, Query, status

from venue_inventory.api.dependencies import (
    get_consume_stock_use_case,
    get_inventory_queries,
    get_manage_inventory_use_case,
    get_receive_stock_use_case,
    get_release_reservation_use_case,
    get_reserve_stock_use_case,
    get_sweep_expired_use_case,
)
from venue_inventory.application.dto.mappers import (
    batch_to_response,
    inventory_to_response,
    movement_to_response,
)
from venue_inventory.application.dto.requests import (
    ConsumeStockRequest,
    ExpireBatchesRequest,
    ReceiveStockRequest,
    ReleaseReservationRequest,
    RemoveBatchRequest,
    ReserveStockRequest,
    UpdateBatchRequest,
)
from venue_inventory.application.dto.responses import (
    ConsumeStockResponse,
    ErrorResponse,
    ExpiringBatchesResponse,
    ExpiringBatchResponse,
    ExpirySweepResponse,
    InventoryListResponse,
    InventoryResponse,
    LedgerCommandResponse,
    ReceiveStockResponse,
    StockMovementResponse,
)
from venue_inventory.application.queries import InventoryQueries
from venue_inventory.application.use_cases import (
    ConsumeStockUseCase,
    ManageInventoryUseCase,
    ReceiveStockUseCase,
    ReleaseReservationUseCase,
    ReserveStockUseCase,
    SweepExpiredBatchesUseCase,
)
from venue_inventory.config import get_settings

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

NOT_FOUND = {404: {"model": ErrorResponse}}
CONFLICT = {404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}


@router.get("", response_model=InventoryListResponse)
async def list_inventories(
    product_id: str | None = None,
    location_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    queries: InventoryQueries = Depends(get_inventory_queries),
) -> InventoryListResponse:
    """List inventory records, optionally filtered by product or location."""
    records = await queries.list_inventories(product_id, location_id, limit, offset)
    return InventoryListResponse(
        items=[inventory_to_response(r) for r in records],
        total=len(records),
        limit=limit,
        offset=offset,
    )


@router.post(
    "/receive",
    response_model=ReceiveStockResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def receive_stock(
    request: ReceiveStockRequest,
    use_case: ReceiveStockUseCase = Depends(get_receive_stock_use_case),
) -> ReceiveStockResponse:
    """
    Receive a new batch.

    Opens the inventory record for the product/location when none exists.
    """
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("/expiring", response_model=ExpiringBatchesResponse)
async def list_expiring(
    within_days: int | None = Query(default=None, ge=0, le=365),
    limit: int = Query(default=100, ge=1, le=500),
    queries: InventoryQueries = Depends(get_inventory_queries),
) -> ExpiringBatchesResponse:
    """Available batches expiring within the window, soonest first."""
    if within_days is None:
        within_days = get_settings().ledger.expiry_warning_days
    found = await queries.expiring_batches(within_days=within_days, limit=limit)
    return ExpiringBatchesResponse(
        within_days=within_days,
        items=[
            ExpiringBatchResponse(
                product_id=e.inventory.product_id,
                location_id=e.inventory.location_id,
                location_name=e.inventory.location_name,
                batch=batch_to_response(e.batch),
                days_until_expiry=e.days_until_expiry,
            )
            for e in found
        ],
    )


@router.post("/expire", response_model=ExpirySweepResponse)
async def expire_batches(
    request: ExpireBatchesRequest,
    use_case: SweepExpiredBatchesUseCase = Depends(get_sweep_expired_use_case),
) -> ExpirySweepResponse:
    """Mark batches whose expiry date has passed as expired."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get(
    "/{product_id}/{location_id}",
    response_model=InventoryResponse,
    responses=NOT_FOUND,
)
async def get_inventory(
    product_id: str,
    location_id: str,
    queries: InventoryQueries = Depends(get_inventory_queries),
) -> InventoryResponse:
    inventory = await queries.get_inventory(product_id, location_id)
    return inventory_to_response(inventory)


@router.delete(
    "/{product_id}/{location_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=CONFLICT,
)
async def delete_inventory(
    product_id: str,
    location_id: str,
    use_case: ManageInventoryUseCase = Depends(get_manage_inventory_use_case),
) -> None:
    """Delete a record. Only records without batches can be deleted."""
    await use_case.delete_inventory(product_id, location_id)


@router.post(
    "/{product_id}/{location_id}/reserve",
    response_model=LedgerCommandResponse,
    responses=CONFLICT,
)
async def reserve_stock(
    product_id: str,
    location_id: str,
    request: ReserveStockRequest,
    use_case: ReserveStockUseCase = Depends(get_reserve_stock_use_case),
) -> LedgerCommandResponse:
    """
    Reserve stock.

    Takes from the named batch, or oldest-first across available batches.
    """
    result = await use_case.execute(product_id, location_id, request)
    return result.to_response()


@router.post(
    "/{product_id}/{location_id}/release",
    response_model=LedgerCommandResponse,
    responses=CONFLICT,
)
async def release_reservation(
    product_id: str,
    location_id: str,
    request: ReleaseReservationRequest,
    use_case: ReleaseReservationUseCase = Depends(get_release_reservation_use_case),
) -> LedgerCommandResponse:
    """Return reserved stock to the batches it was taken from."""
    result = await use_case.execute(product_id, location_id, request)
    return result.to_response()


@router.post(
    "/{product_id}/{location_id}/consume",
    response_model=ConsumeStockResponse,
    responses=CONFLICT,
)
async def consume_stock(
    product_id: str,
    location_id: str,
    request: ConsumeStockRequest,
    use_case: ConsumeStockUseCase = Depends(get_consume_stock_use_case),
) -> ConsumeStockResponse:
    """Consume available stock FIFO or LIFO and report the cost breakdown."""
    result = await use_case.execute(product_id, location_id, request)
    return use_case.to_response(result)


@router.patch(
    "/{product_id}/{location_id}/batches/{batch_id}",
    response_model=LedgerCommandResponse,
    responses={**CONFLICT, 400: {"model": ErrorResponse}},
)
async def update_batch(
    product_id: str,
    location_id: str,
    batch_id: str,
    request: UpdateBatchRequest,
    use_case: ManageInventoryUseCase = Depends(get_manage_inventory_use_case),
) -> LedgerCommandResponse:
    result = await use_case.update_batch(product_id, location_id, batch_id, request)
    return result.to_response()


@router.delete(
    "/{product_id}/{location_id}/batches/{batch_id}",
    response_model=LedgerCommandResponse,
    responses=NOT_FOUND,
)
async def remove_batch(
    product_id: str,
    location_id: str,
    batch_id: str,
    request: RemoveBatchRequest,
    use_case: ManageInventoryUseCase = Depends(get_manage_inventory_use_case),
) -> LedgerCommandResponse:
    result = await use_case.remove_batch(product_id, location_id, batch_id, request)
    return result.to_response()


@router.get(
    "/{product_id}/{location_id}/movements",
    response_model=list[StockMovementResponse],
    responses=NOT_FOUND,
)
async def get_movements(
    product_id: str,
    location_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    queries: InventoryQueries = Depends(get_inventory_queries),
) -> list[StockMovementResponse]:
    """Get stock movements for a record, newest first."""
    movements = await queries.get_movements(product_id, location_id, limit, offset)
    return [movement_to_response(m) for m in movements]
