"""
Purchase order endpoints.
"""

from fastapi import APIRouter, Depends, Query, status

from venue_inventory.api.dependencies import (
    get_change_purchase_order_status_use_case,
    get_create_purchase_order_use_case,
    get_edit_purchase_order_use_case,
    get_purchase_order_queries,
)
from venue_inventory.application.dto.mappers import purchase_order_to_response
from venue_inventory.application.dto.requests import (
    CreatePurchaseOrderRequest,
    PerformedByRequest,
    PurchaseOrderActionRequest,
    PurchaseOrderItemRequest,
    UpdatePurchaseOrderItemRequest,
)
from venue_inventory.application.dto.responses import (
    ErrorResponse,
    PurchaseOrderActionResponse,
    PurchaseOrderListResponse,
    PurchaseOrderResponse,
)
from venue_inventory.application.queries import PurchaseOrderQueries
from venue_inventory.application.use_cases import (
    ChangePurchaseOrderStatusUseCase,
    CreatePurchaseOrderUseCase,
    EditPurchaseOrderUseCase,
    PurchaseOrderAction,
)
from venue_inventory.core.entities.purchase_order import PurchaseOrderStatus

router = APIRouter(prefix="/api/purchase-orders", tags=["purchase-orders"])

NOT_FOUND = {404: {"model": ErrorResponse}}
CONFLICT = {404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}


@router.post(
    "",
    response_model=PurchaseOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_purchase_order(
    request: CreatePurchaseOrderRequest,
    use_case: CreatePurchaseOrderUseCase = Depends(get_create_purchase_order_use_case),
) -> PurchaseOrderResponse:
    """
    Create a purchase order.

    Item and order totals are derived from quantities, prices and the tax rate.
    """
    order = await use_case.execute(request)
    return use_case.to_response(order)


@router.get("", response_model=PurchaseOrderListResponse)
async def list_purchase_orders(
    status_filter: PurchaseOrderStatus | None = Query(default=None, alias="status"),
    supplier_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    queries: PurchaseOrderQueries = Depends(get_purchase_order_queries),
) -> PurchaseOrderListResponse:
    orders, total = await queries.list_purchase_orders(status_filter, supplier_id, limit, offset)
    return PurchaseOrderListResponse(
        items=[purchase_order_to_response(o) for o in orders],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{purchase_order_id}",
    response_model=PurchaseOrderResponse,
    responses=NOT_FOUND,
)
async def get_purchase_order(
    purchase_order_id: str,
    queries: PurchaseOrderQueries = Depends(get_purchase_order_queries),
) -> PurchaseOrderResponse:
    order = await queries.get_purchase_order(purchase_order_id)
    return purchase_order_to_response(order)


@router.delete(
    "/{purchase_order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=CONFLICT,
)
async def delete_purchase_order(
    purchase_order_id: str,
    performed_by: str = Query(..., min_length=1),
    use_case: EditPurchaseOrderUseCase = Depends(get_edit_purchase_order_use_case),
) -> None:
    """Delete a draft order. Later states must be cancelled instead."""
    await use_case.delete(purchase_order_id, performed_by)


@router.post(
    "/{purchase_order_id}/items",
    response_model=PurchaseOrderResponse,
    responses={**CONFLICT, 400: {"model": ErrorResponse}},
)
async def add_item(
    purchase_order_id: str,
    item: PurchaseOrderItemRequest,
    performed_by: str = Query(..., min_length=1),
    use_case: EditPurchaseOrderUseCase = Depends(get_edit_purchase_order_use_case),
) -> PurchaseOrderResponse:
    order = await use_case.add_item(purchase_order_id, item, performed_by)
    return purchase_order_to_response(order)


@router.patch(
    "/{purchase_order_id}/items/{product_id}",
    response_model=PurchaseOrderResponse,
    responses={**CONFLICT, 400: {"model": ErrorResponse}},
)
async def update_item(
    purchase_order_id: str,
    product_id: str,
    request: UpdatePurchaseOrderItemRequest,
    use_case: EditPurchaseOrderUseCase = Depends(get_edit_purchase_order_use_case),
) -> PurchaseOrderResponse:
    order = await use_case.update_item(purchase_order_id, product_id, request)
    return purchase_order_to_response(order)


@router.delete(
    "/{purchase_order_id}/items/{product_id}",
    response_model=PurchaseOrderResponse,
    responses={**CONFLICT, 400: {"model": ErrorResponse}},
)
async def remove_item(
    purchase_order_id: str,
    product_id: str,
    request: PerformedByRequest,
    use_case: EditPurchaseOrderUseCase = Depends(get_edit_purchase_order_use_case),
) -> PurchaseOrderResponse:
    """Remove an item. An order must keep at least one item."""
    order = await use_case.remove_item(purchase_order_id, product_id, request.performed_by)
    return purchase_order_to_response(order)


@router.post(
    "/{purchase_order_id}/{action}",
    response_model=PurchaseOrderActionResponse,
    responses=CONFLICT,
)
async def change_status(
    purchase_order_id: str,
    action: PurchaseOrderAction,
    request: PurchaseOrderActionRequest,
    use_case: ChangePurchaseOrderStatusUseCase = Depends(
        get_change_purchase_order_status_use_case
    ),
) -> PurchaseOrderActionResponse:
    """
    Move an order through its lifecycle.

    Actions: submit, approve, order, receive, cancel. Receiving adds one
    batch per item to the delivery location unless receive_into_inventory
    is false. Cancelling requires a reason.
    """
    result = await use_case.execute(purchase_order_id, action, request)
    return use_case.to_response(result)
