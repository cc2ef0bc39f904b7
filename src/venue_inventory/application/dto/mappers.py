"""Entity to response DTO conversion."""

from datetime import datetime

from venue_inventory.application.dto.responses import (
    BatchResponse,
    ConsumedBatchResponse,
    InventoryResponse,
    InventoryTotalsResponse,
    MovementReferenceResponse,
    PaymentTermsResponse,
    PurchaseOrderItemResponse,
    PurchaseOrderResponse,
    StockMovementResponse,
)
from venue_inventory.core.entities.inventory import Batch, ConsumedBatch, Inventory
from venue_inventory.core.entities.movement import StockMovement
from venue_inventory.core.entities.purchase_order import PurchaseOrder


def batch_to_response(batch: Batch) -> BatchResponse:
    return BatchResponse(
        batch_id=batch.batch_id,
        quantity=batch.quantity,
        unit=batch.unit,
        cost_per_unit=batch.cost_per_unit,
        total_value=batch.total_value,
        received_date=batch.received_date,
        expiry_date=batch.expiry_date,
        supplier_batch_code=batch.supplier_batch_code,
        status=batch.status.value,
        origin_batch_id=batch.origin_batch_id,
        reserved_at=batch.reserved_at,
    )


def inventory_to_response(inventory: Inventory) -> InventoryResponse:
    totals = inventory.totals
    return InventoryResponse(
        product_id=inventory.product_id,
        location_id=inventory.location_id,
        location_name=inventory.location_name,
        product_name=inventory.product_name,
        batches=[batch_to_response(b) for b in inventory.batches],
        totals=InventoryTotalsResponse(
            available=totals.available,
            reserved=totals.reserved,
            quarantine=totals.quarantine,
            unit=totals.unit,
        ),
        total_stock=inventory.total_stock,
        average_cost=round(inventory.average_cost, 4),
        next_expiry_date=inventory.next_expiry_date,
        last_movement_id=inventory.last_movement_id,
        last_updated=inventory.last_updated,
        last_updated_by=inventory.last_updated_by,
        version=inventory.version,
    )


def movement_to_response(movement: StockMovement) -> StockMovementResponse:
    reference = None
    if movement.reference is not None:
        reference = MovementReferenceResponse(
            type=movement.reference.type.value, id=movement.reference.id
        )
    return StockMovementResponse(
        movement_id=movement.movement_id,
        movement_type=movement.movement_type.value,
        product_id=movement.product_id,
        location_id=movement.location_id,
        quantity=movement.quantity,
        unit=movement.unit,
        batch_id=movement.batch_id,
        unit_cost=movement.unit_cost,
        total_cost=movement.total_cost,
        reference=reference,
        performed_by=movement.performed_by,
        notes=movement.notes,
        created_at=movement.created_at,
    )


def consumed_to_response(line: ConsumedBatch) -> ConsumedBatchResponse:
    return ConsumedBatchResponse(
        batch_id=line.batch_id,
        quantity=line.quantity,
        cost_per_unit=line.cost_per_unit,
        total_cost=round(line.total_cost, 2),
    )


def purchase_order_to_response(
    order: PurchaseOrder, now: datetime | None = None
) -> PurchaseOrderResponse:
    return PurchaseOrderResponse(
        purchase_order_id=order.purchase_order_id,
        supplier_id=order.supplier_id,
        supplier_name=order.supplier_name,
        status=order.status.value,
        items=[
            PurchaseOrderItemResponse(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit=item.unit,
                unit_price=item.unit_price,
                total_price=item.total_price,
                notes=item.notes,
            )
            for item in order.items
        ],
        subtotal=order.subtotal,
        tax_rate=order.tax_rate,
        tax=order.tax,
        total=order.total,
        currency=order.currency,
        payment_terms=PaymentTermsResponse(
            method=order.payment_terms.method.value,
            credit_days=order.payment_terms.credit_days,
            due_date=order.payment_terms.due_date,
        ),
        expected_delivery_date=order.expected_delivery_date,
        actual_delivery_date=order.actual_delivery_date,
        delivery_location=order.delivery_location,
        delivery_status=order.delivery_status(now).value,
        days_until_delivery=order.days_until_delivery(now),
        is_overdue=order.is_overdue(now),
        notes=order.notes,
        internal_notes=order.internal_notes,
        approved_by=order.approved_by,
        approved_at=order.approved_at,
        ordered_by=order.ordered_by,
        ordered_at=order.ordered_at,
        received_by=order.received_by,
        received_at=order.received_at,
        cancelled_by=order.cancelled_by,
        cancelled_at=order.cancelled_at,
        cancellation_reason=order.cancellation_reason,
        created_by=order.created_by,
        updated_by=order.updated_by,
        created_at=order.created_at,
        updated_at=order.updated_at,
        version=order.version,
    )
