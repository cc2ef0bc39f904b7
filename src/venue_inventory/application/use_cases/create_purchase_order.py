"""Create Purchase Order Use Case - number, price and store a new order."""

from venue_inventory.application.dto.mappers import purchase_order_to_response
from venue_inventory.application.dto.requests import CreatePurchaseOrderRequest
from venue_inventory.application.dto.responses import PurchaseOrderResponse
from venue_inventory.application.use_cases.purchase_order_command import PurchaseOrderCommand
from venue_inventory.config import get_logger, get_settings
from venue_inventory.config.settings import ProcurementSettings
from venue_inventory.core.entities.purchase_order import (
    PaymentTerms,
    PurchaseOrder,
    PurchaseOrderItem,
)
from venue_inventory.core.exceptions import ConfigurationError

logger = get_logger(__name__)

# Placeholder id while the order is validated, before a number is allocated
UNASSIGNED_ID = "UNASSIGNED"


def format_purchase_order_id(number: int) -> str:
    """Sequence number to display id, e.g. 42 -> PO000042."""
    procurement = get_settings().procurement
    digits = procurement.purchase_order_digits
    if number >= 10**digits:
        raise ConfigurationError(
            "PROCUREMENT_PURCHASE_ORDER_DIGITS",
            f"Purchase order number {number} does not fit in {digits} digits",
        )
    return f"{procurement.purchase_order_prefix}{number:0{digits}d}"


class CreatePurchaseOrderUseCase(PurchaseOrderCommand):
    """Create a draft order (optionally submitting it for approval)."""

    async def execute(self, request: CreatePurchaseOrderRequest) -> PurchaseOrder:
        logger.info(
            "create_purchase_order_started",
            supplier_id=request.supplier_id,
            items=len(request.items),
        )
        procurement = get_settings().procurement
        store = await self._get_purchase_order_store()

        # Validate before consuming a sequence number
        order = self._build(request, UNASSIGNED_ID, procurement)
        order.purchase_order_id = format_purchase_order_id(await store.next_order_number())
        if request.submit:
            order.submit(request.created_by)

        order = await store.create_order(order)

        logger.info(
            "purchase_order_created",
            purchase_order_id=order.purchase_order_id,
            status=order.status.value,
            total=order.total,
            currency=order.currency,
        )
        return order

    def _build(
        self,
        request: CreatePurchaseOrderRequest,
        purchase_order_id: str,
        procurement: ProcurementSettings,
    ) -> PurchaseOrder:
        return PurchaseOrder.create(
            purchase_order_id=purchase_order_id,
            supplier_id=request.supplier_id,
            supplier_name=request.supplier_name,
            items=[PurchaseOrderItem(**item.model_dump()) for item in request.items],
            tax_rate=procurement.default_tax_rate if request.tax_rate is None else request.tax_rate,
            currency=request.currency or procurement.default_currency,
            payment_terms=PaymentTerms(
                method=request.payment_terms.method,
                credit_days=request.payment_terms.credit_days,
            ),
            expected_delivery_date=request.expected_delivery_date,
            delivery_location=request.delivery_location,
            notes=request.notes,
            internal_notes=request.internal_notes,
            created_by=request.created_by,
            updated_by=request.created_by,
        )

    def to_response(self, order: PurchaseOrder) -> PurchaseOrderResponse:
        return purchase_order_to_response(order)
