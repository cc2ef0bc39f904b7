"""
Change Purchase Order Status Use Case - lifecycle transitions.

Receiving an order also hands its items to the batch ledger: one new batch
per item at the order's delivery location, costed at the item's unit price.
Each item is checked against the ledger before the status change is saved.
"""

from dataclasses import dataclass, field
from enum import Enum

from venue_inventory.application.concurrency import KeyedLocks
from venue_inventory.application.dto.mappers import purchase_order_to_response
from venue_inventory.application.dto.requests import (
    PurchaseOrderActionRequest,
    ReceiveStockRequest,
)
from venue_inventory.application.dto.responses import PurchaseOrderActionResponse
from venue_inventory.application.use_cases.purchase_order_command import PurchaseOrderCommand
from venue_inventory.application.use_cases.receive_stock import (
    ReceiveStockResult,
    ReceiveStockUseCase,
)
from venue_inventory.config import get_logger
from venue_inventory.core.entities.movement import MovementReference, ReferenceType
from venue_inventory.core.entities.purchase_order import PurchaseOrder
from venue_inventory.core.interfaces.purchase_order_store import IPurchaseOrderStore

logger = get_logger(__name__)


class PurchaseOrderAction(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    ORDER = "order"
    RECEIVE = "receive"
    CANCEL = "cancel"


@dataclass
class PurchaseOrderActionResult:
    """Result of a lifecycle transition."""

    order: PurchaseOrder
    received: list[ReceiveStockResult] = field(default_factory=list)


class ChangePurchaseOrderStatusUseCase(PurchaseOrderCommand):
    """Apply one lifecycle action to an order."""

    def __init__(
        self,
        purchase_order_store: IPurchaseOrderStore | None = None,
        receive_stock: ReceiveStockUseCase | None = None,
        locks: KeyedLocks | None = None,
    ):
        super().__init__(purchase_order_store, locks)
        self._receive_stock = receive_stock

    def _get_receive_stock(self) -> ReceiveStockUseCase:
        if self._receive_stock is None:
            self._receive_stock = ReceiveStockUseCase()
        return self._receive_stock

    async def execute(
        self,
        purchase_order_id: str,
        action: PurchaseOrderAction,
        request: PurchaseOrderActionRequest,
    ) -> PurchaseOrderActionResult:
        action = PurchaseOrderAction(action)
        actor = request.performed_by

        def mutate(order: PurchaseOrder) -> None:
            if action is PurchaseOrderAction.SUBMIT:
                order.submit(actor)
            elif action is PurchaseOrderAction.APPROVE:
                order.approve(actor)
            elif action is PurchaseOrderAction.ORDER:
                order.order(actor)
            elif action is PurchaseOrderAction.RECEIVE:
                order.receive(actor, request.actual_delivery_date)
            else:
                order.cancel(actor, request.reason or "")

        receipts: list[ReceiveStockRequest] = []

        async def check_receipts(order: PurchaseOrder) -> None:
            receipts[:] = self._receipt_requests(order, request)
            receive_stock = self._get_receive_stock()
            for receipt in receipts:
                await receive_stock.ensure_accepts(
                    receipt.product_id, receipt.location_id, receipt.unit
                )

        hands_off = action is PurchaseOrderAction.RECEIVE and request.receive_into_inventory
        order, _ = await self._apply(
            purchase_order_id, mutate, before_save=check_receipts if hands_off else None
        )
        logger.info(
            f"purchase_order_{order.status.value}",
            purchase_order_id=purchase_order_id,
            action=action.value,
            actor=actor,
            total=order.total,
        )

        result = PurchaseOrderActionResult(order=order)
        if hands_off:
            result.received = await self._receive_into_inventory(order, receipts)
        return result

    def _receipt_requests(
        self, order: PurchaseOrder, request: PurchaseOrderActionRequest
    ) -> list[ReceiveStockRequest]:
        reference = MovementReference(
            type=ReferenceType.PURCHASE_ORDER, id=order.purchase_order_id
        )
        return [
            ReceiveStockRequest(
                product_id=item.product_id,
                location_id=order.delivery_location,
                quantity=item.quantity,
                unit=item.unit,
                cost_per_unit=item.unit_price,
                received_date=order.received_at,
                expiry_date=request.expiry_dates.get(item.product_id),
                supplier_batch_code=order.purchase_order_id,
                product_name=item.product_name,
                reference=reference,
                notes=f"Received on {order.purchase_order_id}",
                performed_by=request.performed_by,
            )
            for item in order.items
        ]

    async def _receive_into_inventory(
        self, order: PurchaseOrder, receipts: list[ReceiveStockRequest]
    ) -> list[ReceiveStockResult]:
        """Add one batch per item to the delivery location's inventory."""
        receive_stock = self._get_receive_stock()
        received = []
        for receipt in receipts:
            try:
                received.append(await receive_stock.execute(receipt))
            except Exception as e:
                logger.error(
                    "purchase_order_receipt_handoff_failed",
                    purchase_order_id=order.purchase_order_id,
                    product_id=receipt.product_id,
                    received_items=len(received),
                    error=str(e),
                )
                raise

        logger.info(
            "purchase_order_stock_received",
            purchase_order_id=order.purchase_order_id,
            batches=len(received),
            location_id=order.delivery_location,
        )
        return received

    def to_response(self, result: PurchaseOrderActionResult) -> PurchaseOrderActionResponse:
        receive_stock = self._get_receive_stock()
        return PurchaseOrderActionResponse(
            purchase_order=purchase_order_to_response(result.order),
            received_batches=[receive_stock.to_response(r) for r in result.received],
        )
