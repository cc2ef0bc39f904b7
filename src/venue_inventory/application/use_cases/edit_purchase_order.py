"""Edit Purchase Order Use Case - line items and draft deletion."""

from venue_inventory.application.dto.requests import (
    PurchaseOrderItemRequest,
    UpdatePurchaseOrderItemRequest,
)
from venue_inventory.application.use_cases.purchase_order_command import PurchaseOrderCommand
from venue_inventory.config import get_logger
from venue_inventory.core.entities.purchase_order import PurchaseOrder
from venue_inventory.core.exceptions import InvalidStateError, PurchaseOrderNotFoundError

logger = get_logger(__name__)


class EditPurchaseOrderUseCase(PurchaseOrderCommand):
    """Add, change or remove items while an order is draft or pending."""

    async def add_item(
        self, purchase_order_id: str, item: PurchaseOrderItemRequest, actor: str
    ) -> PurchaseOrder:
        order, _ = await self._apply(
            purchase_order_id, lambda o: o.add_item(item.model_dump(), actor)
        )
        logger.info(
            "purchase_order_item_added",
            purchase_order_id=purchase_order_id,
            product_id=item.product_id,
            total=order.total,
        )
        return order

    async def update_item(
        self,
        purchase_order_id: str,
        product_id: str,
        request: UpdatePurchaseOrderItemRequest,
    ) -> PurchaseOrder:
        updates = request.item_updates()
        order, _ = await self._apply(
            purchase_order_id,
            lambda o: o.update_item(product_id, updates, request.performed_by),
        )
        logger.info(
            "purchase_order_item_updated",
            purchase_order_id=purchase_order_id,
            product_id=product_id,
            fields=sorted(updates),
            total=order.total,
        )
        return order

    async def remove_item(self, purchase_order_id: str, product_id: str, actor: str) -> PurchaseOrder:
        order, _ = await self._apply(
            purchase_order_id, lambda o: o.remove_item(product_id, actor)
        )
        logger.info(
            "purchase_order_item_removed",
            purchase_order_id=purchase_order_id,
            product_id=product_id,
            total=order.total,
        )
        return order

    async def delete(self, purchase_order_id: str, actor: str) -> None:
        """Delete an order that is still a draft."""
        store = await self._get_purchase_order_store()
        async with self._locks.hold(purchase_order_id):
            order = await store.get_order(purchase_order_id)
            if order is None:
                raise PurchaseOrderNotFoundError(purchase_order_id)
            if not order.can_be_deleted():
                raise InvalidStateError(
                    "purchase order", purchase_order_id, order.status.value, "delete"
                )
            await store.delete_order(purchase_order_id)

        logger.info("purchase_order_deleted", purchase_order_id=purchase_order_id, actor=actor)
