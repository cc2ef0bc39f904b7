"""Manage Inventory Use Case - batch corrections, removal and record deletion."""

from venue_inventory.application.dto.requests import RemoveBatchRequest, UpdateBatchRequest
from venue_inventory.application.use_cases.ledger_command import (
    LedgerCommand,
    LedgerCommandResult,
)
from venue_inventory.config import get_logger
from venue_inventory.core.entities.inventory import Inventory
from venue_inventory.core.entities.movement import (
    MovementReference,
    MovementType,
    ReferenceType,
    StockMovement,
)
from venue_inventory.core.exceptions import InvalidStateError, InventoryNotFoundError

logger = get_logger(__name__)


class ManageInventoryUseCase(LedgerCommand):
    """Adjust or remove individual batches, and delete empty records."""

    async def update_batch(
        self,
        product_id: str,
        location_id: str,
        batch_id: str,
        request: UpdateBatchRequest,
    ) -> LedgerCommandResult:
        updates = request.batch_updates()

        def mutate(inventory: Inventory) -> tuple[list[str], StockMovement]:
            before = inventory.get_batch(batch_id)
            previous_quantity = before.quantity
            cost = before.cost_per_unit
            updated = inventory.update_batch(batch_id, updates)
            new_quantity = updated.quantity if updated is not None else 0.0
            movement = self._movement(
                inventory,
                MovementType.ADJUST,
                abs(new_quantity - previous_quantity),
                request.performed_by,
                batch_id=batch_id,
                unit_cost=updated.cost_per_unit if updated is not None else cost,
                reference=MovementReference(type=ReferenceType.ADJUSTMENT, id=batch_id),
                notes=request.notes or f"updated {', '.join(sorted(updates)) or 'nothing'}",
            )
            return [batch_id], movement

        outcome = await self._apply(product_id, location_id, request.performed_by, mutate)
        logger.info(
            "batch_updated",
            product_id=product_id,
            location_id=location_id,
            batch_id=batch_id,
            fields=sorted(updates),
            removed=outcome.inventory.find_batch(batch_id) is None,
        )
        return LedgerCommandResult(outcome.inventory, outcome.movement, outcome.value)

    async def remove_batch(
        self,
        product_id: str,
        location_id: str,
        batch_id: str,
        request: RemoveBatchRequest,
    ) -> LedgerCommandResult:
        def mutate(inventory: Inventory) -> tuple[list[str], StockMovement]:
            removed = inventory.remove_batch(batch_id)
            movement = self._movement(
                inventory,
                MovementType.ADJUST,
                removed.quantity,
                request.performed_by,
                batch_id=batch_id,
                unit_cost=removed.cost_per_unit,
                reference=MovementReference(type=ReferenceType.ADJUSTMENT, id=batch_id),
                notes=request.notes or f"removed {removed.status.value} batch",
            )
            return [batch_id], movement

        outcome = await self._apply(product_id, location_id, request.performed_by, mutate)
        logger.info(
            "batch_removed",
            product_id=product_id,
            location_id=location_id,
            batch_id=batch_id,
        )
        return LedgerCommandResult(outcome.inventory, outcome.movement, outcome.value)

    async def delete_inventory(self, product_id: str, location_id: str) -> None:
        """Delete a record that holds no batches."""
        store = await self._get_inventory_store()
        async with self._locks.hold(f"{product_id}:{location_id}"):
            inventory = await store.get_inventory(product_id, location_id)
            if inventory is None:
                raise InventoryNotFoundError(product_id, location_id)
            if not inventory.is_empty():
                raise InvalidStateError(
                    "inventory", inventory.key, f"holding {len(inventory.batches)} batches", "delete"
                )
            await store.delete_inventory(product_id, location_id)

        logger.info("inventory_deleted", product_id=product_id, location_id=location_id)
