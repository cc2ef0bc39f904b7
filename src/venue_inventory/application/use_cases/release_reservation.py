"""Release Reservation Use Case - return reserved stock to its origin batch."""

from venue_inventory.application.dto.requests import ReleaseReservationRequest
from venue_inventory.application.use_cases.ledger_command import (
    LedgerCommand,
    LedgerCommandResult,
)
from venue_inventory.config import get_logger
from venue_inventory.core.entities.inventory import Inventory
from venue_inventory.core.entities.movement import MovementType, StockMovement

logger = get_logger(__name__)


class ReleaseReservationUseCase(LedgerCommand):
    """Release a quantity from one reserved fragment or newest-first."""

    async def execute(
        self, product_id: str, location_id: str, request: ReleaseReservationRequest
    ) -> LedgerCommandResult:
        def mutate(inventory: Inventory) -> tuple[list[str], StockMovement]:
            targets = inventory.release_reservation(
                request.quantity, request.batch_id, ids=self.ids
            )
            movement = self._movement(
                inventory,
                MovementType.RELEASE,
                request.quantity,
                request.performed_by,
                batch_id=request.batch_id,
                reference=request.reference,
                notes=request.notes,
            )
            return targets, movement

        outcome = await self._apply(product_id, location_id, request.performed_by, mutate)

        logger.info(
            "reservation_released",
            product_id=product_id,
            location_id=location_id,
            quantity=request.quantity,
            merged_into=outcome.value,
            reserved=outcome.inventory.totals.reserved,
        )
        # Preserve order, drop repeats
        affected = list(dict.fromkeys(outcome.value))
        return LedgerCommandResult(outcome.inventory, outcome.movement, affected)
