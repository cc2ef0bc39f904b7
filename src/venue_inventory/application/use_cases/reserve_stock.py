"""Reserve Stock Use Case - hold available stock in reserved fragments."""

from venue_inventory.application.dto.requests import ReserveStockRequest
from venue_inventory.application.use_cases.ledger_command import (
    LedgerCommand,
    LedgerCommandResult,
)
from venue_inventory.config import get_logger
from venue_inventory.core.entities.inventory import Batch, Inventory
from venue_inventory.core.entities.movement import MovementType, StockMovement

logger = get_logger(__name__)


class ReserveStockUseCase(LedgerCommand):
    """Reserve a quantity from one batch or oldest-first across batches."""

    async def execute(
        self, product_id: str, location_id: str, request: ReserveStockRequest
    ) -> LedgerCommandResult:
        def mutate(inventory: Inventory) -> tuple[list[Batch], StockMovement]:
            fragments = inventory.reserve_quantity(
                request.quantity, request.batch_id, ids=self.ids
            )
            value = sum(f.total_value for f in fragments)
            movement = self._movement(
                inventory,
                MovementType.RESERVE,
                request.quantity,
                request.performed_by,
                batch_id=request.batch_id,
                unit_cost=value / request.quantity,
                total_cost=value,
                reference=request.reference,
                notes=request.notes,
            )
            return fragments, movement

        outcome = await self._apply(product_id, location_id, request.performed_by, mutate)

        fragment_ids = [f.batch_id for f in outcome.value]
        logger.info(
            "stock_reserved",
            product_id=product_id,
            location_id=location_id,
            quantity=request.quantity,
            fragments=fragment_ids,
            available=outcome.inventory.totals.available,
            reserved=outcome.inventory.totals.reserved,
        )
        return LedgerCommandResult(outcome.inventory, outcome.movement, fragment_ids)
