"""Consume Stock Use Case - OUT movement drawing batches FIFO or LIFO."""

from dataclasses import dataclass

from venue_inventory.application.dto.mappers import (
    consumed_to_response,
    inventory_to_response,
    movement_to_response,
)
from venue_inventory.application.dto.requests import ConsumeStockRequest
from venue_inventory.application.dto.responses import ConsumeStockResponse
from venue_inventory.application.use_cases.ledger_command import LedgerCommand
from venue_inventory.config import get_logger, get_settings
from venue_inventory.core.entities.inventory import (
    ConsumedBatch,
    ConsumptionMethod,
    Inventory,
)
from venue_inventory.core.entities.movement import MovementType, StockMovement

logger = get_logger(__name__)


@dataclass
class ConsumeStockResult:
    """Result of consuming stock."""

    inventory: Inventory
    consumed: list[ConsumedBatch]
    movement: StockMovement

    @property
    def total_cost(self) -> float:
        return round(sum(line.total_cost for line in self.consumed), 2)


class ConsumeStockUseCase(LedgerCommand):
    """Consume available stock and report which batches supplied it at what cost."""

    async def execute(
        self, product_id: str, location_id: str, request: ConsumeStockRequest
    ) -> ConsumeStockResult:
        method = request.method or ConsumptionMethod(
            get_settings().ledger.default_consumption_method
        )

        def mutate(inventory: Inventory) -> tuple[list[ConsumedBatch], StockMovement]:
            consumed = inventory.consume_quantity(request.quantity, method)
            total_cost = sum(line.total_cost for line in consumed)
            movement = self._movement(
                inventory,
                MovementType.OUT,
                request.quantity,
                request.performed_by,
                batch_id=consumed[0].batch_id if len(consumed) == 1 else None,
                unit_cost=total_cost / request.quantity,
                total_cost=total_cost,
                reference=request.reference,
                notes=request.notes,
            )
            return consumed, movement

        outcome = await self._apply(product_id, location_id, request.performed_by, mutate)
        result = ConsumeStockResult(outcome.inventory, outcome.value, outcome.movement)  # type: ignore[arg-type]

        logger.info(
            "stock_consumed",
            product_id=product_id,
            location_id=location_id,
            quantity=request.quantity,
            method=method.value,
            batches=len(result.consumed),
            total_cost=result.total_cost,
        )
        return result

    def to_response(self, result: ConsumeStockResult) -> ConsumeStockResponse:
        """Convert result to API response."""
        return ConsumeStockResponse(
            inventory=inventory_to_response(result.inventory),
            consumed=[consumed_to_response(line) for line in result.consumed],
            total_cost=result.total_cost,
            movement=movement_to_response(result.movement),
        )
