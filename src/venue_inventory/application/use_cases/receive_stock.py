"""Receive Stock Use Case - IN movement adding a new batch."""

from dataclasses import dataclass

from venue_inventory.application.dto.mappers import (
    batch_to_response,
    inventory_to_response,
    movement_to_response,
)
from venue_inventory.application.dto.requests import ReceiveStockRequest
from venue_inventory.application.dto.responses import ReceiveStockResponse
from venue_inventory.application.use_cases.ledger_command import LedgerCommand
from venue_inventory.config import get_logger
from venue_inventory.core.entities.inventory import Batch, Inventory
from venue_inventory.core.entities.movement import MovementType, StockMovement
from venue_inventory.core.exceptions import ValidationFailedError

logger = get_logger(__name__)


@dataclass
class ReceiveStockResult:
    """Result of receiving stock."""

    inventory: Inventory
    batch: Batch
    movement: StockMovement
    created: bool = False  # True if the inventory record was created


class ReceiveStockUseCase(LedgerCommand):
    """Add a received batch to a product/location, opening the record if needed."""

    async def execute(self, request: ReceiveStockRequest) -> ReceiveStockResult:
        logger.info(
            "receive_stock_started",
            product_id=request.product_id,
            location_id=request.location_id,
            quantity=request.quantity,
        )

        def open_record() -> Inventory:
            return Inventory.open(
                request.product_id,
                request.location_id,
                request.unit,
                location_name=request.location_name,
                product_name=request.product_name,
                opened_by=request.performed_by,
            )

        def mutate(inventory: Inventory) -> tuple[Batch, StockMovement]:
            batch = inventory.add_batch(
                request.quantity,
                request.cost_per_unit,
                batch_id=request.batch_id,
                unit=request.unit,
                received_date=request.received_date,
                expiry_date=request.expiry_date,
                supplier_batch_code=request.supplier_batch_code,
                status=request.status,
                ids=self.ids,
            )
            movement = self._movement(
                inventory,
                MovementType.IN,
                batch.quantity,
                request.performed_by,
                batch_id=batch.batch_id,
                unit_cost=batch.cost_per_unit,
                reference=request.reference,
                notes=request.notes,
            )
            return batch, movement

        outcome = await self._apply(
            request.product_id,
            request.location_id,
            request.performed_by,
            mutate,
            open_record=open_record,
        )

        logger.info(
            "receive_stock_complete",
            product_id=request.product_id,
            location_id=request.location_id,
            batch_id=outcome.value.batch_id,
            available=outcome.inventory.totals.available,
            created=outcome.created,
        )

        return ReceiveStockResult(
            inventory=outcome.inventory,
            batch=outcome.value,
            movement=outcome.movement,  # type: ignore[arg-type]
            created=outcome.created,
        )

    async def ensure_accepts(self, product_id: str, location_id: str, unit: str) -> None:
        """Raise if an existing record for the pair is kept in a different unit."""
        store = await self._get_inventory_store()
        inventory = await store.get_inventory(product_id, location_id)
        if inventory is not None and unit != inventory.unit:
            raise ValidationFailedError(
                "unit", f"must match inventory unit '{inventory.unit}'", unit
            )

    def to_response(self, result: ReceiveStockResult) -> ReceiveStockResponse:
        """Convert result to API response."""
        return ReceiveStockResponse(
            inventory=inventory_to_response(result.inventory),
            batch=batch_to_response(result.batch),
            movement=movement_to_response(result.movement),
            created=result.created,
        )
