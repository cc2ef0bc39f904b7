"""Sweep Expired Batches Use Case - mark batches past expiry across records."""

from dataclasses import dataclass, field
from datetime import datetime

from venue_inventory.application.dto.requests import ExpireBatchesRequest
from venue_inventory.application.dto.responses import ExpiredBatchResponse, ExpirySweepResponse
from venue_inventory.application.use_cases.ledger_command import LedgerCommand
from venue_inventory.config import get_logger, get_settings
from venue_inventory.core.entities.inventory import Batch, Inventory
from venue_inventory.core.entities.movement import MovementType, StockMovement
from venue_inventory.core.exceptions import InventoryNotFoundError
from venue_inventory.core.validation import as_utc, utcnow

logger = get_logger(__name__)


@dataclass
class ExpiredBatchRef:
    product_id: str
    location_id: str
    batch_id: str
    quantity: float


@dataclass
class ExpirySweepResult:
    """Result of an expiry sweep."""

    as_of: datetime
    inventories_checked: int = 0
    inventories_updated: int = 0
    expired: list[ExpiredBatchRef] = field(default_factory=list)


class SweepExpiredBatchesUseCase(LedgerCommand):
    """
    Mark expired every batch whose expiry is at or before the sweep time.

    Records are found through the store's next-expiry index. Re-running the
    sweep for the same time changes nothing.
    """

    async def execute(self, request: ExpireBatchesRequest) -> ExpirySweepResult:
        as_of = as_utc(request.as_of) or utcnow()
        result = ExpirySweepResult(as_of=as_of)
        store = await self._get_inventory_store()

        if request.product_id and request.location_id:
            single = await store.get_inventory(request.product_id, request.location_id)
            if single is None:
                raise InventoryNotFoundError(request.product_id, request.location_id)
            candidates = [single]
        else:
            limit = get_settings().ledger.expiry_sweep_limit
            candidates = [
                inv
                for inv in await store.list_expiring(before=as_of, limit=limit)
                if (request.product_id is None or inv.product_id == request.product_id)
                and (request.location_id is None or inv.location_id == request.location_id)
            ]

        logger.info("expiry_sweep_started", as_of=as_of.isoformat(), candidates=len(candidates))

        for candidate in candidates:
            result.inventories_checked += 1
            try:
                expired = await self._sweep_one(candidate, as_of, request.performed_by)
            except InventoryNotFoundError:
                # Deleted since it was listed
                logger.warning(
                    "expiry_sweep_record_gone",
                    product_id=candidate.product_id,
                    location_id=candidate.location_id,
                )
                continue
            if expired:
                result.inventories_updated += 1
                result.expired.extend(
                    ExpiredBatchRef(
                        candidate.product_id, candidate.location_id, b.batch_id, b.quantity
                    )
                    for b in expired
                )

        logger.info(
            "expiry_sweep_complete",
            checked=result.inventories_checked,
            updated=result.inventories_updated,
            batches_expired=len(result.expired),
        )
        return result

    async def _sweep_one(self, candidate: Inventory, as_of: datetime, actor: str) -> list[Batch]:
        def mutate(inventory: Inventory) -> tuple[list[Batch], StockMovement | None]:
            expired = inventory.mark_expired_batches(as_of)
            if not expired:
                return [], None
            quantity = sum(b.quantity for b in expired)
            movement = self._movement(
                inventory,
                MovementType.EXPIRE,
                quantity,
                actor,
                batch_id=expired[0].batch_id if len(expired) == 1 else None,
                total_cost=sum(b.total_value for b in expired),
                unit_cost=sum(b.total_value for b in expired) / quantity if quantity else 0.0,
                notes="expired: " + ", ".join(b.batch_id for b in expired),
            )
            return expired, movement

        outcome = await self._apply(candidate.product_id, candidate.location_id, actor, mutate)
        return outcome.value

    def to_response(self, result: ExpirySweepResult) -> ExpirySweepResponse:
        """Convert result to API response."""
        return ExpirySweepResponse(
            as_of=result.as_of,
            inventories_checked=result.inventories_checked,
            inventories_updated=result.inventories_updated,
            expired=[
                ExpiredBatchResponse(
                    product_id=ref.product_id,
                    location_id=ref.location_id,
                    batch_id=ref.batch_id,
                    quantity=ref.quantity,
                )
                for ref in result.expired
            ],
        )
