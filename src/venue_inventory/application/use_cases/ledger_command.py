"""Shared load-mutate-save cycle for batch ledger use cases."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from venue_inventory.application.concurrency import (
    KeyedLocks,
    get_inventory_locks,
    retry_on_conflict,
)
from venue_inventory.application.dto.mappers import inventory_to_response, movement_to_response
from venue_inventory.application.dto.responses import LedgerCommandResponse
from venue_inventory.core.entities.inventory import Inventory
from venue_inventory.core.entities.movement import (
    MovementReference,
    MovementType,
    StockMovement,
)
from venue_inventory.core.exceptions import InventoryNotFoundError
from venue_inventory.core.ids import IIdGenerator, get_id_generator
from venue_inventory.core.interfaces.inventory_store import IInventoryStore

R = TypeVar("R")

# A mutation returns its value plus the movement describing it, or no
# movement when nothing changed (the record is then not written).
Mutation = Callable[[Inventory], tuple[R, StockMovement | None]]


@dataclass
class LedgerOutcome(Generic[R]):
    inventory: Inventory
    value: R
    movement: StockMovement | None
    created: bool = False


class LedgerCommand:
    """
    Base for use cases that change one inventory record.

    Each command runs under the record's in-process lock and is retried from
    a fresh load when the store reports a version conflict.
    """

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
        id_generator: IIdGenerator | None = None,
        locks: KeyedLocks | None = None,
    ):
        self._inventory_store = inventory_store
        self._id_generator = id_generator
        self._locks = locks or get_inventory_locks()

    @property
    def ids(self) -> IIdGenerator:
        return self._id_generator or get_id_generator()

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from venue_inventory.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def _apply(
        self,
        product_id: str,
        location_id: str,
        actor: str,
        mutate: Mutation[R],
        open_record: Callable[[], Inventory] | None = None,
    ) -> LedgerOutcome[R]:
        store = await self._get_inventory_store()

        async def attempt() -> LedgerOutcome[R]:
            inventory = await store.get_inventory(product_id, location_id)
            created = inventory is None
            if inventory is None:
                if open_record is None:
                    raise InventoryNotFoundError(product_id, location_id)
                inventory = open_record()

            value, movement = mutate(inventory)
            if movement is None and not created:
                return LedgerOutcome(inventory, value, None)

            if movement is not None:
                inventory.touch(actor, movement.movement_id, movement.created_at)
            else:
                inventory.touch(actor)

            if created:
                inventory = await store.create_inventory(inventory, movement)
            else:
                inventory = await store.save_inventory(inventory, movement)
            return LedgerOutcome(inventory, value, movement, created)

        async with self._locks.hold(f"{product_id}:{location_id}"):
            return await retry_on_conflict(attempt)

    def _movement(
        self,
        inventory: Inventory,
        movement_type: MovementType,
        quantity: float,
        actor: str,
        *,
        batch_id: str | None = None,
        unit_cost: float = 0.0,
        total_cost: float | None = None,
        reference: MovementReference | None = None,
        notes: str | None = None,
    ) -> StockMovement:
        return StockMovement(
            movement_id=self.ids.movement_id(),
            movement_type=movement_type,
            product_id=inventory.product_id,
            location_id=inventory.location_id,
            quantity=quantity,
            unit=inventory.unit,
            batch_id=batch_id,
            unit_cost=unit_cost,
            total_cost=round(quantity * unit_cost if total_cost is None else total_cost, 2),
            reference=reference,
            performed_by=actor,
            notes=notes,
        )


@dataclass
class LedgerCommandResult:
    """Result of a reserve, release or batch maintenance command."""

    inventory: Inventory
    movement: StockMovement | None
    affected_batch_ids: list[str]

    def to_response(self) -> LedgerCommandResponse:
        return LedgerCommandResponse(
            inventory=inventory_to_response(self.inventory),
            movement=movement_to_response(self.movement) if self.movement else None,
            affected_batch_ids=self.affected_batch_ids,
        )
