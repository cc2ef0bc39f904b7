"""SQLite implementation of inventory storage."""

from datetime import datetime

import aiosqlite

from venue_inventory.config import get_logger
from venue_inventory.core.entities.inventory import Inventory
from venue_inventory.core.entities.movement import StockMovement
from venue_inventory.core.exceptions import VersionConflictError
from venue_inventory.core.interfaces.inventory_store import IInventoryStore
from venue_inventory.core.validation import as_utc
from venue_inventory.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
)

logger = get_logger(__name__)


def to_db_timestamp(value: datetime | None) -> str | None:
    """Fixed-width UTC ISO text so stored timestamps sort lexically."""
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="microseconds")


class SQLiteInventoryStore(IInventoryStore):
    """Inventory records stored as one JSON document per product/location."""

    async def get_inventory(self, product_id: str, location_id: str) -> Inventory | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT document, version FROM inventories
                WHERE product_id = ? AND location_id = ?
                """,
                (product_id, location_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_inventory(row)

    async def create_inventory(
        self, inventory: Inventory, movement: StockMovement | None = None
    ) -> Inventory:
        stored = inventory.model_copy(update={"version": 1})
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO inventories (
                        product_id, location_id, document, version,
                        available, reserved, quarantine, next_expiry, last_updated
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        stored.product_id,
                        stored.location_id,
                        stored.model_dump_json(),
                        stored.version,
                        *self._indexed_columns(stored),
                    ),
                )
                if movement is not None:
                    await self._insert_movement(conn, movement)
        except aiosqlite.IntegrityError as e:
            # Someone else created the same key first
            raise VersionConflictError("inventory", inventory.key, 0) from e

        inventory.version = 1
        logger.info(
            "inventory_created",
            product_id=inventory.product_id,
            location_id=inventory.location_id,
        )
        return inventory

    async def save_inventory(
        self, inventory: Inventory, movement: StockMovement | None = None
    ) -> Inventory:
        expected = inventory.version
        stored = inventory.model_copy(update={"version": expected + 1})
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE inventories SET
                    document = ?,
                    version = ?,
                    available = ?,
                    reserved = ?,
                    quarantine = ?,
                    next_expiry = ?,
                    last_updated = ?
                WHERE product_id = ? AND location_id = ? AND version = ?
                """,
                (
                    stored.model_dump_json(),
                    stored.version,
                    *self._indexed_columns(stored),
                    stored.product_id,
                    stored.location_id,
                    expected,
                ),
            )
            if cursor.rowcount == 0:
                raise VersionConflictError("inventory", inventory.key, expected)
            if movement is not None:
                await self._insert_movement(conn, movement)

        inventory.version = stored.version
        logger.debug(
            "inventory_saved",
            product_id=inventory.product_id,
            location_id=inventory.location_id,
            version=inventory.version,
        )
        return inventory

    async def delete_inventory(self, product_id: str, location_id: str) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM inventories WHERE product_id = ? AND location_id = ?",
                (product_id, location_id),
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("inventory_deleted", product_id=product_id, location_id=location_id)
        return deleted

    async def list_inventories(
        self,
        product_id: str | None = None,
        location_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Inventory]:
        clauses = []
        params: list = []
        if product_id is not None:
            clauses.append("product_id = ?")
            params.append(product_id)
        if location_id is not None:
            clauses.append("location_id = ?")
            params.append(location_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT document, version FROM inventories
                {where}
                ORDER BY location_id, product_id
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_inventory(row) for row in rows]

    async def list_expiring(self, before: datetime, limit: int = 100) -> list[Inventory]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT document, version FROM inventories
                WHERE next_expiry IS NOT NULL AND next_expiry <= ?
                ORDER BY next_expiry
                LIMIT ?
                """,
                (to_db_timestamp(before), limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_inventory(row) for row in rows]

    async def add_movement(self, movement: StockMovement) -> StockMovement:
        async with get_transaction() as conn:
            await self._insert_movement(conn, movement)
        return movement

    async def get_movements(
        self, product_id: str, location_id: str, limit: int = 100, offset: int = 0
    ) -> list[StockMovement]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT document FROM stock_movements
                WHERE product_id = ? AND location_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ? OFFSET ?
                """,
                (product_id, location_id, limit, offset),
            )
            rows = await cursor.fetchall()
            return [StockMovement.model_validate_json(row["document"]) for row in rows]

    async def _insert_movement(self, conn: aiosqlite.Connection, movement: StockMovement) -> None:
        await conn.execute(
            """
            INSERT INTO stock_movements (
                movement_id, product_id, location_id, movement_type,
                quantity, document, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                movement.movement_id,
                movement.product_id,
                movement.location_id,
                movement.movement_type.value,
                movement.quantity,
                movement.model_dump_json(),
                to_db_timestamp(movement.created_at),
            ),
        )
        logger.info(
            "stock_movement_recorded",
            movement_id=movement.movement_id,
            type=movement.movement_type.value,
            qty=movement.quantity,
        )

    def _indexed_columns(self, inventory: Inventory) -> tuple:
        return (
            inventory.totals.available,
            inventory.totals.reserved,
            inventory.totals.quarantine,
            to_db_timestamp(inventory.next_expiry_date),
            to_db_timestamp(inventory.last_updated),
        )

    def _row_to_inventory(self, row: aiosqlite.Row) -> Inventory:
        inventory = Inventory.model_validate_json(row["document"])
        # The column is authoritative for optimistic locking
        inventory.version = row["version"]
        return inventory
