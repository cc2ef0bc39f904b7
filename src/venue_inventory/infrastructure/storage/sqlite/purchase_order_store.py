"""SQLite implementation of purchase order storage."""

import aiosqlite

from venue_inventory.config import get_logger
from venue_inventory.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus
from venue_inventory.core.exceptions import VersionConflictError
from venue_inventory.core.interfaces.purchase_order_store import IPurchaseOrderStore
from venue_inventory.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
)
from venue_inventory.infrastructure.storage.sqlite.inventory_store import to_db_timestamp

logger = get_logger(__name__)

SEQUENCE_NAME = "purchase_order"


class SQLitePurchaseOrderStore(IPurchaseOrderStore):
    """Purchase orders stored as one JSON document per order id."""

    async def next_order_number(self) -> int:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO sequences (name, value) VALUES (?, 1)
                ON CONFLICT(name) DO UPDATE SET value = value + 1
                """,
                (SEQUENCE_NAME,),
            )
            cursor = await conn.execute(
                "SELECT value FROM sequences WHERE name = ?", (SEQUENCE_NAME,)
            )
            row = await cursor.fetchone()
            return row["value"]

    async def create_order(self, order: PurchaseOrder) -> PurchaseOrder:
        stored = order.model_copy(update={"version": 1})
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO purchase_orders (
                        purchase_order_id, supplier_id, status, document, version,
                        total, expected_delivery_date, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        stored.purchase_order_id,
                        stored.supplier_id,
                        stored.status.value,
                        stored.model_dump_json(),
                        stored.version,
                        stored.total,
                        to_db_timestamp(stored.expected_delivery_date),
                        to_db_timestamp(stored.created_at),
                        to_db_timestamp(stored.updated_at),
                    ),
                )
        except aiosqlite.IntegrityError as e:
            raise VersionConflictError("purchase order", order.purchase_order_id, 0) from e

        order.version = 1
        logger.info(
            "purchase_order_stored",
            purchase_order_id=order.purchase_order_id,
            supplier_id=order.supplier_id,
        )
        return order

    async def get_order(self, purchase_order_id: str) -> PurchaseOrder | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT document, version FROM purchase_orders WHERE purchase_order_id = ?",
                (purchase_order_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_order(row)

    async def save_order(self, order: PurchaseOrder) -> PurchaseOrder:
        expected = order.version
        stored = order.model_copy(update={"version": expected + 1})
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE purchase_orders SET
                    supplier_id = ?,
                    status = ?,
                    document = ?,
                    version = ?,
                    total = ?,
                    expected_delivery_date = ?,
                    updated_at = ?
                WHERE purchase_order_id = ? AND version = ?
                """,
                (
                    stored.supplier_id,
                    stored.status.value,
                    stored.model_dump_json(),
                    stored.version,
                    stored.total,
                    to_db_timestamp(stored.expected_delivery_date),
                    to_db_timestamp(stored.updated_at),
                    stored.purchase_order_id,
                    expected,
                ),
            )
            if cursor.rowcount == 0:
                raise VersionConflictError("purchase order", order.purchase_order_id, expected)

        order.version = stored.version
        logger.debug(
            "purchase_order_saved",
            purchase_order_id=order.purchase_order_id,
            status=order.status.value,
            version=order.version,
        )
        return order

    async def delete_order(self, purchase_order_id: str) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM purchase_orders WHERE purchase_order_id = ?",
                (purchase_order_id,),
            )
            return cursor.rowcount > 0

    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        where, params = self._filters(status, supplier_id)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT document, version FROM purchase_orders
                {where}
                ORDER BY created_at DESC, purchase_order_id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_order(row) for row in rows]

    async def count_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: str | None = None,
    ) -> int:
        where, params = self._filters(status, supplier_id)
        async with get_connection() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM purchase_orders {where}", params)
            row = await cursor.fetchone()
            return row[0]

    def _filters(
        self, status: PurchaseOrderStatus | None, supplier_id: str | None
    ) -> tuple[str, list]:
        clauses = []
        params: list = []
        if status is not None:
            clauses.append("status = ?")
            params.append(PurchaseOrderStatus(status).value)
        if supplier_id is not None:
            clauses.append("supplier_id = ?")
            params.append(supplier_id)
        return (f"WHERE {' AND '.join(clauses)}" if clauses else ""), params

    def _row_to_order(self, row: aiosqlite.Row) -> PurchaseOrder:
        order = PurchaseOrder.model_validate_json(row["document"])
        order.version = row["version"]
        return order
