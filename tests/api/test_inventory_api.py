"""API tests for inventory ledger endpoints."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from venue_inventory.api.dependencies import (
    get_consume_stock_use_case,
    get_inventory_queries,
    get_manage_inventory_use_case,
    get_receive_stock_use_case,
    get_release_reservation_use_case,
    get_reserve_stock_use_case,
    get_sweep_expired_use_case,
)
from venue_inventory.api.main import app
from venue_inventory.application.concurrency import KeyedLocks
from venue_inventory.application.queries import InventoryQueries
from venue_inventory.application.use_cases import (
    ConsumeStockUseCase,
    ManageInventoryUseCase,
    ReceiveStockUseCase,
    ReleaseReservationUseCase,
    ReserveStockUseCase,
    SweepExpiredBatchesUseCase,
)
from venue_inventory.core.exceptions import VersionConflictError

BASE = "/api/inventory/PROD-CHAIR/LOC-MAIN"


@pytest.fixture
def wire(mock_inventory_store, ids):
    """Route every inventory dependency to real use cases on the mock store."""
    deps = {"inventory_store": mock_inventory_store, "id_generator": ids, "locks": KeyedLocks()}
    app.dependency_overrides[get_receive_stock_use_case] = lambda: ReceiveStockUseCase(**deps)
    app.dependency_overrides[get_reserve_stock_use_case] = lambda: ReserveStockUseCase(**deps)
    app.dependency_overrides[get_release_reservation_use_case] = (
        lambda: ReleaseReservationUseCase(**deps)
    )
    app.dependency_overrides[get_consume_stock_use_case] = lambda: ConsumeStockUseCase(**deps)
    app.dependency_overrides[get_manage_inventory_use_case] = (
        lambda: ManageInventoryUseCase(**deps)
    )
    app.dependency_overrides[get_sweep_expired_use_case] = (
        lambda: SweepExpiredBatchesUseCase(**deps)
    )
    app.dependency_overrides[get_inventory_queries] = lambda: InventoryQueries(mock_inventory_store)
    return mock_inventory_store


class TestReceive:
    async def test_receive_creates_record(self, api_client, wire):
        response = await api_client.post(
            "/api/inventory/receive",
            json={
                "product_id": "PROD-CHAIR",
                "location_id": "LOC-MAIN",
                "location_name": "Main Hall",
                "quantity": 100,
                "unit": "pcs",
                "cost_per_unit": 2.5,
                "performed_by": "alice",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["created"] is True
        assert data["batch"]["batch_id"] == "B1"
        assert data["inventory"]["totals"]["available"] == 100
        assert data["movement"]["movement_type"] == "in"
        assert data["movement"]["total_cost"] == 250

    async def test_receive_rejects_zero_quantity(self, api_client, wire):
        response = await api_client.post(
            "/api/inventory/receive",
            json={
                "product_id": "PROD-CHAIR",
                "location_id": "LOC-MAIN",
                "quantity": 0,
                "unit": "pcs",
                "performed_by": "alice",
            },
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        wire.create_inventory.assert_not_called()

    async def test_unit_mismatch_is_bad_request(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory((10, 1.0, 0))
        response = await api_client.post(
            "/api/inventory/receive",
            json={
                "product_id": "PROD-CHAIR",
                "location_id": "LOC-MAIN",
                "quantity": 5,
                "unit": "kg",
                "performed_by": "alice",
            },
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_FAILED"
        assert '"field": "unit"' in body["detail"]


class TestLedgerCommands:
    async def test_reserve_release_consume(self, api_client, wire, make_inventory):
        inventory = make_inventory((100, 2.0, 0))
        wire.get_inventory.return_value = inventory

        reserved = await api_client.post(
            f"{BASE}/reserve", json={"quantity": 30, "performed_by": "bob"}
        )
        assert reserved.status_code == 200
        assert reserved.json()["affected_batch_ids"] == ["B1-RT1"]
        assert reserved.json()["inventory"]["totals"]["reserved"] == 30

        consumed = await api_client.post(
            f"{BASE}/consume", json={"quantity": 70, "method": "FIFO", "performed_by": "carol"}
        )
        assert consumed.status_code == 200
        assert consumed.json()["total_cost"] == 140
        assert consumed.json()["consumed"] == [
            {"batch_id": "B1", "quantity": 70, "cost_per_unit": 2.0, "total_cost": 140}
        ]

        released = await api_client.post(
            f"{BASE}/release",
            json={"quantity": 30, "batch_id": "B1-RT1", "performed_by": "bob"},
        )
        assert released.status_code == 200
        body = released.json()
        assert body["affected_batch_ids"] == ["B1"]
        assert body["inventory"]["totals"] == {
            "available": 30,
            "reserved": 0,
            "quarantine": 0,
            "unit": "pcs",
        }

    async def test_insufficient_stock_is_conflict(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory((10, 2.0, 0))

        response = await api_client.post(
            f"{BASE}/consume", json={"quantity": 12, "performed_by": "carol"}
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "INSUFFICIENT_STOCK"
        assert '"shortfall": 2' in body["detail"]
        assert body["path"] == f"{BASE}/consume"
        wire.save_inventory.assert_not_called()

    async def test_unknown_record_is_not_found(self, api_client, wire):
        response = await api_client.post(
            f"{BASE}/reserve", json={"quantity": 1, "performed_by": "bob"}
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "INVENTORY_NOT_FOUND"

    async def test_release_available_batch_is_conflict(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory((10, 2.0, 0))
        response = await api_client.post(
            f"{BASE}/release", json={"quantity": 1, "batch_id": "B1", "performed_by": "bob"}
        )
        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE"

    async def test_version_conflict_after_retries(self, api_client, wire, make_inventory):
        wire.get_inventory.side_effect = lambda *_: make_inventory((10, 2.0, 0))
        wire.save_inventory.side_effect = VersionConflictError(
            "inventory", "PROD-CHAIR:LOC-MAIN", 1
        )

        response = await api_client.post(
            f"{BASE}/consume", json={"quantity": 1, "performed_by": "carol"}
        )
        assert response.status_code == 409
        assert response.json()["error_code"] == "VERSION_CONFLICT"


class TestBatchMaintenance:
    async def test_patch_batch(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory((10, 2.0, 0))

        response = await api_client.patch(
            f"{BASE}/batches/B1", json={"quantity": 8, "performed_by": "dave"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["movement"]["movement_type"] == "adjust"
        assert body["movement"]["quantity"] == 2
        assert body["inventory"]["totals"]["available"] == 8

    async def test_patch_unknown_batch(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory((10, 2.0, 0))
        response = await api_client.patch(
            f"{BASE}/batches/NOPE", json={"quantity": 8, "performed_by": "dave"}
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "BATCH_NOT_FOUND"

    async def test_remove_batch(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory((10, 2.0, 0), (5, 1.0, 1))
        response = await api_client.request(
            "DELETE", f"{BASE}/batches/B2", json={"performed_by": "dave"}
        )
        assert response.status_code == 200
        assert [b["batch_id"] for b in response.json()["inventory"]["batches"]] == ["B1"]

    async def test_delete_record_with_batches(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory((10, 2.0, 0))
        response = await api_client.delete(BASE)
        assert response.status_code == 409

    async def test_delete_empty_record(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory()
        response = await api_client.delete(BASE)
        assert response.status_code == 204


class TestQueries:
    async def test_get_record(self, api_client, wire, make_inventory):
        wire.get_inventory.return_value = make_inventory((10, 1.0, 0), (10, 3.0, 1))

        response = await api_client.get(BASE)

        assert response.status_code == 200
        body = response.json()
        assert body["location_name"] == "Main Hall"
        assert body["average_cost"] == 2.0
        assert body["total_stock"] == 20

    async def test_list(self, api_client, wire, make_inventory):
        wire.list_inventories.return_value = [make_inventory((1, 1.0, 0))]

        response = await api_client.get(
            "/api/inventory", params={"location_id": "LOC-MAIN", "limit": 10}
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1
        wire.list_inventories.assert_awaited_once_with(None, "LOC-MAIN", 10, 0)

    async def test_movements_for_unknown_record(self, api_client, wire):
        response = await api_client.get(f"{BASE}/movements")
        assert response.status_code == 404

    async def test_expiring(self, api_client, wire, make_inventory, ids):
        from venue_inventory.core.validation import utcnow

        inventory = make_inventory()
        inventory.add_batch(4, 1.0, expiry_date=utcnow() + timedelta(days=2, hours=1), ids=ids)
        wire.list_expiring.return_value = [inventory]

        response = await api_client.get("/api/inventory/expiring", params={"within_days": 3})

        assert response.status_code == 200
        items = response.json()["items"]
        assert [(i["batch"]["batch_id"], i["days_until_expiry"]) for i in items] == [("B1", 3)]

    async def test_expire_sweep(self, api_client, wire, make_inventory, ids, t0):
        inventory = make_inventory()
        inventory.add_batch(4, 1.0, expiry_date=t0, ids=ids)
        wire.list_expiring.return_value = [inventory]
        wire.get_inventory.return_value = inventory

        response = await api_client.post(
            "/api/inventory/expire", json={"as_of": (t0 + timedelta(days=1)).isoformat()}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["inventories_updated"] == 1
        assert body["expired"][0]["batch_id"] == "B1"


class TestMockedUseCase:
    async def test_unexpected_error_is_500(self, api_client):
        use_case = AsyncMock(spec=ConsumeStockUseCase)
        use_case.execute.side_effect = RuntimeError("disk on fire")
        app.dependency_overrides[get_consume_stock_use_case] = lambda: use_case

        response = await api_client.post(
            f"{BASE}/consume", json={"quantity": 1, "performed_by": "carol"}
        )

        assert response.status_code == 500
        assert response.json()["error_code"] == "RuntimeError"
