"""Pytest configuration and fixtures."""

from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest

from venue_inventory.config import reset_settings
from venue_inventory.core.entities.inventory import Inventory
from venue_inventory.core.entities.purchase_order import PurchaseOrder, PurchaseOrderItem
from venue_inventory.core.ids import IIdGenerator, set_id_generator

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


class SequentialIdGenerator(IIdGenerator):
    """Deterministic ids: B1, B2 ... for batches, T1 ... for reservation tokens."""

    def __init__(self) -> None:
        self.batches = 0
        self.tokens = 0
        self.movements = 0

    def batch_id(self) -> str:
        self.batches += 1
        return f"B{self.batches}"

    def reservation_token(self) -> str:
        self.tokens += 1
        return f"T{self.tokens}"

    def movement_id(self) -> str:
        self.movements += 1
        return f"MOV-{self.movements}"


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch) -> Generator[None, None, None]:
    """Point storage at a temp dir and start every test with fresh settings."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LEDGER_CONFLICT_RETRY_DELAY", "0")
    monkeypatch.setenv("LEDGER_CONFLICT_RETRY_MAX_DELAY", "0")
    reset_settings()
    yield
    reset_settings()
    set_id_generator(None)


@pytest.fixture
def ids() -> SequentialIdGenerator:
    return SequentialIdGenerator()


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def make_inventory(ids):
    """Build an inventory with batches given as (quantity, cost, days after T0)."""

    def _make(*batches: tuple[float, float, int], unit: str = "pcs") -> Inventory:
        inventory = Inventory.open("PROD-CHAIR", "LOC-MAIN", unit, location_name="Main Hall")
        for quantity, cost, day in batches:
            inventory.add_batch(
                quantity, cost, received_date=T0 + timedelta(days=day), ids=ids
            )
        return inventory

    return _make


@pytest.fixture
def make_order():
    """Build a draft purchase order with the given (product, quantity, price) items."""

    def _make(*items: tuple[str, float, float], **fields) -> PurchaseOrder:
        defaults = {
            "purchase_order_id": "PO000001",
            "supplier_id": "SUP-1",
            "supplier_name": "Party Supplies SA",
            "delivery_location": "LOC-MAIN",
            "created_by": "alice",
            "tax_rate": 0.16,
        }
        defaults.update(fields)
        return PurchaseOrder.create(
            items=[
                PurchaseOrderItem(
                    product_id=product_id,
                    product_name=product_id.title(),
                    quantity=quantity,
                    unit="pcs",
                    unit_price=price,
                )
                for product_id, quantity, price in items
            ],
            **defaults,
        )

    return _make
