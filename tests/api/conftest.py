"""Fixtures for API tests: the real app with stores replaced by mocks."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from venue_inventory.api.main import app


@pytest.fixture
def mock_inventory_store():
    store = AsyncMock()
    store.get_inventory.return_value = None
    store.list_inventories.return_value = []
    store.list_expiring.return_value = []
    store.get_movements.return_value = []
    store.create_inventory.side_effect = lambda inv, mv=None: inv
    store.save_inventory.side_effect = lambda inv, mv=None: inv
    return store


@pytest.fixture
def mock_purchase_order_store():
    store = AsyncMock()
    store.get_order.return_value = None
    store.next_order_number.return_value = 1
    store.create_order.side_effect = lambda order: order
    store.save_order.side_effect = lambda order: order
    store.list_orders.return_value = []
    store.count_orders.return_value = 0
    return store


@pytest.fixture
async def api_client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
