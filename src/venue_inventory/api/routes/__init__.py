"""API routes."""

from venue_inventory.api.routes import health, inventory, purchase_orders

__all__ = ["health", "inventory", "purchase_orders"]
