"""Core domain layer - entities, interfaces, and exceptions."""

from venue_inventory.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
