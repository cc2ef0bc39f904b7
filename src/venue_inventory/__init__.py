"""
Venue inventory engine.

Batch-level stock ledger with reservations, FIFO/LIFO consumption and expiry
tracking, plus the purchase order lifecycle that feeds it.
"""

__version__ = "1.0.0"
