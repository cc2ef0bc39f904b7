"""
Identifier generation for batches, reservation fragments and movements.

Entities never mint ids on their own; they ask an `IIdGenerator`, so tests
can inject deterministic ids and production gets timestamp-plus-random ids.
Timestamp ids are collision-resistant, not unique across concurrent writers:
callers serialize writes per inventory record.
"""

import secrets
import string
import time
from abc import ABC, abstractmethod

_BASE36 = string.digits + string.ascii_uppercase


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


class IIdGenerator(ABC):
    """Source of identifiers for ledger records."""

    @abstractmethod
    def batch_id(self) -> str:
        """New batch id."""
        pass

    @abstractmethod
    def reservation_token(self) -> str:
        """Suffix token for a reserved fragment (`<origin>-R<token>`)."""
        pass

    @abstractmethod
    def movement_id(self) -> str:
        """New stock movement id."""
        pass


class TimestampIdGenerator(IIdGenerator):
    """Base36 millisecond timestamp followed by a random suffix."""

    def __init__(self, batch_id_length: int = 12, random_length: int = 6):
        self.batch_id_length = batch_id_length
        self.random_length = random_length

    @staticmethod
    def _millis() -> int:
        return time.time_ns() // 1_000_000

    def _random(self, length: int) -> str:
        return "".join(secrets.choice(_BASE36) for _ in range(length))

    def batch_id(self) -> str:
        raw = to_base36(self._millis()) + self._random(self.random_length)
        return raw[: self.batch_id_length]

    def reservation_token(self) -> str:
        return str(self._millis())

    def movement_id(self) -> str:
        return f"MOV-{to_base36(self._millis())}{self._random(self.random_length)}"


_default_generator: IIdGenerator | None = None


def get_id_generator() -> IIdGenerator:
    """Get the process-wide default id generator."""
    global _default_generator
    if _default_generator is None:
        _default_generator = TimestampIdGenerator()
    return _default_generator


def set_id_generator(generator: IIdGenerator | None) -> None:
    """Replace the default id generator (None restores the timestamp one)."""
    global _default_generator
    _default_generator = generator
