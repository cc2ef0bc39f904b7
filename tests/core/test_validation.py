"""Tests for shared validation helpers and id generation."""

import re
from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import BaseModel, Field, ValidationError

from venue_inventory.core.exceptions import ValidationFailedError
from venue_inventory.core.ids import (
    TimestampIdGenerator,
    get_id_generator,
    set_id_generator,
    to_base36,
)
from venue_inventory.core.validation import (
    as_utc,
    check_consistency,
    coerce_updates,
    covers,
    require_positive,
    require_text,
    staged,
    validation_failure,
    within_tolerance,
)


class Sample(BaseModel):
    name: str
    count: int = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)


class TestStaged:
    def test_commits_on_success(self):
        record = Sample(name="a")
        with staged(record) as draft:
            draft.count = 3
            draft.tags.append("x")
        assert record.count == 3
        assert record.tags == ["x"]

    def test_discards_on_error(self):
        record = Sample(name="a", tags=["keep"])
        with pytest.raises(RuntimeError):
            with staged(record) as draft:
                draft.tags.append("lost")
                draft.count = 9
                raise RuntimeError("boom")
        assert record.tags == ["keep"]
        assert record.count == 0


class TestChecks:
    def test_as_utc(self):
        naive = datetime(2024, 1, 1, 10)
        assert as_utc(naive) == datetime(2024, 1, 1, 10, tzinfo=UTC)
        plus_two = datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(plus_two).hour == 10
        assert as_utc(None) is None

    def test_covers_uses_epsilon(self):
        assert covers(0.1 + 0.2, 0.3)
        assert not covers(1.0, 1.01)

    def test_within_tolerance(self):
        assert within_tolerance(232.004, 232)
        assert not within_tolerance(232.02, 232)

    @pytest.mark.parametrize("value", [0, -1, float("nan"), float("-inf"), True, "3"])
    def test_require_positive_rejects(self, value):
        with pytest.raises(ValidationFailedError):
            require_positive("quantity", value)

    def test_require_positive_accepts_int(self):
        assert require_positive("quantity", 3) == 3.0

    def test_require_text(self):
        assert require_text("actor", "  bob ") == "bob"
        with pytest.raises(ValidationFailedError):
            require_text("actor", "   ")

    def test_check_consistency(self):
        check_consistency("total", 10.005, 10)
        with pytest.raises(ValidationFailedError) as exc_info:
            check_consistency("total", 11, 10)
        assert exc_info.value.field == "total"

    def test_validation_failure_names_field(self):
        with pytest.raises(ValidationError) as exc_info:
            Sample(name="a", count=-1)
        error = validation_failure(exc_info.value)
        assert error.field == "count"

    def test_coerce_updates_from_model(self):
        assert coerce_updates(Sample(name="b")) == {"name": "b"}
        assert coerce_updates({"count": 1}) == {"count": 1}


class TestIds:
    def test_to_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "Z"
        assert to_base36(36) == "10"

    def test_timestamp_batch_id_shape(self):
        generator = TimestampIdGenerator()
        batch_id = generator.batch_id()
        assert len(batch_id) == 12
        assert re.fullmatch(r"[0-9A-Z]+", batch_id)

    def test_movement_id_prefix(self):
        assert TimestampIdGenerator().movement_id().startswith("MOV-")

    def test_reservation_token_is_numeric(self):
        assert TimestampIdGenerator().reservation_token().isdigit()

    def test_default_generator_replaceable(self, ids):
        set_id_generator(ids)
        assert get_id_generator() is ids
        set_id_generator(None)
        assert isinstance(get_id_generator(), TimestampIdGenerator)
