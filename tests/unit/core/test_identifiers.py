# tests/unit/core/test_identifiers.py
"""Tests for record id generation and validation."""

import pytest

from keepsake.core.identifiers import is_valid_record_id, new_record_id, validate_record_id


def test_new_record_id_is_uuid4_hex() -> None:
    record_id = new_record_id()
    assert len(record_id) == 32
    assert int(record_id, 16) >= 0


def test_new_record_ids_are_unique() -> None:
    assert len({new_record_id() for _ in range(1000)}) == 1000


@pytest.mark.parametrize("value", ["a", "player-1", "0"])
def test_non_empty_strings_are_valid(value: str) -> None:
    assert is_valid_record_id(value)
    assert validate_record_id(value, "test") == value


@pytest.mark.parametrize("value", ["", None, 7, ["a"]])
def test_other_values_are_rejected(value: object) -> None:
    assert not is_valid_record_id(value)
    with pytest.raises(ValueError, match="create_record: record id must be a non-empty string"):
        validate_record_id(value, "create_record")
