# src/keepsake/core/identifiers.py
"""Record identifier generation and validation.

Fresh ids are uuid4 hex strings: 122 random bits, so the chance of any
collision among n ids is about n**2 / 2**123 (roughly 1e-19 for a billion
records). Ids arriving in documents are only required to be non-empty
strings.
"""

from __future__ import annotations

import uuid
from typing import Any


def new_record_id() -> str:
    """Return a fresh collision-resistant record id."""
    return uuid.uuid4().hex


def is_valid_record_id(value: Any) -> bool:
    """Whether value can identify a record (non-empty string)."""
    return isinstance(value, str) and value != ""


def validate_record_id(value: Any, context: str) -> str:
    """Return value if it is a usable record id.

    Args:
        value: Candidate id
        context: Description for error messages (e.g., "create_record")

    Raises:
        ValueError: If value is not a non-empty string
    """
    if not is_valid_record_id(value):
        raise ValueError(f"{context}: record id must be a non-empty string, got {value!r}")
    return value
