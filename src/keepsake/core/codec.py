# src/keepsake/core/codec.py
"""Value codec: wire encoding of non-native values and payload checksums.

Three value kinds have no native JSON form and travel as single-key
marker objects:

- live records      -> {"$ref": "<record id>"}
- large integers    -> {"$bigint": "<decimal digits>"}
- datetimes         -> {"$date": "<ISO-8601>"}

encode() cuts references at the marker and never descends into the
referenced record, so record-to-record cycles cannot recurse. Plain maps
and lists that contain themselves are rejected by the shared traversal
with CyclicStructureError; the same guard backs decode() and deep_clone().

decode() restores integers and datetimes but leaves $ref markers in
place: resolving them needs the complete id -> record map that only the
decoder's link pass has.

Marker-shaped maps (exactly one reserved key with a string value) are
treated as opaque leaves everywhere.
"""

from __future__ import annotations

import hmac
import json
import math
import re
import struct
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from keepsake.contracts.errors import CyclicStructureError
from keepsake.contracts.graph import LiveRecord
from keepsake.core.constants import (
    BIGINT_MARKER,
    CHECKSUM_ALGORITHM,
    DATE_MARKER,
    MARKERS,
    MAX_SAFE_INT,
    REF_MARKER,
)

__all__ = [
    "checksum",
    "decode",
    "deep_clone",
    "deep_traverse",
    "encode",
    "is_marker",
    "is_reference",
    "payload_text",
    "records_checksum",
    "verify",
]


_BIGINT_DIGITS = re.compile(r"-?[0-9]+")


# =============================================================================
# Markers
# =============================================================================


def is_marker(value: Any) -> bool:
    """Whether value is a marker object ({"$ref"|"$bigint"|"$date": str})."""
    if not isinstance(value, dict) or len(value) != 1:
        return False
    key, inner = next(iter(value.items()))
    return key in MARKERS and isinstance(inner, str)


def is_reference(value: Any) -> bool:
    """Whether value is a cross-record reference marker."""
    return is_marker(value) and REF_MARKER in value


# =============================================================================
# Traversal
# =============================================================================


def deep_traverse(value: Any, fn: Callable[[Any], Any]) -> Any:
    """Rebuild nested maps and lists, applying fn to every leaf.

    Maps stay maps, lists and tuples become lists. Marker objects and
    anything that is not a plain map or list (live records included) are
    leaves. A container met again while it is still being walked raises
    CyclicStructureError; a container shared by two branches is simply
    copied twice.

    Args:
        value: Value tree to walk
        fn: Leaf transformation

    Returns:
        The rebuilt tree

    Raises:
        CyclicStructureError: If a map or list contains itself
    """
    return _traverse(value, fn, set())


def _traverse(value: Any, fn: Callable[[Any], Any], path: set[int]) -> Any:
    if isinstance(value, dict) and not is_marker(value):
        token = _enter(value, path)
        try:
            return {key: _traverse(item, fn, path) for key, item in value.items()}
        finally:
            path.discard(token)
    if isinstance(value, list | tuple):
        token = _enter(value, path)
        try:
            return [_traverse(item, fn, path) for item in value]
        finally:
            path.discard(token)
    return fn(value)


def _enter(container: Any, path: set[int]) -> int:
    token = id(container)
    if token in path:
        raise CyclicStructureError(f"Circular reference detected: a {type(container).__name__} contains itself")
    path.add(token)
    return token


def deep_clone(value: Any) -> Any:
    """Copy nested maps and lists, keeping leaves (records, datetimes) shared."""
    return deep_traverse(value, lambda leaf: leaf)


# =============================================================================
# Encode / decode
# =============================================================================


def _encode_leaf(value: Any) -> Any:
    if isinstance(value, LiveRecord):
        return {REF_MARKER: value.id}
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INT:
            return {BIGINT_MARKER: str(value)}
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Cannot encode non-finite float: {value}. Use None for missing values, not NaN/Infinity.")
        return value
    if isinstance(value, datetime):
        # Naive timestamps assumed UTC (explicit policy)
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return {DATE_MARKER: value.astimezone(UTC).isoformat()}
    return value


def encode(value: Any, *, on_reference: Callable[[LiveRecord], None] | None = None) -> Any:
    """Rewrite a value tree into its JSON-representable form.

    Args:
        value: Value tree (field map, list, or leaf)
        on_reference: Called with every live record cut to a $ref marker,
            in traversal order

    Raises:
        CyclicStructureError: If a nested map or list contains itself
        ValueError: If a float is NaN or Infinity
    """
    if on_reference is None:
        return deep_traverse(value, _encode_leaf)

    def leaf(item: Any) -> Any:
        if isinstance(item, LiveRecord):
            on_reference(item)
        return _encode_leaf(item)

    return deep_traverse(value, leaf)


def _decode_leaf(value: Any) -> Any:
    if not is_marker(value):
        return value
    if BIGINT_MARKER in value:
        digits = value[BIGINT_MARKER]
        if _BIGINT_DIGITS.fullmatch(digits) is None:
            raise ValueError(f"Malformed {BIGINT_MARKER} marker: {digits!r}")
        return int(digits)
    if DATE_MARKER in value:
        stamp = value[DATE_MARKER]
        try:
            return datetime.fromisoformat(stamp)
        except ValueError:
            raise ValueError(f"Malformed {DATE_MARKER} marker: {stamp!r}") from None
    # $ref markers are resolved by the decoder's link pass
    return value


def decode(value: Any) -> Any:
    """Inverse of encode() for $bigint and $date; $ref markers pass through.

    Idempotent: already-decoded values are returned unchanged.

    Raises:
        ValueError: If a $bigint or $date marker carries a malformed string
    """
    return deep_traverse(value, _decode_leaf)


# =============================================================================
# Checksums
# =============================================================================


def payload_text(entity_records: Any) -> str:
    """Serialize the entity-records payload exactly as the checksum sees it.

    Compact separators, insertion-ordered keys, non-ASCII kept verbatim.
    """
    return json.dumps(entity_records, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def checksum(payload: str) -> str:
    """Order-sensitive 32-bit rolling hash of payload, tagged with its algorithm.

    Runs over UTF-16 code units (h = h * 31 + unit, wrapped to signed 32
    bits) and renders the value as signed hex, so digests match those
    written by JavaScript producers of the same format.

    Not cryptographic: detects accidental corruption, not tampering by
    someone who can recompute it.
    """
    state = 0
    for (unit,) in struct.iter_unpack("<H", payload.encode("utf-16-le")):
        state = (state * 31 + unit) & 0xFFFFFFFF
    if state >= 0x80000000:
        state -= 0x100000000
    sign = "-" if state < 0 else ""
    return f"{CHECKSUM_ALGORITHM}:{sign}{abs(state):x}"


def verify(payload: str, expected: str) -> bool:
    """Recompute the checksum of payload and compare it with expected."""
    if not expected.isascii():
        return False
    return hmac.compare_digest(checksum(payload), expected)


def records_checksum(entity_records: Any) -> str:
    """Checksum of an entity-records array as it would be written."""
    return checksum(payload_text(entity_records))
