# tests/property/artifact/test_codec_properties.py
"""Property-based tests for the value codec and payload checksum.

Codec Properties:
- decode() inverts encode() for every reference-free field value
- encode() output is plain JSON (no NaN, no datetimes, no huge integers)
- Marker objects are leaves: traversal never looks inside them

Checksum Properties:
- Same entity records -> same checksum, across copies and JSON round trips
- Changing one character of an entity id always changes the checksum
"""

from __future__ import annotations

import copy
import json
from typing import Any

from hypothesis import given
from hypothesis import strategies as st

from keepsake.core.codec import checksum, decode, deep_traverse, encode, payload_text, records_checksum, verify
from keepsake.core.constants import MAX_SAFE_INT
from tests.strategies import DETERMINISM_SETTINGS, STANDARD_SETTINGS, big_integers, field_maps, field_values
from tests.strategies.json import field_names


def _plain_json(value: Any) -> bool:
    if isinstance(value, dict):
        return all(isinstance(key, str) and _plain_json(item) for key, item in value.items())
    if isinstance(value, list):
        return all(_plain_json(item) for item in value)
    if isinstance(value, bool) or value is None or isinstance(value, str | float):
        return True
    if isinstance(value, int):
        return abs(value) <= MAX_SAFE_INT
    return False


entity_lists = st.lists(
    st.tuples(field_names, field_maps),
    max_size=4,
    unique_by=lambda pair: pair[0],
).map(lambda pairs: [{"id": record_id, "data": fields} for record_id, fields in pairs])


class TestCodecProperties:
    @given(value=field_values)
    @STANDARD_SETTINGS
    def test_decode_inverts_encode(self, value: Any) -> None:
        assert decode(encode(value)) == value

    @given(value=field_values)
    @STANDARD_SETTINGS
    def test_encoded_values_are_plain_json(self, value: Any) -> None:
        encoded = encode(value)
        assert _plain_json(encoded)
        json.dumps(encoded, allow_nan=False)

    @given(number=big_integers)
    @STANDARD_SETTINGS
    def test_large_integers_become_markers(self, number: int) -> None:
        assert encode(number) == {"$bigint": str(number)}

    @given(value=field_values)
    @STANDARD_SETTINGS
    def test_identity_traversal_copies(self, value: Any) -> None:
        encoded = encode(value)
        assert deep_traverse(encoded, lambda leaf: leaf) == encoded

    @given(target=field_names)
    @STANDARD_SETTINGS
    def test_reference_markers_are_leaves(self, target: str) -> None:
        seen: list[Any] = []
        deep_traverse({"a": [{"$ref": target}]}, lambda leaf: seen.append(leaf) or leaf)
        assert seen == [{"$ref": target}]


class TestChecksumProperties:
    @given(entities=entity_lists)
    @DETERMINISM_SETTINGS
    def test_checksum_deterministic(self, entities: list[dict[str, Any]]) -> None:
        encoded = encode(entities)
        assert records_checksum(encoded) == records_checksum(copy.deepcopy(encoded))

    @given(entities=entity_lists)
    @DETERMINISM_SETTINGS
    def test_checksum_survives_json_round_trip(self, entities: list[dict[str, Any]]) -> None:
        encoded = encode(entities)
        reloaded = json.loads(json.dumps(encoded, ensure_ascii=False))
        assert verify(payload_text(reloaded), records_checksum(encoded))

    @given(entities=entity_lists.filter(bool), data=st.data())
    @DETERMINISM_SETTINGS
    def test_id_change_detected(self, entities: list[dict[str, Any]], data: st.DataObject) -> None:
        encoded = encode(entities)
        index = data.draw(st.integers(0, len(encoded) - 1))
        original_id = encoded[index]["id"]
        replacement = data.draw(st.sampled_from("abcdefghijklmnopqrstuvwxyz_").filter(lambda c: c != original_id[0]))

        tampered = copy.deepcopy(encoded)
        tampered[index]["id"] = replacement + original_id[1:]

        assert records_checksum(tampered) != records_checksum(encoded)

    @given(text=st.text(max_size=200))
    @DETERMINISM_SETTINGS
    def test_checksum_format(self, text: str) -> None:
        digest = checksum(text)
        algorithm, _, value = digest.partition(":")
        assert algorithm == "simple"
        int(value, 16)
        assert verify(text, digest)
