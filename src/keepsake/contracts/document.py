# src/keepsake/contracts/document.py
"""Wire-level shapes of the portable document.

These mirror the JSON produced by the encoder key for key, so field names
keep the wire spelling (camelCase). Entity records carry one key per
field group next to ``id`` and cannot be described by a closed TypedDict;
they are plain string-keyed dicts.
"""

from typing import Any, NotRequired, TypedDict

# One record inside a document: {"id": "...", "<fieldGroup>": <FieldGroupValue>, ...}
type EntityRecord = dict[str, Any]


class Meta(TypedDict):
    """Document metadata block.

    Caller-supplied extension fields are merged in next to these keys.
    """

    formatVersion: str  # Document format revision (not the schema generation)
    schemaVersion: int  # Structural generation; absent means legacy version 0
    timestamp: int  # Milliseconds since the Unix epoch at save time
    externalVersion: str | None  # Free-form version of the host application
    checksum: NotRequired[str]  # "<algorithm>:<hex>" over entityRecords


class Document(TypedDict):
    """The portable artifact produced by the encoder."""

    entityRecords: list[EntityRecord]
    meta: NotRequired[Meta]
