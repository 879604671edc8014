# src/keepsake/core/artifact/transport.py
"""JSON text transport for documents.

Documents produced by the encoder are already JSON-native, so dumps()
mostly delegates to json.dumps. Marker objects ($ref, $bigint, $date)
are written and read back untouched: turning them into live records,
integers, and datetimes is the decoder's job, and keeping them intact
means the checksum recomputed after loads() sees exactly the payload
that was hashed at save time.

NaN and Infinity are rejected in both directions.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from keepsake.contracts.document import Document
from keepsake.contracts.graph import LiveRecord
from keepsake.core.codec import encode


class DocumentJSONEncoder(json.JSONEncoder):
    """JSON encoder that writes stray datetimes and live records as markers.

    Documents built by the encoder never contain either; hand-assembled
    documents (tests, migrations) sometimes do.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, LiveRecord)):
            return encode(obj)
        # Let default encoder handle or raise TypeError
        return super().default(obj)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Cannot load non-finite number {name}: documents never contain NaN or Infinity")


def dumps(document: Document, *, pretty: bool = False) -> str:
    """Serialize a document to JSON text.

    Args:
        document: Document to write
        pretty: Indent with two spaces instead of writing one compact line

    Raises:
        ValueError: If the document contains NaN or Infinity
        TypeError: If the document contains values JSON cannot represent
    """
    if pretty:
        return json.dumps(document, cls=DocumentJSONEncoder, allow_nan=False, ensure_ascii=False, indent=2)
    return json.dumps(document, cls=DocumentJSONEncoder, allow_nan=False, ensure_ascii=False, separators=(",", ":"))


def loads(text: str | bytes) -> Document:
    """Parse JSON text into a document, leaving markers in place.

    Shape is not checked here; run the validator before trusting the result.

    Raises:
        ValueError: If the text is not valid JSON or contains NaN/Infinity
    """
    document: Document = json.loads(text, parse_constant=_reject_constant)
    return document


def write_document(document: Document, path: Path, *, pretty: bool = False) -> None:
    """Write a document to path as UTF-8 JSON."""
    path.write_text(dumps(document, pretty=pretty), encoding="utf-8")


def read_document(path: Path) -> Document:
    """Read a document written by write_document()."""
    return loads(path.read_text(encoding="utf-8"))
