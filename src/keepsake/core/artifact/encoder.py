# src/keepsake/core/artifact/encoder.py
"""Encoder: live graph -> portable document.

Walks a selected set of root records, encodes their field groups through
the value codec, and optionally pulls referenced records into the
document breadth-first, one level per step, up to max_depth levels.
Records beyond the bound stay referenced by id but are not written; the
resulting document is a deliberate partial closure.

The encoder only reads the live graph. Hooks may do whatever the caller
wants.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from keepsake.contracts.document import Document, EntityRecord, Meta
from keepsake.contracts.graph import KeyedGroup, ListGroup, LiveGraph, LiveRecord, SingleGroup
from keepsake.core.codec import encode, records_checksum
from keepsake.core.config import SerializeOptions, coerce_options
from keepsake.core.constants import ENTITY_RECORDS_KEY, FORMAT_VERSION, ID_KEY, META_KEY


class ArtifactEncoder:
    """Produces a Document from a live graph.

    Example:
        encoder = ArtifactEncoder(world, {"entities": [player], "resolveReferences": True, "maxDepth": 1})
        document = encoder.serialize()
    """

    def __init__(
        self,
        graph: LiveGraph,
        options: SerializeOptions | Mapping[str, Any] | None = None,
    ) -> None:
        self._graph = graph
        self._options = coerce_options(SerializeOptions, options)
        self._logger = structlog.get_logger(__name__)

    @property
    def options(self) -> SerializeOptions:
        return self._options

    def serialize(self) -> Document:
        """Encode the selected records into a document.

        Returns:
            The document, or whatever after_serialize returned for it

        Raises:
            KeyError: If an explicit root id is not in the graph
            CyclicStructureError: If a field value contains itself
            ValueError: If a field value holds NaN or Infinity
        """
        options = self._options
        included: dict[str, EntityRecord] = {}
        frontier: list[LiveRecord] = []

        for record in self._select_roots():
            if record.id not in included:
                included[record.id] = self._encode_record(record, frontier)

        depth = 0
        if options.resolve_references:
            while frontier and depth < options.max_depth:
                depth += 1
                discovered: list[LiveRecord] = []
                for record in frontier:
                    if record.id in included:
                        continue
                    if options.exclude_transient and not record.persistable:
                        continue
                    included[record.id] = self._encode_record(record, discovered)
                frontier = discovered

        entity_records = list(included.values())
        document: Document = {ENTITY_RECORDS_KEY: entity_records}

        if options.include_metadata:
            meta = self._build_meta()
            # Digest covers entityRecords only and is attached last
            if options.checksum:
                meta["checksum"] = records_checksum(entity_records)
            document[META_KEY] = meta

        self._logger.debug(
            "document_serialized",
            entity_count=len(entity_records),
            expansion_depth=depth,
            checksum=options.checksum,
        )

        if options.after_serialize is not None:
            return options.after_serialize(document)
        return document

    def _select_roots(self) -> list[LiveRecord]:
        options = self._options
        if options.entities is None or options.entities == "all":
            roots = list(self._graph.records())
        else:
            roots = [self._resolve_root(entry) for entry in options.entities]

        if options.exclude_transient:
            roots = [record for record in roots if record.persistable]
        if options.record_filter is not None:
            roots = [record for record in roots if options.record_filter(record)]
        return roots

    def _resolve_root(self, entry: Any) -> LiveRecord:
        if isinstance(entry, str):
            record = self._graph.get(entry)
            if record is None:
                raise KeyError(f"Record '{entry}' selected for serialization is not in the graph")
            return record
        if not isinstance(entry, LiveRecord):
            raise TypeError(f"entities must hold records or record ids, got {type(entry).__name__}")
        return entry

    def _keeps(self, name: str) -> bool:
        if name in self._options.exclude_field_groups:
            return False
        only = self._options.only_field_groups
        return only is None or name in only

    def _encode_record(self, record: LiveRecord, discovered: list[LiveRecord]) -> EntityRecord:
        """Encode one record, appending every record it references to discovered."""
        if self._options.before_serialize is not None:
            record = self._options.before_serialize(record)

        entity: EntityRecord = {ID_KEY: record.id}
        for name, value in record.field_groups().items():
            if not self._keeps(name):
                continue
            match value:
                case SingleGroup(group=group):
                    entity[name] = encode(dict(group.fields), on_reference=discovered.append)
                case ListGroup(groups=groups):
                    entity[name] = [encode(dict(g.fields), on_reference=discovered.append) for g in groups]
                case KeyedGroup(groups=groups):
                    entity[name] = {key: encode(dict(g.fields), on_reference=discovered.append) for key, g in groups.items()}
        return entity

    def _build_meta(self) -> Meta:
        options = self._options
        meta: Meta = {
            "formatVersion": FORMAT_VERSION,
            "schemaVersion": options.schema_version,
            "timestamp": int(datetime.now(UTC).timestamp() * 1000),
            "externalVersion": options.external_version,
        }
        # Extension fields may shadow the base keys
        meta.update(options.metadata)  # type: ignore[typeddict-item]
        return meta


def serialize(
    graph: LiveGraph,
    options: SerializeOptions | Mapping[str, Any] | None = None,
) -> Document:
    """Encode a live graph into a document. See ArtifactEncoder."""
    return ArtifactEncoder(graph, options).serialize()

