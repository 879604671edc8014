# src/keepsake/core/artifact/decoder.py
"""Decoder: portable document -> live records.

Decoding runs in three passes, always in this order:

1. Materialize: fetch or create a live record for every entity id and
   build the id -> record map. No fields yet.
2. Populate: attach every field group with its values decoded but its
   $ref markers still in place. Indexing is suspended per record and
   resumed once, so membership is recomputed once per record rather
   than once per field group.
3. Link: walk every field value and swap each $ref marker for the live
   record from the pass-1 map, applying the dangling-reference policy
   when the id is not in the document.

Linking only after every id is known makes the result independent of
record order: a record may reference one that appears later in the
document, or itself.

Nothing is rolled back if linking fails under the ``throw`` policy;
records already materialized and populated stay in the graph. Callers
that need all-or-nothing loads decode into a scratch graph first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from keepsake.contracts.document import Document
from keepsake.contracts.enums import DanglingRefPolicy, GroupShape
from keepsake.contracts.errors import DecodeError
from keepsake.contracts.graph import (
    FieldGroupDescriptor,
    FieldGroupTypeRegistry,
    FieldGroupValue,
    KeyedGroup,
    ListGroup,
    LiveGraph,
    LiveRecord,
    SingleGroup,
)
from keepsake.core.codec import decode, deep_traverse, is_reference
from keepsake.core.config import DeserializeOptions, coerce_options
from keepsake.core.constants import ENTITY_RECORDS_KEY, ID_KEY, REF_MARKER
from keepsake.core.identifiers import is_valid_record_id


class ArtifactDecoder:
    """Rebuilds live records from a Document.

    One decoder instance handles one document; the id map it builds is
    specific to that document.
    """

    def __init__(
        self,
        graph: LiveGraph,
        registry: FieldGroupTypeRegistry,
        options: DeserializeOptions | Mapping[str, Any] | None = None,
    ) -> None:
        self._graph = graph
        self._registry = registry
        self._options = coerce_options(DeserializeOptions, options)
        self._records_by_id: dict[str, LiveRecord] = {}
        self._logger = structlog.get_logger(__name__)

    @property
    def options(self) -> DeserializeOptions:
        return self._options

    def deserialize(self, document: Document) -> list[LiveRecord]:
        """Decode document into the graph.

        Returns:
            The decoded records, in document order

        Raises:
            DecodeError: On an unknown field-group type or a shape mismatch
                under strict validation, on a dangling reference under the
                ``throw`` policy, or on an entity record without a usable id
            ValueError: If a $bigint or $date marker is malformed
        """
        if self._options.before_deserialize is not None:
            document = self._options.before_deserialize(document)

        entities = document.get(ENTITY_RECORDS_KEY, [])
        if not isinstance(entities, list):
            raise DecodeError(f"'{ENTITY_RECORDS_KEY}' must be a list, got {type(entities).__name__}")

        pairs = self._materialize(entities)
        for entity, record in pairs:
            self._populate(record, entity)

        records = list(dict.fromkeys(record for _, record in pairs))
        for record in records:
            self._link(record)

        if self._options.after_deserialize is not None:
            for record in records:
                self._options.after_deserialize(record)

        self._logger.debug("document_deserialized", entity_count=len(records))
        return records

    # =========================================================================
    # Pass 1: materialize
    # =========================================================================

    def _materialize(self, entities: list[Any]) -> list[tuple[dict[str, Any], LiveRecord]]:
        pairs: list[tuple[dict[str, Any], LiveRecord]] = []
        for position, entity in enumerate(entities):
            if not isinstance(entity, dict):
                raise DecodeError(f"Entity record at index {position} must be an object, got {type(entity).__name__}")
            record_id = entity.get(ID_KEY)
            if not is_valid_record_id(record_id):
                raise DecodeError(f"Entity record at index {position} has no usable id: {record_id!r}")
            record = self._graph.get_or_create(record_id)
            self._records_by_id[record_id] = record
            pairs.append((entity, record))
        return pairs

    # =========================================================================
    # Pass 2: populate
    # =========================================================================

    def _populate(self, record: LiveRecord, entity: dict[str, Any]) -> None:
        record.suspend_indexing()
        try:
            for name, raw in entity.items():
                if name == ID_KEY:
                    continue
                descriptor = self._registry.lookup(name)
                if descriptor is None:
                    self._reject(
                        f"Unknown field group type '{name}' on entity '{record.id}'",
                        "unknown_field_group_skipped",
                        record=record,
                        field_group=name,
                    )
                    continue
                value = self._build_value(descriptor, raw)
                if value is None:
                    self._reject(
                        f"Field group '{name}' on entity '{record.id}' does not match its {descriptor.shape} shape",
                        "field_group_shape_mismatch",
                        record=record,
                        field_group=name,
                    )
                    continue
                record.attach(name, value)
        finally:
            record.resume_indexing()

    def _reject(self, message: str, event: str, *, record: LiveRecord, field_group: str) -> None:
        """Raise under strict validation, otherwise log and let the caller skip."""
        if self._options.strict_validation:
            raise DecodeError(message, field_group=field_group)
        self._logger.warning(event, entity_id=record.id, field_group=field_group)

    def _build_value(self, descriptor: FieldGroupDescriptor, raw: Any) -> FieldGroupValue | None:
        """Field-group value mirroring the document shape, or None if raw has the wrong shape."""
        match descriptor.shape:
            case GroupShape.SINGLE:
                if not isinstance(raw, dict):
                    return None
                return SingleGroup(descriptor.factory(decode(raw)))
            case GroupShape.LIST:
                items = raw if isinstance(raw, list) else list(raw.values()) if isinstance(raw, dict) else None
                if items is None or not all(isinstance(item, dict) for item in items):
                    return None
                return ListGroup([descriptor.factory(decode(item)) for item in items])
            case GroupShape.KEYED:
                return self._build_keyed(descriptor, raw)
        return None

    def _build_keyed(self, descriptor: FieldGroupDescriptor, raw: Any) -> KeyedGroup | None:
        key_field = descriptor.repetition_key
        assert key_field is not None  # KEYED shape implies a repetition key
        if isinstance(raw, dict):
            entries = list(raw.items())
        elif isinstance(raw, list):
            entries = [(item.get(key_field) if isinstance(item, dict) else None, item) for item in raw]
        else:
            return None

        groups: dict[str, Any] = {}
        for key, item in entries:
            if not isinstance(item, dict) or key is None:
                return None
            fields = decode(item)
            # The document key stands in for a missing key field
            fields.setdefault(key_field, key)
            groups[str(key)] = descriptor.factory(fields)
        return KeyedGroup(groups)

    # =========================================================================
    # Pass 3: link
    # =========================================================================

    def _link(self, record: LiveRecord) -> None:
        for value in record.field_groups().values():
            for instance in value.instances():
                fields = instance.fields
                for name in list(fields):
                    fields[name] = deep_traverse(fields[name], self._resolve)

    def _resolve(self, leaf: Any) -> Any:
        if not is_reference(leaf):
            return leaf
        target_id = leaf[REF_MARKER]
        target = self._records_by_id.get(target_id)
        if target is not None:
            return target

        match self._options.dangling_refs:
            case DanglingRefPolicy.THROW:
                raise DecodeError(f"Dangling reference to entity '{target_id}'", entity_id=target_id)
            case DanglingRefPolicy.WARN:
                self._logger.warning("dangling_reference", entity_id=target_id)
        return None


def deserialize(
    graph: LiveGraph,
    document: Document,
    registry: FieldGroupTypeRegistry,
    options: DeserializeOptions | Mapping[str, Any] | None = None,
) -> list[LiveRecord]:
    """Decode a document into a live graph. See ArtifactDecoder."""
    return ArtifactDecoder(graph, registry, options).deserialize(document)
