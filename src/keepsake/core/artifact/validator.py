# src/keepsake/core/artifact/validator.py
"""Document validation before decoding.

Certifies that a document can be trusted by the decoder. Checks run in a
fixed order and stop at the first failure:

1. Structure: document is a map, entityRecords is a list, meta (if any)
   is a map
2. Checksum: meta.checksum, when present, matches the entity records
3. Schema version: not newer than supported (or not different at all,
   under strict_version)
4. Entities: each is a map with a non-empty, unique id
5. Field groups: every name resolves in the type registry
6. References: every $ref targets an id in the same document

Each failure raises ValidationError with its own ValidationCode.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from keepsake.contracts.enums import ValidationCode
from keepsake.contracts.errors import ValidationError
from keepsake.contracts.graph import FieldGroupTypeRegistry
from keepsake.contracts.validation import ValidationReport
from keepsake.core.artifact.migrations import schema_version_of
from keepsake.core.codec import deep_traverse, is_reference, payload_text, verify
from keepsake.core.config import ValidationOptions, coerce_options
from keepsake.core.constants import (
    CURRENT_SCHEMA_VERSION,
    ENTITY_RECORDS_KEY,
    ID_KEY,
    META_KEY,
    REF_MARKER,
)
from keepsake.core.identifiers import is_valid_record_id


class ArtifactValidator:
    """Fail-fast document validator.

    Without a registry the field-group check has nothing to resolve
    against and is skipped.
    """

    def __init__(
        self,
        registry: FieldGroupTypeRegistry | None = None,
        options: ValidationOptions | Mapping[str, Any] | None = None,
        current_version: int = CURRENT_SCHEMA_VERSION,
    ) -> None:
        self._registry = registry
        self._options = coerce_options(ValidationOptions, options)
        self._current_version = current_version
        self._logger = structlog.get_logger(__name__)

    @property
    def options(self) -> ValidationOptions:
        return self._options

    def validate(self, document: Any) -> None:
        """Run every enabled check, raising on the first violation.

        Raises:
            ValidationError: With the code of the failed check
        """
        self._validate_structure(document)
        entities: list[Any] = document[ENTITY_RECORDS_KEY]
        meta = document.get(META_KEY)

        if self._options.validate_checksum and meta is not None and "checksum" in meta:
            self._validate_checksum(entities, meta["checksum"])

        self._validate_schema_version(document)
        ids = self._validate_entities(entities)

        if self._options.validate_field_groups and self._registry is not None:
            self._validate_field_groups(entities)

        if self._options.validate_references:
            self._validate_references(entities, ids)

        self._logger.debug("document_validated", entity_count=len(entities))

    def check(self, document: Any) -> ValidationReport:
        """Non-raising variant of validate()."""
        try:
            self.validate(document)
        except ValidationError as exc:
            return ValidationReport(valid=False, code=exc.code, message=exc.message)
        return ValidationReport(valid=True)

    def _validate_structure(self, document: Any) -> None:
        if not isinstance(document, Mapping):
            raise ValidationError("Document must be an object", ValidationCode.INVALID_STRUCTURE)
        if not isinstance(document.get(ENTITY_RECORDS_KEY), list):
            raise ValidationError(f"Document must have an '{ENTITY_RECORDS_KEY}' array", ValidationCode.INVALID_STRUCTURE)
        if META_KEY in document and not isinstance(document[META_KEY], Mapping):
            raise ValidationError("Document meta must be an object", ValidationCode.INVALID_STRUCTURE)

    def _validate_checksum(self, entities: list[Any], expected: Any) -> None:
        try:
            payload = payload_text(entities)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Entity records are not JSON-representable: {exc}", ValidationCode.INVALID_STRUCTURE) from exc

        if not isinstance(expected, str) or not verify(payload, expected):
            raise ValidationError("Checksum mismatch - document may be corrupted", ValidationCode.CHECKSUM_MISMATCH)

    def _validate_schema_version(self, document: Mapping[str, Any]) -> None:
        version = schema_version_of(document)
        if isinstance(version, bool) or not isinstance(version, int) or version < 0:
            raise ValidationError(
                f"Schema version must be a non-negative integer, got {version!r}",
                ValidationCode.INVALID_STRUCTURE,
            )

        current = self._current_version
        if self._options.strict_version and version != current:
            raise ValidationError(
                f"Schema version mismatch: expected {current}, got {version}",
                ValidationCode.VERSION_MISMATCH,
            )
        if version > current:
            raise ValidationError(
                f"Document schema version {version} is newer than supported version {current}",
                ValidationCode.VERSION_TOO_NEW,
            )

    def _validate_entities(self, entities: list[Any]) -> set[str]:
        ids: set[str] = set()
        for position, entity in enumerate(entities):
            if not isinstance(entity, Mapping):
                raise ValidationError(f"Entity record at index {position} must be an object", ValidationCode.INVALID_ENTITY)
            record_id = entity.get(ID_KEY)
            if not is_valid_record_id(record_id):
                raise ValidationError(f"Entity record at index {position} must have an id", ValidationCode.MISSING_ENTITY_ID)
            if record_id in ids:
                raise ValidationError(f"Duplicate entity id: {record_id}", ValidationCode.DUPLICATE_ENTITY_ID)
            ids.add(record_id)
        return ids

    def _validate_field_groups(self, entities: list[Mapping[str, Any]]) -> None:
        assert self._registry is not None
        for entity in entities:
            for name in entity:
                if name == ID_KEY:
                    continue
                if self._registry.lookup(name) is None:
                    raise ValidationError(
                        f"Unknown field group type '{name}' on entity '{entity[ID_KEY]}'",
                        ValidationCode.UNKNOWN_FIELD_GROUP,
                    )

    def _validate_references(self, entities: list[Mapping[str, Any]], ids: set[str]) -> None:
        def check_reference(leaf: Any) -> Any:
            if is_reference(leaf) and leaf[REF_MARKER] not in ids:
                raise ValidationError(f"Invalid entity reference: {leaf[REF_MARKER]}", ValidationCode.INVALID_REFERENCE)
            return leaf

        for entity in entities:
            for name, value in entity.items():
                if name != ID_KEY:
                    deep_traverse(value, check_reference)


def validate(
    document: Any,
    registry: FieldGroupTypeRegistry | None = None,
    options: ValidationOptions | Mapping[str, Any] | None = None,
) -> None:
    """Validate a document. See ArtifactValidator."""
    ArtifactValidator(registry, options).validate(document)
