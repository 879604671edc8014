# src/keepsake/engine.py
"""Orchestration: one type registry, one migration registry, many worlds.

Engine is the entry point most callers use:

    engine = Engine()

    @engine.register_type
    class Position(FieldGroup):
        defaults = {"x": 0, "y": 0}

    world = engine.create_world()
    document = engine.save(world, {"checksum": True})
    engine.load(engine.create_world(), document)

save() wraps the encoder. load() runs migration, validation, and
decoding in that order, each optional.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from keepsake.contracts.document import Document
from keepsake.contracts.validation import ValidationReport
from keepsake.core.artifact import (
    ArtifactDecoder,
    ArtifactEncoder,
    ArtifactValidator,
    MigrationRegistry,
    schema_version_of,
)
from keepsake.core.artifact.migrations import MigrationFn
from keepsake.core.config import (
    KeepsakeSettings,
    LoadOptions,
    SerializeOptions,
    ValidationOptions,
    coerce_options,
)
from keepsake.core.constants import CURRENT_SCHEMA_VERSION, META_KEY
from keepsake.world import FieldGroup, Record, TypeRegistry, World


class Engine:
    """Owns the field-group types and schema migrations shared by its worlds.

    Args:
        settings: Defaults used when a call passes no options
    """

    def __init__(self, settings: KeepsakeSettings | None = None) -> None:
        self._settings = settings if settings is not None else KeepsakeSettings()
        self._types = TypeRegistry()
        self._migrations = MigrationRegistry()
        self._logger = structlog.get_logger(__name__)

    @property
    def settings(self) -> KeepsakeSettings:
        return self._settings

    @property
    def types(self) -> TypeRegistry:
        return self._types

    @property
    def migrations(self) -> MigrationRegistry:
        return self._migrations

    def register_type[G: FieldGroup](self, group_type: type[G]) -> type[G]:
        """Register a field-group class. Usable as a class decorator."""
        self._types.register(group_type)
        return group_type

    def register_migration(self, from_version: int, to_version: int, transform: MigrationFn, *, name: str | None = None) -> None:
        """Register a schema migration. See MigrationRegistry.register()."""
        self._migrations.register(from_version, to_version, transform, name=name)

    def create_world(self) -> World:
        return World(self._types)

    # =========================================================================
    # Save / load
    # =========================================================================

    def save(self, world: World, options: SerializeOptions | Mapping[str, Any] | None = None) -> Document:
        """Encode world into a document."""
        resolved = self._settings.serialize if options is None else coerce_options(SerializeOptions, options)
        return ArtifactEncoder(world, resolved).serialize()

    def load(
        self,
        world: World,
        document: Document,
        options: LoadOptions | Mapping[str, Any] | None = None,
    ) -> list[Record]:
        """Decode document into world, migrating and validating first.

        A document whose meta block is absent or null predates versioning
        and is decoded as-is. Otherwise the document is upgraded to the
        current schema version (auto_migrate), validated (validate), then decoded.

        Returns:
            Decoded records, in document order

        Raises:
            MigrationError: If no upgrade path exists
            ValidationError: If validation fails
            DecodeError: Under strict validation or the throw reference policy
        """
        if options is None:
            resolved = LoadOptions(validation=self._settings.validation, deserialize=self._settings.deserialize)
        else:
            resolved = coerce_options(LoadOptions, options)

        decoder = ArtifactDecoder(world, self._types, resolved.deserialize)
        if not document.get(META_KEY):
            self._logger.info("legacy_document_loaded", entity_count=len(document.get("entityRecords", [])))
            return decoder.deserialize(document)  # type: ignore[return-value]

        if resolved.auto_migrate and schema_version_of(document) != CURRENT_SCHEMA_VERSION:
            document = self._migrations.migrate(document, CURRENT_SCHEMA_VERSION)

        if resolved.validate_document:
            ArtifactValidator(self._types, resolved.validation).validate(document)

        return decoder.deserialize(document)  # type: ignore[return-value]

    # =========================================================================
    # Document inspection
    # =========================================================================

    def validate(self, document: Any, options: ValidationOptions | Mapping[str, Any] | None = None) -> None:
        """Validate document against this engine's types. Raises ValidationError."""
        self._validator(options).validate(document)

    def check(self, document: Any, options: ValidationOptions | Mapping[str, Any] | None = None) -> ValidationReport:
        """Validate document without raising."""
        return self._validator(options).check(document)

    def migrate(self, document: Any, target_version: int = CURRENT_SCHEMA_VERSION) -> Any:
        return self._migrations.migrate(document, target_version)

    def _validator(self, options: ValidationOptions | Mapping[str, Any] | None) -> ArtifactValidator:
        resolved = self._settings.validation if options is None else coerce_options(ValidationOptions, options)
        return ArtifactValidator(self._types, resolved)
