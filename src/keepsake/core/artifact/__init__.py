# src/keepsake/core/artifact/__init__.py
"""Artifact engine: encoder, decoder, validator, migrations, transport."""

from keepsake.core.artifact.decoder import ArtifactDecoder, deserialize
from keepsake.core.artifact.encoder import ArtifactEncoder, serialize
from keepsake.core.artifact.migrations import MigrationRegistry, MigrationStep, schema_version_of
from keepsake.core.artifact.transport import dumps, loads, read_document, write_document
from keepsake.core.artifact.validator import ArtifactValidator, validate

__all__ = [
    "ArtifactDecoder",
    "ArtifactEncoder",
    "ArtifactValidator",
    "MigrationRegistry",
    "MigrationStep",
    "deserialize",
    "dumps",
    "loads",
    "read_document",
    "schema_version_of",
    "serialize",
    "validate",
    "write_document",
]
