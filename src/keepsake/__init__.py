# src/keepsake/__init__.py
"""
Keepsake: portable, versioned save documents for mutable object graphs.

Encodes a graph of identified records into a JSON document, validates
and migrates such documents, and decodes them back into a live graph
with cross-record references restored regardless of record order.
"""

__version__ = "0.1.0"

from keepsake.contracts import (
    CyclicStructureError,
    DanglingRefPolicy,
    DecodeError,
    Document,
    KeepsakeError,
    MigrationError,
    ValidationCode,
    ValidationError,
    ValidationReport,
)
from keepsake.core.artifact import (
    ArtifactDecoder,
    ArtifactEncoder,
    ArtifactValidator,
    MigrationRegistry,
    deserialize,
    dumps,
    loads,
    serialize,
    validate,
)
from keepsake.core.config import (
    DeserializeOptions,
    KeepsakeSettings,
    LoadOptions,
    SerializeOptions,
    ValidationOptions,
    load_settings,
)
from keepsake.engine import Engine
from keepsake.world import FieldGroup, Record, TypeRegistry, World

__all__ = [
    "ArtifactDecoder",
    "ArtifactEncoder",
    "ArtifactValidator",
    "CyclicStructureError",
    "DanglingRefPolicy",
    "DecodeError",
    "DeserializeOptions",
    "Document",
    "Engine",
    "FieldGroup",
    "KeepsakeError",
    "KeepsakeSettings",
    "LoadOptions",
    "MigrationError",
    "MigrationRegistry",
    "Record",
    "SerializeOptions",
    "TypeRegistry",
    "ValidationCode",
    "ValidationError",
    "ValidationOptions",
    "ValidationReport",
    "World",
    "__version__",
    "deserialize",
    "dumps",
    "loads",
    "serialize",
    "validate",
]
