# src/keepsake/core/__init__.py
"""Core infrastructure: Codec, Configuration, Artifact engine, Logging."""

from keepsake.core.artifact import (
    ArtifactDecoder,
    ArtifactEncoder,
    ArtifactValidator,
    MigrationRegistry,
    MigrationStep,
)
from keepsake.core.codec import checksum, decode, deep_clone, encode, verify
from keepsake.core.config import (
    DeserializeOptions,
    KeepsakeSettings,
    LoadOptions,
    SerializeOptions,
    ValidationOptions,
    load_settings,
)
from keepsake.core.logging import (
    configure_logging,
    get_logger,
)

__all__ = [
    "ArtifactDecoder",
    "ArtifactEncoder",
    "ArtifactValidator",
    "DeserializeOptions",
    "KeepsakeSettings",
    "LoadOptions",
    "MigrationRegistry",
    "MigrationStep",
    "SerializeOptions",
    "ValidationOptions",
    "checksum",
    "configure_logging",
    "decode",
    "deep_clone",
    "encode",
    "get_logger",
    "load_settings",
    "verify",
]
