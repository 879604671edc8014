# src/keepsake/contracts/__init__.py
"""Shared contracts for cross-boundary data types.

Wire shapes, enums, exceptions, and collaborator protocols live here.
This package is a LEAF MODULE with no outbound dependencies on core/,
world/, or engine; option models (SerializeOptions and friends) are
imported from keepsake.core.config.
"""

from keepsake.contracts.document import Document, EntityRecord, Meta
from keepsake.contracts.enums import DanglingRefPolicy, GroupShape, ValidationCode
from keepsake.contracts.errors import (
    CyclicStructureError,
    DecodeError,
    KeepsakeError,
    MigrationError,
    ValidationError,
)
from keepsake.contracts.graph import (
    FieldGroupDescriptor,
    FieldGroupInstance,
    FieldGroupTypeRegistry,
    FieldGroupValue,
    KeyedGroup,
    ListGroup,
    LiveGraph,
    LiveRecord,
    SingleGroup,
)
from keepsake.contracts.validation import ValidationReport

__all__ = [
    "CyclicStructureError",
    "DanglingRefPolicy",
    "DecodeError",
    "Document",
    "EntityRecord",
    "FieldGroupDescriptor",
    "FieldGroupInstance",
    "FieldGroupTypeRegistry",
    "FieldGroupValue",
    "GroupShape",
    "KeepsakeError",
    "KeyedGroup",
    "ListGroup",
    "LiveGraph",
    "LiveRecord",
    "Meta",
    "MigrationError",
    "SingleGroup",
    "ValidationCode",
    "ValidationError",
    "ValidationReport",
]
