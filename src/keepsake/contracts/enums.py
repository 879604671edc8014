# src/keepsake/contracts/enums.py
"""Status codes, policies, and kinds used across subsystem boundaries."""

from enum import StrEnum


class DanglingRefPolicy(StrEnum):
    """What the decoder does with a ``$ref`` whose target is not in the document.

    Values are the wire spellings accepted in option objects.
    """

    NULL = "null"
    WARN = "warn"
    THROW = "throw"


class ValidationCode(StrEnum):
    """Machine-readable failure codes raised by the document validator."""

    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    CHECKSUM_MISMATCH = "CHECKSUM_MISMATCH"
    VERSION_TOO_NEW = "VERSION_TOO_NEW"
    VERSION_MISMATCH = "VERSION_MISMATCH"
    INVALID_ENTITY = "INVALID_ENTITY"
    MISSING_ENTITY_ID = "MISSING_ENTITY_ID"
    DUPLICATE_ENTITY_ID = "DUPLICATE_ENTITY_ID"
    UNKNOWN_FIELD_GROUP = "UNKNOWN_FIELD_GROUP"
    INVALID_REFERENCE = "INVALID_REFERENCE"


class GroupShape(StrEnum):
    """Shape of a field-group value attached to a record.

    SINGLE: exactly one field map
    LIST: ordered sequence of field maps (repetition without keys)
    KEYED: mapping key -> field map (repetition keyed by a designated field)
    """

    SINGLE = "single"
    LIST = "list"
    KEYED = "keyed"
