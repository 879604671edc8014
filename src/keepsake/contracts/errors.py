# src/keepsake/contracts/errors.py
"""Exception taxonomy for the artifact engine.

Every failure the engine raises derives from KeepsakeError so callers can
catch the whole family at an orchestration boundary. Nothing inside the
engine recovers from these; lenient modes downgrade some conditions to
logged warnings *instead of* raising, never by catching.
"""

from keepsake.contracts.enums import ValidationCode


class KeepsakeError(Exception):
    """Base class for all artifact engine errors."""

    pass


class ValidationError(KeepsakeError):
    """Raised when a document violates shape, integrity, or version policy.

    Attributes:
        code: Machine-readable failure category
        message: Human-readable description
    """

    def __init__(self, message: str, code: ValidationCode) -> None:
        self.code = code
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ValidationError(code={self.code.value!r}, message={self.message!r})"


class MigrationError(KeepsakeError):
    """Raised for invalid migration registration or an unreachable target version.

    Attributes:
        source_version: Version the document is at (None for registration errors)
        target_version: Version that was requested (None for registration errors)
    """

    def __init__(
        self,
        message: str,
        *,
        source_version: int | None = None,
        target_version: int | None = None,
    ) -> None:
        self.source_version = source_version
        self.target_version = target_version
        super().__init__(message)


class DecodeError(KeepsakeError):
    """Raised by the decoder under strict validation or the ``throw`` reference policy.

    Attributes:
        entity_id: Missing reference target, when the failure is a dangling reference
        field_group: Field-group name involved, when the failure is type-related
    """

    def __init__(
        self,
        message: str,
        *,
        entity_id: str | None = None,
        field_group: str | None = None,
    ) -> None:
        self.entity_id = entity_id
        self.field_group = field_group
        super().__init__(message)


class CyclicStructureError(KeepsakeError, ValueError):
    """Raised when a nested map or list contains itself.

    References to live records never trigger this; they are cut to id
    markers. Only plain containers that loop back on themselves do.
    """

    pass
