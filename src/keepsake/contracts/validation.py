# src/keepsake/contracts/validation.py
"""Validation verdicts returned by the non-raising validator entry point."""

from dataclasses import dataclass

from keepsake.contracts.enums import ValidationCode


@dataclass(frozen=True)
class ValidationReport:
    """Result of checking a document without raising.

    Mirrors the first failure ArtifactValidator.validate() would raise.
    """

    valid: bool
    code: ValidationCode | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if self.valid and (self.code is not None or self.message is not None):
            raise ValueError("valid=True should not carry a failure code or message")
        if not self.valid and (self.code is None or self.message is None):
            raise ValueError("valid=False must carry a failure code and message")
