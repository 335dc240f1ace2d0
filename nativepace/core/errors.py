"""
Engine exceptions.

Two kinds only:
- AttemptValidationError: malformed inbound submissions, reported in full
- InvariantViolation: impossible prior state handed in by a caller
"""

from __future__ import annotations

from dataclasses import dataclass


class NativePaceError(Exception):
    """Base class for all engine errors."""


@dataclass(frozen=True)
class FieldViolation:
    """A single invalid field in a submission."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class AttemptValidationError(NativePaceError):
    """Raised when a submission fails validation. Carries every violation."""

    def __init__(self, violations: list[FieldViolation]):
        self.violations = list(violations)
        super().__init__("; ".join(str(v) for v in self.violations))

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]


class InvariantViolation(NativePaceError, ValueError):
    """Raised when a caller passes state that valid usage can never produce."""
