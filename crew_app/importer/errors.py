"""
Error taxonomy for crew roster imports.

Every error carries an explicit ``category`` so batch reporting never has to
re-derive the failure kind from message text. Only ``PreflightError`` is meant
to escape a batch; the row-level errors are caught at the row boundary and
recorded on the row outcome.
"""

from __future__ import annotations

from typing import Literal, Sequence

ErrorCategory = Literal["preflight", "validation", "duplicate", "soft_resolution", "downstream"]


class CrewImportError(Exception):
    """Base exception for crew import failures."""

    category: ErrorCategory = "downstream"


class PreflightError(CrewImportError):
    """Raised when a batch cannot start (base account, prefetch, upload shape)."""

    category: ErrorCategory = "preflight"

    def __init__(self, message: str, *, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RowError(CrewImportError):
    """A failure scoped to a single upload row."""

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line_number = line_number


class ValidationError(RowError):
    """Required field missing or malformed."""

    category: ErrorCategory = "validation"

    def __init__(
        self,
        message: str,
        *,
        line_number: int | None = None,
        missing_fields: Sequence[str] = (),
        format_errors: Sequence[str] = (),
        issues: Sequence[object] = (),
    ) -> None:
        super().__init__(message, line_number=line_number)
        self.missing_fields = tuple(missing_fields)
        self.format_errors = tuple(format_errors)
        self.issues = tuple(issues)


class DuplicateError(RowError):
    """Identity collision with an earlier row or an existing remote record."""

    category: ErrorCategory = "duplicate"


class SoftResolutionError(RowError):
    """Secondary lookup failed; the row continues with a degraded value."""

    category: ErrorCategory = "soft_resolution"


class DownstreamError(RowError):
    """The remote submit call failed."""

    category: ErrorCategory = "downstream"

    def __init__(self, message: str, *, status_code: int | None = None, line_number: int | None = None) -> None:
        super().__init__(message, line_number=line_number)
        self.status_code = status_code


class DuplicateRecordError(DownstreamError):
    """The remote service rejected the submit on a unique constraint."""


__all__ = [
    "ErrorCategory",
    "CrewImportError",
    "PreflightError",
    "RowError",
    "ValidationError",
    "DuplicateError",
    "SoftResolutionError",
    "DownstreamError",
    "DuplicateRecordError",
]
