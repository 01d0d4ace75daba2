"""Application error hierarchy.

Services raise these; routes turn them into flash messages or JSON errors.
"""

from __future__ import annotations

from typing import Iterable, Optional


class CppsError(Exception):
    """Base exception for application errors."""

    status_code = 400

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class NotFoundError(CppsError):
    """Raised when a claim, worker or review row does not exist."""

    status_code = 404


class ValidationError(CppsError):
    """Raised when required form input is missing or malformed."""

    def __init__(self, message: str, missing_fields: Iterable[str] = (), original_error: Optional[Exception] = None):
        super().__init__(message, original_error)
        self.missing_fields = list(missing_fields)


class RecordLockedError(CppsError):
    """Raised when another staff member holds the review lock."""

    status_code = 409

    def __init__(self, locked_by: str, original_error: Optional[Exception] = None):
        super().__init__(f"The record is locked by {locked_by}.", original_error)
        self.locked_by = locked_by


class WorkflowError(CppsError):
    """Raised when a stage transition fails and has been rolled back."""

    status_code = 500
