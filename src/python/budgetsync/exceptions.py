"""Custom exception types for the sync engine."""

from __future__ import annotations

from typing import Any

from budgetsync.schema import ERROR_INTERNAL


class SyncError(Exception):
    """Base class for sync engine errors."""


class ValidationError(SyncError, ValueError):
    """Raised when a change payload is malformed."""


class IntegrityViolation(ValidationError):
    """Raised when the store rejects a row on a constraint."""


class NotFoundError(SyncError):
    """Raised when a requested record does not exist."""


class RequestValidationError(SyncError):
    """Raised when a sync request envelope is rejected as a whole."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class SyncAbortedError(SyncError):
    """Raised when the sync transaction fails and nothing was persisted."""

    error_code = ERROR_INTERNAL


class SyncTimeoutError(SyncAbortedError):
    """Raised when the sync transaction exceeds its wall-clock budget."""
