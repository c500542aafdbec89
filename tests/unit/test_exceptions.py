from __future__ import annotations

from budgetsync.exceptions import (
    IntegrityViolation,
    RequestValidationError,
    SyncAbortedError,
    SyncError,
    SyncTimeoutError,
    ValidationError,
)
from budgetsync.schema import ERROR_INTERNAL


def test_request_validation_error_details() -> None:
    details = {"errors": [{"path": "changes.accounts.0", "message": "id must be a UUID"}]}
    error = RequestValidationError("Request validation failed", details)

    assert error.details == details
    assert "Request validation failed" in str(error)


def test_request_validation_error_defaults_to_empty_details() -> None:
    assert RequestValidationError("bad").details == {}


def test_validation_errors_are_value_errors() -> None:
    assert issubclass(ValidationError, ValueError)
    assert issubclass(IntegrityViolation, ValidationError)


def test_timeout_is_an_aborted_sync() -> None:
    error = SyncTimeoutError("Sync transaction timed out")

    assert isinstance(error, SyncAbortedError)
    assert isinstance(error, SyncError)
    assert error.error_code == ERROR_INTERNAL
