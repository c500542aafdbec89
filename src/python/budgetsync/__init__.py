"""Public BudgetSync package exports."""

from __future__ import annotations

from budgetsync.__version__ import __version__
from budgetsync.config import SyncConfig, load_config
from budgetsync.coordinator import SyncCoordinator
from budgetsync.exceptions import (
    IntegrityViolation,
    NotFoundError,
    RequestValidationError,
    SyncAbortedError,
    SyncError,
    SyncTimeoutError,
    ValidationError,
)
from budgetsync.executor import BatchExecutor
from budgetsync.models import (
    Change,
    ChangeResult,
    Conflict,
    PullData,
    SyncContext,
    SyncRequest,
    SyncResponse,
)
from budgetsync.persistence import PersistenceBackend
from budgetsync.processor import ChangeProcessor
from budgetsync.protocol import decode_request, encode_error, encode_response
from budgetsync.puller import SnapshotPuller
from budgetsync.repository import Repository

__all__ = [
    "__version__",
    "SyncConfig",
    "load_config",
    "SyncCoordinator",
    "IntegrityViolation",
    "NotFoundError",
    "RequestValidationError",
    "SyncAbortedError",
    "SyncError",
    "SyncTimeoutError",
    "ValidationError",
    "BatchExecutor",
    "Change",
    "ChangeResult",
    "Conflict",
    "PullData",
    "SyncContext",
    "SyncRequest",
    "SyncResponse",
    "PersistenceBackend",
    "ChangeProcessor",
    "decode_request",
    "encode_error",
    "encode_response",
    "SnapshotPuller",
    "Repository",
]
