"""Wire format for sync requests and responses.

Requests and responses are JSON objects with camelCase keys and ISO-8601
timestamps. Decimal amounts are rendered as strings so no precision is lost.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
import datetime as dt
from decimal import Decimal
from typing import Any
import uuid

from budgetsync.entities import to_column
from budgetsync.exceptions import RequestValidationError, SyncAbortedError, ValidationError
from budgetsync.models import (
    Change,
    ChangeResult,
    Conflict,
    SyncRequest,
    SyncResponse,
    format_timestamp,
    parse_timestamp,
)
from budgetsync.schema import (
    ENTITY_TYPES,
    ERROR_INTERNAL,
    ERROR_VALIDATION,
    MAX_CHANGES_PER_KIND,
    MAX_CLIENT_ID_LENGTH,
    MAX_TOTAL_CHANGES,
    OPERATION_DELETE,
    OPERATIONS,
    SYNC_ORDER,
)


def check_change_limits(
    changes: dict[str, list[Any]],
    max_per_kind: int = MAX_CHANGES_PER_KIND,
    max_total: int = MAX_TOTAL_CHANGES,
) -> None:
    """Reject unknown kinds and batches larger than the configured limits."""
    errors: list[dict[str, str]] = []
    for key in changes:
        if key not in SYNC_ORDER:
            errors.append({"path": f"changes.{key}", "message": "Unknown entity kind"})
    for key in SYNC_ORDER:
        if len(changes.get(key) or []) > max_per_kind:
            errors.append(
                {
                    "path": f"changes.{key}",
                    "message": f"At most {max_per_kind} changes per entity kind",
                }
            )
    total = sum(len(items or []) for items in changes.values())
    if total > max_total:
        errors.append(
            {
                "path": "changes",
                "message": f"Total changes cannot exceed {max_total} per sync request",
            }
        )
    if errors:
        raise RequestValidationError("Request validation failed", {"errors": errors})


def decode_request(
    payload: Any,
    max_per_kind: int = MAX_CHANGES_PER_KIND,
    max_total: int = MAX_TOTAL_CHANGES,
) -> SyncRequest:
    """Validate a JSON sync request and convert it to a ``SyncRequest``.

    Only the envelope is checked here. Entity payloads are validated per
    change when they are applied.

    Raises:
        RequestValidationError: With ``details["errors"]`` listing every problem
    """
    if not isinstance(payload, dict):
        raise RequestValidationError(
            "Request validation failed",
            {"errors": [{"path": "", "message": "Request must be an object"}]},
        )
    errors: list[dict[str, str]] = []

    last_sync: dt.datetime | None = None
    raw_last_sync = payload.get("lastSyncTimestamp")
    if raw_last_sync is not None:
        try:
            last_sync = parse_timestamp(raw_last_sync, "lastSyncTimestamp")
        except ValidationError as exc:
            errors.append({"path": "lastSyncTimestamp", "message": str(exc)})

    client_id = payload.get("clientId")
    if client_id is not None and (
        not isinstance(client_id, str) or len(client_id) > MAX_CLIENT_ID_LENGTH
    ):
        errors.append(
            {
                "path": "clientId",
                "message": f"clientId must be a string of at most {MAX_CLIENT_ID_LENGTH} characters",
            }
        )
        client_id = None

    raw_changes = payload.get("changes")
    changes: dict[str, list[Change]] = {}
    if not isinstance(raw_changes, dict):
        errors.append({"path": "changes", "message": "changes must be an object"})
        raw_changes = {}

    for key, items in raw_changes.items():
        if key not in SYNC_ORDER:
            errors.append({"path": f"changes.{key}", "message": "Unknown entity kind"})
            continue
        if items is None:
            continue
        if not isinstance(items, list):
            errors.append({"path": f"changes.{key}", "message": "Must be an array"})
            continue
        decoded: list[Change] = []
        for index, item in enumerate(items):
            try:
                decoded.append(_decode_change(key, item))
            except ValidationError as exc:
                errors.append({"path": f"changes.{key}.{index}", "message": str(exc)})
        changes[key] = decoded

    if errors:
        raise RequestValidationError("Request validation failed", {"errors": errors})
    check_change_limits(changes, max_per_kind=max_per_kind, max_total=max_total)
    return SyncRequest(last_sync_timestamp=last_sync, changes=changes, client_id=client_id)


def _decode_change(key: str, item: Any) -> Change:
    if not isinstance(item, dict):
        raise ValidationError("Change must be an object")

    entity_type = item.get("entityType")
    if entity_type is not None and entity_type != ENTITY_TYPES[key]:
        raise ValidationError(f"entityType must be '{ENTITY_TYPES[key]}'")

    raw_id = item.get("id")
    try:
        change_id = str(uuid.UUID(raw_id)) if isinstance(raw_id, str) else None
    except ValueError:
        change_id = None
    if change_id is None:
        raise ValidationError("id must be a UUID")

    operation = item.get("operation")
    if operation not in OPERATIONS:
        raise ValidationError(f"operation must be one of {', '.join(OPERATIONS)}")

    client_version = item.get("clientVersion")
    if isinstance(client_version, bool) or not isinstance(client_version, int) or client_version < 0:
        raise ValidationError("clientVersion must be a non-negative integer")

    client_timestamp = parse_timestamp(item.get("clientTimestamp"), "clientTimestamp")

    data = item.get("data")
    if operation == OPERATION_DELETE:
        if data is not None:
            raise ValidationError("data must be null for DELETE")
    elif not isinstance(data, dict):
        raise ValidationError(f"data must be an object for {operation}")

    return Change(
        id=change_id,
        operation=operation,
        client_version=client_version,
        client_timestamp=client_timestamp,
        data=data,
    )


def serialize_value(value: Any) -> Any:
    """Convert model values to JSON-compatible values."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dt.datetime):
        return format_timestamp(value)
    if is_dataclass(value) and not isinstance(value, type):
        return serialize_record(value)
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    return value


def serialize_record(record: Any) -> dict[str, Any]:
    """Render a dataclass with camelCase keys."""
    return {
        to_column(item.name): serialize_value(getattr(record, item.name))
        for item in fields(record)
    }


def serialize_result(result: ChangeResult) -> dict[str, Any]:
    """Render a change result, omitting fields that do not apply."""
    payload = serialize_record(result)
    return {key: value for key, value in payload.items() if value is not None}


def serialize_conflict(conflict: Conflict) -> dict[str, Any]:
    return serialize_record(conflict)


def encode_sync_response(response: SyncResponse) -> dict[str, Any]:
    """Render a sync response body."""
    return {
        "pushResults": {
            key: [serialize_result(result) for result in results]
            for key, results in response.push_results.items()
        },
        "pullData": {
            key: serialize_value(getattr(response.pull_data, key)) for key in SYNC_ORDER
        },
        "syncTimestamp": format_timestamp(response.sync_timestamp),
        "hasConflicts": response.has_conflicts,
        "conflicts": [serialize_conflict(conflict) for conflict in response.conflicts],
    }


def encode_response(response: SyncResponse) -> dict[str, Any]:
    """Wrap a sync response in the API envelope."""
    return {"data": encode_sync_response(response), "error": None}


def encode_error(exc: Exception) -> dict[str, Any]:
    """Render a request-level failure in the API envelope."""
    if isinstance(exc, RequestValidationError):
        error: dict[str, Any] = {"code": ERROR_VALIDATION, "message": str(exc)}
        if exc.details.get("errors"):
            error["details"] = exc.details["errors"]
    elif isinstance(exc, SyncAbortedError):
        error = {"code": exc.error_code, "message": "Failed to process sync request"}
    else:
        error = {"code": ERROR_INTERNAL, "message": "Failed to process sync request"}
    return {"data": None, "error": error}
