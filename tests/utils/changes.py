"""Builders for changes and entity payloads used across tests."""

from __future__ import annotations

import datetime as dt
from typing import Any
import uuid

from budgetsync.models import Change

FAMILY_ID = "family-1"
OTHER_FAMILY_ID = "family-2"
USER_ID = "user-1"

CLIENT_TIMESTAMP = dt.datetime(2026, 2, 28, 18, 30, tzinfo=dt.timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def make_change(
    operation: str,
    entity_id: str | None = None,
    client_version: int = 0,
    data: dict[str, Any] | None = None,
) -> Change:
    return Change(
        id=entity_id or new_id(),
        operation=operation,
        client_version=client_version,
        client_timestamp=CLIENT_TIMESTAMP,
        data=data,
    )


def wire_change(
    operation: str,
    entity_id: str | None = None,
    client_version: int = 0,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": entity_id or new_id(),
        "operation": operation,
        "clientVersion": client_version,
        "clientTimestamp": "2026-02-28T18:30:00.000Z",
    }
    if data is not None:
        payload["data"] = data
    return payload


def account_data(**overrides: Any) -> dict[str, Any]:
    data = {
        "name": "Joint checking",
        "type": "bank",
        "currency": "EUR",
        "openingBalance": "1250.00",
        "isActive": True,
    }
    data.update(overrides)
    return data


def category_data(**overrides: Any) -> dict[str, Any]:
    data = {
        "name": "Groceries",
        "type": "expense",
        "color": "#33AA55",
        "icon": "cart",
    }
    data.update(overrides)
    return data


def budget_data(category_id: str, **overrides: Any) -> dict[str, Any]:
    data = {
        "categoryId": category_id,
        "periodType": "monthly",
        "amount": "400.00",
        "startDate": "2026-03-01T00:00:00Z",
        "endDate": "2026-03-31T23:59:59Z",
    }
    data.update(overrides)
    return data


def transaction_data(account_id: str, category_id: str, **overrides: Any) -> dict[str, Any]:
    data = {
        "accountId": account_id,
        "categoryId": category_id,
        "type": "expense",
        "amount": "42.10",
        "currency": "EUR",
        "date": "2026-03-02T12:00:00Z",
        "payee": "Corner market",
        "notes": "Weekly shop",
    }
    data.update(overrides)
    return data
