"""Domain models and data transfer objects."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from decimal import Decimal
import re
from typing import Any, Union
import uuid

from budgetsync.exceptions import ValidationError
from budgetsync.schema import (
    ACCOUNT_TYPES,
    BUDGET_PERIODS,
    CATEGORY_TYPES,
    TRANSACTION_TYPES,
)

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def parse_timestamp(value: str | dt.datetime, field_name: str = "timestamp") -> dt.datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z``. Naive values are treated as UTC.
    """
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(f"{field_name} must be an ISO-8601 timestamp") from exc
    else:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def format_timestamp(value: dt.datetime) -> str:
    """Render a timestamp in the fixed-width UTC form used for storage."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).isoformat(timespec="microseconds")


def _ensure_text(value: object, field_name: str, max_length: int) -> str:
    """Validate required text fields."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    text = value.strip()
    if len(text) > max_length:
        raise ValidationError(f"{field_name} is too long")
    return text


def _ensure_decimal(value: object, field_name: str, positive: bool = False) -> Decimal:
    """Parse and validate decimal amounts."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a decimal")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except Exception as exc:
        raise ValidationError(f"{field_name} must be a decimal") from exc
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a decimal")
    if positive and amount <= Decimal("0"):
        raise ValidationError(f"{field_name} must be greater than zero")
    return amount


def _ensure_choice(value: object, field_name: str, allowed: set[str]) -> str:
    """Normalize an enum value to lower case and check membership."""
    if not isinstance(value, str) or value.strip().lower() not in allowed:
        raise ValidationError(f"Invalid {field_name}")
    return value.strip().lower()


def _ensure_uuid(value: object, field_name: str) -> str:
    """Validate a UUID string."""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a UUID")
    try:
        return str(uuid.UUID(value))
    except ValueError as exc:
        raise ValidationError(f"{field_name} must be a UUID") from exc


def _ensure_optional_uuid(value: object, field_name: str) -> str | None:
    if value is None:
        return None
    return _ensure_uuid(value, field_name)


def _ensure_currency(value: object, field_name: str = "currency") -> str:
    if not isinstance(value, str) or not CURRENCY_PATTERN.match(value.strip().upper()):
        raise ValidationError(f"{field_name} must be a 3-letter currency code")
    return value.strip().upper()


def _ensure_bool(value: object, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean")
    return value


def _ensure_iso(value: object, field_name: str) -> str:
    """Normalize an ISO-8601 timestamp field to its stored form."""
    if not isinstance(value, (str, dt.datetime)):
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")
    return format_timestamp(parse_timestamp(value, field_name))


class CreateRules:
    """Cross-field rules checked only when an entity is first created.

    Updates validate each field on its own, so a partial edit is never
    rejected because of the fields it leaves alone.
    """

    def validate_create(self) -> None:
        return None


@dataclass(frozen=True)
class AccountDTO(CreateRules):
    """Validated account payload."""
    name: str
    type: str
    currency: str
    opening_balance: Decimal
    is_active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_text(self.name, "Account name", 100))
        object.__setattr__(self, "type", _ensure_choice(self.type, "account type", ACCOUNT_TYPES))
        object.__setattr__(self, "currency", _ensure_currency(self.currency))
        object.__setattr__(
            self, "opening_balance", _ensure_decimal(self.opening_balance, "openingBalance")
        )
        object.__setattr__(self, "is_active", _ensure_bool(self.is_active, "isActive"))


@dataclass(frozen=True)
class CategoryDTO(CreateRules):
    """Validated category payload."""
    name: str
    type: str
    color: str
    icon: str
    parent_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_text(self.name, "Category name", 100))
        object.__setattr__(
            self, "type", _ensure_choice(self.type, "category type", CATEGORY_TYPES)
        )
        if not isinstance(self.color, str) or not COLOR_PATTERN.match(self.color):
            raise ValidationError("Invalid hex color format")
        object.__setattr__(self, "icon", _ensure_text(self.icon, "Icon", 50))
        object.__setattr__(self, "parent_id", _ensure_optional_uuid(self.parent_id, "parentId"))


@dataclass(frozen=True)
class BudgetDTO(CreateRules):
    """Validated budget payload."""
    category_id: str
    period_type: str
    amount: Decimal
    start_date: str
    end_date: str
    account_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "category_id", _ensure_uuid(self.category_id, "categoryId"))
        object.__setattr__(self, "account_id", _ensure_optional_uuid(self.account_id, "accountId"))
        object.__setattr__(
            self, "period_type", _ensure_choice(self.period_type, "budget period", BUDGET_PERIODS)
        )
        object.__setattr__(self, "amount", _ensure_decimal(self.amount, "amount", positive=True))
        object.__setattr__(self, "start_date", _ensure_iso(self.start_date, "startDate"))
        object.__setattr__(self, "end_date", _ensure_iso(self.end_date, "endDate"))

    def validate_create(self) -> None:
        if parse_timestamp(self.end_date) <= parse_timestamp(self.start_date):
            raise ValidationError("End date must be after start date")


@dataclass(frozen=True)
class TransactionDTO(CreateRules):
    """Validated transaction payload."""
    account_id: str
    category_id: str
    type: str
    amount: Decimal
    currency: str
    date: str
    payee: str
    notes: str = ""
    transfer_account_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "account_id", _ensure_uuid(self.account_id, "accountId"))
        object.__setattr__(self, "category_id", _ensure_uuid(self.category_id, "categoryId"))
        object.__setattr__(
            self, "type", _ensure_choice(self.type, "transaction type", TRANSACTION_TYPES)
        )
        object.__setattr__(self, "amount", _ensure_decimal(self.amount, "amount", positive=True))
        object.__setattr__(self, "currency", _ensure_currency(self.currency))
        object.__setattr__(self, "date", _ensure_iso(self.date, "date"))
        object.__setattr__(self, "payee", _ensure_text(self.payee, "Payee", 200))
        notes = "" if self.notes is None else self.notes
        if not isinstance(notes, str) or len(notes) > 1000:
            raise ValidationError("Notes must be text of at most 1000 characters")
        object.__setattr__(self, "notes", notes)
        object.__setattr__(
            self,
            "transfer_account_id",
            _ensure_optional_uuid(self.transfer_account_id, "transferAccountId"),
        )

    def validate_create(self) -> None:
        if self.type == "transfer" and self.transfer_account_id is None:
            raise ValidationError(
                "Transfer account ID is required for transfer transactions"
            )


@dataclass(frozen=True)
class AccountRecord:
    """Persisted account from storage."""
    id: str
    family_id: str
    version: int
    is_deleted: bool
    deleted_at: str | None
    created_at: str
    updated_at: str
    name: str
    type: str
    currency: str
    opening_balance: Decimal
    is_active: bool


@dataclass(frozen=True)
class CategoryRecord:
    """Persisted category from storage."""
    id: str
    family_id: str
    version: int
    is_deleted: bool
    deleted_at: str | None
    created_at: str
    updated_at: str
    name: str
    type: str
    parent_id: str | None
    color: str
    icon: str


@dataclass(frozen=True)
class BudgetRecord:
    """Persisted budget from storage."""
    id: str
    family_id: str
    version: int
    is_deleted: bool
    deleted_at: str | None
    created_at: str
    updated_at: str
    category_id: str
    account_id: str | None
    period_type: str
    amount: Decimal
    start_date: str
    end_date: str


@dataclass(frozen=True)
class TransactionRecord:
    """Persisted transaction from storage."""
    id: str
    family_id: str
    version: int
    is_deleted: bool
    deleted_at: str | None
    created_at: str
    updated_at: str
    account_id: str
    category_id: str
    user_id: str
    type: str
    amount: Decimal
    currency: str
    date: str
    payee: str
    notes: str
    transfer_account_id: str | None


EntityRecord = Union[AccountRecord, CategoryRecord, BudgetRecord, TransactionRecord]


@dataclass(frozen=True)
class SyncContext:
    """Tenant and actor scope supplied by the authentication layer."""
    tenant: str
    actor_id: str


@dataclass(frozen=True)
class Change:
    """Single client-submitted mutation."""
    id: str
    operation: str
    client_version: int
    client_timestamp: dt.datetime
    data: dict[str, Any] | None = None


@dataclass(frozen=True)
class ChangeResult:
    """Outcome of applying one change."""
    id: str
    success: bool
    new_version: int | None = None
    error_code: str | None = None
    error_message: str | None = None
    server_entity: EntityRecord | None = None


@dataclass(frozen=True)
class Conflict:
    """Version mismatch between a client change and the server entity."""
    entity_type: str
    id: str
    client_version: int
    server_version: int
    server_entity: EntityRecord


@dataclass(frozen=True)
class BatchOutcome:
    """Results and conflicts for one entity kind."""
    results: list[ChangeResult] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)


@dataclass(frozen=True)
class SyncRequest:
    """Decoded sync request.

    Attributes:
        last_sync_timestamp: Watermark from the previous sync, None for a full sync
        changes: Change lists keyed by request kind (accounts, categories, ...)
        client_id: Optional device identifier, used for logging only
    """
    last_sync_timestamp: dt.datetime | None
    changes: dict[str, list[Change]] = field(default_factory=dict)
    client_id: str | None = None


@dataclass(frozen=True)
class PullData:
    """Entities changed after the client's watermark."""
    accounts: list[AccountRecord] = field(default_factory=list)
    categories: list[CategoryRecord] = field(default_factory=list)
    budgets: list[BudgetRecord] = field(default_factory=list)
    transactions: list[TransactionRecord] = field(default_factory=list)


@dataclass(frozen=True)
class SyncResponse:
    """Result of one sync request.

    Attributes:
        push_results: Per-change results keyed by request kind, only for kinds sent
        pull_data: Entities changed since the request watermark
        sync_timestamp: Server time at request start, the client's next watermark
        conflicts: Version conflicts across all kinds
    """
    push_results: dict[str, list[ChangeResult]]
    pull_data: PullData
    sync_timestamp: dt.datetime
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)
