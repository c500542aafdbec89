"""Entity-kind capabilities for the syncable tables."""

from __future__ import annotations

from dataclasses import MISSING, fields
from decimal import Decimal
import re
from typing import Any

from budgetsync.exceptions import NotFoundError, ValidationError
from budgetsync.models import (
    AccountDTO,
    AccountRecord,
    BudgetDTO,
    BudgetRecord,
    CategoryDTO,
    CategoryRecord,
    EntityRecord,
    TransactionDTO,
    TransactionRecord,
)
from budgetsync.schema import ENTITY_TABLES, ENTITY_TYPES
from budgetsync.unit_of_work import UnitOfWork

BOOL_COLUMNS = {"isDeleted", "isActive"}
DECIMAL_COLUMNS = {"openingBalance", "amount"}

_SNAKE_SEGMENT = re.compile(r"_([a-z])")


def to_column(field_name: str) -> str:
    """Map a snake_case model field to its camelCase column and wire name."""
    return _SNAKE_SEGMENT.sub(lambda match: match.group(1).upper(), field_name)


def _to_storage(value: object) -> object:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Decimal):
        return str(value)
    return value


class EntityKind:
    """Load, create, update and soft-delete one kind of syncable entity.

    Payload keys are camelCase column names. Keys that do not match a field
    of the kind's DTO are ignored, so server-owned columns can never be set
    by a client.
    """

    def __init__(self, key: str, label: str, record_type: type, dto_type: type) -> None:
        self.key = key
        self.label = label
        self.entity_type = ENTITY_TYPES[key]
        self.table = ENTITY_TABLES[key]
        self.record_type = record_type
        self.dto_type = dto_type

    def load(
        self,
        uow: UnitOfWork,
        entity_id: str,
        include_deleted: bool = True,
    ) -> EntityRecord | None:
        row = uow.backend.find_by_id(self.table, entity_id, uow.tenant, include_deleted)
        return self.to_record(row) if row is not None else None

    def get(self, uow: UnitOfWork, entity_id: str) -> EntityRecord:
        """Load a live entity.

        Raises:
            NotFoundError: The entity is absent or soft-deleted
        """
        record = self.load(uow, entity_id, include_deleted=False)
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        return record

    def create(self, uow: UnitOfWork, entity_id: str, data: Any) -> EntityRecord:
        dto = self.build_dto(data)
        timestamp = uow.now()
        values: dict[str, object] = {
            "id": entity_id,
            "familyId": uow.tenant,
            "version": 1,
            "isDeleted": 0,
            "deletedAt": None,
            "createdAt": timestamp,
            "updatedAt": timestamp,
        }
        values.update(self._dto_columns(dto))
        values.update(self._owner_columns(uow))
        return self.to_record(uow.backend.create(self.table, values))

    def update(self, uow: UnitOfWork, existing: EntityRecord, data: Any) -> EntityRecord:
        dto = self.merge_dto(existing, data)
        patch = self._dto_columns(dto)
        patch["version"] = existing.version + 1
        patch["updatedAt"] = uow.now()
        row = uow.backend.update(
            self.table, existing.id, uow.tenant, patch, expected_version=existing.version
        )
        return self.to_record(row)

    def soft_delete(self, uow: UnitOfWork, existing: EntityRecord) -> EntityRecord:
        timestamp = uow.now()
        patch = {
            "isDeleted": 1,
            "deletedAt": timestamp,
            "version": existing.version + 1,
            "updatedAt": timestamp,
        }
        row = uow.backend.update(
            self.table, existing.id, uow.tenant, patch, expected_version=existing.version
        )
        return self.to_record(row)

    def list_changed_since(self, uow: UnitOfWork, since: str | None) -> list[EntityRecord]:
        rows = uow.backend.list_changed_since(self.table, uow.tenant, since)
        return [self.to_record(row) for row in rows]

    def build_dto(self, data: Any) -> Any:
        """Validate a full create payload."""
        if not isinstance(data, dict):
            raise ValidationError(f"{self.label} data must be an object")
        kwargs: dict[str, object] = {}
        for item in fields(self.dto_type):
            column = to_column(item.name)
            has_default = item.default is not MISSING
            value = data.get(column)
            if value is None and has_default:
                continue
            if column not in data:
                raise ValidationError(f"{column} is required")
            kwargs[item.name] = value
        dto = self.dto_type(**kwargs)
        dto.validate_create()
        return dto

    def merge_dto(self, existing: EntityRecord, data: Any) -> Any:
        """Overlay a partial update payload on the stored entity.

        Each field is validated, the cross-field create rules are not.
        """
        if not isinstance(data, dict):
            raise ValidationError(f"{self.label} data must be an object")
        dto_fields = fields(self.dto_type)
        kwargs = {item.name: getattr(existing, item.name) for item in dto_fields}
        recognized = 0
        for item in dto_fields:
            column = to_column(item.name)
            if column not in data:
                continue
            recognized += 1
            value = data[column]
            if value is None and item.default is not MISSING:
                value = item.default
            kwargs[item.name] = value
        if not recognized:
            raise ValidationError(f"{self.label} update requires at least one field")
        return self.dto_type(**kwargs)

    def to_record(self, row: dict[str, Any]) -> EntityRecord:
        kwargs: dict[str, object] = {}
        for item in fields(self.record_type):
            column = to_column(item.name)
            value = row[column]
            if column in BOOL_COLUMNS:
                value = bool(value)
            elif column in DECIMAL_COLUMNS and value is not None:
                value = Decimal(str(value))
            kwargs[item.name] = value
        return self.record_type(**kwargs)

    def _dto_columns(self, dto: Any) -> dict[str, object]:
        return {
            to_column(item.name): _to_storage(getattr(dto, item.name))
            for item in fields(dto)
        }

    def _owner_columns(self, uow: UnitOfWork) -> dict[str, object]:
        """Server-assigned columns set on create."""
        return {}


class TransactionKind(EntityKind):
    """Transactions additionally record the member who created them."""

    def _owner_columns(self, uow: UnitOfWork) -> dict[str, object]:
        return {"userId": uow.actor_id}


ACCOUNTS = EntityKind("accounts", "Account", AccountRecord, AccountDTO)
CATEGORIES = EntityKind("categories", "Category", CategoryRecord, CategoryDTO)
BUDGETS = EntityKind("budgets", "Budget", BudgetRecord, BudgetDTO)
TRANSACTIONS = TransactionKind("transactions", "Transaction", TransactionRecord, TransactionDTO)

ENTITY_KINDS: dict[str, EntityKind] = {
    kind.key: kind for kind in (ACCOUNTS, CATEGORIES, BUDGETS, TRANSACTIONS)
}
