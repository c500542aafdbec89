"""Optimistic-concurrency change processing for one entity kind."""

from __future__ import annotations

import logging

from budgetsync.entities import EntityKind
from budgetsync.exceptions import NotFoundError, SyncAbortedError, ValidationError
from budgetsync.models import BatchOutcome, Change, ChangeResult, Conflict, EntityRecord
from budgetsync.schema import (
    ERROR_CONFLICT,
    ERROR_NOT_FOUND,
    ERROR_VALIDATION,
    OPERATION_CREATE,
    OPERATION_DELETE,
    OPERATION_UPDATE,
)
from budgetsync.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class ChangeProcessor:
    """Apply client changes to one entity kind.

    The server's stored version is authoritative: a change whose
    ``client_version`` does not match is reported as a conflict and the
    stored entity is left untouched. Each change runs in its own savepoint,
    so a failing change never leaves partial writes behind and never stops
    the rest of the batch.
    """

    def __init__(self, kind: EntityKind) -> None:
        self.kind = kind

    def process(self, uow: UnitOfWork, changes: list[Change]) -> BatchOutcome:
        """Apply every change and collect results and conflicts."""
        outcome = BatchOutcome()
        for change in changes:
            uow.check_deadline()
            result, conflict = self.apply(uow, change)
            outcome.results.append(result)
            if conflict is not None:
                outcome.conflicts.append(conflict)
        return outcome

    def apply(self, uow: UnitOfWork, change: Change) -> tuple[ChangeResult, Conflict | None]:
        """Apply a single change.

        Raises:
            SyncAbortedError: The enclosing transaction can no longer commit
        """
        try:
            with uow.savepoint():
                if change.operation == OPERATION_CREATE:
                    return self._create(uow, change)
                if change.operation == OPERATION_UPDATE:
                    return self._update(uow, change)
                if change.operation == OPERATION_DELETE:
                    return self._delete(uow, change)
                raise ValidationError(f"Unsupported operation: {change.operation}")
        except SyncAbortedError:
            raise
        except Exception as exc:
            logger.warning(
                "%s %s %s rejected: %s",
                self.kind.label,
                change.operation,
                change.id,
                exc,
            )
            return (
                ChangeResult(
                    id=change.id,
                    success=False,
                    error_code=ERROR_VALIDATION,
                    error_message=str(exc) or type(exc).__name__,
                ),
                None,
            )

    def _create(self, uow: UnitOfWork, change: Change) -> tuple[ChangeResult, Conflict | None]:
        existing = self.kind.load(uow, change.id, include_deleted=True)
        if existing is None:
            created = self.kind.create(uow, change.id, change.data)
            logger.debug("%s %s created", self.kind.label, change.id)
            return ChangeResult(id=change.id, success=True, new_version=created.version), None
        if existing.version == 1:
            # Replay of a create that was already applied
            return ChangeResult(id=change.id, success=True, new_version=1), None
        return self._conflict(
            change,
            existing,
            f"{self.kind.label} id already exists at version {existing.version}",
        )

    def _update(self, uow: UnitOfWork, change: Change) -> tuple[ChangeResult, Conflict | None]:
        try:
            existing = self.kind.get(uow, change.id)
        except NotFoundError as exc:
            return (
                ChangeResult(
                    id=change.id,
                    success=False,
                    error_code=ERROR_NOT_FOUND,
                    error_message=str(exc),
                ),
                None,
            )
        if existing.version != change.client_version:
            return self._conflict(change, existing)
        updated = self.kind.update(uow, existing, change.data)
        logger.debug("%s %s updated to version %s", self.kind.label, change.id, updated.version)
        return ChangeResult(id=change.id, success=True, new_version=updated.version), None

    def _delete(self, uow: UnitOfWork, change: Change) -> tuple[ChangeResult, Conflict | None]:
        existing = self.kind.load(uow, change.id, include_deleted=False)
        if existing is None:
            # Already gone: deletes converge
            return ChangeResult(id=change.id, success=True), None
        if existing.version != change.client_version:
            return self._conflict(change, existing)
        deleted = self.kind.soft_delete(uow, existing)
        logger.debug("%s %s deleted at version %s", self.kind.label, change.id, deleted.version)
        return ChangeResult(id=change.id, success=True, new_version=deleted.version), None

    def _conflict(
        self,
        change: Change,
        existing: EntityRecord,
        message: str | None = None,
    ) -> tuple[ChangeResult, Conflict]:
        logger.warning(
            "%s %s %s conflicts: client version %s, server version %s",
            self.kind.label,
            change.operation,
            change.id,
            change.client_version,
            existing.version,
        )
        conflict = Conflict(
            entity_type=self.kind.entity_type,
            id=change.id,
            client_version=change.client_version,
            server_version=existing.version,
            server_entity=existing,
        )
        result = ChangeResult(
            id=change.id,
            success=False,
            error_code=ERROR_CONFLICT,
            error_message=message
            or f"Version conflict: client {change.client_version}, server {existing.version}",
            server_entity=existing,
        )
        return result, conflict
