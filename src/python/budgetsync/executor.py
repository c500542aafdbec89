"""Dependency-ordered application of a batch of changes."""

from __future__ import annotations

import logging

from budgetsync.entities import ENTITY_KINDS
from budgetsync.models import Change, ChangeResult, Conflict
from budgetsync.processor import ChangeProcessor
from budgetsync.schema import SYNC_ORDER
from budgetsync.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class BatchExecutor:
    """Run each kind's changes through its processor in dependency order.

    Accounts and categories are applied before the budgets and transactions
    that reference them, so entities created earlier in the same batch are
    visible to later kinds. A failed or conflicting change never stops the
    batch; only a transaction-level error does.
    """

    def __init__(self, processors: dict[str, ChangeProcessor] | None = None) -> None:
        self.processors = processors or {
            key: ChangeProcessor(kind) for key, kind in ENTITY_KINDS.items()
        }

    def execute(
        self,
        uow: UnitOfWork,
        changes: dict[str, list[Change]],
    ) -> tuple[dict[str, list[ChangeResult]], list[Conflict]]:
        """Apply all changes and return per-kind results plus all conflicts."""
        unsupported = sorted(set(changes) - set(SYNC_ORDER))
        if unsupported:
            raise ValueError(f"Unsupported entity kinds: {', '.join(unsupported)}")

        push_results: dict[str, list[ChangeResult]] = {}
        conflicts: list[Conflict] = []
        for key in SYNC_ORDER:
            kind_changes = changes.get(key) or []
            if not kind_changes:
                continue
            uow.check_deadline()
            outcome = self.processors[key].process(uow, kind_changes)
            push_results[key] = outcome.results
            conflicts.extend(outcome.conflicts)
            logger.debug(
                "Applied %s %s changes (%s conflicts)",
                len(kind_changes),
                key,
                len(outcome.conflicts),
            )
        return push_results, conflicts
