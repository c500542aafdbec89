"""Incremental snapshot of entities changed since a watermark."""

from __future__ import annotations

import datetime as dt

from budgetsync.entities import ENTITY_KINDS, EntityKind
from budgetsync.models import PullData, format_timestamp
from budgetsync.unit_of_work import UnitOfWork


class SnapshotPuller:
    """Collect every entity of the tenant updated after the watermark.

    Soft-deleted entities are included so clients can drop them locally.
    Without a watermark the full entity set is returned.
    """

    def __init__(self, kinds: dict[str, EntityKind] | None = None) -> None:
        self.kinds = kinds or ENTITY_KINDS

    def pull(self, uow: UnitOfWork, since: dt.datetime | None) -> PullData:
        watermark = format_timestamp(since) if since is not None else None
        collected = {}
        for key, kind in self.kinds.items():
            uow.check_deadline()
            collected[key] = kind.list_changed_since(uow, watermark)
        return PullData(**collected)
