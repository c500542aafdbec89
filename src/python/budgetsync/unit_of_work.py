"""Request-scoped transaction context."""

from __future__ import annotations

from contextlib import AbstractContextManager
import datetime as dt
import time
from typing import Callable

from budgetsync.exceptions import SyncTimeoutError
from budgetsync.models import SyncContext, format_timestamp
from budgetsync.persistence import PersistenceBackend


def utc_now() -> dt.datetime:
    """Return the current time as an aware UTC datetime."""
    return dt.datetime.now(dt.timezone.utc)


class UnitOfWork:
    """Everything one sync request needs while its transaction is open.

    Passed explicitly to processors and pullers; nothing here outlives the
    request.
    """

    def __init__(
        self,
        backend: PersistenceBackend,
        context: SyncContext,
        deadline: float | None = None,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        self.backend = backend
        self.context = context
        self.deadline = deadline
        self.clock = clock

    @property
    def tenant(self) -> str:
        return self.context.tenant

    @property
    def actor_id(self) -> str:
        return self.context.actor_id

    def now(self) -> str:
        """Current time in stored timestamp form."""
        return format_timestamp(self.clock())

    def check_deadline(self) -> None:
        """Raise when the request has used up its time budget."""
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise SyncTimeoutError("Sync transaction timed out")

    def savepoint(self) -> AbstractContextManager[None]:
        return self.backend.savepoint()
