"""Sync request orchestration."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar
import datetime as dt
import logging
import os
import time

from budgetsync.config import SyncConfig, load_config
from budgetsync.exceptions import SyncAbortedError
from budgetsync.executor import BatchExecutor
from budgetsync.models import SyncContext, SyncRequest, SyncResponse
from budgetsync.persistence import PersistenceBackend
from budgetsync.protocol import check_change_limits
from budgetsync.puller import SnapshotPuller
from budgetsync.repository import Repository
from budgetsync.schema import SYNC_ORDER
from budgetsync.unit_of_work import UnitOfWork, utc_now

T = TypeVar("T")

# Configure logging
logger = logging.getLogger(__name__)
log_level = os.environ.get('LOGGING_LEVEL', 'INFO').upper()
logger.setLevel(getattr(logging, log_level, logging.INFO))
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))
    logger.addHandler(handler)


class SyncCoordinator:
    """Run sync requests against the entity store, one transaction each."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        repository: PersistenceBackend | None = None,
        config: SyncConfig | None = None,
        clock: Callable[[], dt.datetime] = utc_now,
        executor: BatchExecutor | None = None,
        puller: SnapshotPuller | None = None,
    ) -> None:
        """Initialize the coordinator with a repository backend.

        Args:
            db_path: Path to the SQLite database, overrides the configured path
            repository: Optional custom persistence backend
            config: Engine configuration, loaded from file/environment when omitted
            clock: Source of the current UTC time
            executor: Batch executor, the default handles all four entity kinds
            puller: Snapshot puller, the default covers all four entity kinds
        """
        self.config = config or load_config()
        self.db_path = self._resolve_db_path(db_path, repository)
        self.repository = repository or Repository(
            self.db_path, busy_timeout_seconds=self.config.busy_timeout_seconds
        )
        self.clock = clock
        self.executor = executor or BatchExecutor()
        self.puller = puller or SnapshotPuller()

    def __enter__(self) -> "SyncCoordinator":
        """Open the repository connection."""
        self.repository.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        """Close the repository connection."""
        self.close()

    def close(self) -> None:
        """Close the repository connection."""
        self.repository.close()

    def initialize_schema(self) -> None:
        """Create the entity tables and sync indexes when missing."""
        self.repository.initialize_schema()
        logger.info("Schema initialized: %s", self.db_path)

    def _resolve_db_path(
        self,
        db_path: str | Path | None,
        repository: PersistenceBackend | None,
    ) -> Path:
        """Resolve the database path from arguments or config."""
        if repository is not None and db_path is None:
            return Path("")
        if db_path is not None:
            return Path(db_path)
        if self.config.db_path is None:
            raise ValueError("db_path is required when config has no db_path")
        return self.config.db_path

    def sync(self, request: SyncRequest, context: SyncContext) -> SyncResponse:
        """Push the request's changes and pull everything changed since its watermark.

        Conflicts and per-change failures are reported in the response while
        the remaining changes still commit.

        Raises:
            RequestValidationError: The request exceeds limits or names unknown kinds
            SyncAbortedError: The transaction failed or timed out; nothing was persisted
        """
        check_change_limits(
            request.changes,
            max_per_kind=self.config.max_changes_per_kind,
            max_total=self.config.max_total_changes,
        )
        sync_timestamp = self.clock()
        logger.info(
            "Sync started: tenant=%s actor=%s client=%s changes=%s",
            context.tenant,
            context.actor_id,
            request.client_id or "-",
            {key: len(items) for key, items in request.changes.items() if items},
        )
        deadline = time.monotonic() + self.config.timeout_seconds
        uow = UnitOfWork(self.repository, context, deadline=deadline, clock=self.clock)

        def action() -> SyncResponse:
            push_results, conflicts = self.executor.execute(uow, request.changes)
            pull_data = self.puller.pull(uow, request.last_sync_timestamp)
            return SyncResponse(
                push_results=push_results,
                pull_data=pull_data,
                sync_timestamp=sync_timestamp,
                conflicts=conflicts,
            )

        response = self._run_transaction(action, deadline)
        logger.info(
            "Sync committed: tenant=%s results=%s conflicts=%s pulled=%s",
            context.tenant,
            sum(len(results) for results in response.push_results.values()),
            len(response.conflicts),
            sum(
                len(getattr(response.pull_data, key))
                for key in SYNC_ORDER
            ),
        )
        return response

    def _run_transaction(self, action: Callable[[], T], deadline: float | None = None) -> T:
        """Run repository work inside a transaction.

        Any failure rolls the whole transaction back. Failures that are not
        already ``SyncAbortedError`` are re-raised as one.
        """
        try:
            self.repository.begin_transaction(deadline)
            result = action()
            self.repository.commit()
            return result
        except SyncAbortedError as exc:
            self.repository.rollback()
            logger.error("Sync aborted: %s", exc)
            raise
        except Exception as exc:
            self.repository.rollback()
            logger.exception("Sync failed")
            raise SyncAbortedError("Failed to process sync request") from exc
