"""Pytest configuration and fixtures for sync engine tests.

Integration (``sit``) tests run against temporary SQLite databases built
with the package's own schema statements.
"""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src" / "python"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from budgetsync.config import SyncConfig  # noqa: E402
from budgetsync.coordinator import SyncCoordinator  # noqa: E402
from budgetsync.models import SyncContext  # noqa: E402
from budgetsync.repository import Repository  # noqa: E402
from budgetsync.unit_of_work import UnitOfWork  # noqa: E402
from tests.utils.changes import FAMILY_ID, USER_ID  # noqa: E402
from tests.utils.clock import StepClock  # noqa: E402
from tests.utils.database import build_empty_database  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer config out of the tests."""
    monkeypatch.delenv("BUDGETSYNC_CONFIG", raising=False)
    monkeypatch.delenv("BUDGETSYNC_DB", raising=False)


@pytest.fixture()
def empty_db_path(tmp_path: Path) -> Path:
    """Database with the sync schema and no rows."""
    return build_empty_database(tmp_path / "budgetsync.db")


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def context() -> SyncContext:
    return SyncContext(tenant=FAMILY_ID, actor_id=USER_ID)


@pytest.fixture()
def repository(empty_db_path: Path) -> Repository:
    repo = Repository(empty_db_path)
    repo.connect()
    yield repo
    repo.close()


@pytest.fixture()
def uow(repository: Repository, context: SyncContext, clock: StepClock) -> UnitOfWork:
    """Unit of work with an open transaction, rolled back after the test."""
    repository.begin_transaction()
    yield UnitOfWork(repository, context, clock=clock)
    repository.rollback()


@pytest.fixture()
def coordinator(empty_db_path: Path, clock: StepClock) -> SyncCoordinator:
    with SyncCoordinator(db_path=empty_db_path, config=SyncConfig(), clock=clock) as sync:
        yield sync
