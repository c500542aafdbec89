from __future__ import annotations

from pathlib import Path

import pytest

from budgetsync.exceptions import IntegrityViolation, SyncAbortedError, ValidationError
from budgetsync.repository import Repository
from tests.utils.changes import FAMILY_ID, new_id


def _account_values(entity_id: str, **overrides) -> dict:
    values = {
        "id": entity_id,
        "familyId": FAMILY_ID,
        "version": 1,
        "isDeleted": 0,
        "createdAt": "2026-03-01T09:00:00.000000+00:00",
        "updatedAt": "2026-03-01T09:00:00.000000+00:00",
        "name": "Wallet",
        "type": "cash",
        "currency": "EUR",
        "openingBalance": "0",
        "isActive": 1,
    }
    values.update(overrides)
    return values


@pytest.mark.sit
def test_repository_connection(empty_db_path: Path) -> None:
    repo = Repository(empty_db_path)
    repo.connect()
    try:
        assert repo.connection is not None
        assert repo.connection.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    finally:
        repo.close()
    assert repo.connection is None


def test_repository_requires_connection(tmp_path: Path) -> None:
    repo = Repository(tmp_path / "unused.db")

    with pytest.raises(RuntimeError, match="not initialized"):
        repo.find_by_id("Account", new_id(), FAMILY_ID)


@pytest.mark.sit
def test_repository_rejects_unknown_names(repository: Repository) -> None:
    with pytest.raises(ValueError, match="Unknown table"):
        repository.find_by_id("Payee", new_id(), FAMILY_ID)

    with pytest.raises(ValueError, match="Unknown columns"):
        repository.create("Account", _account_values(new_id(), balance="1"))


@pytest.mark.sit
def test_repository_create_and_find(repository: Repository) -> None:
    entity_id = new_id()
    repository.begin_transaction()
    row = repository.create("Account", _account_values(entity_id))
    repository.commit()

    assert row["id"] == entity_id
    assert row["deletedAt"] is None
    assert repository.find_by_id("Account", entity_id, "family-other") is None


@pytest.mark.sit
def test_repository_hides_deleted_rows_on_request(repository: Repository) -> None:
    entity_id = new_id()
    repository.begin_transaction()
    repository.create("Account", _account_values(entity_id, isDeleted=1))

    assert repository.find_by_id("Account", entity_id, FAMILY_ID) is not None
    assert repository.find_by_id("Account", entity_id, FAMILY_ID, include_deleted=False) is None
    repository.rollback()


@pytest.mark.sit
def test_repository_update_checks_expected_version(repository: Repository) -> None:
    entity_id = new_id()
    repository.begin_transaction()
    repository.create("Account", _account_values(entity_id))

    updated = repository.update(
        "Account", entity_id, FAMILY_ID, {"name": "Purse", "version": 2}, expected_version=1
    )
    assert updated["version"] == 2

    with pytest.raises(SyncAbortedError):
        repository.update(
            "Account", entity_id, FAMILY_ID, {"name": "Lost", "version": 2}, expected_version=1
        )
    repository.rollback()


@pytest.mark.sit
def test_repository_translates_constraint_errors(repository: Repository) -> None:
    repository.begin_transaction()
    with pytest.raises(IntegrityViolation) as excinfo:
        repository.create(
            "Category",
            {
                "id": new_id(),
                "familyId": FAMILY_ID,
                "createdAt": "2026-03-01T09:00:00.000000+00:00",
                "updatedAt": "2026-03-01T09:00:00.000000+00:00",
                "name": "Orphan",
                "type": "expense",
                "parentId": new_id(),
                "color": "#000000",
                "icon": "tag",
            },
        )
    repository.rollback()

    assert isinstance(excinfo.value, ValidationError)


@pytest.mark.sit
def test_savepoint_undoes_only_its_block(repository: Repository) -> None:
    kept, undone = new_id(), new_id()
    repository.begin_transaction()
    with repository.savepoint():
        repository.create("Account", _account_values(kept))
    with pytest.raises(ValueError):
        with repository.savepoint():
            repository.create("Account", _account_values(undone))
            raise ValueError("bad change")
    repository.commit()

    assert repository.find_by_id("Account", kept, FAMILY_ID) is not None
    assert repository.find_by_id("Account", undone, FAMILY_ID) is None


@pytest.mark.sit
def test_list_changed_since_orders_by_update_time(repository: Repository) -> None:
    first, second = new_id(), new_id()
    repository.begin_transaction()
    repository.create("Account", _account_values(second, updatedAt="2026-03-01T10:00:00.000000+00:00"))
    repository.create("Account", _account_values(first, updatedAt="2026-03-01T09:30:00.000000+00:00"))
    repository.commit()

    assert [row["id"] for row in repository.list_changed_since("Account", FAMILY_ID, None)] == [
        first,
        second,
    ]
    assert [
        row["id"]
        for row in repository.list_changed_since(
            "Account", FAMILY_ID, "2026-03-01T09:30:00.000000+00:00"
        )
    ] == [second]
