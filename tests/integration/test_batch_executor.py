from __future__ import annotations

import pytest

from budgetsync.entities import ENTITY_KINDS, TRANSACTIONS
from budgetsync.executor import BatchExecutor
from budgetsync.processor import ChangeProcessor
from tests.utils.assertions import assert_applied, assert_rejected
from tests.utils.changes import (
    account_data,
    budget_data,
    category_data,
    make_change,
    new_id,
    transaction_data,
)


class RecordingProcessor(ChangeProcessor):
    def __init__(self, kind, calls: list[str]) -> None:
        super().__init__(kind)
        self.calls = calls

    def process(self, uow, changes):
        self.calls.append(self.kind.key)
        return super().process(uow, changes)


@pytest.mark.sit
def test_dependent_kinds_see_entities_created_in_same_batch(uow) -> None:
    account_id, category_id, budget_id, transaction_id = (new_id() for _ in range(4))
    # Dependents listed first on purpose
    changes = {
        "transactions": [
            make_change("CREATE", transaction_id, data=transaction_data(account_id, category_id))
        ],
        "budgets": [
            make_change("CREATE", budget_id, data=budget_data(category_id, accountId=account_id))
        ],
        "categories": [make_change("CREATE", category_id, data=category_data())],
        "accounts": [make_change("CREATE", account_id, data=account_data())],
    }

    push_results, conflicts = BatchExecutor().execute(uow, changes)

    assert conflicts == []
    assert list(push_results) == ["accounts", "categories", "budgets", "transactions"]
    for results in push_results.values():
        assert_applied(results[0], 1)
    assert TRANSACTIONS.load(uow, transaction_id).account_id == account_id


@pytest.mark.sit
def test_kinds_run_in_dependency_order(uow) -> None:
    calls: list[str] = []
    executor = BatchExecutor(
        {key: RecordingProcessor(kind, calls) for key, kind in ENTITY_KINDS.items()}
    )

    executor.execute(
        uow,
        {
            "transactions": [make_change("DELETE", client_version=1)],
            "accounts": [make_change("DELETE", client_version=1)],
            "budgets": [make_change("DELETE", client_version=1)],
        },
    )

    assert calls == ["accounts", "budgets", "transactions"]


@pytest.mark.sit
def test_results_only_for_kinds_sent(uow) -> None:
    push_results, conflicts = BatchExecutor().execute(
        uow,
        {"categories": [make_change("CREATE", data=category_data())], "budgets": []},
    )

    assert list(push_results) == ["categories"]
    assert conflicts == []


@pytest.mark.sit
def test_conflicts_are_collected_across_kinds(uow) -> None:
    executor = BatchExecutor()
    account_id, category_id = new_id(), new_id()
    executor.execute(
        uow,
        {
            "accounts": [make_change("CREATE", account_id, data=account_data())],
            "categories": [make_change("CREATE", category_id, data=category_data())],
        },
    )

    push_results, conflicts = executor.execute(
        uow,
        {
            "accounts": [make_change("UPDATE", account_id, 3, {"name": "Stale"})],
            "categories": [
                make_change("DELETE", category_id, 0),
                make_change("CREATE", data=category_data(name="Fuel")),
            ],
        },
    )

    assert [conflict.entity_type for conflict in conflicts] == ["account", "category"]
    assert_rejected(push_results["accounts"][0], "CONFLICT")
    assert_rejected(push_results["categories"][0], "CONFLICT")
    assert_applied(push_results["categories"][1], 1)


@pytest.mark.sit
def test_unknown_kind_is_rejected(uow) -> None:
    with pytest.raises(ValueError, match="payees"):
        BatchExecutor().execute(uow, {"payees": [make_change("DELETE")]})
