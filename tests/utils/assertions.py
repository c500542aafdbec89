from __future__ import annotations

from collections.abc import Iterable

from budgetsync.models import ChangeResult


def assert_required_keys(payload: dict, required_keys: Iterable[str]) -> None:
    missing = [key for key in required_keys if key not in payload]
    if missing:
        raise AssertionError(f"Missing required keys: {', '.join(missing)}")


def assert_applied(result: ChangeResult, new_version: int | None) -> None:
    if not result.success:
        raise AssertionError(
            f"Change {result.id} failed: {result.error_code} {result.error_message}"
        )
    if result.new_version != new_version:
        raise AssertionError(
            f"Expected new version {new_version}, got {result.new_version}"
        )


def assert_rejected(result: ChangeResult, error_code: str) -> None:
    if result.success:
        raise AssertionError(f"Change {result.id} unexpectedly succeeded")
    if result.error_code != error_code:
        raise AssertionError(
            f"Expected error code '{error_code}', got '{result.error_code}'"
        )
