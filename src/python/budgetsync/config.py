"""Sync engine configuration."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Any

from budgetsync.schema import (
    DEFAULT_BUSY_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    MAX_CHANGES_PER_KIND,
    MAX_TOTAL_CHANGES,
)

CONFIG_ENV_VAR = "BUDGETSYNC_CONFIG"
DB_ENV_VAR = "BUDGETSYNC_DB"


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for the sync engine."""

    db_path: Path | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_changes_per_kind: int = MAX_CHANGES_PER_KIND
    max_total_changes: int = MAX_TOTAL_CHANGES
    busy_timeout_seconds: float = DEFAULT_BUSY_TIMEOUT_SECONDS

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "SyncConfig":
        """Build a config from a parsed JSON object, ignoring unknown keys."""
        db_path = payload.get("db_path")
        return cls(
            db_path=Path(db_path) if db_path else None,
            timeout_seconds=_positive(
                payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS), "timeout_seconds", float
            ),
            max_changes_per_kind=_positive(
                payload.get("max_changes_per_kind", MAX_CHANGES_PER_KIND),
                "max_changes_per_kind",
                int,
            ),
            max_total_changes=_positive(
                payload.get("max_total_changes", MAX_TOTAL_CHANGES), "max_total_changes", int
            ),
            busy_timeout_seconds=_positive(
                payload.get("busy_timeout_seconds", DEFAULT_BUSY_TIMEOUT_SECONDS),
                "busy_timeout_seconds",
                float,
            ),
        )


def _positive(value: object, name: str, kind: type) -> Any:
    try:
        parsed = kind(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be greater than zero")
    return parsed


def load_config(path: str | Path | None = None) -> SyncConfig:
    """Load config from a JSON file if present, else return defaults.

    The file is taken from ``path`` or the ``BUDGETSYNC_CONFIG`` environment
    variable. ``BUDGETSYNC_DB`` overrides the database path.
    """
    config_path = path or os.environ.get(CONFIG_ENV_VAR)
    payload: dict[str, Any] = {}
    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            raise ValueError(f"Config file not found: {config_file}")
        with config_file.open("r", encoding="utf-8") as handle:
            loaded = json.load(handle)
        if isinstance(loaded, dict):
            payload = loaded
    db_override = os.environ.get(DB_ENV_VAR)
    if db_override:
        payload = {**payload, "db_path": db_override}
    return SyncConfig.from_dict(payload)
