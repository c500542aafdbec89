from __future__ import annotations

import json
from pathlib import Path

import pytest

from budgetsync.config import SyncConfig, load_config


def test_load_config_defaults() -> None:
    config = load_config()

    assert config == SyncConfig()
    assert config.db_path is None
    assert config.timeout_seconds == 30
    assert config.max_changes_per_kind == 250
    assert config.max_total_changes == 1000


def test_load_config_from_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "db_path": str(tmp_path / "sync.db"),
                "timeout_seconds": 5,
                "max_changes_per_kind": 10,
                "unused": True,
            }
        ),
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.db_path == tmp_path / "sync.db"
    assert config.timeout_seconds == 5.0
    assert config.max_changes_per_kind == 10
    assert config.max_total_changes == 1000


def test_load_config_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"max_total_changes": 20}), encoding="utf-8")
    monkeypatch.setenv("BUDGETSYNC_CONFIG", str(config_path))
    monkeypatch.setenv("BUDGETSYNC_DB", str(tmp_path / "override.db"))

    config = load_config()

    assert config.max_total_changes == 20
    assert config.db_path == tmp_path / "override.db"


def test_load_config_ignores_non_object(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("[1, 2]", encoding="utf-8")

    assert load_config(config_path) == SyncConfig()


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        load_config(tmp_path / "missing.json")


@pytest.mark.parametrize(
    "payload",
    [{"timeout_seconds": 0}, {"max_total_changes": -5}, {"busy_timeout_seconds": "soon"}],
)
def test_sync_config_rejects_bad_values(payload) -> None:
    with pytest.raises(ValueError):
        SyncConfig.from_dict(payload)
