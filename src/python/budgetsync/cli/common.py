"""Shared CLI helpers."""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any

import click

from budgetsync.config import load_config
from budgetsync.coordinator import SyncCoordinator
from budgetsync.exceptions import ValidationError
from budgetsync.models import parse_timestamp


def parse_since(value: str | None, field_name: str) -> dt.datetime | None:
    """Parse an ISO-8601 timestamp option."""
    if value is None:
        return None
    try:
        return parse_timestamp(value, field_name)
    except ValidationError as exc:
        raise click.BadParameter("Use an ISO-8601 timestamp.", param_hint=field_name) from exc


def read_json(file_path: Path) -> Any:
    """Load a JSON document from disk."""
    try:
        with file_path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except Exception as exc:
        raise click.ClickException(f"Failed to read JSON file: {exc}") from exc


def emit_json(payload: dict[str, Any], output: Path | None = None) -> None:
    """Print a JSON document, or write it to ``output``."""
    text = json.dumps(payload, indent=2)
    if output is None:
        click.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Response written to {output}")


def get_coordinator(ctx: click.Context) -> SyncCoordinator:
    """Build a sync coordinator from Click context.

    ``--db`` takes precedence over the configured database path.
    """
    payload = ctx.obj or {}
    try:
        config = load_config(payload.get("config_path"))
    except ValueError as exc:
        raise click.ClickException(f"Invalid config: {exc}") from exc
    db_path = payload.get("db_path") or config.db_path
    if db_path is None:
        raise click.UsageError("Provide --db or configure db_path.")
    return SyncCoordinator(db_path=db_path, config=config)
