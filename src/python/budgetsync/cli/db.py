"""Database CLI commands."""

from __future__ import annotations

import click

from budgetsync.cli.common import get_coordinator
from budgetsync.exceptions import SyncError


@click.group()
def db() -> None:
    """Database commands."""


@db.command("init")
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the sync tables in the database."""
    with get_coordinator(ctx) as coordinator:
        try:
            coordinator.initialize_schema()
        except SyncError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Initialized {coordinator.db_path}")
