"""BudgetSync CLI entry point."""

from __future__ import annotations

from pathlib import Path

import click

from budgetsync.__version__ import __version__
from budgetsync.cli.db import db
from budgetsync.cli.sync import sync


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="budgetsync")
@click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    help="Path to the sync database.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Path to a JSON config file.",
)
@click.pass_context
def main(ctx: click.Context, db_path: Path | None, config_path: Path | None) -> None:
    """BudgetSync CLI entry point."""
    ctx.obj = {
        "db_path": db_path,
        "config_path": config_path,
    }


main.add_command(db)
main.add_command(sync)


if __name__ == "__main__":
    main()
