"""Sync CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from budgetsync.cli.common import emit_json, get_coordinator, parse_since, read_json
from budgetsync.coordinator import SyncCoordinator
from budgetsync.exceptions import RequestValidationError, SyncAbortedError
from budgetsync.models import SyncContext, SyncRequest
from budgetsync.protocol import decode_request, encode_error, encode_response


@click.group()
def sync() -> None:
    """Sync commands."""


def _run_sync(
    coordinator: SyncCoordinator,
    payload: object,
    context: SyncContext,
) -> tuple[dict, bool]:
    """Decode and run one request, returning the response envelope and success."""
    try:
        request = decode_request(
            payload,
            max_per_kind=coordinator.config.max_changes_per_kind,
            max_total=coordinator.config.max_total_changes,
        )
        response = coordinator.sync(request, context)
    except (RequestValidationError, SyncAbortedError) as exc:
        return encode_error(exc), False
    return encode_response(response), True


@sync.command("run")
@click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to JSON file containing the sync request.",
)
@click.option("--tenant", required=True, help="Family id the request is scoped to.")
@click.option("--actor", "actor_id", required=True, help="User id of the requesting member.")
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    help="Write the response to this file instead of stdout.",
)
@click.pass_context
def run(
    ctx: click.Context,
    file_path: Path,
    tenant: str,
    actor_id: str,
    output: Path | None,
) -> None:
    """Push changes from a JSON request and pull server changes."""
    payload = read_json(file_path)
    with get_coordinator(ctx) as coordinator:
        envelope, ok = _run_sync(coordinator, payload, SyncContext(tenant, actor_id))
    emit_json(envelope, output)
    if not ok:
        ctx.exit(1)


@sync.command("pull")
@click.option("--tenant", required=True, help="Family id to pull.")
@click.option("--actor", "actor_id", default="cli", show_default=True, help="Requesting user id.")
@click.option("--since", help="Only entities updated after this ISO-8601 timestamp.")
@click.pass_context
def pull(ctx: click.Context, tenant: str, actor_id: str, since: str | None) -> None:
    """Pull entities changed since a timestamp without pushing changes."""
    request = SyncRequest(last_sync_timestamp=parse_since(since, "--since"))
    with get_coordinator(ctx) as coordinator:
        try:
            response = coordinator.sync(request, SyncContext(tenant, actor_id))
        except SyncAbortedError as exc:
            emit_json(encode_error(exc))
            ctx.exit(1)
    emit_json(encode_response(response))
