from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import click

from codepocket.runtime.models.sync import SyncCompleted, SyncEvent, SyncFailed, SyncProgress
from codepocket.runtime.models.workspace import Workspace

if TYPE_CHECKING:
    from codepocket.runtime.host import CodePocketRuntime


@click.group()
def main() -> None:
    """CodePocket - edit a folder in the browser through a private sandbox copy."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from CODEPOCKET_HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Bind port (default: from CODEPOCKET_PORT or 13337).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
@click.option("--generate-token", is_flag=True, default=False, help="Write a fresh random API token before starting.")
def serve(host: str | None, port: int | None, reload: bool, generate_token: bool) -> None:
    """Start the local editor server."""
    import uvicorn

    from codepocket.runtime.auth import is_loopback_host, issue_token
    from codepocket.runtime.settings import get_settings

    settings = get_settings()

    if generate_token:
        if settings.auth_token:
            raise click.UsageError("CODEPOCKET_AUTH_TOKEN is set; unset it to use a generated token.")
        token = issue_token(settings.auth_token_file)
        click.echo(f"API token: {token}")

    bind_host = host or settings.host
    if not is_loopback_host(bind_host) and not settings.resolve_auth_token():
        raise click.UsageError(
            f"Refusing to listen on {bind_host} without an API token; use --generate-token or CODEPOCKET_AUTH_TOKEN."
        )

    uvicorn.run(
        "codepocket.runtime.app:app",
        host=bind_host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


# ---------------------------------------------------------------------------
# Workspace management (the host side of sync)
# ---------------------------------------------------------------------------


def _runtime() -> CodePocketRuntime:
    from codepocket.runtime.host import CodePocketRuntime
    from codepocket.runtime.settings import get_settings

    return CodePocketRuntime(get_settings())


def _require(runtime: CodePocketRuntime, workspace_id: str) -> Workspace:
    workspace = runtime.workspaces.get(workspace_id)
    if workspace is None:
        raise click.ClickException(f"Workspace not found: {workspace_id}")
    return workspace


def _run(events: Iterable[SyncEvent]) -> SyncCompleted:
    """Render a sync stream as it arrives and return its completion."""
    for event in events:
        if isinstance(event, SyncProgress):
            click.echo(f"[{event.current}/{event.total}] {event.path}")
        elif isinstance(event, SyncFailed):
            raise click.ClickException(event.message)
        elif isinstance(event, SyncCompleted):
            return event
    raise click.ClickException("Sync ended without a result")


def _describe(workspace: Workspace) -> str:
    marker = click.style(" (unsynced changes)", fg="yellow") if workspace.has_unsynced_changes else ""
    synced = workspace.last_synced_at.strftime("%Y-%m-%d %H:%M:%S")
    return f"{workspace.id}  {workspace.name}  files={workspace.file_count}  synced={synced}{marker}"


@main.group()
def workspace() -> None:
    """Mirror folders into sandboxes and sync edits back."""
    from codepocket.runtime.log import setup_logging
    from codepocket.runtime.settings import get_settings

    setup_logging(get_settings().log_level)


@workspace.command("list")
def list_workspaces() -> None:
    """List workspaces, checking each for unsynced sandbox edits."""
    runtime = _runtime()
    workspaces = runtime.workspaces.list_all()
    if not workspaces:
        click.echo("No workspaces.")
        return
    for ws in workspaces:
        click.echo(_describe(runtime.sync.check_unsynced_changes(ws)))


@workspace.command()
@click.argument("source")
def mirror(source: str) -> None:
    """Copy SOURCE (a directory or file:// URI) into a new sandbox."""
    from codepocket.runtime.documents import to_location

    location = source if "://" in source else to_location(source)
    runtime = _runtime()
    existing = runtime.workspaces.get_by_original_location(location)
    if existing is not None:
        click.echo(f"Note: {location} is already mirrored as {existing.id}")

    completed = _run(runtime.sync.mirror_to_sandbox(location))
    click.echo(f"Mirrored {completed.count} entries into workspace {completed.workspace.id}")


@workspace.command()
@click.argument("workspace_id")
def export(workspace_id: str) -> None:
    """Write sandbox edits back to the original folder."""
    runtime = _runtime()
    completed = _run(runtime.sync.export_to_original(_require(runtime, workspace_id)))
    click.echo(f"Exported {completed.count} files")


@workspace.command()
@click.argument("workspace_id")
def refresh(workspace_id: str) -> None:
    """Discard the sandbox and copy the original folder again."""
    runtime = _runtime()
    completed = _run(runtime.sync.refresh_from_original(_require(runtime, workspace_id)))
    click.echo(f"Refreshed {completed.count} entries")


@workspace.command()
@click.argument("workspace_id")
def check(workspace_id: str) -> None:
    """Report whether the sandbox has edits that were not exported."""
    runtime = _runtime()
    ws = runtime.sync.check_unsynced_changes(_require(runtime, workspace_id))
    click.echo(_describe(ws))


@workspace.command()
@click.argument("workspace_id")
@click.option("--keep-files", is_flag=True, default=False, help="Only forget the record; leave the sandbox on disk.")
def delete(workspace_id: str, keep_files: bool) -> None:
    """Delete a workspace and its sandbox.  The original folder is never touched."""
    runtime = _runtime()
    ws = _require(runtime, workspace_id)
    if keep_files:
        runtime.workspaces.delete(ws.id)
    else:
        runtime.workspaces.delete_with_files(ws.id)
    click.echo(f"Deleted workspace {ws.id}")


@workspace.command()
@click.argument("workspace_id")
def url(workspace_id: str) -> None:
    """Print the editor URL for a workspace."""
    runtime = _runtime()
    ws = _require(runtime, workspace_id)
    params = {"ws": ws.id}
    if runtime.auth_token:
        params["token"] = runtime.auth_token
    settings = runtime.settings
    click.echo(f"http://{settings.host}:{settings.port}/?{urlencode(params)}")
