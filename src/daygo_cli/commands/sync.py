"""Sync commands: run a round against the peer and inspect past rounds."""

from __future__ import annotations

import typer

from daygo_cli.bootstrap import bootstrap
from daygo_cli.commands.decorators import command_wrapper
from daygo_cli.errors import DaygoError, TransportError, ValidationError
from daygo_cli.models import SyncStatus
from daygo_cli.utils.exit_codes import ERROR_PARTIAL_SYNC
from daygo_cli.utils.ui.formatters import format_success, format_sync_sessions, format_warning

app = typer.Typer(help="Sync with a daygo sync server")


@app.command("now")
@command_wrapper
async def sync_now(
    server: str | None = typer.Option(None, "--server", "-s", help="Peer URL (defaults to sync.server_url)"),
    check: bool = typer.Option(False, "--check", help="Check the peer's health before syncing"),
) -> None:
    """Run one sync round now."""
    ctx = bootstrap()
    engine = ctx.create_sync_engine(server)
    if engine is None:
        raise ValidationError(
            "no sync server configured; set sync.server_url or DAYGO_SYNC_SERVER_URL"
        )

    try:
        if check:
            if not await engine.client.health():
                raise TransportError(f"{engine.server_url} is not healthy")
            format_success(f"{engine.server_url} is reachable")
        outcome = await engine.sync_once()
    finally:
        await engine.client.close()

    if outcome.status == SyncStatus.ERROR:
        raise TransportError(f"sync failed: {outcome.error}")
    if outcome.error:
        format_warning(
            f"pushed {outcome.to_server_sync_count}, pulled {outcome.from_server_sync_count}"
        )
        raise DaygoError(f"some tasks could not be applied:\n{outcome.error}", ERROR_PARTIAL_SYNC)
    format_success(
        f"synced with {outcome.server_url}: pushed {outcome.to_server_sync_count}, "
        f"pulled {outcome.from_server_sync_count}"
    )


@app.command("status")
@command_wrapper
async def sync_status(
    server: str | None = typer.Option(None, "--server", "-s", help="Only show this peer"),
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Number of sessions to show"),
) -> None:
    """Show the most recent sync sessions."""
    ctx = bootstrap()
    sessions = await ctx.task_service.list_sync_sessions(server, limit)
    format_sync_sessions(sessions)
    url = server or ctx.config.sync.server_url
    if url:
        watermark = await ctx.task_service.get_watermark(url)
        label = watermark.astimezone().strftime("%Y-%m-%d %H:%M:%S") if watermark else "never"
        typer.echo(f"Sync watermark for {url}: {label}")
