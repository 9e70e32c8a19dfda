"""Run the sync server."""

from __future__ import annotations

import typer
import uvicorn

from daygo_cli.adapters.sqlite import DatabaseConnection
from daygo_cli.api.server import create_app
from daygo_cli.commands.decorators import command_wrapper
from daygo_cli.config import get_config_manager
from daygo_cli.errors import ValidationError
from daygo_cli.utils.logger import get_logger


@command_wrapper
def serve(
    host: str | None = typer.Option(None, "--host", help="Interface to bind (defaults to server.host)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to listen on (defaults to server.port)"),
    db: str | None = typer.Option(None, "--db", help="Server database path (defaults to server.database_url)"),
) -> None:
    """Serve the sync endpoint for other daygo clients."""
    config_manager = get_config_manager()
    try:
        config = config_manager.effective_config()
    except ValueError as e:
        raise ValidationError(str(e)) from e

    logger = get_logger(config.server.log_level, config_manager.log_path(config))
    database = DatabaseConnection.get(db or config_manager.server_database_path(config))
    app = create_app(database, logger=logger.getChild("server"))

    bind_host = host or config.server.host
    bind_port = port or config.server.port
    logger.info("sync server listening on %s:%d with %s", bind_host, bind_port, database.db_path)
    typer.echo(f"Serving daygo sync on http://{bind_host}:{bind_port} ({database.db_path})")
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=config.server.log_level.lower())
