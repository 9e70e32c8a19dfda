"""Configuration management commands."""

from __future__ import annotations

from typing import Any

import typer

from daygo_cli.commands.decorators import command_wrapper
from daygo_cli.config import ENV_OVERRIDES, get_config_manager
from daygo_cli.errors import NotFoundError, ValidationError
from daygo_cli.utils.ui.formatters import console, format_success

app = typer.Typer(help="Configuration management commands")


def _parse_value(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null"):
        return None
    if value.isdigit():
        return int(value)
    return value


@app.command("show")
@command_wrapper
def show_config(
    file_only: bool = typer.Option(False, "--file", help="Ignore DAYGO_* environment overrides"),
) -> None:
    """Show the current configuration."""
    manager = get_config_manager()
    try:
        config = manager.config if file_only else manager.effective_config()
    except ValueError as e:
        raise ValidationError(str(e)) from e
    console.print_json(config.model_dump_json())
    if not file_only:
        active = [name for name in ENV_OVERRIDES if manager.environ.get(name)]
        if active:
            console.print(f"[dim]overridden by: {', '.join(active)}[/dim]")


@app.command("get")
@command_wrapper
def get_config(key: str = typer.Argument(..., help="Configuration key (e.g., sync.server_url)")) -> None:
    """Get a configuration value."""
    manager = get_config_manager()
    try:
        value = manager.get(key)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if value is None:
        raise NotFoundError(f"Configuration key '{key}' is not set")
    console.print(value, highlight=False)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., sync.server_url)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    parsed = _parse_value(value)
    try:
        get_config_manager().set(key, parsed)
    except KeyError as e:
        raise NotFoundError(f"Unknown configuration key '{key}'") from e
    except ValueError as e:
        raise ValidationError(str(e)) from e
    format_success(f"Configuration '{key}' set to '{parsed}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: str | None = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        target = f"'{key}'" if key else "the entire configuration"
        if not typer.confirm(f"Are you sure you want to reset {target}?"):
            raise typer.Exit(0)
    try:
        get_config_manager().reset(key)
    except KeyError as e:
        raise NotFoundError(f"Unknown configuration key '{key}'") from e
    format_success(f"Configuration '{key}' reset to default" if key else "Configuration reset to defaults")


@app.command("path")
@command_wrapper
def config_path() -> None:
    """Show where configuration, data and logs are stored."""
    manager = get_config_manager()
    try:
        config = manager.effective_config()
    except ValueError as e:
        raise ValidationError(str(e)) from e
    console.print(f"config:   {manager.config_file}", highlight=False)
    console.print(f"database: {manager.database_path(config)}", highlight=False)
    console.print(f"server:   {manager.server_database_path(config)}", highlight=False)
    console.print(f"log:      {manager.log_path(config)}", highlight=False)
