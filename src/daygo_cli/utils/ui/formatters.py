"""Output formatters for daygo CLI."""

from __future__ import annotations

from datetime import datetime

from rich.markup import escape
from rich.table import Table

from daygo_cli.core.state import ERROR, Alert
from daygo_cli.models import SyncSession, SyncStatus, Task
from daygo_cli.utils.ui.console import get_console

console = get_console()

DASH = "─"
TAIL_DOWN = "┐"
TAIL_UP = "┘"
MIN_LINE_WIDTH = 20

_STATUS_STYLES = {
    SyncStatus.SUCCESS: "green",
    SyncStatus.PARTIAL: "yellow",
    SyncStatus.ERROR: "red",
}


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {escape(message)}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {escape(message)}")


def format_time(value: datetime | None, time_format: str) -> str:
    """Local wall-clock rendering of a timestamp; blank when unset."""
    if value is None:
        return ""
    return value.astimezone().strftime(time_format)


def _labelled(item: Task, time_format: str) -> str:
    return f"[{format_time(item.started_at, time_format)}] {item.name}"


def render_task(task: Task, time_format: str = "%H:%M") -> list[str]:
    """Plain-text lines for a task and its notes.

    The task line ends with a downward tail, notes follow, and a closing
    line is drawn once the task has ended. A terminal task shows its end
    time on the closing line.
    """
    width = max(MIN_LINE_WIDTH, max(len(item.name) for item in [task, *task.notes]) + 10)
    header = _labelled(task, time_format)
    lines = [f"{header} {DASH * max(width - len(header), 0)}{TAIL_DOWN}"]
    lines.extend(_labelled(note, time_format) for note in task.notes)
    if task.is_terminal and task.ended_at is not None:
        end_time = format_time(task.ended_at, time_format)
        lines.append(f"[{end_time}] {DASH * max(width - len(end_time) - 2, 0)}{TAIL_UP}")
    elif not task.is_pending:
        lines.append(f"{DASH * (width + 1)}{TAIL_UP}")
    return lines


def print_alerts(alerts: list[Alert]) -> None:
    for alert in alerts:
        color = "red" if alert.level == ERROR else "cyan"
        console.print(f"[{color}]{escape(alert.message)}[/{color}]", highlight=False)


def format_sync_sessions(sessions: list[SyncSession], time_format: str = "%Y-%m-%d %H:%M:%S") -> None:
    """Display sync sessions as a table, newest first."""
    if not sessions:
        console.print("[yellow]No sync sessions recorded[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Server")
    table.add_column("Status")
    table.add_column("Pushed", justify="right")
    table.add_column("Pulled", justify="right")
    table.add_column("Started")
    table.add_column("Error", overflow="fold")
    for session in sessions:
        style = _STATUS_STYLES.get(session.status, "white")
        table.add_row(
            str(session.id),
            escape(session.server_url),
            f"[{style}]{session.status.name}[/{style}]",
            "" if session.to_server_sync_count is None else str(session.to_server_sync_count),
            "" if session.from_server_sync_count is None else str(session.from_server_sync_count),
            format_time(session.created_at, time_format),
            escape(session.error or ""),
        )
    console.print(table)
