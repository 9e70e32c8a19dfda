"""Main entry point for daygo CLI."""

import typer
from rich.console import Console

from daygo_cli import __version__
from daygo_cli.commands import config, session, sync
from daygo_cli.commands.serve import serve

app = typer.Typer(
    name="daygo",
    help="Track the task you are working on, queue the next ones, and sync with a peer",
    no_args_is_help=True,
)

console = Console()

app.add_typer(sync.app, name="sync", help="Sync with a daygo sync server")
app.add_typer(config.app, name="config", help="Configuration management")

app.command("run")(session.run)
app.command("start")(session.start)
app.command("add")(session.add)
app.command("queue")(session.queue)
app.command("serve")(serve)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]daygo[/bold] version [cyan]{__version__}[/cyan]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
