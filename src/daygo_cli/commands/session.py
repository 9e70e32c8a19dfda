"""Interactive session commands: run, start, add and queue."""

from __future__ import annotations

import asyncio
import signal
import threading
from collections.abc import Callable

import typer
from rich.markup import escape

from daygo_cli.bootstrap import AppContext, bootstrap
from daygo_cli.commands.decorators import command_wrapper
from daygo_cli.core.events import (
    DeleteLastItem,
    EditItem,
    EndProgram,
    Entry,
    Event,
    OperationFailed,
    QueueTask,
    SetFilter,
    ShowHelp,
    ShowQueue,
    SkipTask,
    StartTask,
    TimeBlock,
)
from daygo_cli.core.runtime import Runtime
from daygo_cli.core.state import AppState
from daygo_cli.errors import ValidationError
from daygo_cli.models import Task, now_utc
from daygo_cli.services.task_queue import TaskQueue
from daygo_cli.utils.ui.formatters import console, format_success, print_alerts, render_task

_COMMANDS: dict[str, Callable[[str], Event]] = {
    "/n": lambda arg: StartTask(arg or None),
    "/a": QueueTask,
    "/e": EditItem,
    "/x": lambda arg: DeleteLastItem(),
    "/k": lambda arg: SkipTask(),
    "/t": TimeBlock,
    "/f": SetFilter,
    "/o": lambda arg: ShowQueue(),
    "/h": lambda arg: ShowHelp(),
    "/q": lambda arg: EndProgram(),
    "/q!": lambda arg: EndProgram(discard=True),
}


def parse_input(line: str) -> Event | None:
    """Translate one line of user input into an event.

    Returns:
        None for a blank line

    Raises:
        ValidationError: If the line is an unknown slash command
    """
    text = line.strip()
    if not text:
        return None
    if not text.startswith("/"):
        return Entry(text)
    command, _, arg = text.partition(" ")
    factory = _COMMANDS.get(command.lower())
    if factory is None:
        raise ValidationError(f"unknown command {command}, type /h for help")
    return factory(arg.strip())


class SessionRenderer:
    """Prints new alerts and the part of the task log that changed."""

    def __init__(self, time_format: str):
        self.time_format = time_format
        self._printed: list[str] = []

    def __call__(self, state: AppState, event: Event) -> None:
        lines = [line for task in state.task_log for line in render_task(task, self.time_format)]
        if lines != self._printed:
            common = 0
            for old, new in zip(self._printed, lines):
                if old != new:
                    break
                common += 1
            for line in lines[common:]:
                console.print(escape(line), highlight=False)
            self._printed = lines
        print_alerts(state.alerts)


def _post(loop: asyncio.AbstractEventLoop, runtime: Runtime, event: Event) -> bool:
    try:
        loop.call_soon_threadsafe(runtime.dispatch, event)
    except RuntimeError:
        # loop already closed
        return False
    return True


def _read_input(
    loop: asyncio.AbstractEventLoop, runtime: Runtime, input_fn: Callable[[str], str]
) -> None:
    while True:
        try:
            line = input_fn("")
        except (EOFError, KeyboardInterrupt):
            _post(loop, runtime, EndProgram())
            return
        try:
            event = parse_input(line)
        except ValidationError as e:
            event = OperationFailed(str(e))
        if event is None:
            continue
        if not _post(loop, runtime, event) or isinstance(event, EndProgram):
            return


async def run_session(
    ctx: AppContext,
    initial: Event | None = None,
    input_fn: Callable[[str], str] = input,
) -> AppState:
    """Run the interactive loop until the user quits.

    Input is read on a daemon thread so a blocked read never delays exit.
    """
    engine = ctx.create_sync_engine()
    state = AppState(
        autostart=initial is None,
        sync_enabled=engine is not None,
        sync_rate=ctx.config.sync.rate,
    )
    runtime = Runtime(
        state,
        ctx.task_service,
        engine,
        cmd_timeout=ctx.config.sync.cmd_timeout,
        render=SessionRenderer(ctx.config.time_format),
        logger=ctx.logger.getChild("runtime"),
    )
    if initial is not None:
        runtime.dispatch(initial)

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, runtime.dispatch, EndProgram())
    except (NotImplementedError, RuntimeError):
        pass  # no signal handlers outside the main thread or on Windows

    threading.Thread(
        target=_read_input, args=(loop, runtime, input_fn), name="daygo-input", daemon=True
    ).start()
    try:
        return await runtime.run()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass
        if engine is not None:
            await engine.client.close()


@command_wrapper
async def run() -> None:
    """Start a session with the next queued task."""
    ctx = bootstrap()
    console.print("[dim]Type to start a task or add notes; /h for help.[/dim]")
    await run_session(ctx)


@command_wrapper
async def start(
    name: list[str] = typer.Argument(..., help="Task name; #words become tags"),
) -> None:
    """Start a session with a new task."""
    ctx = bootstrap()
    await run_session(ctx, StartTask(" ".join(name)))


@command_wrapper
async def add(
    name: list[str] = typer.Argument(..., help="Task name; #words become tags"),
) -> None:
    """Add a task to the queue."""
    text = " ".join(name).strip()
    if not text:
        raise ValidationError("task name is required")
    ctx = bootstrap()
    record = Task(name=text, queued_at=now_utc()).to_record()
    await ctx.task_service.upsert_task(record)
    format_success(f'Queued "{text}"')


@command_wrapper
async def queue(
    tag: str = typer.Option("", "--tag", "-t", help="Only show tasks with this tag"),
) -> None:
    """List queued tasks, oldest first."""
    ctx = bootstrap()
    task_queue = TaskQueue(await ctx.task_service.get_queued_tasks())
    task_queue.set_filter(tag)
    tasks = task_queue.tasks()
    if not tasks:
        console.print("[yellow]Queue is empty[/yellow]")
        return
    for position, task in enumerate(tasks, start=1):
        console.print(f"{position}. {escape(task.name)}", highlight=False)
    if task_queue.all_tags():
        console.print(f"[dim]tags: {' '.join('#' + t for t in task_queue.all_tags())}[/dim]")
