"""Pure reducer of the session loop.

``reduce(state, event)`` never performs I/O: it returns the next state and
the effects the runtime has to execute. Errors raised by an operation leave
the state unchanged and are reported as an alert.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from daygo_cli.core.events import (
    AddNote,
    ArmTimer,
    DeleteLastItem,
    DeleteTasks,
    EditItem,
    Effect,
    EndProgram,
    Entry,
    Event,
    LoadQueue,
    OperationFailed,
    QueueLoaded,
    QueueTask,
    Quit,
    RunSync,
    SaveTasks,
    SetFilter,
    ShowHelp,
    ShowQueue,
    SkipTask,
    Started,
    StartTask,
    SyncFinished,
    TasksDeleted,
    TasksSaved,
    TimeBlock,
    TimerFired,
)
from daygo_cli.core.state import ERROR, INFO, Alert, AppState
from daygo_cli.errors import DaygoError, ValidationError
from daygo_cli.models import SyncStatus, Task, now_utc
from daygo_cli.services.lifecycle import Mutation, TaskLifecycle

HELP_LINES = (
    "<text>       start a task, or add a note to the running task",
    "/n [task]    start a new task, or the next queued one",
    "/a <task>    add a task to the queue",
    "/e <text>    rename the running task or its last note",
    "/x           delete the last note, or the running task",
    "/k           skip: requeue the running task and start the next one",
    "/t <HHMM>    end the running task automatically at HH:MM",
    "/f [tag]     only take queued tasks tagged #tag (no tag clears)",
    "/o           show the queue",
    "/q           quit (/q! discards the running task)",
    "/h           show this help",
)

Handler = Callable[[AppState, Event, TaskLifecycle, Callable[[], datetime]], list[Effect]]

_HANDLERS: dict[type[Event], Handler] = {}


def _handles(event_type: type[Event]) -> Callable[[Handler], Handler]:
    def register(handler: Handler) -> Handler:
        _HANDLERS[event_type] = handler
        return handler

    return register


def reduce(
    state: AppState, event: Event, clock: Callable[[], datetime] = now_utc
) -> tuple[AppState, list[Effect]]:
    """Apply *event* to a copy of *state*.

    Returns:
        The next state and the effects to execute, in order

    Raises:
        TypeError: If the event type has no handler
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"unhandled event: {type(event).__name__}")

    next_state = state.clone()
    next_state.alerts = []
    lifecycle = TaskLifecycle(next_state.task_log, next_state.queue, clock)
    pending_before = lifecycle.pending_task()
    try:
        effects = handler(next_state, event, lifecycle, clock)
    except DaygoError as e:
        failed = state.clone()
        failed.alerts = [Alert(ERROR, str(e))]
        return failed, []

    # A time block belongs to the task it was set on.
    pending_after = lifecycle.pending_task()
    if _item_id(pending_before) != _item_id(pending_after):
        next_state.timer_id += 1
    return next_state, effects


def _item_id(task: Task | None) -> str | None:
    return task.id if task is not None else None


def _persist(mutation: Mutation) -> list[Effect]:
    effects: list[Effect] = []
    if mutation.delete:
        effects.append(DeleteTasks(tuple(mutation.delete)))
    if mutation.save:
        effects.append(SaveTasks(tuple(mutation.save)))
    return effects


def _info(state: AppState, message: str) -> None:
    state.alerts.append(Alert(INFO, message))


@_handles(Started)
def _started(state, event, lifecycle, clock):
    effects: list[Effect] = [LoadQueue()]
    if state.sync_enabled:
        state.sync_in_flight = True
        effects.append(RunSync(delay=0.0))
    return effects


@_handles(Entry)
def _entry(state, event, lifecycle, clock):
    if lifecycle.pending_task() is not None:
        return _persist(lifecycle.add_note(event.text))
    return _persist(lifecycle.start_task(event.text))


@_handles(StartTask)
def _start_task(state, event, lifecycle, clock):
    return _persist(lifecycle.start_task(event.name))


@_handles(AddNote)
def _add_note(state, event, lifecycle, clock):
    return _persist(lifecycle.add_note(event.text))


@_handles(EditItem)
def _edit_item(state, event, lifecycle, clock):
    return _persist(lifecycle.edit_item(event.text))


@_handles(DeleteLastItem)
def _delete_last_item(state, event, lifecycle, clock):
    return _persist(lifecycle.delete_last_pending_item())


@_handles(SkipTask)
def _skip_task(state, event, lifecycle, clock):
    skipped = lifecycle.pending_task()
    mutation = lifecycle.skip_task()
    if skipped is not None:
        _info(state, f'Moved "{skipped.name}" to the end of the queue')
    return _persist(mutation)


@_handles(QueueTask)
def _queue_task(state, event, lifecycle, clock):
    name = event.name.strip()
    if not name:
        raise ValidationError("usage: /a <task>")
    queued = state.queue.queue(Task(name=name), now=clock())
    _info(state, f'Queued "{name}"')
    return [SaveTasks((queued.to_record(),))]


@_handles(SetFilter)
def _set_filter(state, event, lifecycle, clock):
    state.queue.set_filter(event.tag)
    if state.queue.filter_tag:
        _info(state, f"Queue filtered by #{state.queue.filter_tag} ({len(state.queue)} tasks)")
    else:
        _info(state, "Queue filter cleared")
    return []


@_handles(TimeBlock)
def _time_block(state, event, lifecycle, clock):
    delay = lifecycle.time_block(event.until)
    state.timer_id += 1
    _info(state, f"Task ends at {event.until[:2]}:{event.until[2:]}")
    return [ArmTimer(state.timer_id, delay.total_seconds())]


@_handles(TimerFired)
def _timer_fired(state, event, lifecycle, clock):
    task = lifecycle.pending_task()
    if event.timer_id != state.timer_id or task is None:
        return []
    mutation = lifecycle.end_pending_task()
    _info(state, f'Time block over, ended "{task.name}"')
    return _persist(mutation)


@_handles(ShowHelp)
def _show_help(state, event, lifecycle, clock):
    for line in HELP_LINES:
        _info(state, line)
    return []


@_handles(ShowQueue)
def _show_queue(state, event, lifecycle, clock):
    tasks = state.queue.tasks()
    if not tasks:
        _info(state, "Queue is empty")
    for position, task in enumerate(tasks, start=1):
        _info(state, f"{position}. {task.name}")
    return []


@_handles(EndProgram)
def _end_program(state, event, lifecycle, clock):
    state.quitting = True
    return _persist(lifecycle.end_program(discard=event.discard)) + [Quit()]


@_handles(QueueLoaded)
def _queue_loaded(state, event, lifecycle, clock):
    state.queue_loaded = True
    state.queue.sync(event.tasks)
    if state.autostart and not state.task_log and len(state.queue) > 0:
        return _persist(lifecycle.start_task(None))
    return []


@_handles(TasksSaved)
def _tasks_saved(state, event, lifecycle, clock):
    for record in event.records:
        stamps = {"created_at": record.created_at, "updated_at": record.updated_at}
        item = state.find_item(record.id)
        if item is not None:
            item.created_at = record.created_at
            item.updated_at = record.updated_at
        queued = state.queue.get(record.id)
        if queued is not None:
            state.queue.refresh(queued.model_copy(update=stamps))
    return []


@_handles(TasksDeleted)
def _tasks_deleted(state, event, lifecycle, clock):
    return []


@_handles(SyncFinished)
def _sync_finished(state, event, lifecycle, clock):
    outcome = event.outcome
    state.sync_in_flight = False
    state.last_sync = outcome
    if outcome.status == SyncStatus.ERROR:
        state.alerts.append(Alert(ERROR, f"Sync failed: {outcome.error}"))
    else:
        if outcome.to_server_sync_count:
            _info(state, f"Synced {outcome.to_server_sync_count} task(s) to server")
        # Items of the log are never queued again.
        pulled = [r for r in outcome.applied if state.find_item(r.id) is None]
        changed = state.queue.sync(pulled)
        if changed:
            _info(state, f"Queue updated with {changed} task(s) from server")
        if outcome.status == SyncStatus.PARTIAL and outcome.error:
            state.alerts.append(Alert(ERROR, f"Sync incomplete: {outcome.error}"))

    if state.quitting or not state.sync_enabled:
        return []
    state.sync_in_flight = True
    return [RunSync(delay=state.sync_rate)]


@_handles(OperationFailed)
def _operation_failed(state, event, lifecycle, clock):
    state.alerts.append(Alert(ERROR, event.message))
    if event.fatal and not state.quitting:
        state.quitting = True
        return [Quit()]
    return []
