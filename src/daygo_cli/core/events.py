"""Closed set of events consumed by the reducer and effects it emits.

Events come from the user (intents) or from finished effects (results).
Effects describe I/O for the runtime to perform; each one produces exactly
one result event.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from daygo_cli.models import Task, TaskRecord
from daygo_cli.services.sync_engine import SyncOutcome


@dataclass(frozen=True)
class Event:
    """Base class of every event."""


@dataclass(frozen=True)
class Started(Event):
    """The session loop is running."""


@dataclass(frozen=True)
class Entry(Event):
    """Free text: a note for the pending task, otherwise a new task."""

    text: str


@dataclass(frozen=True)
class StartTask(Event):
    """Start *name*, or the next queued task when name is None."""

    name: str | None = None


@dataclass(frozen=True)
class AddNote(Event):
    text: str


@dataclass(frozen=True)
class EditItem(Event):
    text: str


@dataclass(frozen=True)
class DeleteLastItem(Event):
    pass


@dataclass(frozen=True)
class SkipTask(Event):
    pass


@dataclass(frozen=True)
class QueueTask(Event):
    name: str


@dataclass(frozen=True)
class SetFilter(Event):
    tag: str = ""


@dataclass(frozen=True)
class TimeBlock(Event):
    until: str


@dataclass(frozen=True)
class ShowHelp(Event):
    pass


@dataclass(frozen=True)
class ShowQueue(Event):
    pass


@dataclass(frozen=True)
class EndProgram(Event):
    discard: bool = False


@dataclass(frozen=True)
class QueueLoaded(Event):
    tasks: tuple[Task, ...] = ()


@dataclass(frozen=True)
class TasksSaved(Event):
    records: tuple[TaskRecord, ...] = ()


@dataclass(frozen=True)
class TasksDeleted(Event):
    records: tuple[TaskRecord, ...] = ()


@dataclass(frozen=True)
class SyncFinished(Event):
    outcome: SyncOutcome


@dataclass(frozen=True)
class TimerFired(Event):
    timer_id: int


@dataclass(frozen=True)
class OperationFailed(Event):
    """An effect failed; fatal failures end the session."""

    message: str
    fatal: bool = False


@dataclass(frozen=True)
class Effect:
    """Base class of every effect."""


@dataclass(frozen=True)
class LoadQueue(Effect):
    pass


@dataclass(frozen=True)
class SaveTasks(Effect):
    records: tuple[TaskRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DeleteTasks(Effect):
    task_ids: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RunSync(Effect):
    delay: float = 0.0


@dataclass(frozen=True)
class ArmTimer(Effect):
    timer_id: int
    seconds: float


@dataclass(frozen=True)
class Quit(Effect):
    pass
