"""State of an interactive session."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from daygo_cli.models import Task
from daygo_cli.services.sync_engine import SyncOutcome
from daygo_cli.services.task_queue import TaskQueue

INFO = "info"
ERROR = "error"


@dataclass
class Alert:
    level: str
    message: str


@dataclass
class AppState:
    """Everything the reducer reads and writes.

    ``alerts`` only holds the messages produced by the latest event.
    """

    task_log: list[Task] = field(default_factory=list)
    queue: TaskQueue = field(default_factory=TaskQueue)
    alerts: list[Alert] = field(default_factory=list)
    autostart: bool = True
    queue_loaded: bool = False
    sync_enabled: bool = False
    sync_rate: float = 300.0
    sync_in_flight: bool = False
    last_sync: SyncOutcome | None = None
    timer_id: int = 0
    quitting: bool = False

    def clone(self) -> AppState:
        return copy.deepcopy(self)

    def current_task(self) -> Task | None:
        return self.task_log[-1] if self.task_log else None

    def find_item(self, item_id: str) -> Task | None:
        """Task or note of the log with the given id."""
        for task in self.task_log:
            if task.id == item_id:
                return task
            for note in task.notes:
                if note.id == item_id:
                    return note
        return None
