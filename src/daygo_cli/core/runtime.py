"""Asyncio control loop executing the reducer's effects."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from daygo_cli.core.events import (
    ArmTimer,
    DeleteTasks,
    Effect,
    Event,
    LoadQueue,
    OperationFailed,
    QueueLoaded,
    Quit,
    RunSync,
    SaveTasks,
    Started,
    SyncFinished,
    TasksDeleted,
    TasksSaved,
    TimerFired,
)
from daygo_cli.core.reducer import reduce
from daygo_cli.core.state import AppState
from daygo_cli.errors import DaygoError, StorageInitError
from daygo_cli.models import SyncStatus, now_utc
from daygo_cli.services.sync_engine import SyncEngine, SyncOutcome
from daygo_cli.services.task_service import TaskService
from daygo_cli.utils.timeouts import with_timeout

Renderer = Callable[[AppState, Event], None]

# Effects whose results must land before the session exits.
_STORAGE_EFFECTS = (SaveTasks, DeleteTasks, LoadQueue)


class Runtime:
    """Single control loop of an interactive session.

    Events are consumed one at a time from a queue and folded through the
    reducer. Each effect runs as its own task and posts exactly one result
    event back; the loop itself never awaits I/O. Storage effects are applied
    in the order they were emitted.
    """

    def __init__(
        self,
        state: AppState,
        task_service: TaskService,
        sync_engine: SyncEngine | None = None,
        cmd_timeout: float = 3.0,
        render: Renderer | None = None,
        clock: Callable[[], datetime] = now_utc,
        logger: logging.Logger | None = None,
    ):
        self.state = state
        self.task_service = task_service
        self.sync_engine = sync_engine
        self.cmd_timeout = cmd_timeout
        self.render = render
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self._events: asyncio.Queue[Event] = asyncio.Queue()
        self._storage_lock = asyncio.Lock()
        self._storage_tasks: set[asyncio.Task] = set()
        self._background_tasks: set[asyncio.Task] = set()

    def dispatch(self, event: Event) -> None:
        """Post an event to the loop; safe to call from loop callbacks."""
        self._events.put_nowait(event)

    async def run(self) -> AppState:
        """Run until the reducer emits Quit and return the final state."""
        self.dispatch(Started())
        while True:
            event = await self._events.get()
            self.state, effects = reduce(self.state, event, self.clock)
            self.logger.debug("handled %s -> %s", type(event).__name__, _names(effects))
            if self.render is not None:
                self.render(self.state, event)

            quit_requested = False
            for effect in effects:
                if isinstance(effect, Quit):
                    quit_requested = True
                else:
                    self._launch(effect)
            if quit_requested:
                await self._shutdown()
                return self.state

    def _launch(self, effect: Effect) -> None:
        task = asyncio.create_task(self._execute(effect), name=type(effect).__name__)
        tasks = self._storage_tasks if isinstance(effect, _STORAGE_EFFECTS) else self._background_tasks
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    async def _shutdown(self) -> None:
        for task in list(self._background_tasks):
            task.cancel()
        pending = list(self._storage_tasks)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        # Only late failures are reported; other results are dropped.
        while not self._events.empty():
            self._fold_late_result(self._events.get_nowait())

    def _fold_late_result(self, event: Event) -> None:
        if isinstance(event, OperationFailed):
            self.state, _ = reduce(self.state, event, self.clock)
            if self.render is not None:
                self.render(self.state, event)

    async def _execute(self, effect: Effect) -> None:
        try:
            event = await self._perform(effect)
        except asyncio.CancelledError:
            raise
        except DaygoError as e:
            self.logger.warning("%s failed: %s", type(effect).__name__, e)
            event = self._failure_event(effect, e)
        except Exception as e:
            self.logger.exception("%s failed unexpectedly", type(effect).__name__)
            event = self._failure_event(effect, e)
        self.dispatch(event)

    def _failure_event(self, effect: Effect, error: Exception) -> Event:
        if isinstance(effect, RunSync):
            server_url = self.sync_engine.server_url if self.sync_engine else ""
            return SyncFinished(SyncOutcome(server_url, SyncStatus.ERROR, error=str(error)))
        return OperationFailed(str(error), fatal=isinstance(error, StorageInitError))

    async def _perform(self, effect: Effect) -> Event:
        if isinstance(effect, LoadQueue):
            async with self._storage_lock:
                tasks = await with_timeout(
                    self.task_service.get_queued_tasks(), self.cmd_timeout, "loading the queue"
                )
            return QueueLoaded(tuple(tasks))

        if isinstance(effect, SaveTasks):
            async with self._storage_lock:
                saved = await with_timeout(
                    self.task_service.save_tasks(effect.records), self.cmd_timeout, "saving tasks"
                )
            return TasksSaved(tuple(saved))

        if isinstance(effect, DeleteTasks):
            deleted = []
            async with self._storage_lock:
                for task_id in effect.task_ids:
                    deleted.extend(
                        await with_timeout(
                            self.task_service.delete_task(task_id),
                            self.cmd_timeout,
                            "deleting a task",
                        )
                    )
            return TasksDeleted(tuple(deleted))

        if isinstance(effect, RunSync):
            if self.sync_engine is None:
                raise DaygoError("sync is not configured")
            if effect.delay > 0:
                await asyncio.sleep(effect.delay)
            return SyncFinished(await self.sync_engine.sync_once())

        if isinstance(effect, ArmTimer):
            await asyncio.sleep(effect.seconds)
            return TimerFired(effect.timer_id)

        raise TypeError(f"unknown effect: {type(effect).__name__}")


def _names(effects: list[Effect]) -> str:
    return ", ".join(type(effect).__name__ for effect in effects) or "no effects"
