"""In-memory queue of tasks that have not been started yet."""

from __future__ import annotations

import bisect
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from daygo_cli.errors import QueueEmptyError
from daygo_cli.models import Task, TaskRecord, now_utc
from daygo_cli.services.sync_conflicts import remote_wins

_NEVER = datetime.min.replace(tzinfo=UTC)


def _queue_order(task: Task) -> datetime:
    # Tasks without a queue time sort first.
    return task.queued_at or _NEVER


class TaskQueue:
    """Backlog of unstarted top-level tasks ordered by queue time.

    The queue keeps a tag -> count index over the whole backlog and a
    filtered view restricted to one tag. Dequeue always takes the oldest
    task of the filtered view, so ordering is FIFO within any filter.
    """

    def __init__(
        self,
        tasks: Iterable[Task | TaskRecord] = (),
        clock: Callable[[], datetime] = now_utc,
    ):
        self._clock = clock
        self._backlog: list[Task] = []
        self._view: list[Task] = []
        self._tag_counts: dict[str, int] = {}
        self._filter_tag = ""
        self._rebuild(_as_task(task) for task in tasks)

    def __len__(self) -> int:
        return len(self._view)

    def size(self) -> int:
        """Number of tasks visible through the active filter."""
        return len(self._view)

    @property
    def backlog_size(self) -> int:
        return len(self._backlog)

    @property
    def filter_tag(self) -> str:
        return self._filter_tag

    def tasks(self) -> list[Task]:
        """Tasks visible through the active filter, oldest first."""
        return list(self._view)

    def tag_counts(self) -> dict[str, int]:
        return dict(self._tag_counts)

    def all_tags(self) -> list[str]:
        return sorted(self._tag_counts)

    def queue(self, task: Task, now: datetime | None = None) -> Task:
        """Stamp *task* with a fresh queue time and add it to the backlog.

        A task already in the backlog under the same id is replaced.

        Returns:
            The stamped copy that was queued
        """
        queued = task.model_copy(
            update={
                "queued_at": now or self._clock(),
                "started_at": None,
                "ended_at": None,
                "notes": [],
                "is_terminal": False,
            }
        )
        self._remove(queued.id)
        bisect.insort_right(self._backlog, queued, key=_queue_order)
        self._count_tags(queued, 1)
        self._refilter()
        return queued

    def peek(self) -> Task | None:
        """Next task dequeue would return, without removing it."""
        return self._view[0] if self._view else None

    def dequeue(self) -> Task:
        """Remove and return the oldest task matching the active filter.

        Raises:
            QueueEmptyError: If no queued task matches the filter
        """
        task = self.peek()
        if task is None:
            if self._filter_tag:
                raise QueueEmptyError(f"no queued task tagged #{self._filter_tag}")
            raise QueueEmptyError()
        self._remove(task.id)
        self._refilter()
        return task

    def set_filter(self, tag: str = "") -> None:
        """Restrict the view to tasks tagged *tag*; an empty tag clears the filter."""
        self._filter_tag = tag.strip().lstrip("#")
        self._refilter()

    def sync(self, remote_tasks: Iterable[Task | TaskRecord]) -> int:
        """Merge tasks received from storage or a sync peer.

        A known id is replaced only when the incoming copy is strictly newer;
        an unknown id is added. Notes and started tasks never join the
        backlog, and a newer started copy removes the queued one.

        Returns:
            Number of backlog entries added, replaced or removed
        """
        backlog: dict[str, Task] = {task.id: task for task in self._backlog}
        changed = 0
        for incoming in remote_tasks:
            task = _as_task(incoming)
            current = backlog.get(task.id)
            if current is not None:
                if not remote_wins(current.updated_at, task.updated_at):
                    continue
                if task.is_queueable:
                    backlog[task.id] = task
                else:
                    del backlog[task.id]
                changed += 1
            elif task.is_queueable:
                backlog[task.id] = task
                changed += 1
        if changed:
            self._rebuild(backlog.values())
        return changed

    def refresh(self, task: Task | TaskRecord) -> bool:
        """Replace a backlog entry with the copy echoed back by storage.

        Returns:
            False when the id is not in the backlog
        """
        replacement = _as_task(task)
        for index, current in enumerate(self._backlog):
            if current.id == replacement.id:
                break
        else:
            return False
        if not replacement.is_queueable:
            self._remove(replacement.id)
            self._refilter()
            return True
        backlog = list(self._backlog)
        backlog[index] = replacement
        self._rebuild(backlog)
        return True

    def get(self, task_id: str) -> Task | None:
        for task in self._backlog:
            if task.id == task_id:
                return task
        return None

    def __contains__(self, task_id: object) -> bool:
        return any(task.id == task_id for task in self._backlog)

    def _remove(self, task_id: str) -> Task | None:
        for index, task in enumerate(self._backlog):
            if task.id == task_id:
                del self._backlog[index]
                self._count_tags(task, -1)
                return task
        return None

    def _count_tags(self, task: Task, delta: int) -> None:
        for tag in task.tags:
            count = self._tag_counts.get(tag, 0) + delta
            if count > 0:
                self._tag_counts[tag] = count
            else:
                self._tag_counts.pop(tag, None)

    def _rebuild(self, tasks: Iterable[Task]) -> None:
        self._backlog = sorted((task for task in tasks if task.is_queueable), key=_queue_order)
        self._tag_counts = {}
        for task in self._backlog:
            self._count_tags(task, 1)
        self._refilter()

    def _refilter(self) -> None:
        if not self._filter_tag:
            self._view = list(self._backlog)
        else:
            self._view = [task for task in self._backlog if self._filter_tag in task.tags]


def _as_task(task: Task | TaskRecord) -> Task:
    if isinstance(task, Task):
        return task
    return Task.from_record(task)
