"""Task and note state machine of an interactive session.

`TaskLifecycle` mutates the session's task log and queue in memory and
reports what has to be written back as a `Mutation`; it never touches
storage itself.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from daygo_cli.errors import QueueEmptyError, ValidationError
from daygo_cli.models import Task, TaskRecord, now_utc
from daygo_cli.services.task_queue import TaskQueue

TIME_BLOCK_PATTERN = re.compile(r"^(?:[01]\d|2[0-3])[0-5]\d$")


@dataclass
class Mutation:
    """Records to write back after a lifecycle operation."""

    save: list[TaskRecord] = field(default_factory=list)
    delete: list[str] = field(default_factory=list)

    def extend(self, other: Mutation) -> Mutation:
        self.save.extend(other.save)
        self.delete.extend(other.delete)
        return self

    def __bool__(self) -> bool:
        return bool(self.save or self.delete)


def duration_until(hhmm: str, now: datetime) -> timedelta:
    """Time from *now* until the next wall-clock ``HHMM`` in now's timezone.

    A time already past today rolls over to tomorrow.

    Raises:
        ValidationError: If hhmm is not a valid 24-hour ``HHMM`` time
    """
    if not TIME_BLOCK_PATTERN.match(hhmm):
        raise ValidationError(f"invalid time {hhmm!r}, expected HHMM (e.g. 1730)")
    target = now.replace(hour=int(hhmm[:2]), minute=int(hhmm[2:]), second=0, microsecond=0)
    if target < now:
        target += timedelta(days=1)
    return target - now


class TaskLifecycle:
    """Start, end, note, rename, delete, skip and time-block tasks.

    At most one task of the log is pending (started, not ended) and it is
    always the last one.
    """

    def __init__(
        self,
        task_log: list[Task],
        queue: TaskQueue,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.task_log = task_log
        self.queue = queue
        self.clock = clock

    def current_task(self) -> Task | None:
        return self.task_log[-1] if self.task_log else None

    def pending_task(self) -> Task | None:
        task = self.current_task()
        return task if task is not None and task.is_pending else None

    def _require_pending(self, action: str) -> Task:
        task = self.pending_task()
        if task is None:
            raise ValidationError(f"no pending task to {action}")
        return task

    def end_pending_task(self, now: datetime | None = None) -> Mutation:
        """Stamp the pending task and its open note as ended.

        Raises:
            ValidationError: If no task is pending
        """
        task = self._require_pending("end")
        now = now or self.clock()
        mutation = Mutation()
        note = task.last_note()
        if note is not None and note.ended_at is None:
            note.ended_at = now
            mutation.save.append(note.to_record())
        task.ended_at = now
        mutation.save.insert(0, task.to_record())
        return mutation

    def start_task(self, name: str | None = None) -> Mutation:
        """Start a new task, or the next queued one when *name* is None.

        A pending task is ended at the instant the new one starts.

        Raises:
            ValidationError: If name is given but blank
            QueueEmptyError: If name is None and no task is queued
        """
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("task name is required")
            task = Task(name=name)
        else:
            task = self.queue.dequeue()

        now = self.clock()
        mutation = self.end_pending_task(now) if self.pending_task() else Mutation()
        task.started_at = now
        task.ended_at = None
        self.task_log.append(task)
        mutation.save.append(task.to_record())
        return mutation

    def add_note(self, text: str) -> Mutation:
        """Attach a note to the pending task, closing the previous note.

        Raises:
            ValidationError: If text is blank or no task is pending
        """
        text = text.strip()
        if not text:
            raise ValidationError("note text is required")
        task = self._require_pending("add a note to")

        now = self.clock()
        mutation = Mutation()
        previous = task.last_note()
        if previous is not None and previous.ended_at is None:
            previous.ended_at = now
            mutation.save.append(previous.to_record())
        note = Task(name=text, parent_id=task.id, started_at=now)
        task.notes.append(note)
        mutation.save.append(note.to_record())
        return mutation

    def edit_item(self, text: str) -> Mutation:
        """Rename the last note of the pending task, or the task itself."""
        text = text.strip()
        if not text:
            raise ValidationError("new text is required")
        item = self._require_pending("edit").open_item()
        item.name = text
        return Mutation(save=[item.to_record()])

    def delete_last_pending_item(self) -> Mutation:
        """Delete the newest note of the pending task, or the task when it has none.

        Deleting the task starts the next queued task, if any.
        """
        task = self._require_pending("delete")
        if task.notes:
            note = task.notes.pop()
            return Mutation(delete=[note.id])

        self.task_log.pop()
        mutation = Mutation(delete=[task.id])
        if len(self.queue) > 0:
            mutation.extend(self.start_task(None))
        return mutation

    def skip_task(self) -> Mutation:
        """Put the pending task back at the end of the queue and start the next one.

        Raises:
            ValidationError: If no task is pending
            QueueEmptyError: If there is no other task to switch to
        """
        task = self._require_pending("skip")
        if len(self.queue) == 0:
            raise QueueEmptyError("no queued task to skip to")

        next_task = self.queue.dequeue()
        now = self.clock()
        mutation = Mutation()
        note = task.last_note()
        if note is not None and note.ended_at is None:
            note.ended_at = now
            mutation.save.append(note.to_record())

        self.task_log.pop()
        requeued = self.queue.queue(task, now)
        next_task.started_at = now
        next_task.ended_at = None
        self.task_log.append(next_task)
        mutation.save.extend([requeued.to_record(), next_task.to_record()])
        return mutation

    def time_block(self, hhmm: str, now: datetime | None = None) -> timedelta:
        """Duration until the pending task should end automatically at ``HHMM``.

        Raises:
            ValidationError: If hhmm is malformed or no task is pending
        """
        self._require_pending("time block")
        local_now = (now or self.clock()).astimezone()
        return duration_until(hhmm, local_now)

    def end_program(self, discard: bool = False) -> Mutation:
        """End (or discard) the pending task and mark the log's last entry terminal."""
        task = self.pending_task()
        if task is None:
            return Mutation()
        if discard:
            self.task_log.pop()
            mutation = Mutation(delete=[task.id])
        else:
            mutation = self.end_pending_task()
        if self.task_log:
            self.task_log[-1].is_terminal = True
        return mutation
