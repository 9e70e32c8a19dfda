"""Tests for the task lifecycle state machine."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from daygo_cli.errors import QueueEmptyError, ValidationError
from daygo_cli.models import Task
from daygo_cli.services.lifecycle import Mutation, TaskLifecycle, duration_until
from daygo_cli.services.task_queue import TaskQueue


@pytest.fixture()
def lifecycle(clock):
    return TaskLifecycle([], TaskQueue(clock=clock), clock=clock)


def queue_names(lifecycle, clock, *names):
    for name in names:
        lifecycle.queue.queue(Task(name=name))
        clock.advance(seconds=1)


def test_start_task_on_empty_queue(lifecycle, clock):
    mutation = lifecycle.start_task("write report")

    assert len(lifecycle.task_log) == 1
    task = lifecycle.pending_task()
    assert task.name == "write report"
    assert task.started_at == clock()
    assert task.ended_at is None
    assert [r.id for r in mutation.save] == [task.id]


def test_start_task_ends_pending_task_and_open_note(lifecycle, clock):
    lifecycle.start_task("A")
    clock.advance(minutes=5)
    lifecycle.add_note("thinking")
    clock.advance(minutes=5)

    mutation = lifecycle.start_task("B")

    a, b = lifecycle.task_log
    note = a.notes[0]
    assert a.ended_at == b.started_at
    assert note.ended_at == b.started_at
    assert lifecycle.pending_task() is b
    assert [r.name for r in mutation.save] == ["A", "thinking", "B"]


def test_start_task_rejects_blank_name(lifecycle):
    with pytest.raises(ValidationError):
        lifecycle.start_task("   ")
    assert lifecycle.task_log == []


def test_start_next_queued_task(lifecycle, clock):
    queue_names(lifecycle, clock, "first", "second")
    lifecycle.start_task(None)
    assert lifecycle.pending_task().name == "first"
    assert lifecycle.queue.peek().name == "second"


def test_start_from_empty_queue_leaves_pending_task(lifecycle):
    lifecycle.start_task("A")
    with pytest.raises(QueueEmptyError):
        lifecycle.start_task(None)
    assert lifecycle.pending_task().name == "A"


def test_add_note_closes_previous_note(lifecycle, clock):
    lifecycle.start_task("A")
    lifecycle.add_note("one")
    clock.advance(minutes=1)
    mutation = lifecycle.add_note("two")

    one, two = lifecycle.pending_task().notes
    assert one.ended_at == two.started_at
    assert two.parent_id == lifecycle.pending_task().id
    assert [r.name for r in mutation.save] == ["one", "two"]


def test_add_note_requires_pending_task(lifecycle):
    with pytest.raises(ValidationError):
        lifecycle.add_note("nothing running")


def test_edit_item_renames_open_item(lifecycle):
    lifecycle.start_task("A")
    lifecycle.edit_item("A #work")
    assert lifecycle.pending_task().tags == ["work"]

    lifecycle.add_note("draft")
    mutation = lifecycle.edit_item("final")
    assert lifecycle.pending_task().name == "A #work"
    assert lifecycle.pending_task().notes[0].name == "final"
    assert [r.name for r in mutation.save] == ["final"]


def test_delete_last_item_removes_note_first(lifecycle):
    lifecycle.start_task("A")
    lifecycle.add_note("oops")
    note_id = lifecycle.pending_task().notes[0].id

    mutation = lifecycle.delete_last_pending_item()
    assert mutation.delete == [note_id]
    assert lifecycle.pending_task().notes == []

    task_id = lifecycle.pending_task().id
    mutation = lifecycle.delete_last_pending_item()
    assert mutation.delete == [task_id]
    assert lifecycle.task_log == []


def test_delete_task_starts_next_queued(lifecycle, clock):
    queue_names(lifecycle, clock, "next")
    lifecycle.start_task("A")
    mutation = lifecycle.delete_last_pending_item()
    assert lifecycle.pending_task().name == "next"
    assert [r.name for r in mutation.save] == ["next"]


def test_skip_task_requeues_at_the_back(lifecycle, clock):
    queue_names(lifecycle, clock, "B", "C")
    lifecycle.start_task(None)
    clock.advance(minutes=1)

    mutation = lifecycle.skip_task()

    assert lifecycle.pending_task().name == "C"
    assert [t.name for t in lifecycle.queue.tasks()] == ["B"]
    skipped = lifecycle.queue.peek()
    assert skipped.started_at is None
    assert skipped.queued_at == clock()
    assert [r.name for r in mutation.save] == ["B", "C"]


def test_skip_task_requires_queued_task(lifecycle):
    lifecycle.start_task("A")
    with pytest.raises(QueueEmptyError):
        lifecycle.skip_task()
    assert lifecycle.pending_task().name == "A"


def test_duration_until_rolls_to_next_day():
    now = datetime(2024, 3, 4, 17, 0, tzinfo=UTC)
    assert duration_until("1730", now) == timedelta(minutes=30)
    assert duration_until("1700", now) == timedelta(0)
    assert duration_until("0900", now) == timedelta(hours=16)


@pytest.mark.parametrize("value", ["930", "2400", "1260", "ab12", ""])
def test_duration_until_rejects_bad_time(value):
    with pytest.raises(ValidationError):
        duration_until(value, datetime(2024, 3, 4, tzinfo=UTC))


def test_time_block_uses_local_wall_clock(lifecycle):
    lifecycle.start_task("focus")
    now = datetime(2024, 3, 4, 10, 0, tzinfo=timezone(timedelta(hours=2)))
    expected = duration_until("1200", now.astimezone())
    assert lifecycle.time_block("1200", now) == expected


def test_time_block_requires_pending_task(lifecycle):
    with pytest.raises(ValidationError):
        lifecycle.time_block("1200")


def test_time_block_rejects_malformed_time(lifecycle):
    lifecycle.start_task("focus")
    with pytest.raises(ValidationError, match="expected HHMM"):
        lifecycle.time_block("12:00")


def test_end_program_marks_last_entry_terminal(lifecycle, clock):
    lifecycle.start_task("A")
    clock.advance(minutes=3)
    mutation = lifecycle.end_program()
    task = lifecycle.task_log[-1]
    assert task.is_terminal
    assert task.ended_at == clock()
    assert [r.id for r in mutation.save] == [task.id]


def test_end_program_discard_deletes_pending(lifecycle):
    lifecycle.start_task("A")
    lifecycle.end_pending_task()
    lifecycle.start_task("B")
    b_id = lifecycle.pending_task().id

    mutation = lifecycle.end_program(discard=True)

    assert mutation.delete == [b_id]
    assert [t.name for t in lifecycle.task_log] == ["A"]
    assert lifecycle.task_log[-1].is_terminal


def test_end_program_without_pending_task(lifecycle):
    lifecycle.start_task("A")
    lifecycle.end_pending_task()
    assert not lifecycle.end_program()
    assert not lifecycle.task_log[-1].is_terminal


def test_mutation_extend():
    mutation = Mutation(save=[], delete=["a"])
    assert mutation
    assert mutation.extend(Mutation(delete=["b"])).delete == ["a", "b"]
    assert not Mutation()
