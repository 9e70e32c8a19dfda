"""Tests for the in-memory task queue."""

import pytest

from daygo_cli.errors import QueueEmptyError
from daygo_cli.models import Task
from daygo_cli.services.task_queue import TaskQueue


def make_queue(clock, *names):
    queue = TaskQueue(clock=clock)
    for name in names:
        queue.queue(Task(name=name))
        clock.advance(seconds=1)
    return queue


def test_dequeue_is_fifo(clock):
    queue = make_queue(clock, "first", "second", "third")
    assert [queue.dequeue().name for _ in range(3)] == ["first", "second", "third"]


def test_dequeue_empty_raises(clock):
    queue = make_queue(clock)
    with pytest.raises(QueueEmptyError, match="task queue is empty"):
        queue.dequeue()
    assert queue.peek() is None


def test_queue_stamps_and_resets_task(clock):
    queue = make_queue(clock)
    started = Task(name="again", started_at=clock(), ended_at=clock(), is_terminal=True)
    queued = queue.queue(started)
    assert queued.queued_at == clock()
    assert queued.started_at is None
    assert queued.ended_at is None
    assert not queued.is_terminal
    assert queue.peek() is queued


def test_requeue_moves_task_to_back(clock):
    queue = make_queue(clock, "a", "b")
    first = queue.peek()
    queue.queue(first)
    assert [t.name for t in queue.tasks()] == ["b", "a"]
    assert len(queue) == 2


def test_fifo_holds_across_interleaving(clock):
    queue = make_queue(clock, "a", "b")
    assert queue.dequeue().name == "a"
    queue.queue(Task(name="c"))
    clock.advance(seconds=1)
    assert queue.dequeue().name == "b"
    queue.queue(Task(name="d"))
    assert [queue.dequeue().name for _ in range(2)] == ["c", "d"]


def test_tag_counts_follow_backlog(clock):
    queue = make_queue(clock, "fix #bug", "triage #bug #ops", "lunch")
    assert queue.tag_counts() == {"bug": 2, "ops": 1}
    assert queue.all_tags() == ["bug", "ops"]

    queue.dequeue()
    queue.dequeue()
    assert queue.tag_counts() == {}


def test_filter_restricts_dequeue(clock):
    queue = make_queue(clock, "write", "fix #bug", "deploy #ops", "close #bug")
    queue.set_filter("#bug")
    assert queue.filter_tag == "bug"
    assert queue.size() == 2
    assert queue.backlog_size == 4
    assert queue.dequeue().name == "fix #bug"
    assert queue.dequeue().name == "close #bug"
    with pytest.raises(QueueEmptyError, match="#bug"):
        queue.dequeue()

    queue.set_filter("")
    queue.set_filter("")
    assert [t.name for t in queue.tasks()] == ["write", "deploy #ops"]


def test_filter_sees_newly_queued_tasks(clock):
    queue = make_queue(clock, "a")
    queue.set_filter("ops")
    assert len(queue) == 0
    queue.queue(Task(name="page #ops"))
    assert queue.peek().name == "page #ops"


def test_sync_inserts_unknown_and_newer(clock, at):
    queue = make_queue(clock)
    local = queue.queue(Task(id="x", name="local", updated_at=at(1)))
    changed = queue.sync(
        [
            local.model_copy(update={"name": "remote", "updated_at": at(2)}),
            Task(id="y", name="new #tag", queued_at=at(3), updated_at=at(3)),
        ]
    )
    assert changed == 2
    assert [t.name for t in queue.tasks()] == ["remote", "new #tag"]
    assert queue.tag_counts() == {"tag": 1}


def test_sync_keeps_local_on_tie_or_older(clock, at):
    queue = make_queue(clock)
    local = queue.queue(Task(id="x", name="local", updated_at=at(5)))
    for minute in (5, 4):
        assert queue.sync([local.model_copy(update={"name": "remote", "updated_at": at(minute)})]) == 0
    assert queue.get("x").name == "local"


def test_sync_is_idempotent(clock, at):
    queue = make_queue(clock)
    incoming = [Task(id="x", name="a", queued_at=at(1), updated_at=at(1))]
    assert queue.sync(incoming) == 1
    assert queue.sync(incoming) == 0
    assert len(queue) == 1


def test_sync_skips_notes_and_removes_started(clock, at):
    queue = make_queue(clock)
    queue.queue(Task(id="x", name="queued", updated_at=at(1)))
    changed = queue.sync(
        [
            Task(id="n", name="note", parent_id="x", updated_at=at(2)),
            Task(id="x", name="queued", started_at=at(2), updated_at=at(2)),
        ]
    )
    assert changed == 1
    assert "x" not in queue
    assert "n" not in queue


def test_refresh_replaces_entry(clock, at):
    queue = make_queue(clock, "a")
    task = queue.peek()
    assert queue.refresh(task.model_copy(update={"created_at": at(1), "updated_at": at(1)}))
    assert queue.peek().updated_at == at(1)
    assert not queue.refresh(Task(id="unknown", name="x"))
