"""Tests for TaskService."""

import pytest

from daygo_cli.adapters.sqlite.utils import to_db
from daygo_cli.models import NIL_UUID, SyncSession, SyncStatus, TaskRecord

PEER = "http://peer"


async def add_session(task_service, database, status, created_at, url=PEER):
    session = await task_service.upsert_sync_session(SyncSession(server_url=url, status=status))
    database.connection.execute(
        "UPDATE sync_sessions SET created_at = ? WHERE id = ?", (to_db(created_at), session.id)
    )
    database.connection.commit()
    return session


@pytest.mark.asyncio
async def test_upsert_inserts_then_updates(task_service):
    first = await task_service.upsert_task(TaskRecord(id="a", name="draft"))
    second = await task_service.upsert_task(first.model_copy(update={"name": "final"}))
    assert second.id == "a"
    assert second.name == "final"
    assert second.created_at == first.created_at
    assert len(await task_service.task_repository.get_all()) == 1


@pytest.mark.asyncio
async def test_save_tasks_keeps_order(task_service):
    stored = await task_service.save_tasks(
        [TaskRecord(id="p", name="parent"), TaskRecord(id="n", name="note", parent_id="p")]
    )
    assert [r.id for r in stored] == ["p", "n"]


@pytest.mark.asyncio
async def test_delete_unknown_task_is_noop(task_service):
    assert await task_service.delete_task("missing") == []


@pytest.mark.asyncio
async def test_queued_tasks_exclude_started_and_notes(task_service, at):
    await task_service.save_tasks(
        [
            TaskRecord(id="q", name="queued", queued_at=at(0)),
            TaskRecord(id="s", name="started", started_at=at(1)),
            TaskRecord(id="n", name="note", parent_id="s"),
        ]
    )
    queued = await task_service.get_queued_tasks()
    assert [t.id for t in queued] == ["q"]


@pytest.mark.asyncio
async def test_watermark_is_newest_success_or_partial(task_service, database, at):
    assert await task_service.get_watermark(PEER) is None

    await add_session(task_service, database, SyncStatus.SUCCESS, at(1))
    await add_session(task_service, database, SyncStatus.PARTIAL, at(2))
    await add_session(task_service, database, SyncStatus.ERROR, at(3))
    await add_session(task_service, database, SyncStatus.SUCCESS, at(4), url="http://other")

    assert await task_service.get_watermark(PEER) == at(2)


@pytest.mark.asyncio
async def test_watermark_prefers_newer_success(task_service, database, at):
    await add_session(task_service, database, SyncStatus.PARTIAL, at(1))
    await add_session(task_service, database, SyncStatus.SUCCESS, at(2))
    assert await task_service.get_watermark(PEER) == at(2)


@pytest.mark.asyncio
async def test_tasks_to_sync_without_watermark_is_everything(task_service):
    await task_service.save_tasks([TaskRecord(id="a", name="a"), TaskRecord(id="b", name="b")])
    watermark, tasks = await task_service.get_tasks_to_sync(PEER)
    assert watermark is None
    assert {t.id for t in tasks} == {"a", "b"}


@pytest.mark.asyncio
async def test_tasks_to_sync_since_watermark(task_service, task_repo, database, at):
    await task_repo.replicate(TaskRecord(id="old", name="old", created_at=at(0), updated_at=at(1)))
    await task_repo.replicate(TaskRecord(id="edge", name="edge", created_at=at(0), updated_at=at(2)))
    await task_repo.replicate(TaskRecord(id="new", name="new", created_at=at(0), updated_at=at(3)))
    await add_session(task_service, database, SyncStatus.SUCCESS, at(2))

    watermark, tasks = await task_service.get_tasks_to_sync(PEER)
    assert watermark == at(2)
    assert [t.id for t in tasks] == ["edge", "new"]


@pytest.mark.asyncio
async def test_merge_remote_task_last_writer_wins(task_service, task_repo, at):
    await task_repo.replicate(TaskRecord(id="a", name="local", created_at=at(0), updated_at=at(5)))

    assert await task_service.merge_remote_task(
        TaskRecord(id="a", name="older", created_at=at(0), updated_at=at(4))
    ) is None
    assert await task_service.merge_remote_task(
        TaskRecord(id="a", name="tie", created_at=at(0), updated_at=at(5))
    ) is None
    assert (await task_repo.get_task("a")).name == "local"

    stored = await task_service.merge_remote_task(
        TaskRecord(id="a", name="newer", created_at=at(0), updated_at=at(6))
    )
    assert stored.name == "newer"
    assert stored.updated_at == at(6)


@pytest.mark.asyncio
async def test_merge_remote_task_inserts_unknown(task_service, at):
    stored = await task_service.merge_remote_task(
        TaskRecord(id="r", name="remote", created_at=at(1), updated_at=at(2))
    )
    assert stored.created_at == at(1)
    assert stored.updated_at == at(2)


@pytest.mark.asyncio
@pytest.mark.parametrize("missing_id", ["", NIL_UUID])
async def test_merge_remote_task_without_id_is_stored_as_new(
    task_service, task_repo, at, missing_id
):
    stored = await task_service.merge_remote_task(
        TaskRecord(id=missing_id, name="no id", created_at=at(1), updated_at=at(2))
    )
    assert stored.id not in ("", NIL_UUID)
    assert (await task_repo.get_task(stored.id)).name == "no id"
    assert [r.id for r in await task_repo.get_all()] == [stored.id]


@pytest.mark.asyncio
async def test_list_sync_sessions(task_service):
    await task_service.upsert_sync_session(SyncSession(server_url=PEER, status=SyncStatus.ERROR))
    sessions = await task_service.list_sync_sessions(PEER)
    assert [s.status for s in sessions] == [SyncStatus.ERROR]
