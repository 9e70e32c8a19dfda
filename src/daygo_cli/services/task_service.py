"""Task service: the storage facade used by the session and the sync engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from daygo_cli.errors import NotFoundError
from daygo_cli.models import NIL_UUID, SyncSession, SyncStatus, Task, TaskRecord, generate_uuid
from daygo_cli.repositories import SyncSessionRepository, TaskRepository
from daygo_cli.services.sync_conflicts import remote_wins


class TaskService:
    """Service for task persistence and sync bookkeeping."""

    def __init__(
        self,
        task_repository: TaskRepository,
        sync_session_repository: SyncSessionRepository,
        logger: logging.Logger | None = None,
    ):
        self.task_repository = task_repository
        self.sync_session_repository = sync_session_repository
        self.logger = logger or logging.getLogger(__name__)

    async def upsert_task(self, record: TaskRecord) -> TaskRecord:
        """Update the stored task, inserting it when it is not stored yet."""
        try:
            return await self.task_repository.update(record.id, record)
        except NotFoundError:
            return await self.task_repository.insert(record)

    async def save_tasks(self, records: Iterable[TaskRecord]) -> list[TaskRecord]:
        """Upsert each record in order and return the stored copies."""
        return [await self.upsert_task(record) for record in records]

    async def delete_task(self, task_id: str) -> list[TaskRecord]:
        """Delete a task and its notes.

        Returns:
            Deleted records, empty when the task was never stored
        """
        try:
            return await self.task_repository.delete([task_id])
        except NotFoundError:
            self.logger.debug("task %s was not stored; nothing to delete", task_id)
            return []

    async def get_queued_tasks(self) -> list[Task]:
        """All top-level tasks that have not been started."""
        records = await self.task_repository.get_by_time_range("started_at", None, None)
        return [Task.from_record(record) for record in records if record.parent_id is None]

    async def get_watermark(self, server_url: str) -> datetime | None:
        """Creation time of the newest Success or Partial session for the peer.

        Returns:
            None when the peer was never synced successfully
        """
        sessions = [
            await self.sync_session_repository.get_latest_by_status(server_url, status)
            for status in (SyncStatus.SUCCESS, SyncStatus.PARTIAL)
        ]
        times = [s.created_at for s in sessions if s is not None and s.created_at is not None]
        return max(times) if times else None

    async def get_tasks_to_sync(self, server_url: str) -> tuple[datetime | None, list[TaskRecord]]:
        """Watermark for the peer and every task changed since then."""
        watermark = await self.get_watermark(server_url)
        if watermark is None:
            return None, await self.task_repository.get_all()
        tasks = await self.task_repository.get_by_time_range("updated_at", watermark, None)
        return watermark, tasks

    async def upsert_sync_session(self, session: SyncSession) -> SyncSession:
        if session.id is None:
            return await self.sync_session_repository.insert(session)
        return await self.sync_session_repository.update(session.id, session)

    async def list_sync_sessions(
        self, server_url: str | None = None, limit: int = 10
    ) -> list[SyncSession]:
        return await self.sync_session_repository.list_recent(server_url, limit)

    async def merge_remote_task(self, remote: TaskRecord) -> TaskRecord | None:
        """Apply one task written by a peer, last writer wins.

        The record is stored verbatim when it is unknown locally or strictly
        newer than the local copy. A record without an id is stored as a new
        task under a fresh id.

        Returns:
            The stored record, or None when the local copy was kept
        """
        if remote.id in ("", NIL_UUID):
            remote = remote.model_copy(update={"id": generate_uuid()})
            self.logger.debug("assigned id %s to task without id", remote.id)
            return await self.task_repository.replicate(remote)
        try:
            local = await self.task_repository.get_task(remote.id)
        except NotFoundError:
            local = None
        if local is not None and not remote_wins(local.updated_at, remote.updated_at):
            self.logger.debug("kept local copy of task %s", remote.id)
            return None
        return await self.task_repository.replicate(remote)
