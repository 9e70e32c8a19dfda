"""Abstract repository interfaces for daygo storage.

The session and the sync server only talk to storage through these
interfaces; `daygo_cli.adapters.sqlite` provides the implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from daygo_cli.models import SyncSession, SyncStatus, TaskRecord

TIME_RANGE_FIELDS = ("started_at", "ended_at", "queued_at", "created_at", "updated_at")


class TaskRepository(ABC):
    """Persisted task and note records."""

    @abstractmethod
    async def get_task(self, task_id: str) -> TaskRecord:
        """Get a task by id.

        Raises:
            ValidationError: If task_id is empty
            NotFoundError: If no task has that id
        """

    @abstractmethod
    async def get_tasks(self, task_ids: list[str]) -> list[TaskRecord]:
        """Get tasks by id, in the order of *task_ids*.

        Raises:
            ValidationError: If task_ids is empty
            NotFoundError: If any id is unknown
        """

    @abstractmethod
    async def get_all(self) -> list[TaskRecord]:
        """Get every task and note ordered by creation time."""

    @abstractmethod
    async def get_by_parent_id(self, parent_id: str) -> list[TaskRecord]:
        """Get the notes owned by a task."""

    @abstractmethod
    async def get_by_time_range(
        self, field: str, min_time: datetime | None, max_time: datetime | None
    ) -> list[TaskRecord]:
        """Get tasks whose *field* lies in the inclusive range.

        Either bound may be None for an open-ended range. With both bounds
        None the query selects records where *field* is unset.

        Raises:
            ValidationError: If field is not a timestamp column
        """

    @abstractmethod
    async def insert(self, record: TaskRecord) -> TaskRecord:
        """Insert a task, assigning created_at and updated_at.

        Returns:
            The stored record
        """

    @abstractmethod
    async def update(self, task_id: str, record: TaskRecord) -> TaskRecord:
        """Update a task, refreshing updated_at.

        Raises:
            NotFoundError: If no task has that id
        """

    @abstractmethod
    async def delete(self, task_ids: list[str]) -> list[TaskRecord]:
        """Delete tasks and, by cascade, their notes.

        Returns:
            Every deleted record, notes included

        Raises:
            NotFoundError: If any id is unknown
        """

    @abstractmethod
    async def replicate(self, record: TaskRecord) -> TaskRecord:
        """Write a record received from a peer verbatim.

        Unlike insert/update the id, created_at and updated_at of *record*
        are kept so later conflict checks see the writer's timestamp.
        """


class SyncSessionRepository(ABC):
    """Persisted record of every sync attempt."""

    @abstractmethod
    async def get_by_id(self, session_id: int) -> SyncSession:
        """Get a session by id.

        Raises:
            NotFoundError: If no session has that id
        """

    @abstractmethod
    async def get_latest_by_status(
        self, server_url: str, status: SyncStatus
    ) -> SyncSession | None:
        """Get the most recent session for a peer with the given status."""

    @abstractmethod
    async def insert(self, session: SyncSession) -> SyncSession:
        """Insert a session, assigning id and created_at."""

    @abstractmethod
    async def update(self, session_id: int, session: SyncSession) -> SyncSession:
        """Update status, error and counters of a session.

        Raises:
            NotFoundError: If no session has that id
        """

    @abstractmethod
    async def list_recent(
        self, server_url: str | None = None, limit: int = 10
    ) -> list[SyncSession]:
        """List the newest sessions, optionally for one peer only."""
