"""Task and sync session data models."""

from __future__ import annotations

import re
import uuid
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

TAG_PATTERN = re.compile(r"(?<![\w#])#([\w-]+)")

# Peers written against zero-valued time types send this for "unset".
ZERO_TIME_PREFIX = "0001-01-01"
NIL_UUID = "00000000-0000-0000-0000-000000000000"

RECORD_FIELDS = {
    "id",
    "name",
    "parent_id",
    "started_at",
    "ended_at",
    "queued_at",
    "created_at",
    "updated_at",
}


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def generate_uuid() -> str:
    """Generate a new task id."""
    return str(uuid.uuid4())


def extract_tags(name: str) -> list[str]:
    """Return every ``#word`` token of *name* without the ``#``.

    Tags are de-duplicated and kept in order of first appearance.
    """
    tags: list[str] = []
    for match in TAG_PATTERN.finditer(name):
        tag = match.group(1)
        if tag not in tags:
            tags.append(tag)
    return tags


def normalize_timestamp(value: Any) -> Any:
    """Map the unset sentinels to None and coerce datetimes to aware UTC.

    Values that are not recognisable timestamps are returned unchanged so
    pydantic reports them.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text or text == "0" or text.startswith(ZERO_TIME_PREFIX):
            return None
        try:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, datetime):
        if value.year == 1:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    return value


class TaskRecord(BaseModel):
    """Persisted and wire representation of a task or a note.

    A record with a ``parent_id`` is a note owned by that parent task.

    Attributes:
        id: Opaque unique identifier (UUID string)
        name: Task or note text; tags are derived from it
        parent_id: Owning task for notes, None for top-level tasks
        started_at: When work on the item started
        ended_at: When work on the item ended
        queued_at: When the item was put in the queue
        created_at: Set by the store on first persistence
        updated_at: Refreshed on every persisted mutation; the conflict signal
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = Field(min_length=1)
    parent_id: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    queued_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator(
        "started_at", "ended_at", "queued_at", "created_at", "updated_at", mode="before"
    )
    @classmethod
    def _unset_timestamps(cls, value: Any) -> Any:
        return normalize_timestamp(value)

    @field_validator("parent_id", mode="before")
    @classmethod
    def _unset_parent(cls, value: Any) -> Any:
        if value in ("", NIL_UUID):
            return None
        return value

    @property
    def tags(self) -> list[str]:
        return extract_tags(self.name)

    @property
    def is_note(self) -> bool:
        return self.parent_id is not None

    @property
    def is_pending(self) -> bool:
        """Started and not yet ended."""
        return self.started_at is not None and self.ended_at is None

    @property
    def is_queueable(self) -> bool:
        """Top-level and never started."""
        return self.parent_id is None and self.started_at is None


class Task(TaskRecord):
    """In-memory task carrying its notes and the terminal flag.

    ``notes`` and ``is_terminal`` never reach storage or the wire.
    """

    id: str = Field(default_factory=generate_uuid)
    notes: list[Task] = Field(default_factory=list, exclude=True)
    is_terminal: bool = Field(default=False, exclude=True)

    @classmethod
    def from_record(cls, record: TaskRecord) -> Task:
        return cls.model_validate(record.model_dump(include=RECORD_FIELDS))

    def to_record(self) -> TaskRecord:
        return TaskRecord.model_validate(self.model_dump(include=RECORD_FIELDS))

    def last_note(self) -> Task | None:
        return self.notes[-1] if self.notes else None

    def open_item(self) -> Task:
        """The item new text applies to: the last note, else the task itself."""
        return self.last_note() or self


Task.model_rebuild()


class SyncStatus(IntEnum):
    """Outcome of a sync round as stored in the session table."""

    PARTIAL = 1
    SUCCESS = 2
    ERROR = 3


class SyncSession(BaseModel):
    """Audit record of one sync attempt against a peer.

    Attributes:
        id: Row id assigned by the store
        server_url: Base URL of the peer
        status: Partial while the pulled tasks are merged, then final
        error: Error message for Error and Partial rounds
        to_server_sync_count: Number of client tasks the peer applied
        from_server_sync_count: Number of peer tasks applied locally
        created_at: Set by the store; the next round's watermark
    """

    id: int | None = None
    server_url: str
    status: SyncStatus
    error: str | None = None
    to_server_sync_count: int | None = None
    from_server_sync_count: int | None = None
    created_at: datetime | None = None

    @field_validator("created_at", mode="before")
    @classmethod
    def _unset_created_at(cls, value: Any) -> Any:
        return normalize_timestamp(value)


class SyncRequest(BaseModel):
    """Body of ``POST /sync``."""

    last_sync_time: datetime | None = None
    client_tasks: list[TaskRecord] = Field(default_factory=list)

    @field_validator("last_sync_time", mode="before")
    @classmethod
    def _unset_watermark(cls, value: Any) -> Any:
        return normalize_timestamp(value)

    @field_validator("client_tasks", mode="before")
    @classmethod
    def _null_tasks(cls, value: Any) -> Any:
        return [] if value is None else value


class SyncResponse(BaseModel):
    """Body returned by ``POST /sync``."""

    server_tasks: list[TaskRecord] = Field(default_factory=list)
    to_server_sync_count: int = Field(default=0, ge=0)

    @field_validator("server_tasks", mode="before")
    @classmethod
    def _null_tasks(cls, value: Any) -> Any:
        return [] if value is None else value
