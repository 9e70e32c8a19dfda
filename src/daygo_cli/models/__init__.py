"""daygo domain models.

Pydantic models for tasks, notes and sync sessions, shared by storage, the
sync protocol and the interactive session.
"""

from .core import (
    NIL_UUID,
    RECORD_FIELDS,
    SyncRequest,
    SyncResponse,
    SyncSession,
    SyncStatus,
    Task,
    TaskRecord,
    extract_tags,
    generate_uuid,
    normalize_timestamp,
    now_utc,
)

__all__ = [
    "NIL_UUID",
    "RECORD_FIELDS",
    "SyncRequest",
    "SyncResponse",
    "SyncSession",
    "SyncStatus",
    "Task",
    "TaskRecord",
    "extract_tags",
    "generate_uuid",
    "normalize_timestamp",
    "now_utc",
]
