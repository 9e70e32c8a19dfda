"""Repository interfaces."""

from .repository import TIME_RANGE_FIELDS, SyncSessionRepository, TaskRepository

__all__ = ["TIME_RANGE_FIELDS", "SyncSessionRepository", "TaskRepository"]
