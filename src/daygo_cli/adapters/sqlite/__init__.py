"""SQLite storage adapter for daygo."""

from .connection import DatabaseConnection, get_database
from .sync_session_repository import SqliteSyncSessionRepository
from .task_repository import SqliteTaskRepository

__all__ = [
    "DatabaseConnection",
    "SqliteSyncSessionRepository",
    "SqliteTaskRepository",
    "get_database",
]
