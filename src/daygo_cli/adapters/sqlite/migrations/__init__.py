"""Schema migrations of the daygo SQLite store, oldest first."""

from .m001_initial_schema import initial_migration
from .m002_sync_sessions import sync_sessions_migration
from .runner import Migration, SchemaMigrator

MIGRATIONS = [
    initial_migration,
    sync_sessions_migration,
]

__all__ = [
    "MIGRATIONS",
    "Migration",
    "SchemaMigrator",
]
