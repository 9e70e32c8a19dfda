"""Database connection management for the daygo SQLite store.

One `DatabaseConnection` exists per database path, so the interactive
session and an embedded sync server in the same process can each open their
own file. Connections enable WAL mode and foreign keys and run migrations
when first opened.
"""

from __future__ import annotations

import atexit
import logging
import os
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from platformdirs import user_data_dir

from daygo_cli.adapters.sqlite.migrations import MIGRATIONS, SchemaMigrator
from daygo_cli.errors import StorageInitError

MEMORY_DATABASE = ":memory:"


def default_database_path() -> Path:
    """Default location of the local task database."""
    return Path(user_data_dir("daygo-cli")) / "daygo.db"


class DatabaseConnection:
    """Connection manager for one daygo SQLite database.

    Provides:
    - One cached connection per database path
    - WAL mode and foreign key enforcement
    - Automatic directory creation
    - Owner-only file permissions for new databases
    - Explicit transactions that suspend per-statement commits
    - Graceful cleanup on exit
    """

    _instances: dict[str, DatabaseConnection] = {}
    _cleanup_registered = False

    def __init__(self, db_path: str | Path, logger: logging.Logger | None = None):
        self.db_path = str(db_path)
        self.logger = logger or logging.getLogger(__name__)
        self._connection: sqlite3.Connection | None = None
        self._transaction_depth = 0

    @classmethod
    def get(cls, db_path: str | Path | None = None) -> DatabaseConnection:
        """Get or open the shared connection manager for *db_path*.

        Args:
            db_path: Path to database file. If None, uses default location.

        Raises:
            StorageInitError: If the database cannot be opened or migrated
        """
        key = str(db_path if db_path is not None else default_database_path())
        instance = cls._instances.get(key)
        if instance is None:
            instance = cls(key)
            instance.open()
            cls._instances[key] = instance
            if not cls._cleanup_registered:
                atexit.register(cls.close_all)
                cls._cleanup_registered = True
        return instance

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            return self.open()
        return self._connection

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY_DATABASE

    def open(self) -> sqlite3.Connection:
        """Open the database, configure it and apply pending migrations.

        Raises:
            StorageInitError: If the database cannot be opened or migrated
        """
        if self._connection is not None:
            return self._connection

        try:
            is_new_database = False
            if not self.is_memory:
                path = Path(self.db_path)
                path.parent.mkdir(parents=True, exist_ok=True)
                is_new_database = not path.exists()

            connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=30.0,
            )
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys = ON")
            if not self.is_memory:
                connection.execute("PRAGMA journal_mode = WAL")
            if is_new_database:
                os.chmod(self.db_path, 0o600)

            applied = SchemaMigrator(connection).migrate(MIGRATIONS)
        except (sqlite3.Error, OSError, StorageInitError) as e:
            raise StorageInitError(f"failed to open database {self.db_path}: {e}") from e

        if applied:
            self.logger.info("applied %d migration(s) to %s", applied, self.db_path)
        self._connection = connection
        return connection

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    def commit(self) -> None:
        """Commit pending statements unless an explicit transaction is open."""
        if not self.in_transaction:
            self.connection.commit()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block of statements atomically.

        Nested blocks join the outermost transaction. Any exception rolls
        the whole transaction back and propagates.
        """
        connection = self.connection
        if self._transaction_depth == 0:
            if connection.in_transaction:
                connection.commit()
            connection.execute("BEGIN IMMEDIATE")
        self._transaction_depth += 1
        try:
            yield connection
        except BaseException:
            self._transaction_depth -= 1
            if self._transaction_depth == 0:
                connection.rollback()
            raise
        self._transaction_depth -= 1
        if self._transaction_depth == 0:
            connection.commit()

    def close(self) -> None:
        """Close the connection, committing pending statements first."""
        if self._connection is None:
            return
        try:
            self._connection.commit()
            self._connection.close()
        except sqlite3.Error as e:
            self.logger.warning("error closing database %s: %s", self.db_path, e)
        finally:
            self._connection = None
            self._transaction_depth = 0

    @classmethod
    def close_all(cls) -> None:
        """Close every cached connection."""
        for instance in list(cls._instances.values()):
            instance.close()
        cls._instances.clear()


def get_database(db_path: str | Path | None = None) -> DatabaseConnection:
    """Helper function to get the connection manager for *db_path*."""
    return DatabaseConnection.get(db_path)
