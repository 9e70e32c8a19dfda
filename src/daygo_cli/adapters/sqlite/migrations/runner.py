"""Forward-only schema migrations for the daygo store.

A migration is a numbered list of SQL statements. Applied versions are
recorded in ``schema_version``; opening a database brings it up to the
newest version before any repository touches it.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from daygo_cli.errors import StorageInitError


@dataclass(frozen=True)
class Migration:
    """One schema step."""

    version: int
    description: str
    statements: Sequence[str]

    def up(self, connection: sqlite3.Connection) -> None:
        for statement in self.statements:
            connection.execute(statement)


class SchemaMigrator:
    """Brings one connection's schema up to date."""

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection
        self.connection.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            " version INTEGER PRIMARY KEY,"
            " description TEXT NOT NULL,"
            " applied_at TEXT NOT NULL)"
        )
        self.connection.commit()

    @property
    def version(self) -> int:
        """Newest applied version, 0 for an empty database."""
        (version,) = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return version or 0

    def history(self) -> list[tuple[int, str]]:
        return [
            (row[0], row[1])
            for row in self.connection.execute(
                "SELECT version, description FROM schema_version ORDER BY version"
            )
        ]

    def apply(self, migration: Migration) -> None:
        """Apply one migration and record it; a failure leaves nothing recorded.

        Raises:
            ValueError: If the migration is not newer than the schema
            StorageInitError: If a statement fails
        """
        if migration.version <= self.version:
            raise ValueError(
                f"migration {migration.version} is not newer than schema version {self.version}"
            )
        try:
            migration.up(self.connection)
            self.connection.execute(
                "INSERT INTO schema_version (version, description, applied_at) VALUES (?, ?, ?)",
                (migration.version, migration.description, datetime.now(UTC).isoformat()),
            )
            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            raise StorageInitError(
                f"migration {migration.version} ({migration.description}) failed: {e}"
            ) from e

    def migrate(self, migrations: Iterable[Migration]) -> int:
        """Apply the migrations newer than the schema, lowest version first.

        Returns:
            Number of migrations applied

        Raises:
            ValueError: If two migrations share a version
        """
        by_version: dict[int, Migration] = {}
        for migration in migrations:
            if migration.version in by_version:
                raise ValueError(f"duplicate migration version {migration.version}")
            by_version[migration.version] = migration

        current = self.version
        pending = [by_version[v] for v in sorted(by_version) if v > current]
        for migration in pending:
            self.apply(migration)
        return len(pending)
