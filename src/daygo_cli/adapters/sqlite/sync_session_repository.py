"""SQLite implementation of SyncSessionRepository."""

from __future__ import annotations

import logging
import sqlite3

from daygo_cli.adapters.sqlite.connection import DatabaseConnection
from daygo_cli.adapters.sqlite.schema import SYNC_SESSION_COLUMNS
from daygo_cli.adapters.sqlite.utils import from_db, row_to_dict, to_db
from daygo_cli.errors import NotFoundError, ValidationError
from daygo_cli.models import SyncSession, SyncStatus, now_utc
from daygo_cli.repositories import SyncSessionRepository

SELECT_SESSIONS = f"SELECT {', '.join(SYNC_SESSION_COLUMNS)} FROM sync_sessions"


def _row_to_session(row: sqlite3.Row) -> SyncSession:
    data = row_to_dict(row)
    data["created_at"] = from_db(data["created_at"])
    return SyncSession.model_validate(data)


class SqliteSyncSessionRepository(SyncSessionRepository):
    """SQLite implementation of sync session repository."""

    def __init__(self, database: DatabaseConnection, logger: logging.Logger | None = None):
        self.database = database
        self.logger = logger or logging.getLogger(__name__)

    @property
    def connection(self) -> sqlite3.Connection:
        return self.database.connection

    async def get_by_id(self, session_id: int) -> SyncSession:
        row = self.connection.execute(
            f"{SELECT_SESSIONS} WHERE id = ?", (session_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Sync session not found: {session_id}")
        return _row_to_session(row)

    async def get_latest_by_status(
        self, server_url: str, status: SyncStatus
    ) -> SyncSession | None:
        row = self.connection.execute(
            f"""
            {SELECT_SESSIONS}
            WHERE server_url = ? AND status = ?
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (server_url, int(status)),
        ).fetchone()
        return _row_to_session(row) if row is not None else None

    async def insert(self, session: SyncSession) -> SyncSession:
        if not session.server_url:
            raise ValidationError("sync session needs a server url")

        cursor = self.connection.execute(
            """
            INSERT INTO sync_sessions
                (server_url, status, error, to_server_sync_count,
                 from_server_sync_count, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                session.server_url,
                int(session.status),
                session.error,
                session.to_server_sync_count,
                session.from_server_sync_count,
                to_db(now_utc()),
            ),
        )
        self.database.commit()
        session_id = cursor.lastrowid
        self.logger.debug(
            "recorded sync session %s for %s: %s",
            session_id,
            session.server_url,
            session.status.name,
        )
        return await self.get_by_id(session_id)

    async def update(self, session_id: int, session: SyncSession) -> SyncSession:
        cursor = self.connection.execute(
            """
            UPDATE sync_sessions
            SET server_url = ?, status = ?, error = ?,
                to_server_sync_count = ?, from_server_sync_count = ?
            WHERE id = ?
            """,
            (
                session.server_url,
                int(session.status),
                session.error,
                session.to_server_sync_count,
                session.from_server_sync_count,
                session_id,
            ),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Sync session not found: {session_id}")
        self.database.commit()
        self.logger.debug("updated sync session %s: %s", session_id, session.status.name)
        return await self.get_by_id(session_id)

    async def list_recent(
        self, server_url: str | None = None, limit: int = 10
    ) -> list[SyncSession]:
        if server_url is None:
            rows = self.connection.execute(
                f"{SELECT_SESSIONS} ORDER BY created_at DESC, id DESC LIMIT ?", (limit,)
            ).fetchall()
        else:
            rows = self.connection.execute(
                f"""
                {SELECT_SESSIONS}
                WHERE server_url = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (server_url, limit),
            ).fetchall()
        return [_row_to_session(row) for row in rows]
