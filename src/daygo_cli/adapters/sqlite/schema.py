"""SQLite schema definitions for daygo.

Timestamps are stored as fixed-width ISO-8601 text in UTC
(``YYYY-MM-DDTHH:MM:SS.ffffff+00:00``) so that string comparison in SQL
matches chronological order.
"""

# Tasks and notes share one table; notes reference their task by parent_id.
# There is no foreign key: a note may be replicated before its parent.
CREATE_TASKS_TABLE = """
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    parent_id TEXT,
    started_at TEXT,
    ended_at TEXT,
    queued_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

CREATE_SYNC_SESSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS sync_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    server_url TEXT NOT NULL,
    status INTEGER NOT NULL CHECK (status IN (1, 2, 3)),
    error TEXT,
    to_server_sync_count INTEGER,
    from_server_sync_count INTEGER,
    created_at TEXT NOT NULL
)
"""

TASK_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_parent_id ON tasks(parent_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_started_at ON tasks(started_at)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_updated_at ON tasks(updated_at)",
]

SYNC_SESSION_INDEXES = [
    """CREATE INDEX IF NOT EXISTS idx_sync_sessions_lookup
       ON sync_sessions(server_url, status, created_at)""",
]

TASK_COLUMNS = (
    "id",
    "name",
    "parent_id",
    "started_at",
    "ended_at",
    "queued_at",
    "created_at",
    "updated_at",
)

SYNC_SESSION_COLUMNS = (
    "id",
    "server_url",
    "status",
    "error",
    "to_server_sync_count",
    "from_server_sync_count",
    "created_at",
)
