"""SQLite implementation of TaskRepository."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any

from daygo_cli.adapters.sqlite.connection import DatabaseConnection
from daygo_cli.adapters.sqlite.schema import TASK_COLUMNS
from daygo_cli.adapters.sqlite.utils import from_db, placeholders, row_to_dict, to_db
from daygo_cli.errors import DaygoError, NotFoundError, ValidationError
from daygo_cli.models import TaskRecord, generate_uuid, now_utc
from daygo_cli.repositories import TIME_RANGE_FIELDS, TaskRepository

SELECT_TASKS = f"SELECT {', '.join(TASK_COLUMNS)} FROM tasks"


def _row_to_record(row: sqlite3.Row) -> TaskRecord:
    data = row_to_dict(row)
    for field in TIME_RANGE_FIELDS:
        data[field] = from_db(data[field])
    return TaskRecord.model_validate(data)


def _record_params(record: TaskRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "name": record.name,
        "parent_id": record.parent_id,
        "started_at": to_db(record.started_at),
        "ended_at": to_db(record.ended_at),
        "queued_at": to_db(record.queued_at),
        "created_at": to_db(record.created_at),
        "updated_at": to_db(record.updated_at),
    }


class SqliteTaskRepository(TaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, database: DatabaseConnection, logger: logging.Logger | None = None):
        """Initialize SQLite task repository.

        Args:
            database: Connection manager of the database holding the tasks table
            logger: Logger for write operations
        """
        self.database = database
        self.logger = logger or logging.getLogger(__name__)

    @property
    def connection(self) -> sqlite3.Connection:
        return self.database.connection

    async def get_task(self, task_id: str) -> TaskRecord:
        if not task_id:
            raise ValidationError("task id is required")
        row = self.connection.execute(f"{SELECT_TASKS} WHERE id = ?", (task_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return _row_to_record(row)

    async def get_tasks(self, task_ids: list[str]) -> list[TaskRecord]:
        if not task_ids:
            raise ValidationError("at least one task id is required")
        unique_ids = list(dict.fromkeys(task_ids))
        rows = self.connection.execute(
            f"{SELECT_TASKS} WHERE id IN {placeholders(len(unique_ids))}", unique_ids
        ).fetchall()
        by_id = {row["id"]: _row_to_record(row) for row in rows}
        missing = [task_id for task_id in unique_ids if task_id not in by_id]
        if missing:
            raise NotFoundError(
                f"expected {len(unique_ids)} tasks, found {len(by_id)}; "
                f"missing: {', '.join(missing)}"
            )
        return [by_id[task_id] for task_id in task_ids]

    async def get_all(self) -> list[TaskRecord]:
        rows = self.connection.execute(f"{SELECT_TASKS} ORDER BY created_at, id").fetchall()
        return [_row_to_record(row) for row in rows]

    async def get_by_parent_id(self, parent_id: str) -> list[TaskRecord]:
        rows = self.connection.execute(
            f"{SELECT_TASKS} WHERE parent_id = ? ORDER BY started_at, created_at",
            (parent_id,),
        ).fetchall()
        return [_row_to_record(row) for row in rows]

    async def get_by_time_range(
        self, field: str, min_time: datetime | None, max_time: datetime | None
    ) -> list[TaskRecord]:
        if field not in TIME_RANGE_FIELDS:
            raise ValidationError(f"cannot query tasks by time field: {field}")

        # field is checked against the column whitelist above
        conditions: list[str] = []
        params: list[Any] = []
        if min_time is None and max_time is None:
            conditions.append(f"{field} IS NULL")
        if min_time is not None:
            conditions.append(f"{field} >= ?")
            params.append(to_db(min_time))
        if max_time is not None:
            conditions.append(f"{field} <= ?")
            params.append(to_db(max_time))

        query = f"{SELECT_TASKS} WHERE {' AND '.join(conditions)} ORDER BY created_at, id"
        rows = self.connection.execute(query, params).fetchall()
        return [_row_to_record(row) for row in rows]

    async def insert(self, record: TaskRecord) -> TaskRecord:
        if not record.name.strip():
            raise ValidationError("task name is required")

        now = now_utc()
        stored = record.model_copy(
            update={"id": record.id or generate_uuid(), "created_at": now, "updated_at": now}
        )
        try:
            self.connection.execute(
                f"""
                INSERT INTO tasks ({', '.join(TASK_COLUMNS)})
                VALUES (:id, :name, :parent_id, :started_at, :ended_at, :queued_at,
                        :created_at, :updated_at)
                """,
                _record_params(stored),
            )
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"task already exists: {stored.id}") from e
        self.database.commit()
        self.logger.debug("inserted task %s", stored.id)
        return await self.get_task(stored.id)

    async def update(self, task_id: str, record: TaskRecord) -> TaskRecord:
        if not task_id:
            raise ValidationError("task id is required")
        if not record.name.strip():
            raise ValidationError("task name is required")

        params = _record_params(record)
        params["id"] = task_id
        params["updated_at"] = to_db(now_utc())
        cursor = self.connection.execute(
            """
            UPDATE tasks
            SET name = :name, parent_id = :parent_id, started_at = :started_at,
                ended_at = :ended_at, queued_at = :queued_at, updated_at = :updated_at
            WHERE id = :id
            """,
            params,
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Task not found: {task_id}")
        self.database.commit()
        self.logger.debug("updated task %s", task_id)
        return await self.get_task(task_id)

    async def delete(self, task_ids: list[str]) -> list[TaskRecord]:
        tasks = await self.get_tasks(task_ids)
        parent_ids = [task.id for task in tasks]
        notes = [
            _row_to_record(row)
            for row in self.connection.execute(
                f"{SELECT_TASKS} WHERE parent_id IN {placeholders(len(parent_ids))}",
                parent_ids,
            ).fetchall()
        ]
        deleted_ids = parent_ids + [note.id for note in notes if note.id not in parent_ids]

        with self.database.transaction() as connection:
            connection.execute(
                f"DELETE FROM tasks WHERE id IN {placeholders(len(deleted_ids))}", deleted_ids
            )
        self.logger.debug("deleted tasks %s (%d notes)", ", ".join(parent_ids), len(notes))

        seen: set[str] = set()
        deleted: list[TaskRecord] = []
        for record in tasks + notes:
            if record.id not in seen:
                seen.add(record.id)
                deleted.append(record)
        return deleted

    async def replicate(self, record: TaskRecord) -> TaskRecord:
        if not record.id:
            raise ValidationError("replicated task has no id")
        if not record.name.strip():
            raise ValidationError(f"replicated task {record.id} has no name")

        now = now_utc()
        params = _record_params(record)
        params["created_at"] = params["created_at"] or to_db(now)
        params["updated_at"] = params["updated_at"] or to_db(now)
        try:
            self.connection.execute(
                f"""
                INSERT INTO tasks ({', '.join(TASK_COLUMNS)})
                VALUES (:id, :name, :parent_id, :started_at, :ended_at, :queued_at,
                        :created_at, :updated_at)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    parent_id = excluded.parent_id,
                    started_at = excluded.started_at,
                    ended_at = excluded.ended_at,
                    queued_at = excluded.queued_at,
                    updated_at = excluded.updated_at
                """,
                params,
            )
        except sqlite3.Error as e:
            raise DaygoError(f"failed to store replicated task {record.id}: {e}") from e
        self.database.commit()
        self.logger.debug("replicated task %s", record.id)
        return await self.get_task(record.id)
