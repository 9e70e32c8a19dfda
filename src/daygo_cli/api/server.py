"""Server side of the sync protocol, served with FastAPI."""

from __future__ import annotations

import asyncio
import logging
import sqlite3

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from daygo_cli import __version__
from daygo_cli.adapters.sqlite import (
    DatabaseConnection,
    SqliteSyncSessionRepository,
    SqliteTaskRepository,
)
from daygo_cli.errors import DaygoError
from daygo_cli.models import SyncRequest, SyncResponse, TaskRecord
from daygo_cli.services.task_service import TaskService


async def apply_client_tasks(task_service: TaskService, client_tasks: list[TaskRecord]) -> int:
    """Store client tasks that are new or strictly newer than the server copy.

    Returns:
        Number of tasks stored
    """
    count = 0
    for record in client_tasks:
        if await task_service.merge_remote_task(record) is not None:
            count += 1
    return count


def _describe_validation_error(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        problems.append(f"{location}: {message}" if location else message)
    return "; ".join(problems) or "invalid request body"


def create_app(
    database: DatabaseConnection,
    task_service: TaskService | None = None,
    logger: logging.Logger | None = None,
) -> FastAPI:
    """Build the sync server application over *database*.

    Pushes are applied in one transaction and serialized with a lock; the
    pull that follows is not atomic with the push.
    """
    logger = logger or logging.getLogger(__name__)
    if task_service is None:
        task_service = TaskService(
            SqliteTaskRepository(database, logger),
            SqliteSyncSessionRepository(database, logger),
            logger,
        )
    push_lock = asyncio.Lock()

    app = FastAPI(title="daygo sync server", version=__version__)

    def get_task_service() -> TaskService:
        return task_service

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        detail = f"Invalid JSON: {_describe_validation_error(exc)}"
        logger.warning("rejected sync request from %s: %s", _client_host(request), detail)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/sync", response_model=SyncResponse)
    async def sync(
        payload: SyncRequest,
        request: Request,
        service: TaskService = Depends(get_task_service),
    ) -> SyncResponse:
        client = _client_host(request)
        logger.info(
            "sync request from %s: watermark=%s client_tasks=%d",
            client,
            payload.last_sync_time.isoformat() if payload.last_sync_time else "none",
            len(payload.client_tasks),
        )

        try:
            async with push_lock:
                with database.transaction():
                    count = await apply_client_tasks(service, payload.client_tasks)
        except (DaygoError, sqlite3.Error) as e:
            logger.error("failed to apply client tasks from %s: %s", client, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"failed to apply client tasks: {e}",
            ) from e

        try:
            if payload.last_sync_time is None:
                server_tasks = await service.task_repository.get_all()
            else:
                server_tasks = await service.task_repository.get_by_time_range(
                    "created_at", payload.last_sync_time, None
                )
        except (DaygoError, sqlite3.Error) as e:
            logger.error("failed to load server tasks for %s: %s", client, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"failed to get server tasks: {e}",
            ) from e

        logger.info(
            "sync response to %s: applied=%d server_tasks=%d", client, count, len(server_tasks)
        )
        return SyncResponse(server_tasks=server_tasks, to_server_sync_count=count)

    return app


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"
