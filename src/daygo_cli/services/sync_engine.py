"""Client side of the two-party sync protocol."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from daygo_cli.api.client import SyncClient
from daygo_cli.errors import DaygoError, OperationTimeout, PartialMergeError, TransportError
from daygo_cli.models import SyncRequest, SyncSession, SyncStatus, TaskRecord
from daygo_cli.services.task_service import TaskService
from daygo_cli.utils.timeouts import with_timeout


@dataclass
class SyncOutcome:
    """Result of one sync round."""

    server_url: str
    status: SyncStatus
    session_id: int | None = None
    error: str | None = None
    to_server_sync_count: int = 0
    applied: list[TaskRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.SUCCESS

    @property
    def from_server_sync_count(self) -> int:
        return len(self.applied)


class SyncEngine:
    """Runs sync rounds against one peer.

    A round pushes every task changed since the watermark, pulls the peer's
    changes, merges them last-writer-wins and records the attempt as a sync
    session. Failures are recorded and reported, never retried in the same
    round.
    """

    def __init__(
        self,
        task_service: TaskService,
        client: SyncClient,
        cmd_timeout: float = 3.0,
        logger: logging.Logger | None = None,
    ):
        self.task_service = task_service
        self.client = client
        self.cmd_timeout = cmd_timeout
        self.logger = logger or logging.getLogger(__name__)

    @property
    def server_url(self) -> str:
        return self.client.base_url

    async def sync_once(self) -> SyncOutcome:
        """Run one round; errors are folded into an Error outcome."""
        try:
            return await self._sync()
        except DaygoError as e:
            self.logger.error("sync round with %s failed: %s", self.server_url, e)
            return SyncOutcome(self.server_url, SyncStatus.ERROR, error=str(e))

    async def _sync(self) -> SyncOutcome:
        server_url = self.server_url
        watermark, outgoing = await with_timeout(
            self.task_service.get_tasks_to_sync(server_url), self.cmd_timeout, "loading tasks to sync"
        )
        self.logger.info(
            "sync round started: server=%s watermark=%s outgoing=%d",
            server_url,
            watermark.isoformat() if watermark else "none",
            len(outgoing),
        )

        request = SyncRequest(last_sync_time=watermark, client_tasks=outgoing)
        try:
            response = await with_timeout(self.client.sync(request), self.cmd_timeout, "sync request")
        except (TransportError, OperationTimeout) as e:
            self.logger.warning("sync request to %s failed: %s", server_url, e)
            session = await self._record(
                SyncSession(server_url=server_url, status=SyncStatus.ERROR, error=str(e))
            )
            return SyncOutcome(server_url, SyncStatus.ERROR, session_id=session.id, error=str(e))

        session = await self._record(
            SyncSession(
                server_url=server_url,
                status=SyncStatus.PARTIAL,
                to_server_sync_count=response.to_server_sync_count,
            )
        )

        applied: list[TaskRecord] = []
        errors: list[DaygoError] = []
        for remote in response.server_tasks:
            try:
                stored = await with_timeout(
                    self.task_service.merge_remote_task(remote),
                    self.cmd_timeout,
                    f"applying task {remote.id}",
                )
            except DaygoError as e:
                self.logger.warning("could not apply pulled task %s: %s", remote.id, e)
                errors.append(e)
                continue
            if stored is not None:
                applied.append(stored)

        update: dict = {"from_server_sync_count": len(applied)}
        if errors:
            update.update(status=SyncStatus.PARTIAL, error=str(PartialMergeError(errors)))
        else:
            update.update(status=SyncStatus.SUCCESS)
        session = await self._record(session.model_copy(update=update))

        self.logger.info(
            "sync round finished: server=%s status=%s pushed=%d pulled=%d errors=%d",
            server_url,
            session.status.name,
            response.to_server_sync_count,
            len(applied),
            len(errors),
        )
        return SyncOutcome(
            server_url,
            session.status,
            session_id=session.id,
            error=session.error,
            to_server_sync_count=response.to_server_sync_count,
            applied=applied,
        )

    async def _record(self, session: SyncSession) -> SyncSession:
        return await with_timeout(
            self.task_service.upsert_sync_session(session),
            self.cmd_timeout,
            "recording sync session",
        )
