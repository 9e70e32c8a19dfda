"""Wiring of configuration, logging, storage and services.

Commands build everything they need once through `bootstrap()` and pass
collaborators (the logger included) down explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from daygo_cli.adapters.sqlite import (
    DatabaseConnection,
    SqliteSyncSessionRepository,
    SqliteTaskRepository,
)
from daygo_cli.api.client import SyncClient
from daygo_cli.config import ConfigManager, DaygoConfig, get_config_manager
from daygo_cli.errors import ValidationError
from daygo_cli.services.sync_engine import SyncEngine
from daygo_cli.services.task_service import TaskService
from daygo_cli.utils.logger import get_logger


@dataclass
class AppContext:
    """Collaborators shared by the commands of one CLI invocation."""

    config_manager: ConfigManager
    config: DaygoConfig
    logger: logging.Logger
    database: DatabaseConnection
    task_service: TaskService

    def create_sync_engine(self, server_url: str | None = None) -> SyncEngine | None:
        """Sync engine for the configured peer, or None when no peer is set."""
        url = server_url or self.config.sync.server_url
        if not url:
            return None
        client = SyncClient(url, timeout=self.config.sync.cmd_timeout, logger=self.logger)
        return SyncEngine(
            self.task_service,
            client,
            cmd_timeout=self.config.sync.cmd_timeout,
            logger=self.logger,
        )


def create_task_service(database: DatabaseConnection, logger: logging.Logger) -> TaskService:
    return TaskService(
        SqliteTaskRepository(database, logger.getChild("tasks")),
        SqliteSyncSessionRepository(database, logger.getChild("sync_sessions")),
        logger.getChild("task_service"),
    )


def bootstrap(
    config_manager: ConfigManager | None = None,
    database_path: str | None = None,
) -> AppContext:
    """Load configuration, start logging and open the local database.

    Raises:
        ValidationError: If the configuration is invalid
        StorageInitError: If the database cannot be opened
    """
    config_manager = config_manager or get_config_manager()
    try:
        config = config_manager.effective_config()
    except ValueError as e:
        raise ValidationError(str(e)) from e
    logger = get_logger(config.log.level, config_manager.log_path(config))
    database = DatabaseConnection.get(database_path or config_manager.database_path(config))
    logger.debug("using database %s", database.db_path)
    return AppContext(
        config_manager=config_manager,
        config=config,
        logger=logger,
        database=database,
        task_service=create_task_service(database, logger),
    )
