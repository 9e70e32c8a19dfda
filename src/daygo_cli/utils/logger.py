"""Application-wide logger writing to a rotating file."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "daygo-cli"
_LOGGER_NAME = "daygo_cli"
_LOG_FILE = "daygo.log"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3
_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

_logger: logging.Logger | None = None


def parse_level(level: str | int) -> int:
    """Map a level name (``WARN`` accepted) or number to a logging level.

    Raises:
        ValueError: If the name is not a logging level
    """
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name == "WARN":
        name = "WARNING"
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level}")
    return value


def get_logger(level: str | int = "WARNING", log_path: str | Path | None = None) -> logging.Logger:
    """Return the application logger, initialising it on first call.

    Later calls return the same logger and only adjust its level.
    """
    global _logger
    if _logger is not None:
        _logger.setLevel(parse_level(level))
        return _logger

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(parse_level(level))
    # Other handlers (test capture, embedding apps) do not replace the file.
    if not _file_handlers(logger):
        path = Path(log_path) if log_path else Path(user_log_dir(_APP_NAME)) / _LOG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
        logger.addHandler(handler)
    logger.propagate = False

    _logger = logger
    return _logger


def _file_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]


def reset_logger() -> None:
    """Detach and close the file handler so the next get_logger() starts fresh."""
    global _logger
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in _file_handlers(logger):
        logger.removeHandler(handler)
        handler.close()
    _logger = None
