"""Configuration management for daygo CLI.

Settings live in ``config.json`` under the platform config directory.
``DAYGO_*`` environment variables override the file for the running process
without being written back.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir, user_log_dir
from pydantic import BaseModel, Field, ValidationError, field_validator

APP_NAME = "daygo-cli"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

# Environment variable -> dotted config key.
ENV_OVERRIDES = {
    "DAYGO_DB_URL": "database_url",
    "DAYGO_TIME_FORMAT": "time_format",
    "DAYGO_LOG_LEVEL": "log.level",
    "DAYGO_LOG_PATH": "log.path",
    "DAYGO_SYNC_SERVER_URL": "sync.server_url",
    "DAYGO_SYNC_RATE": "sync.rate",
    "DAYGO_CMD_TIMEOUT": "sync.cmd_timeout",
    "DAYGO_SYNC_DB_URL": "server.database_url",
    "DAYGO_SYNC_PORT": "server.port",
    "DAYGO_SYNC_HOST": "server.host",
    "DAYGO_SYNC_LOG_LEVEL": "server.log_level",
}


def _log_level(value: str) -> str:
    level = value.strip().upper()
    if level == "WARN":
        level = "WARNING"
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level {value!r}, expected one of {', '.join(LOG_LEVELS)}")
    return level


def parse_duration(value: Any) -> float:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) and unit strings such as ``"5m"``,
    ``"3s"``, ``"1h"``, ``"250ms"`` or ``"1m30s"``.

    Raises:
        ValueError: If the value is not a non-negative duration
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip().lower()
        try:
            seconds = float(text)
        except ValueError:
            parts = _DURATION_PART.findall(text)
            if not parts or "".join(number + unit for number, unit in parts) != text:
                raise ValueError(f"invalid duration: {value!r}") from None
            seconds = sum(float(number) * _DURATION_UNITS[unit] for number, unit in parts)
    if seconds < 0:
        raise ValueError(f"duration must not be negative: {value!r}")
    return seconds


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")
    path: str | None = Field(default=None)

    @field_validator("level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return _log_level(value)


class SyncConfig(BaseModel):
    """Sync client configuration."""

    server_url: str | None = Field(default=None)
    rate: float = Field(default=300.0, gt=0)
    cmd_timeout: float = Field(default=3.0, gt=0)

    @field_validator("rate", "cmd_timeout", mode="before")
    @classmethod
    def _duration(cls, value: Any) -> float:
        return parse_duration(value)

    @field_validator("server_url")
    @classmethod
    def _blank_url(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip().rstrip("/")


class ServerConfig(BaseModel):
    """Sync server configuration."""

    database_url: str | None = Field(default=None)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return _log_level(value)


class DaygoConfig(BaseModel):
    """Main configuration."""

    database_url: str | None = Field(default=None)
    time_format: str = Field(default="%H:%M")
    log: LogConfig = Field(default_factory=LogConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


class ConfigManager:
    """Manages daygo CLI configuration."""

    def __init__(self, config_dir: str | Path | None = None, environ: dict[str, str] | None = None):
        self.config_dir = Path(config_dir) if config_dir else Path(user_config_dir(APP_NAME))
        self.config_file = self.config_dir / "config.json"
        self.environ = os.environ if environ is None else environ
        self._config: DaygoConfig | None = None

    @property
    def config(self) -> DaygoConfig:
        """Configuration as stored in the file."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> DaygoConfig:
        """Load configuration from file.

        Raises:
            ValueError: If the file exists but is not a valid configuration
        """
        if not self.config_file.exists():
            return DaygoConfig()
        try:
            with open(self.config_file, encoding="utf-8") as f:
                data = json.load(f)
            return DaygoConfig(**data)
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise ValueError(f"invalid configuration file {self.config_file}: {e}") from e

    def save_config(self, config: DaygoConfig | None = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self.config
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(config.model_dump(mode="json"), f, indent=2)

    def effective_config(self) -> DaygoConfig:
        """File configuration with the ``DAYGO_*`` environment overrides applied.

        Raises:
            ValueError: If an override holds an invalid value
        """
        data = self.config.model_dump()
        for env_name, key in ENV_OVERRIDES.items():
            value = self.environ.get(env_name)
            if value is None or value == "":
                continue
            _assign(data, key, value)
        try:
            return DaygoConfig(**data)
        except ValidationError as e:
            raise ValueError(f"invalid DAYGO_* environment override: {e}") from e

    def get(self, key: str, effective: bool = True) -> Any:
        """Get a configuration value by dot-separated key."""
        config = self.effective_config() if effective else self.config
        return _lookup(config, key)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key and save.

        Raises:
            KeyError: If the key does not name a setting
            ValueError: If the value is invalid for the setting
        """
        if not _lookup_path(DaygoConfig(), key):
            raise KeyError(key)
        data = self.config.model_dump()
        _assign(data, key, value)
        try:
            self._config = DaygoConfig(**data)
        except ValidationError as e:
            raise ValueError(f"invalid value for {key}: {e}") from e
        self.save_config()

    def reset(self, key: str | None = None) -> None:
        """Reset configuration, or one key, to defaults."""
        if key is None:
            self._config = DaygoConfig()
            self.save_config()
        else:
            self.set(key, _lookup(DaygoConfig(), key))

    def database_path(self, config: DaygoConfig | None = None) -> str:
        config = config or self.effective_config()
        return config.database_url or str(Path(user_data_dir(APP_NAME)) / "daygo.db")

    def server_database_path(self, config: DaygoConfig | None = None) -> str:
        config = config or self.effective_config()
        return config.server.database_url or str(Path(user_data_dir(APP_NAME)) / "daygo-server.db")

    def log_path(self, config: DaygoConfig | None = None) -> str:
        config = config or self.effective_config()
        return config.log.path or str(Path(user_log_dir(APP_NAME)) / "daygo.log")


def _lookup(config: BaseModel, key: str) -> Any:
    value: Any = config
    for part in key.split("."):
        if isinstance(value, BaseModel) and part in type(value).model_fields:
            value = getattr(value, part)
        else:
            return None
    return value


def _lookup_path(config: BaseModel, key: str) -> bool:
    value: Any = config
    for part in key.split("."):
        if not (isinstance(value, BaseModel) and part in type(value).model_fields):
            return False
        value = getattr(value, part)
    return True


def _assign(data: dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    current = data
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = value


# Global config manager instance
_config_manager: ConfigManager | None = None


def get_config_manager() -> ConfigManager:
    """Get or create the global config manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
