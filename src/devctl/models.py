"""Centralized Pydantic models, enums, and type aliases for devctl."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from devctl.constants import (
    DEFAULT_DEV_COMMAND,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TAIL_LINES,
    LOG_FILE_NAME,
    LOGS_DIR_NAME,
    PID_FILE_NAME,
    PROBE_FLAG,
    RESTART_PAUSE_SECONDS,
    START_GRACE_SECONDS,
    STOP_MAX_ATTEMPTS,
    STOP_POLL_INTERVAL_SECONDS,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# === Enums ===


class LifecycleOutcome(str, Enum):
    """What a lifecycle operation ended up doing."""

    STARTED = "started"
    ALREADY_RUNNING = "already_running"
    COMMAND_UNAVAILABLE = "command_unavailable"
    START_FAILED = "start_failed"
    NOT_RUNNING = "not_running"
    STALE_CLEANED = "stale_cleaned"
    STOPPED = "stopped"
    FORCE_STOPPED = "force_stopped"
    STOP_ERROR = "stop_error"
    LOG_MISSING = "log_missing"
    FOLLOW_UNAVAILABLE = "follow_unavailable"
    FOLLOWED = "followed"


# === Configuration ===


class DevctlConfig(BaseModel):
    """Resolved configuration for one project directory.

    The file layout (`logs/dev.log`, `logs/dev.pid`) is derived from
    `project_dir`; only the command and timings can be overridden.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    project_dir: Path
    command: tuple[str, ...] = DEFAULT_DEV_COMMAND
    probe_command: tuple[str, ...] = DEFAULT_DEV_COMMAND + (PROBE_FLAG,)
    start_grace_seconds: float = Field(default=START_GRACE_SECONDS, ge=0)
    stop_poll_interval: float = Field(default=STOP_POLL_INTERVAL_SECONDS, ge=0)
    stop_max_attempts: int = Field(default=STOP_MAX_ATTEMPTS, ge=1)
    restart_pause_seconds: float = Field(default=RESTART_PAUSE_SECONDS, ge=0)
    tail_lines: int = Field(default=DEFAULT_TAIL_LINES, ge=0)
    log_level: LogLevel = DEFAULT_LOG_LEVEL

    @field_validator("command", "probe_command")
    @classmethod
    def _not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("command must not be empty")
        return value

    @property
    def logs_dir(self) -> Path:
        return self.project_dir / LOGS_DIR_NAME

    @property
    def log_file(self) -> Path:
        return self.logs_dir / LOG_FILE_NAME

    @property
    def pid_file(self) -> Path:
        return self.logs_dir / PID_FILE_NAME


# === Results ===


class ProcessInfo(BaseModel):
    """Result of a status query.

    pid is 0 when no PID record existed. When the record pointed at a dead
    process, pid carries that stale id and is_running is False.
    """

    pid: int = 0
    is_running: bool = False
    start_time: datetime | None = None
    uptime: str | None = None
