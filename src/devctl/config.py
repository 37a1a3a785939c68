"""Configuration loading for devctl.

The file layout is fixed; the dev command and log level can be overridden
from the environment or the project's `.env` file.
"""

import logging
import os
import shlex
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv

from devctl.constants import (
    DEFAULT_LOG_LEVEL,
    ENV_COMMAND,
    ENV_LOG_LEVEL,
    ENV_PROBE_COMMAND,
    PROBE_FLAG,
)
from devctl.models import DevctlConfig

logger = logging.getLogger("devctl.config")


def _split_command(value: str) -> tuple[str, ...]:
    return tuple(shlex.split(value, posix=os.name != "nt"))


def config_from_env(project_dir: Path, env: Mapping[str, str]) -> DevctlConfig:
    """Build a DevctlConfig for `project_dir` from environment values.

    Raises pydantic.ValidationError for unusable values (e.g. an empty
    command or an unknown log level).
    """
    overrides: dict[str, object] = {}

    command_value = env.get(ENV_COMMAND)
    if command_value is not None:
        command = _split_command(command_value)
        overrides["command"] = command
        overrides["probe_command"] = command + (PROBE_FLAG,)

    probe_value = env.get(ENV_PROBE_COMMAND)
    if probe_value is not None:
        overrides["probe_command"] = _split_command(probe_value)

    overrides["log_level"] = env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()

    return DevctlConfig.model_validate({"project_dir": project_dir, **overrides})


def load_config(project_dir: Path | None = None) -> DevctlConfig:
    """Load configuration for a project directory (default: current directory)."""
    if project_dir is None:
        project_dir = Path.cwd()
    project_dir = project_dir.resolve()

    dotenv_path = project_dir / ".env"
    if dotenv_path.exists():
        logger.debug(f"Loading .env file from {dotenv_path}")
        load_dotenv(dotenv_path, override=False)

    return config_from_env(project_dir, os.environ)
