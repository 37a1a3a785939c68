"""Spawning the dev command detached, and following its log file."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

from devctl.constants import FOLLOWER_KILL_TIMEOUT_SECONDS, PROBE_TIMEOUT_SECONDS
from devctl.utils import is_command_installed

logger = logging.getLogger("devctl.launcher")


class FollowUnavailableError(RuntimeError):
    """The platform utility used to follow the log file could not be run."""


class ProcessLauncher(Protocol):
    def is_available(self, probe_command: Sequence[str], cwd: Path) -> bool: ...

    def launch(self, command: Sequence[str], cwd: Path, log_file: Path) -> int: ...


class LogFollower(Protocol):
    def follow(self, log_file: Path, lines: int) -> None: ...


def _detached_popen_kwargs() -> dict[str, Any]:
    popen_kwargs: dict[str, Any] = {}
    if os.name == "nt":
        popen_kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP  # type: ignore[attr-defined]
    else:
        popen_kwargs["start_new_session"] = True
    return popen_kwargs


class SubprocessLauncher:
    """Runs the dev command as a detached child with output in the log file."""

    def __init__(self, probe_timeout: float = PROBE_TIMEOUT_SECONDS):
        self.probe_timeout: float = probe_timeout

    def is_available(self, probe_command: Sequence[str], cwd: Path) -> bool:
        """Dry-run the probe command; any failure means unavailable."""
        try:
            result = subprocess.run(
                list(probe_command),
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.probe_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Probe {list(probe_command)} failed: {e}")
            return False
        if result.returncode != 0:
            logger.debug(
                f"Probe {list(probe_command)} exited with {result.returncode}: "
                f"{result.stderr.strip()}"
            )
            return False
        return True

    def launch(self, command: Sequence[str], cwd: Path, log_file: Path) -> int:
        """Start `command` in its own session and return its pid immediately.

        stdout and stderr both append to `log_file`; stdin is closed. Our copy
        of the log file descriptor is closed once the child holds its own.
        """
        with open(log_file, "ab") as log_fd:
            proc = subprocess.Popen(
                list(command),
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=log_fd,
                stderr=subprocess.STDOUT,
                **_detached_popen_kwargs(),
            )
        logger.debug(f"Launched {list(command)} pid={proc.pid} in {cwd}")
        return proc.pid


def build_follow_command(log_file: Path, lines: int) -> list[str]:
    """Return the platform command that prints the last lines and keeps following."""
    if os.name == "nt":
        return [
            "powershell",
            "-Command",
            f'Get-Content -Path "{log_file}" -Wait -Tail {lines}',
        ]
    return ["tail", "-n", str(lines), "-f", str(log_file)]


class TailFollower:
    """Follows a log file with `tail -f` (PowerShell on Windows) until Ctrl+C."""

    def __init__(self, kill_timeout: float = FOLLOWER_KILL_TIMEOUT_SECONDS):
        self.kill_timeout: float = kill_timeout

    def follow(self, log_file: Path, lines: int) -> None:
        cmd = build_follow_command(log_file, lines)
        if not is_command_installed(cmd[0]):
            raise FollowUnavailableError(f"{cmd[0]} is not installed")
        try:
            proc = subprocess.Popen(cmd)
        except OSError as e:
            raise FollowUnavailableError(f"{cmd[0]}: {e}") from e

        try:
            proc.wait()
        except KeyboardInterrupt:
            self._terminate(proc)

    def _terminate(self, proc: subprocess.Popen[bytes]) -> None:
        if proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=self.kill_timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
