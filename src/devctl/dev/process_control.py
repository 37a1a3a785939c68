"""Liveness probing, signal delivery and start-time lookup for tracked PIDs.

Probing never disturbs the target: on POSIX it sends signal 0. On Windows,
where `os.kill` with any non-console signal terminates the process, psutil is
used instead.
"""

from __future__ import annotations

import logging
import os
import signal
from datetime import datetime, timezone
from typing import Protocol

import psutil


logger = logging.getLogger("devctl.process_control")

GRACEFUL_SIGNAL: signal.Signals = signal.SIGTERM
# Windows has no SIGKILL; os.kill with SIGTERM there is already unconditional.
FORCEFUL_SIGNAL: signal.Signals = getattr(signal, "SIGKILL", signal.SIGTERM)


class ProcessControl(Protocol):
    """Signal-level view of host processes."""

    def is_running(self, pid: int) -> bool: ...

    def send_signal(self, pid: int, sig: signal.Signals) -> None: ...


class StartTimeLookup(Protocol):
    """Optional capability: when did a process start."""

    def start_time(self, pid: int) -> datetime | None: ...


def _is_zombie(pid: int) -> bool:
    # An exited child that has not been reaped still answers signal 0.
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True
    except psutil.Error:
        return False


def is_process_running(pid: int) -> bool:
    """Return True when a process with this id exists on the host.

    Never raises. "Exists but we may not signal it" counts as running.
    """
    if pid <= 0:
        return False

    if os.name == "nt":
        try:
            return psutil.pid_exists(pid)
        except (OSError, OverflowError, ValueError):
            return False

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except (OSError, OverflowError):
        return False

    return not _is_zombie(pid)


class OsProcessControl:
    """ProcessControl backed by the host OS."""

    def is_running(self, pid: int) -> bool:
        return is_process_running(pid)

    def send_signal(self, pid: int, sig: signal.Signals) -> None:
        logger.debug(f"Sending {sig.name} to pid={pid}")
        os.kill(pid, sig)


class PsutilStartTimeLookup:
    """StartTimeLookup backed by psutil's process creation time."""

    def start_time(self, pid: int) -> datetime | None:
        try:
            created = psutil.Process(pid).create_time()
        except (psutil.Error, OSError) as e:
            logger.debug(f"Could not read start time for pid={pid}: {e}")
            return None
        return datetime.fromtimestamp(created, tz=timezone.utc)


def default_start_time_lookup() -> StartTimeLookup | None:
    """Return the host's start-time capability, or None when unsupported."""
    try:
        psutil.Process(os.getpid()).create_time()
    except (psutil.Error, OSError, NotImplementedError):
        return None
    return PsutilStartTimeLookup()
