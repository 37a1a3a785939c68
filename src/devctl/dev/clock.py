"""Time source and cancellable waits for the lifecycle manager."""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from types import FrameType
from typing import Protocol

logger = logging.getLogger("devctl.clock")


class Clock(Protocol):
    def now(self) -> datetime: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock whose sleeps can be cut short with `cancel()`.

    Once cancelled, every later sleep returns immediately as well.
    """

    def __init__(self) -> None:
        self._cancelled: threading.Event = threading.Event()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            return
        self._cancelled.wait(seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


@contextmanager
def cancel_on_interrupt(clock: SystemClock) -> Iterator[None]:
    """Make Ctrl+C cancel the clock's waits instead of raising KeyboardInterrupt.

    The operation then runs to its end without further delays: a start skips
    the rest of its grace period and a stop escalates to the forceful signal
    straight away. Signal handlers can only be installed from the main
    thread; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _on_interrupt(signum: int, frame: FrameType | None) -> None:
        logger.debug("Interrupted, cutting remaining waits short")
        clock.cancel()

    previous = signal.signal(signal.SIGINT, _on_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
