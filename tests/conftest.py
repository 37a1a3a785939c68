from __future__ import annotations

import io
import signal
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from rich.console import Console

from devctl.dev.filesystem import MemoryFileSystem
from devctl.dev.launcher import FollowUnavailableError
from devctl.dev.manager import DevManager
from devctl.dev.process_control import FORCEFUL_SIGNAL
from devctl.models import DevctlConfig

PROJECT_DIR = Path("/project")
CLOCK_START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Virtual clock: sleeping advances `now` instantly."""

    def __init__(self, start: datetime = CLOCK_START):
        self.current: datetime = start
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)


class FakeProcessControl:
    """In-memory process table.

    A process exits on the graceful signal unless it is listed in
    `ignore_graceful`; `exit_after_checks` makes it linger for that many
    liveness checks after the graceful signal.
    """

    def __init__(self) -> None:
        self.alive: set[int] = set()
        self.signals: list[tuple[int, signal.Signals]] = []
        self.ignore_graceful: set[int] = set()
        self.exit_after_checks: dict[int, int] = {}
        self.signal_error: OSError | None = None
        self.checks: int = 0
        self._pending_exit: dict[int, int] = {}

    def is_running(self, pid: int) -> bool:
        self.checks += 1
        if pid in self._pending_exit:
            self._pending_exit[pid] -= 1
            if self._pending_exit[pid] < 0:
                del self._pending_exit[pid]
                self.alive.discard(pid)
        return pid in self.alive

    def send_signal(self, pid: int, sig: signal.Signals) -> None:
        if self.signal_error is not None:
            raise self.signal_error
        if pid not in self.alive:
            raise ProcessLookupError(f"No such process: {pid}")
        self.signals.append((pid, sig))
        if sig == FORCEFUL_SIGNAL:
            self.alive.discard(pid)
        elif pid in self.ignore_graceful:
            return
        elif pid in self.exit_after_checks:
            self._pending_exit[pid] = self.exit_after_checks[pid]
        else:
            self.alive.discard(pid)


class FakeLauncher:
    """Launcher that registers a fake process and writes a line of child output."""

    def __init__(self, fs: MemoryFileSystem, processes: FakeProcessControl):
        self.fs: MemoryFileSystem = fs
        self.processes: FakeProcessControl = processes
        self.available: bool = True
        self.dies_immediately: bool = False
        self.next_pid: int = 4242
        self.launches: list[tuple[tuple[str, ...], Path, Path]] = []
        self.probes: list[tuple[str, ...]] = []

    def is_available(self, probe_command: Sequence[str], cwd: Path) -> bool:
        self.probes.append(tuple(probe_command))
        return self.available

    def launch(self, command: Sequence[str], cwd: Path, log_file: Path) -> int:
        pid = self.next_pid
        self.next_pid += 1
        self.launches.append((tuple(command), cwd, log_file))
        self.fs.append_text(log_file, "> dev server output\n")
        if not self.dies_immediately:
            self.processes.alive.add(pid)
        return pid


class FakeFollower:
    def __init__(self) -> None:
        self.calls: list[tuple[Path, int]] = []
        self.unavailable: bool = False

    def follow(self, log_file: Path, lines: int) -> None:
        self.calls.append((log_file, lines))
        if self.unavailable:
            raise FollowUnavailableError("tail: not found")


class FakeStartTimes:
    def __init__(self) -> None:
        self.times: dict[int, datetime] = {}
        self.error: Exception | None = None

    def start_time(self, pid: int) -> datetime | None:
        if self.error is not None:
            raise self.error
        return self.times.get(pid)


def make_console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None, legacy_windows=False)


def console_output(console: Console) -> str:
    assert isinstance(console.file, io.StringIO)
    return console.file.getvalue()


@pytest.fixture
def config() -> DevctlConfig:
    return DevctlConfig(project_dir=PROJECT_DIR)


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    fs = MemoryFileSystem()
    fs.seed(PROJECT_DIR / "package.json", '{"scripts": {"dev": "node server.js"}}')
    return fs


@pytest.fixture
def processes() -> FakeProcessControl:
    return FakeProcessControl()


@pytest.fixture
def launcher(memory_fs: MemoryFileSystem, processes: FakeProcessControl) -> FakeLauncher:
    return FakeLauncher(memory_fs, processes)


@pytest.fixture
def follower() -> FakeFollower:
    return FakeFollower()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def start_times() -> FakeStartTimes:
    return FakeStartTimes()


@pytest.fixture
def out() -> Console:
    return make_console()


@pytest.fixture
def manager(
    config: DevctlConfig,
    memory_fs: MemoryFileSystem,
    processes: FakeProcessControl,
    launcher: FakeLauncher,
    follower: FakeFollower,
    clock: FakeClock,
    start_times: FakeStartTimes,
    out: Console,
) -> DevManager:
    return DevManager(
        config,
        fs=memory_fs,
        processes=processes,
        launcher=launcher,
        follower=follower,
        clock=clock,
        start_times=start_times,
        out=out,
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so teardown also removes values load_dotenv writes
    for name in ("DEVCTL_COMMAND", "DEVCTL_PROBE_COMMAND", "DEVCTL_LOG_LEVEL"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
