"""Lifecycle management for the background dev server.

The PID file is the single source of truth for "a server was started and not
stopped". Every query re-checks it against the OS and removes it when the
recorded process is gone.
"""

from __future__ import annotations

import logging
import signal

from rich.console import Console
from rich.table import Table
from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_fixed

from devctl.constants import BANNER_RULE_WIDTH
from devctl.dev.clock import Clock, SystemClock
from devctl.dev.filesystem import FileSystem, RealFileSystem
from devctl.dev.launcher import (
    FollowUnavailableError,
    LogFollower,
    ProcessLauncher,
    SubprocessLauncher,
    TailFollower,
)
from devctl.dev.pid_store import PidStore
from devctl.dev.process_control import (
    FORCEFUL_SIGNAL,
    GRACEFUL_SIGNAL,
    OsProcessControl,
    ProcessControl,
    StartTimeLookup,
    default_start_time_lookup,
)
from devctl.models import DevctlConfig, LifecycleOutcome, ProcessInfo
from devctl.utils import console, format_timestamp, format_uptime

logger = logging.getLogger("devctl.manager")


class DevManager:
    """Starts, stops and inspects the single dev server of one project."""

    def __init__(
        self,
        config: DevctlConfig,
        *,
        fs: FileSystem,
        processes: ProcessControl,
        launcher: ProcessLauncher,
        follower: LogFollower,
        clock: Clock,
        start_times: StartTimeLookup | None = None,
        out: Console = console,
    ):
        self.config: DevctlConfig = config
        self.fs: FileSystem = fs
        self.processes: ProcessControl = processes
        self.launcher: ProcessLauncher = launcher
        self.follower: LogFollower = follower
        self.clock: Clock = clock
        self.start_times: StartTimeLookup | None = start_times
        self.out: Console = out
        self.pid_store: PidStore = PidStore(fs, config.pid_file)

    # === Helpers ===

    def _command_display(self) -> str:
        return " ".join(self.config.command)

    def _start_banner(self, pid: int) -> str:
        return "\n".join(
            [
                f"=== devctl dev server started {format_timestamp(self.clock.now())} ===",
                f"Project directory: {self.config.project_dir}",
                f"PID: {pid}",
                "=" * BANNER_RULE_WIDTH,
                "",
            ]
        )

    def _stop_banner(self) -> str:
        return (
            f"\n=== devctl dev server stopped manually "
            f"{format_timestamp(self.clock.now())} ===\n\n"
        )

    def _signal(self, pid: int, sig: signal.Signals) -> bool:
        """Send a signal; False when the process was already gone."""
        try:
            self.processes.send_signal(pid, sig)
        except ProcessLookupError:
            logger.debug(f"pid={pid} exited before {sig.name} was delivered")
            return False
        return True

    def _wait_for_exit(self, pid: int) -> bool:
        """Poll until the process exits; True if it did within the window."""
        retrying = Retrying(
            sleep=self.clock.sleep,
            stop=stop_after_attempt(self.config.stop_max_attempts + 1),
            wait=wait_fixed(self.config.stop_poll_interval),
            retry=retry_if_result(lambda running: running),
            retry_error_callback=lambda state: state.outcome.result(),
        )
        still_running = retrying(self.processes.is_running, pid)
        return not still_running

    # === Operations ===

    def start(self) -> LifecycleOutcome:
        """Start the dev server in the background unless it is already running."""
        existing_pid = self.pid_store.read()
        if existing_pid is not None and self.processes.is_running(existing_pid):
            self.out.print(
                f"[yellow]⚠️  Dev server is already running! PID: {existing_pid}[/yellow]"
            )
            self.out.print("[dim]💡 Use 'devctl stop' to stop the server[/dim]")
            return LifecycleOutcome.ALREADY_RUNNING

        if existing_pid is not None:
            logger.debug(f"Removing stale PID record for pid={existing_pid}")
            self.pid_store.remove()

        self.fs.make_dirs(self.config.logs_dir)

        self.out.print("[bold chartreuse1]🚀 Starting dev server...[/bold chartreuse1]")

        if not self.launcher.is_available(
            self.config.probe_command, self.config.project_dir
        ):
            self.out.print(
                f"[red]❌ '{self._command_display()}' is not available![/red]"
            )
            self.out.print(
                "[dim]💡 Make sure the command is installed and that package.json "
                "defines a 'dev' script (or set DEVCTL_COMMAND)[/dim]"
            )
            return LifecycleOutcome.COMMAND_UNAVAILABLE

        pid = self.launcher.launch(
            self.config.command, self.config.project_dir, self.config.log_file
        )
        self.pid_store.write(pid)
        self.fs.append_text(self.config.log_file, self._start_banner(pid))

        # Give the server a moment to fail fast (bad script, port in use, ...)
        self.clock.sleep(self.config.start_grace_seconds)

        if not self.processes.is_running(pid):
            self.out.print("[red]❌ Dev server failed to start![/red]")
            self.out.print(f"[dim]📄 See the log file: {self.config.log_file}[/dim]")
            self.pid_store.remove()
            return LifecycleOutcome.START_FAILED

        self.out.print("[green]✅ Dev server started![/green]")
        self.out.print(f"[cyan]📝 PID:[/cyan] {pid}")
        self.out.print(f"[cyan]📄 Log file:[/cyan] {self.config.log_file}")
        self.out.print()
        self.out.print(
            "[dim]Run 'devctl status' to check status, 'devctl logs' to follow logs "
            "or 'devctl stop' to stop the server.[/dim]"
        )
        return LifecycleOutcome.STARTED

    def stop(self) -> LifecycleOutcome:
        """Stop the dev server: SIGTERM, wait, then SIGKILL if it is still alive."""
        pid = self.pid_store.read()

        if pid is None:
            self.out.print("[yellow]Dev server is not running.[/yellow]")
            return LifecycleOutcome.NOT_RUNNING

        if not self.processes.is_running(pid):
            self.out.print(
                "[yellow]🧹 Process no longer exists, cleaning up PID file[/yellow]"
            )
            self.pid_store.remove()
            return LifecycleOutcome.STALE_CLEANED

        self.out.print(f"[bold yellow]🛑 Stopping dev server (PID: {pid})...[/bold yellow]")

        forced = False
        try:
            if self._signal(pid, GRACEFUL_SIGNAL) and not self._wait_for_exit(pid):
                self.out.print("[yellow]⚠️  Force stopping the process...[/yellow]")
                forced = self._signal(pid, FORCEFUL_SIGNAL)
        except OSError as e:
            self.out.print(f"[red]❌ Error while stopping the dev server: {e}[/red]")
            return LifecycleOutcome.STOP_ERROR

        self.pid_store.remove()
        self.out.print("[green]✅ Dev server stopped[/green]")

        try:
            self.fs.append_text(self.config.log_file, self._stop_banner())
        except OSError as e:
            logger.debug(f"Could not append stop banner to {self.config.log_file}: {e}")

        return LifecycleOutcome.FORCE_STOPPED if forced else LifecycleOutcome.STOPPED

    def restart(self) -> LifecycleOutcome:
        """Stop, pause so the OS can release ports and files, then start."""
        self.out.print("[bold yellow]🔄 Restarting dev server...[/bold yellow]")
        self.stop()
        self.clock.sleep(self.config.restart_pause_seconds)
        return self.start()

    def status(self) -> ProcessInfo:
        """Report whether the dev server is running, cleaning up a stale record."""
        pid = self.pid_store.read()

        if pid is None:
            self.out.print("[yellow]Dev server is not running.[/yellow]")
            self.out.print("[dim]Run 'devctl start' to start the server.[/dim]")
            return ProcessInfo(pid=0, is_running=False)

        if not self.processes.is_running(pid):
            self.out.print("[yellow]Dev server is not running.[/yellow]")
            self.out.print("[dim]🧹 Cleaning up stale PID file[/dim]")
            self.pid_store.remove()
            return ProcessInfo(pid=pid, is_running=False)

        start_time = None
        uptime = None
        if self.start_times is not None:
            # Best-effort: uptime is informational only
            try:
                start_time = self.start_times.start_time(pid)
                if start_time is not None:
                    uptime = format_uptime(self.clock.now() - start_time)
            except Exception as e:
                logger.debug(f"Start time lookup failed for pid={pid}: {e}")
                start_time = None
                uptime = None

        table = Table(
            title="Dev Server Status",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Process", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("PID", justify="right", style="green")
        table.add_column("Uptime", justify="right")
        table.add_row(
            self._command_display(),
            "[green]●[/green] Running",
            str(pid),
            uptime or "-",
        )

        self.out.print("[green]✅ Dev server is running[/green]")
        self.out.print(table)
        self.out.print(f"[dim]📄 Log file: {self.config.log_file}[/dim]")
        self.out.print("[dim]Use 'devctl logs' to follow the log output.[/dim]")

        return ProcessInfo(
            pid=pid, is_running=True, start_time=start_time, uptime=uptime
        )

    def show_logs(self) -> LifecycleOutcome:
        """Print the tail of the log file and keep following it until Ctrl+C."""
        if not self.fs.exists(self.config.log_file):
            self.out.print("[red]❌ Log file does not exist[/red]")
            self.out.print("[dim]💡 Start the dev server first: devctl start[/dim]")
            return LifecycleOutcome.LOG_MISSING

        self.out.print(
            "[bold cyan]📄 Following dev server logs (Ctrl+C to exit):[/bold cyan]"
        )
        self.out.print("─" * BANNER_RULE_WIDTH)

        try:
            self.follower.follow(self.config.log_file, self.config.tail_lines)
        except FollowUnavailableError as e:
            self.out.print(f"[red]❌ Unable to display logs: {e}[/red]")
            self.out.print(
                f"[dim]💡 Open the log file manually: {self.config.log_file}[/dim]"
            )
            return LifecycleOutcome.FOLLOW_UNAVAILABLE

        self.out.print()
        self.out.print("[dim]Stopped following logs.[/dim]")
        return LifecycleOutcome.FOLLOWED


def create_dev_manager(config: DevctlConfig, out: Console = console) -> DevManager:
    """Wire a DevManager against the real OS and disk."""
    return DevManager(
        config,
        fs=RealFileSystem(),
        processes=OsProcessControl(),
        launcher=SubprocessLauncher(),
        follower=TailFollower(),
        clock=SystemClock(),
        start_times=default_start_time_lookup(),
        out=out,
    )
