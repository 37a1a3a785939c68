"""Commands for the devctl CLI."""

from collections.abc import Callable
from contextlib import nullcontext
from pathlib import Path

from typer import Exit, Typer

from devctl.config import load_config
from devctl.dev.clock import SystemClock, cancel_on_interrupt
from devctl.dev.logging import configure_logging
from devctl.dev.manager import DevManager, create_dev_manager
from devctl.utils import err_console

app = Typer(
    name="devctl",
    help="Run the project's dev server in the background and manage it",
    no_args_is_help=True,
)


def run_operation(
    label: str,
    operation: Callable[[DevManager], object],
    *,
    interruptible_waits: bool = False,
) -> None:
    """Build a manager for the current directory and run one operation on it.

    Anything the manager does not handle itself (storage errors, bad
    configuration, bugs) is printed to stderr and turned into exit code 1.
    With `interruptible_waits`, Ctrl+C cuts the operation's waits short
    instead of aborting it halfway.
    """
    try:
        config = load_config(Path.cwd())
        configure_logging(config.log_level)
        manager = create_dev_manager(config)
        waits = (
            cancel_on_interrupt(manager.clock)
            if interruptible_waits and isinstance(manager.clock, SystemClock)
            else nullcontext()
        )
        with waits:
            operation(manager)
    except Exit:
        raise
    except Exception as e:
        err_console.print(f"[red]❌ {label} failed: {e}[/red]")
        raise Exit(code=1)


@app.command(name="start", help="Start the dev server in the background")
def dev_start() -> None:
    run_operation("Start", DevManager.start, interruptible_waits=True)


@app.command(name="stop", help="Stop the dev server")
def dev_stop() -> None:
    run_operation("Stop", DevManager.stop, interruptible_waits=True)


@app.command(name="restart", help="Restart the dev server")
def dev_restart() -> None:
    run_operation("Restart", DevManager.restart, interruptible_waits=True)


@app.command(name="status", help="Show whether the dev server is running")
def dev_status() -> None:
    run_operation("Status", DevManager.status)


@app.command(name="logs", help="Follow the dev server log (Ctrl+C to exit)")
def dev_logs() -> None:
    run_operation("Logs", DevManager.show_logs)
