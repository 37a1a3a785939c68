import shutil
from datetime import datetime, timedelta, timezone

from rich.console import Console

# Use legacy_windows=False so emojis render on modern Windows consoles
console = Console(legacy_windows=False)
err_console = Console(stderr=True, legacy_windows=False)


def format_uptime(elapsed: timedelta) -> str:
    """Format an elapsed duration as HH:MM:SS.

    Hours are not wrapped at 24, so two days reads as "48:00:00".
    Negative durations (clock skew) format as "00:00:00".
    """
    total_seconds = max(0, int(elapsed.total_seconds()))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_timestamp(moment: datetime) -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_command_installed(name: str) -> bool:
    """Check if an executable is on PATH."""
    return shutil.which(name) is not None
