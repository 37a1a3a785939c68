"""PID file persistence for the managed dev server."""

from __future__ import annotations

import logging
from pathlib import Path

from devctl.dev.filesystem import FileSystem

logger = logging.getLogger("devctl.pid_store")


def parse_pid(text: str) -> int | None:
    """Parse trimmed ASCII decimal digits; anything else is None.

    `int()` alone would also take "+5", "1_000" or non-ASCII digits.
    """
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


class PidStore:
    """Stores a single process id as decimal text in a file.

    A missing file means no process is tracked. A file whose contents are
    not plain decimal digits (including undecodable bytes) is treated the
    same as a missing file.
    """

    def __init__(self, fs: FileSystem, path: Path):
        self.fs: FileSystem = fs
        self.path: Path = path

    def read(self) -> int | None:
        try:
            content = self.fs.read_text(self.path)
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            logger.debug(f"Ignoring undecodable PID file {self.path}: {e}")
            return None
        pid = parse_pid(content)
        if pid is None:
            logger.debug(f"Ignoring malformed PID file {self.path}: {content!r}")
        return pid

    def write(self, pid: int) -> None:
        """Overwrite the record. Storage errors propagate."""
        self.fs.write_text(self.path, str(pid))

    def remove(self) -> None:
        """Delete the record; a missing file is not an error."""
        try:
            self.fs.delete(self.path)
        except FileNotFoundError:
            pass
