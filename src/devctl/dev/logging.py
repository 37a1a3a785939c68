"""Diagnostic logging for devctl (stderr, prefixed, rich-formatted)."""

from __future__ import annotations

import logging
from datetime import datetime

from rich.console import Console
from rich.markup import escape
from typing_extensions import override

from devctl.utils import err_console

LOGGER_NAME = "devctl"
PREFIX = "[devctl]"
PREFIX_COLOR = "bright_blue"

_LEVEL_COLORS: dict[int, str] = {
    logging.CRITICAL: "bold red",
    logging.ERROR: "red",
    logging.WARNING: "yellow",
}


def print_with_prefix(
    prefix: str,
    text: str,
    color: str,
    width: int = 10,
    target: Console = err_console,
    created: float | None = None,
) -> None:
    """Print `text` as `time | prefix | line` rows, one per input line.

    `created` is a POSIX timestamp (defaults to now). Markup in `prefix` and
    `text` is printed literally.
    """
    moment = datetime.now() if created is None else datetime.fromtimestamp(created)
    stamp = moment.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    label = escape(prefix.ljust(width))

    for line in text.splitlines() or [""]:
        target.print(f"{stamp} | [{color}]{label}[/] | {escape(line)}")


class PrefixedLogHandler(logging.Handler):
    """Routes log records through print_with_prefix, coloured by level."""

    def __init__(
        self,
        prefix: str = PREFIX,
        color: str = PREFIX_COLOR,
        width: int = 10,
        target: Console = err_console,
    ):
        super().__init__()
        self.prefix: str = prefix
        self.color: str = color
        self.width: int = width
        self.target: Console = target

    def color_for(self, levelno: int) -> str:
        for threshold, color in _LEVEL_COLORS.items():
            if levelno >= threshold:
                return color
        return self.color

    @override
    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_with_prefix(
                self.prefix,
                self.format(record),
                self.color_for(record.levelno),
                width=self.width,
                target=self.target,
                created=record.created,
            )
        except Exception:
            self.handleError(record)


def configure_logging(level: str | int = logging.WARNING) -> logging.Logger:
    """Route all `devctl.*` loggers through a single prefixed stderr handler.

    Safe to call more than once; the previous handler is replaced.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for existing in [h for h in logger.handlers if isinstance(h, PrefixedLogHandler)]:
        logger.removeHandler(existing)

    handler = PrefixedLogHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
