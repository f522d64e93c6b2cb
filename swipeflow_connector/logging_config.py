"""Logging for the connector: rich console output plus an optional rotating file.

Console records go through `rich.logging.RichHandler` on stderr so they never
mix with records printed by ``serve`` on stdout. The file handler sits behind a
queue so writes never block the event loop that runs the receiver.
"""

from __future__ import annotations

import atexit
import logging
import queue
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

from swipeflow_connector.log_context import ContextFilter

if TYPE_CHECKING:
    from pathlib import Path

LOG_FILE = "connector.log"
MAX_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 3

CONSOLE_FMT = "%(ctx)s%(message)s"
FILE_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(ctx)s%(message)s"
FILE_DATE_FMT = "%Y-%m-%d %H:%M:%S"

# access lines duplicate what the receiver logs itself
QUIET_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.server")

logger = logging.getLogger(__name__)

_listener: QueueListener | None = None


def _stop_listener() -> None:
    global _listener  # noqa: PLW0603
    if _listener is not None:
        _listener.stop()
        _listener = None


atexit.register(_stop_listener)


def _console_handler(level: int, ctx_filter: ContextFilter) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=level <= logging.DEBUG,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(level)
    handler.addFilter(ctx_filter)
    handler.setFormatter(logging.Formatter(CONSOLE_FMT))
    return handler


def _file_handler(log_dir: Path, ctx_filter: ContextFilter) -> logging.Handler:
    """Queue-backed handler feeding a `RotatingFileHandler` in a listener thread."""
    global _listener  # noqa: PLW0603
    log_dir.mkdir(parents=True, exist_ok=True)
    target = RotatingFileHandler(
        log_dir / LOG_FILE,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    target.setLevel(logging.DEBUG)
    target.setFormatter(logging.Formatter(FILE_FMT, datefmt=FILE_DATE_FMT))

    records: queue.Queue[logging.LogRecord] = queue.Queue()
    handler = QueueHandler(records)
    handler.setLevel(logging.DEBUG)
    handler.addFilter(ctx_filter)

    _listener = QueueListener(records, target, respect_handler_level=True)
    _listener.start()
    return handler


def setup_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    log_dir: Path | None = None,
) -> Path | None:
    """Replace the root handlers with the connector's console and file handlers.

    Safe to call again, for example once the configured level is known.
    Returns the log file path, or None when *log_dir* is None.
    """
    if verbose:
        level = logging.DEBUG
    _stop_listener()

    ctx_filter = ContextFilter()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(_console_handler(level, ctx_filter))

    log_file = None
    if log_dir is not None:
        root.addHandler(_file_handler(log_dir, ctx_filter))
        log_file = log_dir / LOG_FILE

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialized (level=%s)", logging.getLevelName(level))
    return log_file
