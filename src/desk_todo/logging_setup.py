# src/desk_todo/logging_setup.py

from __future__ import annotations

import logging
import logging.handlers
import sys
from collections.abc import Iterable
from pathlib import Path

LOG_FILENAME = "desk_todo.log"

# Loggers that run after every mutation or on a timer; console shows them only at WARNING+.
BACKGROUND_LOGGERS = (
    "desk_todo.snapshot.",
    "desk_todo.reminders.notification_center",
)

# HTTP stack used by report generation.
HTTP_LOGGERS = ("httpx", "httpcore", "openai")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable while the service loop runs in its own thread:
    - desk_todo logs pass, except background loggers below WARNING
    - everything else (third party, py.warnings) only at ERROR+
    """

    def __init__(self, background: Iterable[str] = BACKGROUND_LOGGERS) -> None:
        super().__init__()
        self._background = tuple(background)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("desk_todo."):
            return record.levelno >= logging.ERROR
        if name.startswith(self._background):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/desk_todo",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Install the console and file handlers on the root logger and return the log file path.

    The file keeps everything at `file_level` and rotates, since a to-do app
    is left running for days. Call once, before the first log line.
    """
    log_file = Path(log_dir) / LOG_FILENAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_ConsoleNoiseFilter())

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)

    for handler in (console, file_handler):
        handler.setFormatter(fmt)
        root.addHandler(handler)

    logging.captureWarnings(True)

    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
