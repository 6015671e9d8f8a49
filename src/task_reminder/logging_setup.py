# src/task_reminder/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILE_NAME = "task_reminder.log"
LOG_FILE_MAX_BYTES = 1_000_000
LOG_FILE_BACKUPS = 3

# Console thresholds by logger prefix; first match wins.
# Reminder chains and the loop thread log while the user is typing at the prompt,
# so only their problems reach the console. The full story is in the log file.
CONSOLE_THRESHOLDS: tuple[tuple[str, int], ...] = (
    ("task_reminder.tasks.task_scheduler", logging.WARNING),
    ("task_reminder.connectors.scheduler_runner", logging.WARNING),
    ("task_reminder.tasks.task_store", logging.WARNING),
    ("task_reminder.", logging.NOTSET),
    ("caldav", logging.WARNING),
)

# Loggers that are chatty at DEBUG even in the file.
QUIET_LIBRARIES: dict[str, int] = {
    "caldav": logging.INFO,
    "urllib3": logging.WARNING,
    "requests": logging.WARNING,
    "niquests": logging.WARNING,
}


class _PromptFriendlyFilter(logging.Filter):
    """Console filter driven by CONSOLE_THRESHOLDS; unlisted loggers need ERROR."""

    def __init__(self, thresholds: tuple[tuple[str, int], ...] = CONSOLE_THRESHOLDS) -> None:
        super().__init__()
        self._thresholds = thresholds

    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, level in self._thresholds:
            if record.name == prefix.rstrip(".") or record.name.startswith(prefix):
                return record.levelno >= level
        return record.levelno >= logging.ERROR


def console_level_from(settings: Any) -> int:
    name = str(getattr(settings, "log_level", "INFO") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Any, *, file_level: int = logging.DEBUG) -> Path:
    """
    Configure the root logger from Settings (log_level, data_dir).

    Console: stderr at settings.log_level, filtered so background reminder chatter
    does not break the interactive prompt. File: <data_dir>/task_reminder.log,
    rotated, everything from file_level up. Returns the log file path.

    Safe to call again; previous root handlers are replaced.
    """
    log_dir = Path(getattr(settings, "data_dir", ".local/task_reminder"))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level_from(settings))
    console.setFormatter(fmt)
    console.addFilter(_PromptFriendlyFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    for name, level in QUIET_LIBRARIES.items():
        logging.getLogger(name).setLevel(level)

    return log_file
