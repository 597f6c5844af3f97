"""
Logging setup for ARCatHandController.

Everything goes to a rotating file in the per-user log directory; the
console gets a shorter format. Detection results arrive ~12 times per
second, so the console drops exact repeats of a message for a short window.
"""

import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, Optional

from .config import LOG_APP_NAME, LOG_BACKUP_COUNT, LOG_FILENAME, LOG_MAX_BYTES

CONSOLE_REPEAT_WINDOW_SEC = 2.0


class RepeatFilter(logging.Filter):
    """
    Drops a record that repeats the previous message of the same logger.

    The first repeat after ``window`` seconds passes again, annotated with
    the number of copies that were dropped.
    """

    def __init__(
        self,
        window: float = CONSOLE_REPEAT_WINDOW_SEC,
        clock: Callable[[], float] = time.monotonic
    ):
        super().__init__()
        self.window = window
        self._clock = clock
        self._last: dict[str, tuple[str, float]] = {}
        self._dropped: dict[str, int] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        now = self._clock()
        previous = self._last.get(record.name)

        if previous is not None and previous[0] == message and now - previous[1] < self.window:
            self._dropped[record.name] = self._dropped.get(record.name, 0) + 1
            return False

        dropped = self._dropped.pop(record.name, 0)
        if dropped and previous is not None and previous[0] == message:
            record.msg = f"{message} (repeated {dropped}x)"
            record.args = None
        self._last[record.name] = (message, now)
        return True


def get_log_directory(base_dir: Optional[Path] = None) -> Path:
    """
    Resolve and create the log directory.

    Uses ``base_dir`` when given, otherwise %APPDATA%/ARCatHandController/logs
    or ~/.arcathandcontroller/logs where APPDATA is not set.
    """
    if base_dir is not None:
        log_dir = Path(base_dir)
    elif os.environ.get("APPDATA"):
        log_dir = Path(os.environ["APPDATA"]) / LOG_APP_NAME / "logs"
    else:
        log_dir = Path.home() / f".{LOG_APP_NAME.lower()}" / "logs"

    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logging(
    debug: bool = False,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        debug: Log DEBUG records to the console as well.
        log_to_file: Also write a rotating log file.
        log_filename: Override of the log file name.
        log_dir: Override of the log directory.

    Returns:
        The application root logger; components log through get_logger().
    """
    app_logger = logging.getLogger(LOG_APP_NAME)
    app_logger.setLevel(logging.DEBUG)
    app_logger.propagate = False

    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if debug else logging.INFO)
    console.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S"
    ))
    console.addFilter(RepeatFilter())
    app_logger.addHandler(console)

    if log_to_file:
        log_path = get_log_directory(log_dir) / (log_filename or LOG_FILENAME)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(threadName)s | "
            "%(name)s.%(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        app_logger.addHandler(file_handler)
        app_logger.debug(f"Log file: {log_path}")

    return app_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Component logger below the application logger (the root one if no name)."""
    app_logger = logging.getLogger(LOG_APP_NAME)
    return app_logger.getChild(name) if name else app_logger
