"""
Logging setup for TimeTracker.

All project loggers hang off the ``timetracker`` logger, which owns the
handlers. Component loggers (``timetracker.client``, ``timetracker.sync``...)
carry no handlers of their own and inherit its level, so ``set_log_level``
only has to touch one logger.

Console format: ``[timestamp] [COMPONENT] [LEVEL] message``.
"""

import logging
import sys
from datetime import datetime
from typing import Optional, TextIO

from termcolor import colored

from shared.utils import get_data_path

LOGGER_PREFIX = "timetracker"

LEVEL_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'magenta',
}


class TimeTrackerFormatter(logging.Formatter):
    """Formatter naming the component a record came from.

    The component is the last part of the logger name, upper-cased.
    """

    def __init__(self, use_colors: bool = False):
        super().__init__(
            fmt='[%(asctime)s] [%(component)s] [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        )
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        record.component = record.name.rpartition('.')[2].upper()
        text = super().format(record)
        if not self.use_colors:
            return text
        attrs = ['bold'] if record.levelno >= logging.ERROR else None
        return colored(text, LEVEL_COLORS.get(record.levelname, 'white'), attrs=attrs)


def _is_terminal(stream: Optional[TextIO]) -> bool:
    # Frozen GUI builds have no stdout at all
    try:
        return bool(stream and stream.isatty())
    except (AttributeError, ValueError):
        return False


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


def setup_logging(level: str = "INFO", log_to_file: bool = False) -> logging.Logger:
    """Attach console (and optionally file) handlers to the project logger.

    Handlers are attached once; later calls only change the level.
    """
    root = logging.getLogger(LOGGER_PREFIX)
    root.setLevel(_level(level))
    if root.handlers:
        return root

    stream = sys.stdout or sys.stderr
    console = logging.StreamHandler(stream)
    console.setFormatter(TimeTrackerFormatter(use_colors=_is_terminal(stream)))
    root.addHandler(console)

    if log_to_file:
        log_dir = get_data_path('logs')
        log_file = log_dir / f"timetracker_{datetime.now():%Y%m%d_%H%M%S}.log"
        try:
            log_dir.mkdir(exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            root.warning(f"File logging disabled, cannot open {log_file}: {e}")
        else:
            file_handler.setFormatter(TimeTrackerFormatter())
            root.addHandler(file_handler)

    return root


def get_logger(component: str) -> logging.Logger:
    """Logger for one component, configuring defaults on first use"""
    if not logging.getLogger(LOGGER_PREFIX).handlers:
        setup_logging()
    return logging.getLogger(f"{LOGGER_PREFIX}.{component.lower()}")


def get_client_logger() -> logging.Logger:
    return get_logger("client")


def get_server_logger() -> logging.Logger:
    return get_logger("server")


def get_sync_logger() -> logging.Logger:
    """Logger for timer reconciliation and background calls"""
    return get_logger("sync")


def set_log_level(level: str) -> None:
    """Set the level of every TimeTracker logger"""
    logging.getLogger(LOGGER_PREFIX).setLevel(_level(level))
