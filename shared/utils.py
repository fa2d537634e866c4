"""
Shared utility functions for TimeTracker application.
"""

import math
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from platformdirs import user_data_dir

from shared.errors import ValidationError

APP_NAME = "TimeTracker"
ZERO_DURATION = "00:00:00"
DISPLAY_DATETIME_FORMAT = '%d.%m.%Y %H:%M:%S'

# Fraction of a second in a wire timestamp, any number of digits
_FRACTION_RE = re.compile(r'\.(\d+)')


def get_data_path(relative_path: str) -> Path:
    """Get absolute path to writable data files (config, logs, server database).

    Resolves to the per-user data directory returned by
    ``platformdirs.user_data_dir`` (e.g. ``~/.local/share/TimeTracker`` on Linux).
    """
    base_path = Path(user_data_dir(APP_NAME))

    try:
        base_path.mkdir(parents=True, exist_ok=True)
    except OSError:
        # Last-ditch fallback to executable dir if we cannot create user dir
        base_path = Path(sys.executable).parent

    return base_path / relative_path


def format_duration(total_seconds: int) -> str:
    """Format a duration in seconds as ``HH:MM:SS``.

    Hours are not wrapped at 24, so 90000 seconds is ``25:00:00``.

    Raises:
        ValueError: for negative or non-integer input
    """
    if isinstance(total_seconds, bool) or not isinstance(total_seconds, int):
        raise ValueError(f"Duration must be an integer number of seconds, got {total_seconds!r}")
    if total_seconds < 0:
        raise ValueError(f"Duration must not be negative, got {total_seconds}")

    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_datetime(dt: datetime) -> str:
    """Format datetime as ISO-8601 wire timestamp (second precision)"""
    return dt.isoformat(timespec='seconds')


def parse_datetime(dt_str: str) -> datetime:
    """Parse ISO-8601 wire timestamp, with or without offset.

    Fractions of a second may have any number of digits (the server drops trailing
    zeros); they are padded or truncated to microseconds before parsing.

    Raises:
        ValueError: if the string is not an ISO timestamp
    """
    if not isinstance(dt_str, str) or not dt_str:
        raise ValueError(f"Invalid timestamp: {dt_str!r}")
    text = _FRACTION_RE.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), dt_str, count=1)
    return datetime.fromisoformat(text.replace('Z', '+00:00'))


def to_aware(dt: datetime) -> datetime:
    """Attach the local offset to naive datetimes (server sends local time)"""
    return dt.astimezone() if dt.tzinfo is None else dt


def seconds_between(start: datetime, end: datetime) -> int:
    """Whole seconds from ``start`` to ``end``, floored and never negative."""
    if (start.tzinfo is None) != (end.tzinfo is None):
        start, end = to_aware(start), to_aware(end)

    # Clock skew between client and server can put start in the future
    return max(0, math.floor((end - start).total_seconds()))


def validate_work_log_id(value: Any) -> int:
    """Return ``value`` as a positive integer work-log id.

    Accepts ints and strings of decimal digits.

    Raises:
        ValidationError: for missing, non-numeric, zero or negative ids
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("Missing or invalid work log ID", value)

    if isinstance(value, str):
        text = value.strip()
        if not text.isdecimal():
            raise ValidationError(f"Invalid work log ID: {value!r}", value)
        value = int(text)
    elif not isinstance(value, int):
        raise ValidationError(f"Invalid work log ID: {value!r}", value)

    if value <= 0:
        raise ValidationError(f"Work log ID must be positive, got {value}", value)
    return value


def format_local_datetime(value: Optional[Any]) -> str:
    """Format a timestamp (datetime or ISO string) for history display"""
    if not value:
        return "—"
    if isinstance(value, datetime):
        return value.strftime(DISPLAY_DATETIME_FORMAT)
    try:
        return parse_datetime(value).strftime(DISPLAY_DATETIME_FORMAT)
    except ValueError:
        return "Invalid date"


def create_app_icon():
    """Create a simple programmatic QIcon for the client window"""
    from PyQt6.QtCore import Qt
    from PyQt6.QtGui import QBrush, QColor, QIcon, QPainter, QPixmap

    pixmap = QPixmap(32, 32)
    pixmap.fill(Qt.GlobalColor.transparent)

    painter = QPainter(pixmap)
    painter.setBrush(QBrush(QColor(0, 120, 215)))  # Blue circle
    painter.setPen(Qt.PenStyle.NoPen)
    painter.drawEllipse(4, 4, 24, 24)
    painter.end()

    return QIcon(pixmap)
