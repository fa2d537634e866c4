"""
Shared data models for the TimeTracker application.
Used by both server and client components.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from shared.utils import format_datetime, parse_datetime


class TimerStatus(Enum):
    """Lifecycle states of a timer record"""
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class Timer:
    """Single start/stop interval for a work log (server-owned, read-only)"""
    id: Any
    work_log_id: Any
    created_at: datetime
    stopped_at: Optional[datetime] = None
    duration_in_seconds: int = 0  # Authoritative only once stopped
    status: TimerStatus = TimerStatus.RUNNING
    note: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.status is TimerStatus.RUNNING

    def to_dict(self) -> Dict[str, Any]:
        """Convert to wire (camelCase JSON) representation"""
        return {
            'id': self.id,
            'workLogId': self.work_log_id,
            'createdAt': format_datetime(self.created_at),
            'stoppedAt': format_datetime(self.stopped_at) if self.stopped_at else None,
            'durationInSeconds': self.duration_in_seconds,
            'status': self.status.value,
            'note': self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Timer':
        """Create Timer from dictionary (API response).

        Raises:
            ValueError: if the payload is missing ``id``, ``createdAt`` or
                ``status``, or carries an unknown status
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected timer object, got {type(data).__name__}")
        if data.get('id') is None:
            raise ValueError("Timer payload has no id")
        if not data.get('createdAt'):
            raise ValueError(f"Timer {data['id']} has no createdAt")

        if not data.get('status'):
            raise ValueError(f"Timer {data['id']} has no status")
        try:
            status = TimerStatus(data['status'])
        except ValueError:
            raise ValueError(f"Timer {data['id']} has unknown status {data.get('status')!r}")

        stopped_at = data.get('stoppedAt')
        return cls(
            id=data['id'],
            work_log_id=data.get('workLogId'),
            created_at=parse_datetime(data['createdAt']),
            stopped_at=parse_datetime(stopped_at) if stopped_at else None,
            duration_in_seconds=int(data.get('durationInSeconds') or 0),
            status=status,
            note=data.get('note'),
        )


# Configuration models
@dataclass
class ServerConfig:
    """Client configuration with validation"""
    server_url: str = "http://127.0.0.1:5000/api"
    api_key: str = ""
    timeout: int = 10  # seconds
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate configuration after initialization"""
        if not self.server_url.startswith(('http://', 'https://')):
            raise ValueError(f"Invalid server URL: must start with http:// or https://, got {self.server_url!r}")

        # Strip trailing slash so endpoints can always start with one
        self.server_url = self.server_url.rstrip('/')

        if not (1 <= self.timeout <= 120):
            raise ValueError(f"Timeout must be between 1 and 120 seconds, got {self.timeout}")

        self.log_level = self.log_level.upper()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON persistence"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServerConfig':
        """Create from dictionary"""
        return cls(**data)
