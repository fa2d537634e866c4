"""
Error taxonomy for TimeTracker.

Every failure that reaches the timer engine is one of three kinds:

- ValidationError  - bad work-log identifier, caught before any request
- NetworkError     - no response received from the server
- HttpStatusError  - the server answered, but not with a usable 2xx body
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Discriminant for the error taxonomy"""
    VALIDATION = "validation"
    NETWORK = "network"
    HTTP_STATUS = "http_status"


class TimeTrackerError(Exception):
    """Base class for all classified TimeTracker failures"""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and UI display"""
        return {'kind': self.kind.value, 'message': self.message}


class ValidationError(TimeTrackerError):
    """Malformed or missing work-log identifier"""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['value'] = repr(self.value)
        return data


class NetworkError(TimeTrackerError):
    """Transport-level failure, the request never produced a response"""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['url'] = self.url
        return data


class HttpStatusError(TimeTrackerError):
    """Server responded with a non-2xx status or an undecodable body"""

    kind = ErrorKind.HTTP_STATUS

    def __init__(self, status: int, message: str, code: Any = None,
                 details: Any = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.code = code
        self.details = details
        self.url = url

    def __str__(self) -> str:
        return f"{self.status}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'status': self.status,
            'code': self.code,
            'details': self.details,
            'url': self.url,
        })
        return data
