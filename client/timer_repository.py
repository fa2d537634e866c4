"""
Timer endpoints of the TimeTracker API for a single work log.
"""

from typing import Any, Dict, List

from client.http_client import HttpClient
from shared.errors import HttpStatusError
from shared.models import Timer
from shared.utils import validate_work_log_id


class TimerRepository:
    """Maps fetch_summary/start/stop onto HttpClient calls"""

    def __init__(self, http: HttpClient):
        self.http = http

    def fetch_summary(self, work_log_id) -> List[Timer]:
        """All timers of the work log, as the server orders them"""
        endpoint = f"/worklogs/{validate_work_log_id(work_log_id)}/summary"
        data = self.http.get(endpoint, List[Dict[str, Any]])
        if not isinstance(data, list):
            raise HttpStatusError(200, "Malformed timer summary: expected a list",
                                  url=self.http.url_for(endpoint))
        return [self._to_timer(item, endpoint) for item in data]

    def start(self, work_log_id) -> Timer:
        endpoint = f"/worklogs/{validate_work_log_id(work_log_id)}/startTimer"
        return self._to_timer(self.http.post(endpoint, {}, Dict[str, Any]), endpoint)

    def stop(self, work_log_id) -> Timer:
        endpoint = f"/worklogs/{validate_work_log_id(work_log_id)}/stopTimer"
        return self._to_timer(self.http.post(endpoint, {}, Dict[str, Any]), endpoint)

    def _to_timer(self, data: Any, endpoint: str) -> Timer:
        try:
            return Timer.from_dict(data)
        except (TypeError, ValueError) as e:
            raise HttpStatusError(200, f"Malformed timer payload: {e}",
                                  url=self.http.url_for(endpoint))
