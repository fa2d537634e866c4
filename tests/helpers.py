"""Shared test helpers for TimeTracker."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from http import HTTPStatus
from itertools import count

import requests

from client.background_worker import ImmediateDispatcher
from shared.errors import TimeTrackerError
from shared.models import Timer, TimerStatus

T0 = datetime(2026, 2, 13, 14, 0, 0)


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None


class FakeClock:
    """Manually advanced replacement for ``datetime.now``."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_timer(timer_id: int, created_at: datetime = T0, *, running: bool = True,
               duration: int = 0, work_log_id: int = 1) -> Timer:
    return Timer(
        id=timer_id,
        work_log_id=work_log_id,
        created_at=created_at,
        stopped_at=None if running else created_at + timedelta(seconds=duration),
        duration_in_seconds=duration,
        status=TimerStatus.RUNNING if running else TimerStatus.STOPPED,
    )


class FakeRepository:
    """In-memory TimerRepository that records every call.

    Set ``failures[op]`` to an exception to make the next ``op`` call raise it.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers: list[Timer] = []
        self.calls: list[tuple] = []
        self.failures: dict[str, TimeTrackerError] = {}
        self._ids = count(1)

    def _maybe_fail(self, op: str) -> None:
        error = self.failures.pop(op, None)
        if error is not None:
            raise error

    def fetch_summary(self, work_log_id):
        self.calls.append(("fetch_summary", work_log_id))
        self._maybe_fail("fetch_summary")
        return [t for t in self.timers if t.work_log_id == work_log_id]

    def start(self, work_log_id):
        self.calls.append(("start", work_log_id))
        self._maybe_fail("start")
        timer = make_timer(next(self._ids), self.clock.now, work_log_id=work_log_id)
        self.timers.append(timer)
        return timer

    def stop(self, work_log_id):
        self.calls.append(("stop", work_log_id))
        self._maybe_fail("stop")
        running = [t for t in self.timers if t.is_running and t.work_log_id == work_log_id]
        timer = running[-1]
        duration = int((self.clock.now - timer.created_at).total_seconds())
        stopped = make_timer(timer.id, timer.created_at, running=False,
                             duration=duration, work_log_id=work_log_id)
        self.timers[self.timers.index(timer)] = stopped
        return stopped

    def ops(self) -> list[str]:
        return [op for op, _ in self.calls]


class ManualDispatcher:
    """Queues calls until the test releases them, to hold actions in flight."""

    def __init__(self):
        self.queue: list[tuple] = []

    def dispatch(self, fn, args, on_success, on_failure) -> None:
        self.queue.append((fn, args, on_success, on_failure))

    def run_next(self) -> None:
        fn, args, on_success, on_failure = self.queue.pop(0)
        ImmediateDispatcher().dispatch(fn, args, on_success, on_failure)

    def run_all(self) -> None:
        while self.queue:
            self.run_next()


def make_response(status: int, body=None, *, reason: str | None = None,
                  url: str = "http://test.local/api/worklogs/1/summary") -> requests.Response:
    """Build a real ``requests.Response`` without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.reason = HTTPStatus(status).phrase if reason is None else reason
    response.url = url
    response.encoding = "utf-8"
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response
