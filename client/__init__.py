"""Client package for TimeTracker application.

Provides the typed HTTP client, the timer repository and the timer
reconciliation engine.
"""
from .background_worker import ImmediateDispatcher, ThreadPoolDispatcher
from .http_client import HttpClient
from .sync_engine import TimerSyncEngine
from .timer_repository import TimerRepository

__all__ = ["HttpClient", "TimerRepository", "TimerSyncEngine",
           "ImmediateDispatcher", "ThreadPoolDispatcher"]
