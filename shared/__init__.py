"""Shared package for TimeTracker.

Models, error taxonomy, helpers and logging used by both client and server.
"""

__VERSION__ = "1.0.0"
__API_VERSION__ = "1"
