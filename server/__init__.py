"""Server package for TimeTracker application.

Reference REST server for the timer endpoints, served with Waitress.
"""
from .server import DEFAULT_SERVER_PORT, init_server_db, run_server
from .server import app as flask_app

__all__ = ["run_server", "flask_app", "init_server_db", "DEFAULT_SERVER_PORT"]
