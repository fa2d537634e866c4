"""
TimeTracker REST API Server
Reference server for the timer endpoints consumed by the TimeTracker client.
"""

import sqlite3
from datetime import datetime, timedelta
from functools import wraps
from http import HTTPStatus
from typing import Any, Dict, List, Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

import shared
from shared.logging_config import get_server_logger
from shared.models import Timer, TimerStatus
from shared.utils import format_datetime, get_data_path, parse_datetime

# Setup standardized logging
logger = get_server_logger()

# Server configuration constants
DB_BUSY_TIMEOUT_MS: int = 5000
DEFAULT_SERVER_PORT: int = 5000
API_PREFIX = '/api'

# Business error codes carried in error bodies
CODE_TIMER_ALREADY_RUNNING = 1001
CODE_TIMER_NOT_RUNNING = 1002
CODE_UNAUTHORIZED = 1401
CODE_INTERNAL_ERROR = 1500

app = Flask(__name__)
# The browser client sends cookies (credentials: include)
CORS(app, supports_credentials=True)

app.config.setdefault('DATABASE', str(get_data_path('server_timetracker.db')))
# Empty set disables API key checks
app.config.setdefault('API_KEYS', set())


class ApiError(Exception):
    """Domain error rendered as a JSON error body"""

    def __init__(self, status: int, message: str, code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.code = code
        self.details = details


class TimerAlreadyRunningError(ApiError):
    def __init__(self, work_log_id: int):
        super().__init__(409, f"Timer already running for work log {work_log_id}",
                         CODE_TIMER_ALREADY_RUNNING)


class TimerNotRunningError(ApiError):
    def __init__(self, work_log_id: int):
        super().__init__(409, f"Timer is not running for work log {work_log_id}",
                         CODE_TIMER_NOT_RUNNING)


def current_time() -> datetime:
    """Server clock (local time, second precision)"""
    return datetime.now().replace(microsecond=0)


def get_db() -> sqlite3.Connection:
    """Get database connection (for Flask context)."""
    if 'db' not in g:
        g.db = sqlite3.connect(app.config['DATABASE'])
        g.db.execute(f"PRAGMA busy_timeout = {DB_BUSY_TIMEOUT_MS}")
        g.db.row_factory = sqlite3.Row
    return g.db


@app.teardown_appcontext
def close_db(error):
    """Close database connection"""
    db = g.pop('db', None)
    if db is not None:
        db.close()


def init_server_db():
    """Create the timers table if needed"""
    conn = sqlite3.connect(app.config['DATABASE'])
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS timers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                work_log_id INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                stopped_at TEXT,
                duration_in_seconds INTEGER NOT NULL DEFAULT 0,
                status TEXT NOT NULL,
                note TEXT
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_timers_work_log
            ON timers (work_log_id, status)
        """)
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        logger.error(f"Failed to initialize server database: {e}")
        raise
    finally:
        conn.close()


def _row_to_timer(row: sqlite3.Row) -> Timer:
    return Timer(
        id=row['id'],
        work_log_id=row['work_log_id'],
        created_at=parse_datetime(row['created_at']),
        stopped_at=parse_datetime(row['stopped_at']) if row['stopped_at'] else None,
        duration_in_seconds=row['duration_in_seconds'],
        status=TimerStatus(row['status']),
        note=row['note'],
    )


def _insert_stopped(db: sqlite3.Connection, work_log_id: int, started: datetime,
                    stopped: datetime) -> int:
    cursor = db.execute("""
        INSERT INTO timers (work_log_id, created_at, stopped_at, duration_in_seconds, status)
        VALUES (?, ?, ?, ?, ?)
    """, (work_log_id, format_datetime(started), format_datetime(stopped),
          int((stopped - started).total_seconds()), TimerStatus.STOPPED.value))
    return cursor.lastrowid


def stop_and_split(db: sqlite3.Connection, timer: Timer, stopped_at: datetime) -> List[int]:
    """Stop ``timer``; a timer crossing midnight becomes one record per day.

    Returns the ids of the stopped records, oldest first.
    """
    ids = []
    segment_start = timer.created_at
    day_end = datetime.combine(segment_start.date() + timedelta(days=1), datetime.min.time())

    # First segment reuses the running record
    segment_end = min(day_end, stopped_at)
    db.execute("""
        UPDATE timers SET stopped_at = ?, duration_in_seconds = ?, status = ?
        WHERE id = ?
    """, (format_datetime(segment_end), int((segment_end - segment_start).total_seconds()),
          TimerStatus.STOPPED.value, timer.id))
    ids.append(timer.id)

    while segment_end < stopped_at:
        segment_start = segment_end
        segment_end = min(segment_start + timedelta(days=1), stopped_at)
        ids.append(_insert_stopped(db, timer.work_log_id, segment_start, segment_end))

    return ids


def require_auth(f):
    """Decorator to require a configured bearer API key"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        api_keys = app.config['API_KEYS']
        if api_keys:
            auth_header = request.headers.get('Authorization', '')
            if not auth_header.startswith('Bearer ') or auth_header[7:] not in api_keys:
                logger.warning(f"Unauthorized request to {request.path}")
                raise ApiError(401, "Unauthorized", CODE_UNAUTHORIZED)
        return f(*args, **kwargs)
    return decorated_function


def _error_body(status: int, message: str, code: Any = None, details: Any = None) -> Dict[str, Any]:
    return {
        'timestamp': format_datetime(current_time()),
        'status': status,
        'error': HTTPStatus(status).phrase,
        'message': message,
        'path': request.path,
        'code': code,
        'details': details,
    }


@app.errorhandler(ApiError)
def handle_api_error(error: ApiError):
    return jsonify(_error_body(error.status, error.message, error.code, error.details)), error.status


@app.errorhandler(HTTPException)
def handle_http_exception(error: HTTPException):
    return jsonify(_error_body(error.code, error.description)), error.code


@app.errorhandler(Exception)
def handle_unexpected(error: Exception):
    logger.exception(f"Internal error: {error}")
    return jsonify(_error_body(500, "Unexpected error occurred", CODE_INTERNAL_ERROR)), 500


# Health check endpoint
@app.route('/health', methods=['GET'])
def health_check():
    return jsonify({
        "status": "healthy",
        "timestamp": format_datetime(current_time()),
        "version": shared.__VERSION__,
        "api_version": shared.__API_VERSION__,
    })


@app.route(f'{API_PREFIX}/worklogs/<int:work_log_id>/summary', methods=['GET'])
@require_auth
def get_summary(work_log_id):
    """All timers of a work log, newest first"""
    rows = get_db().execute("""
        SELECT * FROM timers WHERE work_log_id = ?
        ORDER BY created_at DESC, id DESC
    """, (work_log_id,)).fetchall()
    return jsonify([_row_to_timer(row).to_dict() for row in rows])


@app.route(f'{API_PREFIX}/worklogs/<int:work_log_id>/startTimer', methods=['POST'])
@require_auth
def start_timer(work_log_id):
    db = get_db()
    # Serialize writers so two concurrent starts cannot both pass the check
    db.execute("BEGIN IMMEDIATE")
    try:
        running = db.execute(
            "SELECT 1 FROM timers WHERE work_log_id = ? AND status = ?",
            (work_log_id, TimerStatus.RUNNING.value)
        ).fetchone()
        if running:
            raise TimerAlreadyRunningError(work_log_id)

        cursor = db.execute("""
            INSERT INTO timers (work_log_id, created_at, status) VALUES (?, ?, ?)
        """, (work_log_id, format_datetime(current_time()), TimerStatus.RUNNING.value))
        db.commit()
    except Exception:
        db.rollback()
        raise

    row = db.execute("SELECT * FROM timers WHERE id = ?", (cursor.lastrowid,)).fetchone()
    logger.info(f"Timer {row['id']} started for work log {work_log_id}")
    return jsonify(_row_to_timer(row).to_dict())


@app.route(f'{API_PREFIX}/worklogs/<int:work_log_id>/stopTimer', methods=['POST'])
@require_auth
def stop_timer(work_log_id):
    """Stop the newest running timer; returns the last stopped record"""
    db = get_db()
    db.execute("BEGIN IMMEDIATE")
    try:
        row = db.execute("""
            SELECT * FROM timers WHERE work_log_id = ? AND status = ?
            ORDER BY created_at DESC, id DESC LIMIT 1
        """, (work_log_id, TimerStatus.RUNNING.value)).fetchone()
        if row is None:
            raise TimerNotRunningError(work_log_id)

        ids = stop_and_split(db, _row_to_timer(row), current_time())
        db.commit()
    except Exception:
        db.rollback()
        raise

    last = db.execute("SELECT * FROM timers WHERE id = ?", (ids[-1],)).fetchone()
    logger.info(f"Timer {row['id']} stopped for work log {work_log_id} ({len(ids)} record(s))")
    return jsonify(_row_to_timer(last).to_dict())


def run_server(host='127.0.0.1', port=DEFAULT_SERVER_PORT):
    """Run server with Waitress WSGI server"""
    from waitress import serve

    init_server_db()
    logger.info(f"Starting TimeTracker Server on {host}:{port}")
    serve(app, host=host, port=port, threads=6)


if __name__ == '__main__':
    run_server()
