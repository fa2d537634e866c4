"""Timer reconciliation engine for TimeTracker.

The server is the only source of truth for timers. The engine keeps the last
fetched snapshot of a work log's timers and derives everything else from it:

Active timer
    The RUNNING timer of the snapshot. Several RUNNING timers violate the
    server invariant; the newest one wins and an anomaly is reported.

Live clock
    While an active timer exists a one-second ``QTimer`` ticks. Elapsed time is
    recomputed from the clock and ``created_at`` on every tick, so tick jitter
    never accumulates. The tick timer is started on the transition into
    "has active timer" and stopped on the transition out of it or on shutdown.

Actions
    ``start``/``stop`` are serialised by ``pending_action``: while one is in
    flight further start/stop intents are ignored. Every action, successful or
    not, is followed by a reconciling ``load``. Actions only run against the
    loaded work log; an action for another work log loads it instead.

Errors never escape the engine: they are stored in ``last_error``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Tuple

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from client.background_worker import ThreadPoolDispatcher
from client.timer_repository import TimerRepository
from shared.errors import TimeTrackerError, ValidationError
from shared.logging_config import get_sync_logger
from shared.models import Timer
from shared.utils import (ZERO_DURATION, format_duration, seconds_between,
                          to_aware, validate_work_log_id)

logger = get_sync_logger()

TICK_INTERVAL_MS = 1000


class TimerSyncEngine(QObject):
    """Derives live timer state for one work log from server snapshots.

    Signals
    -------
    state_changed()
        Emitted after a snapshot is applied or ``pending_action`` changes.
    tick(elapsed_seconds: int)
        Emitted every second while a timer is active.
    error_changed(error: TimeTrackerError | None)
        Emitted whenever ``last_error`` changes.
    anomaly_detected(message: str)
        Emitted when a snapshot holds more than one RUNNING timer.
    """

    state_changed = pyqtSignal()
    tick = pyqtSignal(int)
    error_changed = pyqtSignal(object)
    anomaly_detected = pyqtSignal(str)

    def __init__(
        self,
        repository: TimerRepository,
        parent: QObject | None = None,
        *,
        dispatcher=None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(parent)
        self.repository = repository
        self._dispatcher = dispatcher or ThreadPoolDispatcher()
        self._clock = clock or datetime.now

        # ── reconciled state ─────────────────────────────────────────
        self._work_log_id: int | None = None
        self._snapshot: Tuple[Timer, ...] = ()
        self._active: Timer | None = None
        self._anomaly: str | None = None

        # ── live clock ───────────────────────────────────────────────
        self._tick_count: int = 0
        self._elapsed: int = 0

        # ── actions / errors ─────────────────────────────────────────
        self._pending_action: bool = False
        self._last_error: TimeTrackerError | None = None
        self._closed: bool = False

        # Child of the engine, so it dies with the owning scope
        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(TICK_INTERVAL_MS)
        self._tick_timer.timeout.connect(self._on_tick)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def work_log_id(self) -> int | None:
        """Work log of the last load/start/stop request."""
        return self._work_log_id

    @property
    def active_timer(self) -> Timer | None:
        return self._active

    @property
    def elapsed_seconds(self) -> int:
        """Live elapsed seconds of the active timer (0 without one)."""
        return self._elapsed if self._active is not None else 0

    @property
    def elapsed_text(self) -> str:
        if self._active is None:
            return ZERO_DURATION
        return format_duration(self._elapsed)

    @property
    def pending_action(self) -> bool:
        return self._pending_action

    @property
    def last_error(self) -> TimeTrackerError | None:
        return self._last_error

    @property
    def anomaly(self) -> str | None:
        """Diagnostic for a snapshot with several RUNNING timers."""
        return self._anomaly

    @property
    def history(self) -> Tuple[Timer, ...]:
        """Read-only copy of the loaded timers, newest first."""
        return tuple(sorted(self._snapshot, key=_started, reverse=True))

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def load(self, work_log_id) -> None:
        """Replace the snapshot with a fresh one from the server."""
        work_log_id = self._accept(work_log_id)
        if work_log_id is None:
            return
        self._fetch(work_log_id)

    def start(self, work_log_id) -> None:
        """Start a timer unless one is active or an action is in flight."""
        work_log_id = self._action_target("start", work_log_id)
        if work_log_id is None:
            return
        if self._active is not None or self._pending_action:
            logger.debug("start ignored: timer already active or action pending")
            return
        self._run_action("start", self.repository.start, work_log_id)

    def stop(self, work_log_id) -> None:
        """Stop the active timer unless none is active or an action is in flight."""
        work_log_id = self._action_target("stop", work_log_id)
        if work_log_id is None:
            return
        if self._active is None or self._pending_action:
            logger.debug("stop ignored: no active timer or action pending")
            return
        self._run_action("stop", self.repository.stop, work_log_id)

    def shutdown(self) -> None:
        """Release the tick timer; later call results are ignored."""
        self._closed = True
        if self._tick_timer.isActive():
            self._tick_timer.stop()
            logger.debug("Tick timer stopped on shutdown")

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: requests
    # ══════════════════════════════════════════════════════════════════

    def _validated(self, work_log_id) -> int | None:
        """Validate the id, recording a ValidationError instead of raising."""
        try:
            return validate_work_log_id(work_log_id)
        except ValidationError as e:
            logger.warning(f"Rejected work log id: {e.message}")
            self._set_error(e)
            return None

    def _accept(self, work_log_id) -> int | None:
        work_log_id = self._validated(work_log_id)
        if work_log_id is not None:
            self._work_log_id = work_log_id
        return work_log_id

    def _action_target(self, name: str, work_log_id) -> int | None:
        """Id of the loaded work log an action may run against, else None.

        The start/stop guards only hold for the loaded snapshot. An action for
        any other work log loads that log instead and is not sent.
        """
        work_log_id = self._validated(work_log_id)
        if work_log_id is None:
            return None
        if work_log_id != self._work_log_id:
            logger.info(f"{name} skipped for work log {work_log_id}: not loaded, loading it")
            self.load(work_log_id)
            return None
        return work_log_id

    def _run_action(self, name: str, call, work_log_id: int) -> None:
        self._set_pending(True)
        logger.info(f"Requesting timer {name} for work log {work_log_id}")

        def succeeded(timer: Timer) -> None:
            logger.info(f"Timer {name} accepted for work log {work_log_id} (timer {timer.id})")
            self._fetch(work_log_id, action_error=None, finished=self._clear_pending)

        def failed(error: TimeTrackerError) -> None:
            logger.warning(f"Timer {name} failed for work log {work_log_id}: {error.message}")
            # Reconcile anyway: the server may hold a different state than assumed
            self._fetch(work_log_id, action_error=error, finished=self._clear_pending)

        self._dispatcher.dispatch(call, (work_log_id,), succeeded, failed)

    def _fetch(self, work_log_id: int, action_error: TimeTrackerError | None = None,
               finished: Callable[[], None] | None = None) -> None:
        def loaded(timers) -> None:
            if self._usable_response(work_log_id):
                self._apply_snapshot(timers)
                # A failed action stays visible after its reconciling load
                self._set_error(action_error)
            if finished:
                finished()

        def failed(error: TimeTrackerError) -> None:
            if self._usable_response(work_log_id):
                logger.warning(f"Loading timers for work log {work_log_id} failed: {error.message}")
                # Snapshot stays as it was: stale but not blank
                self._set_error(action_error or error)
            if finished:
                finished()

        self._dispatcher.dispatch(self.repository.fetch_summary, (work_log_id,), loaded, failed)

    def _usable_response(self, work_log_id: int) -> bool:
        if self._closed:
            logger.debug(f"Ignoring response for work log {work_log_id} after shutdown")
            return False
        if work_log_id != self._work_log_id:
            logger.debug(f"Ignoring response for work log {work_log_id}, now showing {self._work_log_id}")
            return False
        return True

    def _set_pending(self, value: bool) -> None:
        if self._pending_action != value:
            self._pending_action = value
            self.state_changed.emit()

    def _clear_pending(self) -> None:
        self._set_pending(False)

    def _set_error(self, error: TimeTrackerError | None) -> None:
        if error is self._last_error:
            return
        self._last_error = error
        self.error_changed.emit(error)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: reconciliation and ticking
    # ══════════════════════════════════════════════════════════════════

    def _apply_snapshot(self, timers) -> None:
        snapshot = tuple(timers)
        running = [t for t in snapshot if t.is_running]
        active = max(running, key=_started) if running else None

        if len(running) > 1:
            ids = ", ".join(str(t.id) for t in running)
            self._anomaly = (
                f"{len(running)} running timers for work log {self._work_log_id} "
                f"({ids}); showing the newest, {active.id}"
            )
            logger.warning(self._anomaly)
            self.anomaly_detected.emit(self._anomaly)
        else:
            self._anomaly = None

        previous = self._active
        self._snapshot = snapshot
        self._active = active

        if active is not None and previous is None:
            self._tick_count = 0
            self._tick_timer.start()
            logger.debug(f"Tick timer started for timer {active.id}")
        elif active is None and previous is not None:
            self._tick_timer.stop()
            self._tick_count = 0
            logger.debug(f"Tick timer stopped, timer {previous.id} no longer running")
        elif active is not None and active.id != previous.id:
            # Still active, but a different record: restart the count, keep the task
            self._tick_count = 0

        self._recompute_elapsed()
        self.state_changed.emit()

    def _on_tick(self) -> None:
        self._tick_count += 1
        self._recompute_elapsed()
        self.tick.emit(self._elapsed)

    def _recompute_elapsed(self) -> None:
        if self._active is None:
            self._elapsed = 0
        else:
            self._elapsed = seconds_between(self._active.created_at, self._clock())


def _started(timer: Timer) -> datetime:
    return to_aware(timer.created_at)
