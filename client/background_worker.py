"""
Background call dispatch for TimeTracker client.

Network calls run on Qt's global thread pool so they never block the UI event
loop; their outcome is relayed back to the GUI thread through queued signals.
``ImmediateDispatcher`` offers the same contract inline for scripts and tests.
"""

from typing import Any, Callable, Set

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal, pyqtSlot

from shared.errors import NetworkError, TimeTrackerError
from shared.logging_config import get_sync_logger

logger = get_sync_logger()

SuccessCallback = Callable[[Any], None]
FailureCallback = Callable[[TimeTrackerError], None]


def classify_failure(error: Exception) -> TimeTrackerError:
    """Return ``error`` as a member of the error taxonomy.

    Must be called from inside the ``except`` block that caught ``error``.
    Anything outside the taxonomy is a bug in the call; it is logged with its
    traceback and reported as a call that produced no response.
    """
    if isinstance(error, TimeTrackerError):
        return error
    logger.exception(f"Unexpected failure in background call: {error}")
    return NetworkError(f"Unexpected error: {error}")


class ImmediateDispatcher:
    """Runs calls inline on the caller's thread"""

    def dispatch(self, fn: Callable[..., Any], args: tuple,
                 on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        try:
            result = fn(*args)
        except Exception as e:
            on_failure(classify_failure(e))
        else:
            on_success(result)


class CallSignals(QObject):
    """Signals for a single background call"""
    succeeded = pyqtSignal(object)
    failed = pyqtSignal(object)


class BackgroundCall(QRunnable):
    """Runnable wrapping one repository call"""

    def __init__(self, fn: Callable[..., Any], args: tuple):
        super().__init__()
        self.fn = fn
        self.args = args
        self.signals = CallSignals()

    def run(self) -> None:
        try:
            result = self.fn(*self.args)
        except Exception as e:
            self.signals.failed.emit(classify_failure(e))
        else:
            self.signals.succeeded.emit(result)


class CallReceiver(QObject):
    """Receives one call's outcome on the thread that created it"""

    def __init__(self, on_success: SuccessCallback, on_failure: FailureCallback,
                 finished: Callable[['CallReceiver'], None]):
        super().__init__()
        self._on_success = on_success
        self._on_failure = on_failure
        self._finished = finished

    @pyqtSlot(object)
    def deliver_success(self, result) -> None:
        self._finished(self)
        self._on_success(result)

    @pyqtSlot(object)
    def deliver_failure(self, error) -> None:
        self._finished(self)
        self._on_failure(error)


class ThreadPoolDispatcher:
    """Runs calls on a ``QThreadPool`` and delivers results on the GUI thread"""

    def __init__(self, pool: QThreadPool = None):
        self.pool = pool or QThreadPool.globalInstance()
        # Receivers must outlive the call until its outcome is delivered
        self._in_flight: Set[CallReceiver] = set()

    def dispatch(self, fn: Callable[..., Any], args: tuple,
                 on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        receiver = CallReceiver(on_success, on_failure, self._in_flight.discard)
        self._in_flight.add(receiver)

        call = BackgroundCall(fn, args)
        call.signals.succeeded.connect(receiver.deliver_success)
        call.signals.failed.connect(receiver.deliver_failure)
        self.pool.start(call)

    def wait_for_done(self, msecs: int = -1) -> bool:
        """Block until all pool calls finish (shutdown and tests)"""
        return self.pool.waitForDone(msecs)
