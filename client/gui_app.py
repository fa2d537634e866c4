"""
TimeTracker Client GUI Application
Renders TimerSyncEngine state for one work log and forwards start/stop intents.
"""

import sys

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (QApplication, QHBoxLayout, QHeaderView, QLabel,
                             QLineEdit, QMainWindow, QPushButton,
                             QTableWidget, QTableWidgetItem, QVBoxLayout,
                             QWidget)

import shared
from client.http_client import HttpClient
from client.sync_engine import TimerSyncEngine
from client.timer_repository import TimerRepository
from shared.config import load_config
from shared.logging_config import get_client_logger, set_log_level
from shared.models import ServerConfig
from shared.utils import create_app_icon, format_duration, format_local_datetime

HISTORY_COLUMNS = ['Started', 'Stopped', 'Duration', 'Status']


class ActiveTimerWindow(QMainWindow):
    """Main TimeTracker client window: active timer panel plus history table"""

    def __init__(self, engine: TimerSyncEngine, work_log_id=None) -> None:
        super().__init__()
        self.logger = get_client_logger()
        self.engine = engine

        self.setup_ui()

        engine.state_changed.connect(self.refresh)
        engine.tick.connect(self.on_tick)
        engine.error_changed.connect(self.on_error_changed)
        engine.anomaly_detected.connect(self.on_anomaly)

        if work_log_id is not None:
            self.work_log_input.setText(str(work_log_id))
            self.load()

        self.refresh()

    def setup_ui(self) -> None:
        """Build the panel: work log selector, clock, error line, buttons, history"""
        self.setWindowTitle('TimeTracker')
        self.setWindowIcon(create_app_icon())
        self.setMinimumSize(420, 420)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout(central_widget)
        layout.setSpacing(12)

        selector = QHBoxLayout()
        selector.addWidget(QLabel('Work log ID:'))
        self.work_log_input = QLineEdit()
        self.work_log_input.returnPressed.connect(self.load)
        selector.addWidget(self.work_log_input)
        self.load_button = QPushButton('Load')
        self.load_button.clicked.connect(self.load)
        selector.addWidget(self.load_button)
        layout.addLayout(selector)

        title = QLabel('Active timer')
        title.setStyleSheet('font-size: 16px; font-weight: bold;')
        layout.addWidget(title)

        self.error_label = QLabel('')
        self.error_label.setStyleSheet('color: crimson;')
        self.error_label.setWordWrap(True)
        self.error_label.hide()
        layout.addWidget(self.error_label)

        self.anomaly_label = QLabel('')
        self.anomaly_label.setStyleSheet('color: #b36b00;')
        self.anomaly_label.setWordWrap(True)
        self.anomaly_label.hide()
        layout.addWidget(self.anomaly_label)

        self.time_label = QLabel(self.engine.elapsed_text)
        self.time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.time_label.setStyleSheet('font-size: 28px; font-weight: 700;')
        layout.addWidget(self.time_label)

        buttons = QHBoxLayout()
        self.start_button = QPushButton('Start')
        self.start_button.clicked.connect(self.start_timer)
        buttons.addWidget(self.start_button)
        self.stop_button = QPushButton('Stop')
        self.stop_button.clicked.connect(self.stop_timer)
        buttons.addWidget(self.stop_button)
        layout.addLayout(buttons)

        self.history_table = QTableWidget(0, len(HISTORY_COLUMNS))
        self.history_table.setHorizontalHeaderLabels(HISTORY_COLUMNS)
        self.history_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.history_table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        layout.addWidget(self.history_table)

    # User intents
    def load(self) -> None:
        self.engine.load(self.work_log_input.text())

    def start_timer(self) -> None:
        self.engine.start(self.work_log_input.text())

    def stop_timer(self) -> None:
        self.engine.stop(self.work_log_input.text())

    # Engine signal handlers
    def refresh(self) -> None:
        """Re-render everything derived from engine state"""
        is_running = self.engine.active_timer is not None
        pending = self.engine.pending_action

        self.time_label.setText(self.engine.elapsed_text)
        self.start_button.setEnabled(not is_running and not pending)
        self.stop_button.setEnabled(is_running and not pending)

        if not self.engine.anomaly:
            self.anomaly_label.hide()

        history = self.engine.history
        self.history_table.setRowCount(len(history))
        for row, timer in enumerate(history):
            cells = [
                format_local_datetime(timer.created_at),
                format_local_datetime(timer.stopped_at),
                format_duration(timer.duration_in_seconds) if not timer.is_running else self.engine.elapsed_text,
                timer.status.value,
            ]
            for column, text in enumerate(cells):
                self.history_table.setItem(row, column, QTableWidgetItem(text))

    def on_tick(self, elapsed_seconds: int) -> None:
        self.time_label.setText(format_duration(elapsed_seconds))

    def on_error_changed(self, error) -> None:
        if error is None:
            self.error_label.hide()
        else:
            self.error_label.setText(error.message)
            self.error_label.show()

    def on_anomaly(self, message: str) -> None:
        self.anomaly_label.setText(message)
        self.anomaly_label.show()

    def closeEvent(self, event):
        """Release the tick timer before the window goes away"""
        self.engine.shutdown()
        super().closeEvent(event)


def load_client_config() -> ServerConfig:
    """Load configuration; an invalid file or environment value falls back to defaults"""
    try:
        return load_config()
    except ValueError as e:
        get_client_logger().error(f"Invalid configuration, using defaults: {e}")
        return ServerConfig()


def main():
    """Main entry point for the TimeTracker client application"""
    config = load_client_config()
    set_log_level(config.log_level)
    logger = get_client_logger()

    app = QApplication(sys.argv)
    app.setApplicationName("TimeTracker Client")
    app.setApplicationVersion(shared.__VERSION__)

    http = HttpClient(config.server_url, api_key=config.api_key, timeout=config.timeout)
    engine = TimerSyncEngine(TimerRepository(http))

    work_log_id = sys.argv[1] if len(sys.argv) > 1 else None
    window = ActiveTimerWindow(engine, work_log_id)
    window.show()
    logger.info(f"TimeTracker client connected to {config.server_url}")

    exit_code = app.exec()
    http.close()
    sys.exit(exit_code)


if __name__ == '__main__':
    main()
