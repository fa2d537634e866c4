"""Tests for the ActiveTimerWindow panel."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from client import gui_app
from client.gui_app import ActiveTimerWindow
from shared.errors import NetworkError
from shared.models import ServerConfig

from helpers import T0, make_timer


@pytest.fixture
def window(engine):
    window = ActiveTimerWindow(engine)
    yield window
    window.deleteLater()


def cell(window, row, column):
    return window.history_table.item(row, column).text()


class TestButtons:

    def test_idle_work_log(self, engine, repo, window):
        repo.timers = [make_timer(1, running=False, duration=60)]
        window.work_log_input.setText("1")
        window.load()

        assert window.start_button.isEnabled()
        assert not window.stop_button.isEnabled()
        assert window.time_label.text() == "00:00:00"

    def test_running_timer(self, engine, repo, clock, window):
        repo.timers = [make_timer(1)]
        clock.advance(65)
        window.work_log_input.setText("1")
        window.load()

        assert not window.start_button.isEnabled()
        assert window.stop_button.isEnabled()
        assert window.time_label.text() == "00:01:05"

    def test_start_then_stop(self, engine, repo, clock, window):
        window.work_log_input.setText("1")
        window.load()
        window.start_button.click()
        assert window.stop_button.isEnabled()

        clock.advance(30)
        window.stop_button.click()

        assert repo.ops() == [
            "fetch_summary", "start", "fetch_summary", "stop", "fetch_summary"]
        assert window.start_button.isEnabled()
        assert cell(window, 0, 2) == "00:00:30"

    def test_stop_after_editing_id_leaves_running_timer(self, engine, repo, window):
        repo.timers = [make_timer(1)]
        window.work_log_input.setText("1")
        window.load()

        window.work_log_input.setText("2")
        window.stop_button.click()

        assert repo.calls[-1] == ("fetch_summary", 2)
        assert "stop" not in repo.ops()
        assert repo.timers[0].is_running
        assert window.start_button.isEnabled()
        assert window.history_table.rowCount() == 0

    def test_start_after_editing_id_loads_first(self, engine, repo, window):
        window.work_log_input.setText("1")
        window.load()

        window.work_log_input.setText("2")
        window.start_button.click()
        assert "start" not in repo.ops()
        assert engine.work_log_id == 2

        window.start_button.click()
        assert repo.calls[-2] == ("start", 2)


class TestRendering:

    def test_tick_updates_clock(self, engine, repo, clock, window):
        repo.timers = [make_timer(1)]
        window.work_log_input.setText("1")
        window.load()

        clock.advance(3)
        engine._on_tick()

        assert window.time_label.text() == "00:00:03"

    def test_history_newest_first(self, engine, repo, window):
        repo.timers = [
            make_timer(1, T0, running=False, duration=60),
            make_timer(2, T0 + timedelta(hours=1), running=False, duration=3661),
        ]
        window.work_log_input.setText("1")
        window.load()

        assert window.history_table.rowCount() == 2
        assert cell(window, 0, 0) == "13.02.2026 15:00:00"
        assert cell(window, 0, 2) == "01:01:01"
        assert cell(window, 1, 3) == "STOPPED"

    def test_error_shown_and_cleared(self, engine, repo, window):
        repo.failures["fetch_summary"] = NetworkError("Connection refused")
        window.work_log_input.setText("1")
        window.load()

        assert not window.error_label.isHidden()
        assert window.error_label.text() == "Connection refused"

        window.load()
        assert window.error_label.isHidden()

    def test_invalid_work_log_id(self, engine, repo, window):
        window.work_log_input.setText("abc")
        window.load()

        assert not window.error_label.isHidden()
        assert repo.calls == []

    def test_anomaly_shown(self, engine, repo, window):
        repo.timers = [make_timer(1), make_timer(2, T0 + timedelta(minutes=5))]
        window.work_log_input.setText("1")
        window.load()

        assert not window.anomaly_label.isHidden()
        assert "2 running timers" in window.anomaly_label.text()


def test_close_shuts_engine_down(engine, repo, monkeypatch):
    shutdown = Mock(wraps=engine.shutdown)
    monkeypatch.setattr(engine, "shutdown", shutdown)
    repo.timers = [make_timer(1)]
    window = ActiveTimerWindow(engine, work_log_id=1)
    window.show()

    window.close()

    shutdown.assert_called_once()
    assert window.work_log_input.text() == "1"


class TestClientConfig:

    def test_invalid_config_falls_back_to_defaults(self, monkeypatch):
        def broken():
            raise ValueError("Timeout must be an integer, got 'soon'")
        monkeypatch.setattr(gui_app, "load_config", broken)

        assert gui_app.load_client_config() == ServerConfig()

    def test_valid_config_is_used(self, monkeypatch):
        config = ServerConfig(server_url="https://tracker.example.com/api")
        monkeypatch.setattr(gui_app, "load_config", lambda: config)

        assert gui_app.load_client_config() is config
