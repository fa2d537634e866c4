"""Tests for the wire models."""

from datetime import datetime

import pytest

from shared.models import ServerConfig, Timer, TimerStatus


class TestTimer:

    def test_from_dict(self):
        timer = Timer.from_dict({
            "id": 5, "workLogId": 3, "createdAt": "2026-02-13T14:05:09",
            "stoppedAt": None, "durationInSeconds": 0, "status": "RUNNING",
        })

        assert timer.id == 5
        assert timer.work_log_id == 3
        assert timer.created_at == datetime(2026, 2, 13, 14, 5, 9)
        assert timer.is_running
        assert timer.note is None

    def test_to_dict_uses_wire_names(self):
        timer = Timer(id=1, work_log_id=2, created_at=datetime(2026, 2, 13, 10, 0, 0),
                      stopped_at=datetime(2026, 2, 13, 11, 0, 0), duration_in_seconds=3600,
                      status=TimerStatus.STOPPED)

        assert timer.to_dict() == {
            "id": 1, "workLogId": 2, "createdAt": "2026-02-13T10:00:00",
            "stoppedAt": "2026-02-13T11:00:00", "durationInSeconds": 3600,
            "status": "STOPPED", "note": None,
        }

    @pytest.mark.parametrize("payload", [
        [],
        {"createdAt": "2026-02-13T10:00:00"},
        {"id": 1},
        {"id": 1, "createdAt": "2026-02-13T10:00:00", "status": "PAUSED"},
        {"id": 1, "createdAt": "not a date", "status": "RUNNING"},
        {"id": 7, "workLogId": 1, "createdAt": "2026-02-13T10:00:00",
         "stoppedAt": "2026-02-13T11:00:00", "durationInSeconds": 3600},
    ])
    def test_from_dict_rejects_malformed(self, payload):
        with pytest.raises(ValueError):
            Timer.from_dict(payload)


class TestServerConfig:

    def test_defaults(self):
        config = ServerConfig()
        assert config.server_url == "http://127.0.0.1:5000/api"
        assert config.timeout == 10

    def test_normalizes_values(self):
        config = ServerConfig(server_url="https://tracker.example.com/api/", log_level="debug")
        assert config.server_url == "https://tracker.example.com/api"
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize("kwargs", [
        {"server_url": "ftp://tracker.example.com"},
        {"timeout": 0},
        {"timeout": 121},
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ServerConfig(**kwargs)
