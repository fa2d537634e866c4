"""Shared pytest fixtures for TimeTracker tests."""

import os
import sys

# Widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtWidgets import QApplication

from client.background_worker import ImmediateDispatcher
from client.sync_engine import TimerSyncEngine

from helpers import FakeClock, FakeRepository


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo(clock):
    return FakeRepository(clock)


@pytest.fixture
def engine(qapp, repo, clock):
    """Engine over the in-memory repository, running calls inline."""
    engine = TimerSyncEngine(repo, dispatcher=ImmediateDispatcher(), clock=clock)
    yield engine
    engine.shutdown()
