"""
Shared pytest fixtures
"""

from datetime import datetime, timedelta, timezone

import pytest

from campus_attendance.core.config import Settings
from campus_attendance.flask_main import create_app
from campus_attendance.storage import MemoryStore


class FakeClock:
    """Manually advanced clock so token expiry can be tested to the millisecond"""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 1, 6, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, millis: int):
        self.now = self.now + timedelta(milliseconds=millis)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    return Settings()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def app(settings, store, clock):
    app = create_app(settings=settings, store=store, clock=clock, start_rotation=False)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def core(app):
    return app.extensions["campus_attendance"]


@pytest.fixture
def client(app):
    return app.test_client()
