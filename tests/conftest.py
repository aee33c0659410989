from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from fxrates.core.config import Settings
from fxrates.db.memory import MemoryRateBackend
from fxrates.main import create_app
from fxrates.services.rates.store import RateStore

ADMIN_TOKEN = "test_admin_token_123"
USER_TOKEN = "test_user_token_456"


class FakeClock:
    """Monotonic-seconds clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDateTimeClock:
    """UTC datetime clock that ticks one second per read unless told otherwise."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)):
        self.now = start
        self.step = timedelta(seconds=1)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def settings():
    return Settings(
        storage_backend="memory",
        admin_tokens=[ADMIN_TOKEN],
        user_tokens=[USER_TOKEN],
        rate_limit_requests=1000,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {USER_TOKEN}"}


@pytest.fixture
def dt_clock():
    return FakeDateTimeClock()


@pytest.fixture
def store(dt_clock):
    return RateStore(MemoryRateBackend(), clock=dt_clock)


@pytest.fixture
def clock():
    return FakeClock()
