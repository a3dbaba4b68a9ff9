import os

# Credential fields have no defaults (the service must fail without secrets).
# Provide a test value so Settings() can be constructed in tests.
os.environ.setdefault("API_KEY", "test-api-key")

from datetime import UTC, datetime, timedelta

import pytest

from taximeter.db import ActiveRideStore, init_database
from taximeter.meter.fare import DEFAULT_RATE_CONFIGURATION
from taximeter.meter.models import Fix, RateConfiguration


class FakeClock:
    """Manually advanced wall clock for state machine timestamps."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 3, 14, 8, 30, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rates() -> RateConfiguration:
    """The documented default tariff."""
    return DEFAULT_RATE_CONFIGURATION


@pytest.fixture
def make_fix():
    """Factory for fixes; accuracy defaults to a good 5 m estimate."""

    def _make(
        latitude: float, longitude: float, timestamp: int, accuracy_m: float | None = 5.0
    ) -> Fix:
        return Fix(
            latitude=latitude, longitude=longitude, timestamp=timestamp, accuracy_m=accuracy_m
        )

    return _make


@pytest.fixture
def temp_sqlite_db(tmp_path):
    """Temporary SQLite database for persistence tests."""
    return tmp_path / "test_taximeter.db"


@pytest.fixture
def session_factory(temp_sqlite_db):
    return init_database(str(temp_sqlite_db))


@pytest.fixture
def store(session_factory) -> ActiveRideStore:
    return ActiveRideStore(session_factory)
