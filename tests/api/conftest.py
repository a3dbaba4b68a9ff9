from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest

from taximeter.meter.fare import DEFAULT_RATE_CONFIGURATION
from taximeter.meter.models import CompletedRide, Fix, RidePhase, RideState


@pytest.fixture
def active_state() -> RideState:
    fix = Fix(latitude=9.0009, longitude=38.0, timestamp=60_000, accuracy_m=5.0)
    return RideState(
        ride_id="ride-123",
        phase=RidePhase.ACTIVE,
        started_at=datetime(2025, 3, 14, 8, 30, tzinfo=UTC),
        distance_km=2.34567,
        elapsed_seconds=754,
        waiting_seconds=60,
        current_fare=101.2345,
        last_accepted_fix=fix,
        path=[fix],
        rates=DEFAULT_RATE_CONFIGURATION,
    )


@pytest.fixture
def completed_ride() -> CompletedRide:
    return CompletedRide(
        id=1,
        ride_id="ride-123",
        started_at=datetime(2025, 3, 14, 8, 30, tzinfo=UTC),
        ended_at=datetime(2025, 3, 14, 8, 45, tzinfo=UTC),
        distance_km=5.0,
        elapsed_seconds=900,
        waiting_seconds=0,
        fare=150.0,
    )


@pytest.fixture
def mock_meter_service(active_state, completed_ride):
    """Mock MeterService for API tests."""
    service = Mock()
    service.has_active_ride = True
    service.current_state = Mock(return_value=active_state)
    service.recover = AsyncMock(return_value=None)
    service.shutdown = AsyncMock()
    service.start_ride = AsyncMock(return_value=active_state)
    service.pause = AsyncMock(return_value=active_state.model_copy(update={"phase": RidePhase.PAUSED}))
    service.resume = AsyncMock(return_value=active_state)
    service.toggle_waiting_mode = AsyncMock(
        return_value=active_state.model_copy(update={"is_waiting_mode": True})
    )
    service.stop_ride = AsyncMock(return_value=completed_ride)
    service.submit_fix = Mock()
    service.report_signal = Mock()
    service.list_rides = AsyncMock(return_value=[completed_ride])
    service.delete_ride = AsyncMock()
    service.get_rates = AsyncMock(return_value=DEFAULT_RATE_CONFIGURATION)
    service.update_rates = AsyncMock(side_effect=lambda rates: rates)
    return service


@pytest.fixture
def test_client(mock_meter_service):
    """FastAPI test client with mocked dependencies."""
    from fastapi.testclient import TestClient

    with patch.dict("os.environ", {"API_KEY": "test-api-key"}):
        from taximeter.api.app import create_app

        app = create_app(mock_meter_service)
        yield TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def auth_headers():
    """Pre-configured API key headers for authenticated requests."""
    return {"X-API-Key": "test-api-key"}
