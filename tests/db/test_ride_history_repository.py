"""Tests for the completed ride history."""

from datetime import UTC, datetime, timedelta

import pytest

from taximeter.core.exceptions import NotFoundError, PersistenceError
from taximeter.db.repositories.ride_history_repository import RideHistoryRepository
from taximeter.meter.models import CompletedRide, Fix

BASE_TIME = datetime(2025, 3, 14, 8, 30, tzinfo=UTC)


def _ride(ride_id: str, offset_minutes: int = 0, with_fixes: bool = True) -> CompletedRide:
    started = BASE_TIME + timedelta(minutes=offset_minutes)
    return CompletedRide(
        ride_id=ride_id,
        started_at=started,
        ended_at=started + timedelta(minutes=15),
        distance_km=4.2,
        elapsed_seconds=900,
        waiting_seconds=120,
        fare=144.0,
        start_fix=Fix(latitude=9.0, longitude=38.0, timestamp=1_700_000_000_000)
        if with_fixes
        else None,
        end_fix=Fix(latitude=9.03, longitude=38.01, timestamp=1_700_000_900_000)
        if with_fixes
        else None,
    )


@pytest.mark.unit
class TestRideHistoryRepository:
    def test_append_returns_id(self, session_factory):
        with session_factory() as session:
            repo = RideHistoryRepository(session)
            ride_id = repo.append(_ride("ride-1"))
            session.commit()

        assert isinstance(ride_id, int)

    def test_round_trip(self, session_factory):
        ride = _ride("ride-1")
        with session_factory() as session:
            history_id = RideHistoryRepository(session).append(ride)
            session.commit()

        with session_factory() as session:
            loaded = RideHistoryRepository(session).get(history_id)

        assert loaded == ride.model_copy(update={"id": history_id})
        assert loaded.started_at.tzinfo is not None

    def test_ride_without_fixes(self, session_factory):
        with session_factory() as session:
            repo = RideHistoryRepository(session)
            history_id = repo.append(_ride("ride-1", with_fixes=False))
            session.commit()
            loaded = repo.get(history_id)

        assert loaded.start_fix is None
        assert loaded.end_fix is None

    def test_list_newest_first(self, session_factory):
        with session_factory() as session:
            repo = RideHistoryRepository(session)
            repo.append(_ride("morning", offset_minutes=0))
            repo.append(_ride("evening", offset_minutes=600))
            repo.append(_ride("noon", offset_minutes=240))
            session.commit()

            rides = repo.list()

        assert [r.ride_id for r in rides] == ["evening", "noon", "morning"]

    def test_get_missing(self, session_factory):
        with session_factory() as session:
            assert RideHistoryRepository(session).get(999) is None

    def test_delete(self, session_factory):
        with session_factory() as session:
            repo = RideHistoryRepository(session)
            history_id = repo.append(_ride("ride-1"))
            session.commit()

            repo.delete(history_id)
            session.commit()

            assert repo.list() == []

    def test_delete_missing(self, session_factory):
        with session_factory() as session, pytest.raises(NotFoundError):
            RideHistoryRepository(session).delete(999)

    def test_duplicate_ride_id_rejected(self, session_factory):
        with session_factory() as session:
            repo = RideHistoryRepository(session)
            repo.append(_ride("ride-1"))
            session.commit()

            with pytest.raises(PersistenceError):
                repo.append(_ride("ride-1"))
