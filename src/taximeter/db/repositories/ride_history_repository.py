"""Ride history repository: append, list and delete completed rides."""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taximeter.core.exceptions import NotFoundError, PersistenceError
from taximeter.meter.models import CompletedRide, Fix

from ..schema import RideRecord
from ..utils import as_utc, to_naive_utc


class RideHistoryRepository:
    """Repository for completed rides. Callers own the session and commit."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, ride: CompletedRide) -> int:
        """Insert a completed ride and return its history id."""
        start, end = ride.start_fix, ride.end_fix
        record = RideRecord(
            ride_id=ride.ride_id,
            started_at=to_naive_utc(ride.started_at),
            ended_at=to_naive_utc(ride.ended_at),
            distance_km=ride.distance_km,
            elapsed_seconds=ride.elapsed_seconds,
            waiting_seconds=ride.waiting_seconds,
            fare=ride.fare,
            start_lat=start.latitude if start else None,
            start_lon=start.longitude if start else None,
            start_timestamp=start.timestamp if start else None,
            end_lat=end.latitude if end else None,
            end_lon=end.longitude if end else None,
            end_timestamp=end.timestamp if end else None,
        )
        try:
            self.session.add(record)
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(
                "Failed to append ride to history", details={"ride_id": ride.ride_id}
            ) from e
        return record.id

    def get(self, ride_history_id: int) -> CompletedRide | None:
        record = self.session.get(RideRecord, ride_history_id)
        if record is None:
            return None
        return self._to_domain(record)

    def list(self) -> list[CompletedRide]:
        """All completed rides, newest first."""
        stmt = select(RideRecord).order_by(RideRecord.started_at.desc(), RideRecord.id.desc())
        result = self.session.execute(stmt)
        return [self._to_domain(r) for r in result.scalars().all()]

    def delete(self, ride_history_id: int) -> None:
        record = self.session.get(RideRecord, ride_history_id)
        if record is None:
            raise NotFoundError(
                f"Ride {ride_history_id} not found", details={"id": ride_history_id}
            )
        self.session.delete(record)

    def _to_domain(self, record: RideRecord) -> CompletedRide:
        return CompletedRide(
            id=record.id,
            ride_id=record.ride_id,
            started_at=as_utc(record.started_at),
            ended_at=as_utc(record.ended_at),
            distance_km=record.distance_km,
            elapsed_seconds=record.elapsed_seconds,
            waiting_seconds=record.waiting_seconds,
            fare=record.fare,
            start_fix=self._fix(record.start_lat, record.start_lon, record.start_timestamp),
            end_fix=self._fix(record.end_lat, record.end_lon, record.end_timestamp),
        )

    @staticmethod
    def _fix(lat: float | None, lon: float | None, timestamp: int | None) -> Fix | None:
        if lat is None or lon is None or timestamp is None:
            return None
        return Fix(latitude=lat, longitude=lon, timestamp=timestamp)
