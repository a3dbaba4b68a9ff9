"""Crash-recovery store for the active ride and the saved rate configuration.

Both live as JSON documents in the ``meter_store`` key-value table. The
active-ride snapshot includes the rates frozen at ride start, so a resumed
ride is billed exactly as it would have been without the restart. Its
accepted fixes are kept one row each in ``active_ride_path``.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from taximeter.core.exceptions import ConfigurationError, PersistenceError
from taximeter.meter.fare import parse_rate_configuration
from taximeter.meter.models import Fix, RateConfiguration, RideState

from .schema import ActiveRidePathPoint, MeterStoreEntry

logger = logging.getLogger(__name__)

ACTIVE_RIDE_KEY = "active_ride"
RATE_CONFIGURATION_KEY = "rate_configuration"


class ActiveRideStore:
    """Key-value persistence for the ride in progress and the tariff."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def save_active_ride(self, state: RideState) -> None:
        """Write the ride document and append fixes not yet stored.

        The path only grows during a ride, so each save inserts the new tail
        instead of rewriting every accepted fix.
        """
        document = state.model_dump_json(exclude={"path"})
        try:
            with self._session_factory() as session:
                entry = session.get(MeterStoreEntry, ACTIVE_RIDE_KEY)
                if entry:
                    entry.value = document
                else:
                    session.add(MeterStoreEntry(key=ACTIVE_RIDE_KEY, value=document))

                session.execute(
                    delete(ActiveRidePathPoint).where(
                        or_(
                            ActiveRidePathPoint.ride_id != state.ride_id,
                            ActiveRidePathPoint.seq >= len(state.path),
                        )
                    )
                )
                stored = session.scalar(
                    select(func.count())
                    .select_from(ActiveRidePathPoint)
                    .where(ActiveRidePathPoint.ride_id == state.ride_id)
                )
                session.add_all(
                    ActiveRidePathPoint(ride_id=state.ride_id, seq=seq, fix=fix.model_dump_json())
                    for seq, fix in enumerate(state.path[stored:], start=stored)
                )
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to save {ACTIVE_RIDE_KEY}", details={"key": ACTIVE_RIDE_KEY}
            ) from e

    def load_active_ride(self) -> RideState | None:
        """Saved ride snapshot, or None when absent or unreadable."""
        raw = self._get(ACTIVE_RIDE_KEY)
        if raw is None:
            return None
        try:
            state = RideState.model_validate_json(raw)
            state.path = [Fix.model_validate_json(point) for point in self._load_path(state.ride_id)]
        except PydanticValidationError as e:
            logger.warning("Discarding unreadable active ride snapshot: %s", e)
            self.clear_active_ride()
            return None
        return state

    def clear_active_ride(self) -> None:
        try:
            with self._session_factory() as session:
                entry = session.get(MeterStoreEntry, ACTIVE_RIDE_KEY)
                if entry:
                    session.delete(entry)
                session.execute(delete(ActiveRidePathPoint))
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to clear {ACTIVE_RIDE_KEY}", details={"key": ACTIVE_RIDE_KEY}
            ) from e

    def save_rate_configuration(self, rates: RateConfiguration) -> None:
        self._put(RATE_CONFIGURATION_KEY, rates.model_dump_json())

    def load_rate_configuration(self) -> RateConfiguration | None:
        """Saved rates, or None when never saved.

        Raises:
            ConfigurationError: stored rates are not valid JSON or fail validation
        """
        raw = self._get(RATE_CONFIGURATION_KEY)
        if raw is None:
            return None
        try:
            data: dict[str, Any] = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError("Stored rate configuration is not valid JSON") from e
        return parse_rate_configuration(data)

    def _put(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as session:
                entry = session.get(MeterStoreEntry, key)
                if entry:
                    entry.value = value
                else:
                    session.add(MeterStoreEntry(key=key, value=value))
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save {key}", details={"key": key}) from e

    def _get(self, key: str) -> str | None:
        try:
            with self._session_factory() as session:
                entry = session.get(MeterStoreEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load {key}", details={"key": key}) from e

    def _load_path(self, ride_id: str) -> list[str]:
        try:
            with self._session_factory() as session:
                return list(
                    session.scalars(
                        select(ActiveRidePathPoint.fix)
                        .where(ActiveRidePathPoint.ride_id == ride_id)
                        .order_by(ActiveRidePathPoint.seq)
                    )
                )
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to load {ACTIVE_RIDE_KEY} path", details={"ride_id": ride_id}
            ) from e
