"""Meter service: the single entry point used by the API.

Holds at most one live RideSession, loads the tariff at ride start and moves
finished rides into the history table.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from taximeter.core.exceptions import ConfigurationError, PersistenceError, StateError
from taximeter.core.retry import RetryConfig, with_retry
from taximeter.db.active_ride_store import ActiveRideStore
from taximeter.db.repositories.ride_history_repository import RideHistoryRepository
from taximeter.settings import Settings

from .fare import DEFAULT_RATE_CONFIGURATION
from .location_filter import FilterConfig
from .models import CompletedRide, Fix, RateConfiguration, RideState, SignalStatus
from .session import RideSession
from .state_machine import RideStateMachine

if TYPE_CHECKING:
    from taximeter.location.source import LocationSource

logger = logging.getLogger(__name__)

LocationSourceFactory = Callable[[], "LocationSource"]

HISTORY_RETRY = RetryConfig(max_attempts=3, base_delay=0.5, multiplier=2.0, max_delay=30.0)


class MeterService:
    def __init__(
        self,
        store: ActiveRideStore,
        session_factory: sessionmaker[Session],
        settings: Settings,
        location_source_factory: LocationSourceFactory | None = None,
        history_retry: RetryConfig = HISTORY_RETRY,
    ):
        self._store = store
        self._session_factory = session_factory
        self._settings = settings
        self._location_source_factory = location_source_factory
        self._history_retry = history_retry
        self._filter_config = FilterConfig.from_settings(settings.filter)
        self._session: RideSession | None = None
        self._lifecycle_lock = asyncio.Lock()

    @property
    def has_active_ride(self) -> bool:
        return self._session is not None

    async def recover(self) -> RideState | None:
        """Resume the ride persisted by a previous process, if any."""
        async with self._lifecycle_lock:
            if self._session is not None:
                return self._session.state

            try:
                state = await asyncio.to_thread(self._store.load_active_ride)
            except PersistenceError as e:
                logger.error("Persisted ride unavailable, starting idle: %s", e)
                return None
            if state is None:
                return None

            if not self._settings.meter.resume_active_ride:
                logger.info("Discarding persisted ride %s, resume disabled", state.ride_id)
                await self._discard_persisted_ride(state.ride_id)
                return None

            try:
                machine = RideStateMachine.from_snapshot(state, self._filter_config)
            except StateError as e:
                logger.warning("Discarding persisted ride %s: %s", state.ride_id, e)
                await self._discard_persisted_ride(state.ride_id)
                return None

            self._session = await self._open_session(machine)
            return self._session.state

    async def start_ride(self) -> RideState:
        async with self._lifecycle_lock:
            if self._session is not None:
                raise StateError(
                    "A ride is already in progress", details={"ride_id": self._session.ride_id}
                )
            rates = await self.get_rates()
            machine = RideStateMachine(rates, self._filter_config)
            machine.start()
            self._session = await self._open_session(machine)
            return self._session.state

    def current_state(self) -> RideState | None:
        """Latest state of the live ride, or None when idle."""
        if self._session is None:
            return None
        return self._session.state

    async def pause(self) -> RideState:
        return await self._require_session().pause()

    async def resume(self) -> RideState:
        return await self._require_session().resume()

    async def toggle_waiting_mode(self) -> RideState:
        return await self._require_session().toggle_waiting_mode()

    def submit_fix(self, fix: Fix) -> None:
        self._require_session().submit_fix(fix)

    def report_signal(self, status: SignalStatus) -> None:
        self._require_session().report_signal(status)

    async def stop_ride(self) -> CompletedRide:
        """Stop the live ride and append it to history.

        A history write that still fails after retries is logged; the completed
        ride is returned either way and the active-ride record stays cleared.
        """
        async with self._lifecycle_lock:
            session = self._require_session()
            try:
                completed = await session.stop()
            finally:
                self._session = None
            if completed is None:
                raise StateError("Ride was already stopped", details={"ride_id": session.ride_id})

            try:
                completed = await with_retry(
                    lambda: asyncio.to_thread(self._append_history, completed),
                    self._history_retry,
                    operation_name="append_ride_history",
                )
            except PersistenceError as e:
                logger.error("Ride %s not saved to history: %s", completed.ride_id, e)
            return completed

    async def list_rides(self) -> list[CompletedRide]:
        return await asyncio.to_thread(self._list_history)

    async def delete_ride(self, ride_history_id: int) -> None:
        await asyncio.to_thread(self._delete_history, ride_history_id)

    async def get_rates(self) -> RateConfiguration:
        """Saved tariff, or the defaults when none is saved or it is unreadable."""
        try:
            rates = await asyncio.to_thread(self._store.load_rate_configuration)
        except (ConfigurationError, PersistenceError) as e:
            logger.warning("Using default rates, saved configuration unavailable: %s", e)
            return DEFAULT_RATE_CONFIGURATION
        return rates or DEFAULT_RATE_CONFIGURATION

    async def update_rates(self, rates: RateConfiguration) -> RateConfiguration:
        """Save a new tariff. It applies from the next ride started."""
        await asyncio.to_thread(self._store.save_rate_configuration, rates)
        logger.info(
            "Rates updated: base %.2f, per km %.2f, per waiting minute %.2f, minimum %.2f",
            rates.base_fare,
            rates.per_km_rate,
            rates.per_minute_waiting_rate,
            rates.minimum_fare,
        )
        return rates

    async def shutdown(self) -> None:
        """Halt the live session, keeping the ride resumable."""
        async with self._lifecycle_lock:
            if self._session is None:
                return
            session, self._session = self._session, None
            await session.close()

    def _require_session(self) -> RideSession:
        if self._session is None:
            raise StateError("No ride in progress")
        return self._session

    async def _discard_persisted_ride(self, ride_id: str) -> None:
        try:
            await asyncio.to_thread(self._store.clear_active_ride)
        except PersistenceError as e:
            logger.error("Could not clear persisted ride %s: %s", ride_id, e)

    async def _open_session(self, machine: RideStateMachine) -> RideSession:
        location_source = self._location_source_factory() if self._location_source_factory else None
        session = RideSession(
            machine,
            store=self._store,
            location_source=location_source,
            tick_interval_seconds=self._settings.meter.tick_interval_seconds,
            snapshot_interval_seconds=self._settings.meter.snapshot_interval_seconds,
        )
        await session.open()
        return session

    def _append_history(self, ride: CompletedRide) -> CompletedRide:
        with self._session_factory() as db:
            history_id = RideHistoryRepository(db).append(ride)
            try:
                db.commit()
            except SQLAlchemyError as e:
                raise PersistenceError(
                    "Failed to commit ride history", details={"ride_id": ride.ride_id}
                ) from e
        return ride.model_copy(update={"id": history_id})

    def _list_history(self) -> list[CompletedRide]:
        try:
            with self._session_factory() as db:
                return RideHistoryRepository(db).list()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to list ride history") from e

    def _delete_history(self, ride_history_id: int) -> None:
        with self._session_factory() as db:
            RideHistoryRepository(db).delete(ride_history_id)
            try:
                db.commit()
            except SQLAlchemyError as e:
                raise PersistenceError(
                    "Failed to delete ride", details={"id": ride_history_id}
                ) from e
