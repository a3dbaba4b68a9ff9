"""Ride state machine.

Owns the authoritative RideState and applies every mutation to it: ride
commands, accepted location deltas and clock ticks. It is synchronous and
not thread-safe; RideSession serializes all calls onto one event loop.

Once stopped, the machine is invalidated: every later call is a no-op, so a
fix or tick that was already in flight when the ride ended cannot touch the
discarded state.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from taximeter.core.exceptions import StateError

from .fare import compute_fare
from .location_filter import FilterConfig, FilterDecision, Reject, evaluate
from .models import CompletedRide, Fix, RateConfiguration, RidePhase, RideState, SignalStatus

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: dict[RidePhase, set[RidePhase]] = {
    RidePhase.IDLE: {RidePhase.ACTIVE},
    RidePhase.ACTIVE: {RidePhase.PAUSED, RidePhase.STOPPED},
    RidePhase.PAUSED: {RidePhase.ACTIVE, RidePhase.STOPPED},
    RidePhase.STOPPED: set(),
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RideStateMachine:
    """One ride, from start to stop."""

    def __init__(
        self,
        rates: RateConfiguration,
        filter_config: FilterConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._rates = rates
        self._filter_config = filter_config or FilterConfig()
        self._clock = clock
        self._state = RideState(rates=rates)
        self._invalidated = False

    @classmethod
    def from_snapshot(
        cls,
        state: RideState,
        filter_config: FilterConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> "RideStateMachine":
        """Rebuild a machine for a persisted Active or Paused ride.

        The ride keeps the rates it was started with.
        """
        if state.phase not in {RidePhase.ACTIVE, RidePhase.PAUSED}:
            raise StateError(
                f"Cannot resume a ride in phase {state.phase.value}",
                details={"ride_id": state.ride_id},
            )
        machine = cls(state.rates, filter_config=filter_config, clock=clock)
        machine._state = state.detached()
        machine._recompute_fare()
        logger.info(
            "Restored ride %s (%s, %.3f km, %ds)",
            state.ride_id,
            state.phase.value,
            state.distance_km,
            state.elapsed_seconds,
        )
        return machine

    @property
    def phase(self) -> RidePhase:
        return self._state.phase

    @property
    def ride_id(self) -> str:
        return self._state.ride_id

    @property
    def is_invalidated(self) -> bool:
        return self._invalidated

    @property
    def is_running(self) -> bool:
        """True when fixes and ticks accrue (Active and not Paused)."""
        return not self._invalidated and self._state.phase == RidePhase.ACTIVE

    def snapshot(self) -> RideState:
        """Copy of the current state, safe to hand to other components."""
        return self._state.detached()

    def start(self) -> RideState:
        """Start the ride with zeroed counters and the rates given at construction."""
        if self._invalidated or self._state.phase != RidePhase.IDLE:
            raise StateError(
                f"Cannot start a ride in phase {self._state.phase.value}; use a new machine",
                details={"ride_id": self._state.ride_id},
            )
        self._state.phase = RidePhase.ACTIVE
        self._state.started_at = self._clock()
        self._state.is_waiting_mode = False
        self._recompute_fare()
        logger.info(
            "Ride %s started (base fare %.2f, minimum %.2f, x%.2f)",
            self._state.ride_id,
            self._rates.base_fare,
            self._rates.minimum_fare,
            self._rates.night_multiplier,
        )
        return self.snapshot()

    def on_location_update(self, fix: Fix) -> FilterDecision | None:
        """Feed one raw fix through the location filter.

        Returns the filter decision, or None when the ride is not accruing.
        """
        if not self.is_running:
            return None

        state = self._state
        decision = evaluate(
            state.last_accepted_fix,
            fix,
            self._filter_config,
            waiting_mode=state.is_waiting_mode,
        )

        if isinstance(decision, Reject):
            logger.debug(
                "Ride %s rejected fix at %d: %s",
                state.ride_id,
                fix.timestamp,
                decision.reason.value,
            )
            return decision

        state.distance_km += decision.credited_distance_km
        state.last_accepted_fix = fix
        state.path.append(fix)
        state.signal_status = SignalStatus.OK
        self._recompute_fare()
        return decision

    def on_clock_tick(self) -> bool:
        """Advance the ride by one second. Returns False when nothing accrued."""
        if not self.is_running:
            return False

        state = self._state
        state.elapsed_seconds += 1
        if state.is_waiting_mode:
            state.waiting_seconds += 1
        self._recompute_fare()
        return True

    def pause(self) -> RideState:
        return self._transition(RidePhase.PAUSED)

    def resume(self) -> RideState:
        return self._transition(RidePhase.ACTIVE)

    def toggle_waiting_mode(self) -> RideState:
        """Flip waiting mode. Fare changes only on the next tick or fix."""
        if self._invalidated:
            return self.snapshot()
        if self._state.phase not in {RidePhase.ACTIVE, RidePhase.PAUSED}:
            raise StateError(
                f"Waiting mode is unavailable in phase {self._state.phase.value}",
                details={"ride_id": self._state.ride_id},
            )
        self._state.is_waiting_mode = not self._state.is_waiting_mode
        logger.info(
            "Ride %s waiting mode %s",
            self._state.ride_id,
            "on" if self._state.is_waiting_mode else "off",
        )
        return self.snapshot()

    def set_signal_status(self, status: SignalStatus) -> None:
        """Record a location source problem without changing the ride phase."""
        if self._invalidated or self._state.signal_status == status:
            return
        self._state.signal_status = status
        if status == SignalStatus.OK:
            logger.info("Ride %s location signal restored", self._state.ride_id)
        else:
            logger.warning("Ride %s location signal: %s", self._state.ride_id, status.value)

    def stop(self) -> CompletedRide | None:
        """End the ride and invalidate the machine.

        Returns the completed ride, or None if the machine was already stopped.
        """
        if self._invalidated:
            return None
        self._transition(RidePhase.STOPPED)
        self._invalidated = True

        state = self._state
        state.is_waiting_mode = False
        state.ended_at = self._clock()
        completed = CompletedRide(
            ride_id=state.ride_id,
            started_at=state.started_at or state.ended_at,
            ended_at=state.ended_at,
            distance_km=state.distance_km,
            elapsed_seconds=state.elapsed_seconds,
            waiting_seconds=state.waiting_seconds,
            fare=state.current_fare,
            start_fix=state.path[0] if state.path else None,
            end_fix=state.path[-1] if state.path else None,
        )
        logger.info(
            "Ride %s stopped: %.3f km, %ds (%ds waiting), fare %.2f",
            state.ride_id,
            completed.distance_km,
            completed.elapsed_seconds,
            completed.waiting_seconds,
            completed.fare,
        )
        return completed

    def _transition(self, new_phase: RidePhase) -> RideState:
        if self._invalidated:
            return self.snapshot()

        current = self._state.phase
        if new_phase not in VALID_TRANSITIONS[current]:
            raise StateError(
                f"Invalid transition from {current.value} to {new_phase.value}",
                details={"ride_id": self._state.ride_id},
            )
        self._state.phase = new_phase
        logger.info("Ride %s %s -> %s", self._state.ride_id, current.value, new_phase.value)
        return self.snapshot()

    def _recompute_fare(self) -> None:
        state = self._state
        state.current_fare = compute_fare(state.distance_km, state.waiting_seconds, self._rates)
