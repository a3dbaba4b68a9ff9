from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from taximeter.meter.models import (
    CompletedRide,
    Fix,
    RateConfiguration,
    RidePhase,
    RideState,
    SignalStatus,
    format_duration,
)


class RideStateResponse(BaseModel):
    """Live ride as shown on the meter display."""

    ride_id: str
    phase: RidePhase
    is_waiting_mode: bool
    started_at: datetime | None
    distance_km: float
    elapsed_seconds: int
    elapsed: str
    waiting_seconds: int
    current_fare: float
    signal_status: SignalStatus
    awaiting_first_fix: bool
    last_fix: Fix | None
    rates: RateConfiguration

    @classmethod
    def from_state(cls, state: RideState) -> "RideStateResponse":
        return cls(
            ride_id=state.ride_id,
            phase=state.phase,
            is_waiting_mode=state.is_waiting_mode,
            started_at=state.started_at,
            distance_km=round(state.distance_km, 3),
            elapsed_seconds=state.elapsed_seconds,
            elapsed=format_duration(state.elapsed_seconds),
            waiting_seconds=state.waiting_seconds,
            current_fare=round(state.current_fare, 2),
            signal_status=state.signal_status,
            awaiting_first_fix=state.awaiting_first_fix,
            last_fix=state.last_accepted_fix,
            rates=state.rates,
        )


class RideStatusResponse(BaseModel):
    active: bool
    ride: RideStateResponse | None = None


class CompletedRideResponse(BaseModel):
    id: int | None
    ride_id: str
    started_at: datetime
    ended_at: datetime
    distance_km: float
    elapsed_seconds: int
    waiting_seconds: int
    fare: float
    start_fix: Fix | None
    end_fix: Fix | None
    summary: dict[str, Any]

    @classmethod
    def from_ride(cls, ride: CompletedRide) -> "CompletedRideResponse":
        return cls(
            **ride.model_dump(exclude={"start_fix", "end_fix"}),
            start_fix=ride.start_fix,
            end_fix=ride.end_fix,
            summary=ride.summary(),
        )


class FixBatchRequest(BaseModel):
    fixes: list[Fix] = Field(..., min_length=1, max_length=500)


class SignalRequest(BaseModel):
    status: SignalStatus


class QueuedResponse(BaseModel):
    queued: int
