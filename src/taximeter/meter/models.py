"""Ride data models: location fixes, rates, live ride state and completed rides."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class RidePhase(str, Enum):
    """Ride lifecycle phases."""

    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"


class SignalStatus(str, Enum):
    """Health of the location source, displayed by the UI but never a ride transition."""

    OK = "ok"
    PERMISSION_DENIED = "permission_denied"
    SIGNAL_LOST = "signal_lost"
    TIMED_OUT = "timed_out"
    UNSUPPORTED = "unsupported"


class Fix(BaseModel):
    """One location reading. Timestamp is epoch milliseconds."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    timestamp: int
    accuracy_m: float | None = Field(default=None, ge=0.0)


class RateConfiguration(BaseModel):
    """Tariff captured at ride start and held fixed for the ride."""

    model_config = ConfigDict(frozen=True)

    base_fare: float = Field(ge=0.0)
    per_km_rate: float = Field(ge=0.0)
    per_minute_waiting_rate: float = Field(ge=0.0)
    minimum_fare: float = Field(ge=0.0)
    night_multiplier: float = Field(default=1.0, ge=1.0)


class RideState(BaseModel):
    """The single mutable ride aggregate, owned by RideStateMachine."""

    ride_id: str = Field(default_factory=lambda: uuid4().hex)
    phase: RidePhase = RidePhase.IDLE
    is_waiting_mode: bool = False
    started_at: datetime | None = None
    ended_at: datetime | None = None
    distance_km: float = Field(default=0.0, ge=0.0)
    elapsed_seconds: int = Field(default=0, ge=0)
    waiting_seconds: int = Field(default=0, ge=0)
    current_fare: float = 0.0
    last_accepted_fix: Fix | None = None
    # Accepted fixes only, in acceptance order
    path: list[Fix] = Field(default_factory=list)
    rates: RateConfiguration
    signal_status: SignalStatus = SignalStatus.OK

    @property
    def awaiting_first_fix(self) -> bool:
        """True while the ride runs but no fix has been accepted yet."""
        return self.phase == RidePhase.ACTIVE and self.last_accepted_fix is None

    def detached(self) -> "RideState":
        """Independent copy. Fixes and rates are frozen, so only the path list is copied."""
        return self.model_copy(update={"path": list(self.path)})


def format_duration(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    hours, remainder = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class CompletedRide(BaseModel):
    """Immutable record of a stopped ride, handed to the ride history."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    ride_id: str
    started_at: datetime
    ended_at: datetime
    distance_km: float
    elapsed_seconds: int
    waiting_seconds: int
    fare: float
    start_fix: Fix | None = None
    end_fix: Fix | None = None

    def summary(self) -> dict[str, Any]:
        """Display values for a ride receipt."""
        return {
            "distance": f"{self.distance_km:.2f} km",
            "duration": format_duration(self.elapsed_seconds),
            "waiting": format_duration(self.waiting_seconds),
            "fare": round(self.fare),
        }
