"""Location fix filtering.

Decides, for each incoming fix, whether it becomes the new reference fix and
how much distance (possibly none) it credits to the ride. Rules apply in
order and the first match wins:

1. no previous fix: accept as baseline, credit nothing
2. accuracy estimate worse than ``max_accuracy_m``: reject as poor signal
3. timestamp not after the previous fix: reject as non-monotonic
4. implied speed above ``max_speed_kmh``: reject as a GPS jump
5. implied speed below ``min_moving_speed_kmh`` outside waiting mode:
   accept as the new reference but credit nothing (stationary jitter)
6. otherwise accept and credit the full distance

Rejected fixes never replace the reference, so one bad reading cannot shift
the baseline that the next delta is measured from.
"""

from dataclasses import dataclass
from enum import Enum

from taximeter.geo.distance import distance_km
from taximeter.settings import FilterSettings

from .models import Fix

MS_PER_HOUR = 3_600_000


class RejectionReason(str, Enum):
    POOR_ACCURACY = "poor_signal"
    NON_MONOTONIC_TIME = "non_monotonic_time"
    IMPLAUSIBLE_JUMP = "implausible_jump"


@dataclass(frozen=True)
class FilterConfig:
    max_accuracy_m: float = 50.0
    max_speed_kmh: float = 150.0
    min_moving_speed_kmh: float = 5.0

    @classmethod
    def from_settings(cls, settings: FilterSettings) -> "FilterConfig":
        return cls(
            max_accuracy_m=settings.max_accuracy_m,
            max_speed_kmh=settings.max_speed_kmh,
            min_moving_speed_kmh=settings.min_moving_speed_kmh,
        )


@dataclass(frozen=True)
class Accept:
    """Fix becomes the new reference; ``credited_distance_km`` is added to the ride."""

    credited_distance_km: float
    raw_distance_km: float = 0.0
    speed_kmh: float | None = None


@dataclass(frozen=True)
class Reject:
    """Fix is noise; reference fix and distance stay as they were."""

    reason: RejectionReason
    raw_distance_km: float | None = None
    speed_kmh: float | None = None


FilterDecision = Accept | Reject


def evaluate(
    previous: Fix | None,
    candidate: Fix,
    config: FilterConfig,
    waiting_mode: bool = False,
) -> FilterDecision:
    """Classify ``candidate`` against the last accepted fix."""
    if previous is None:
        return Accept(credited_distance_km=0.0)

    if candidate.accuracy_m is not None and candidate.accuracy_m > config.max_accuracy_m:
        return Reject(RejectionReason.POOR_ACCURACY)

    raw_distance = distance_km(previous, candidate)
    elapsed_hours = (candidate.timestamp - previous.timestamp) / MS_PER_HOUR
    if elapsed_hours <= 0:
        return Reject(RejectionReason.NON_MONOTONIC_TIME, raw_distance_km=raw_distance)

    speed_kmh = raw_distance / elapsed_hours
    if speed_kmh > config.max_speed_kmh:
        return Reject(
            RejectionReason.IMPLAUSIBLE_JUMP,
            raw_distance_km=raw_distance,
            speed_kmh=speed_kmh,
        )

    if speed_kmh < config.min_moving_speed_kmh and not waiting_mode:
        return Accept(credited_distance_km=0.0, raw_distance_km=raw_distance, speed_kmh=speed_kmh)

    return Accept(
        credited_distance_km=raw_distance, raw_distance_km=raw_distance, speed_kmh=speed_kmh
    )
