"""Fare policy.

The fare is a pure function of accrued distance, accrued waiting time and the
rate configuration frozen at ride start. Callers never pass the live settings
store here, so the same inputs always reproduce the same fare.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from taximeter.core.exceptions import ConfigurationError

from .models import RateConfiguration

DEFAULT_RATE_CONFIGURATION = RateConfiguration(
    base_fare=50.0,
    per_km_rate=20.0,
    per_minute_waiting_rate=5.0,
    minimum_fare=100.0,
    night_multiplier=1.0,
)


def compute_fare(distance_km: float, waiting_seconds: int, rates: RateConfiguration) -> float:
    """Fare for the given accruals.

    The minimum fare applies before the night multiplier, so a short night
    ride costs ``minimum_fare * night_multiplier``.
    """
    distance_fare = distance_km * rates.per_km_rate
    waiting_fare = (waiting_seconds / 60) * rates.per_minute_waiting_rate
    subtotal = rates.base_fare + distance_fare + waiting_fare
    total = max(subtotal, rates.minimum_fare)
    return total * rates.night_multiplier


def parse_rate_configuration(raw: Mapping[str, Any]) -> RateConfiguration:
    """Validate a stored rate mapping, raising ConfigurationError if unusable."""
    try:
        return RateConfiguration.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid rate configuration",
            details={"errors": e.errors(include_url=False)},
        ) from e

