"""Fare metering engine: models, fare policy, location filter and ride state machine."""

from .fare import DEFAULT_RATE_CONFIGURATION, compute_fare
from .location_filter import Accept, FilterConfig, FilterDecision, Reject, RejectionReason, evaluate
from .models import (
    CompletedRide,
    Fix,
    RateConfiguration,
    RidePhase,
    RideState,
    SignalStatus,
    format_duration,
)
from .state_machine import RideStateMachine

__all__ = [
    "Accept",
    "CompletedRide",
    "DEFAULT_RATE_CONFIGURATION",
    "FilterConfig",
    "FilterDecision",
    "Fix",
    "RateConfiguration",
    "Reject",
    "RejectionReason",
    "RidePhase",
    "RideState",
    "RideStateMachine",
    "SignalStatus",
    "compute_fare",
    "evaluate",
    "format_duration",
]
