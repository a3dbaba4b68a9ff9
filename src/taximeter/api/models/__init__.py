from .ride import (
    CompletedRideResponse,
    FixBatchRequest,
    QueuedResponse,
    RideStateResponse,
    RideStatusResponse,
    SignalRequest,
)

__all__ = [
    "CompletedRideResponse",
    "FixBatchRequest",
    "QueuedResponse",
    "RideStateResponse",
    "RideStatusResponse",
    "SignalRequest",
]
