"""Standardized exception hierarchy for the fare meter."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from taximeter.meter.models import SignalStatus


class MeterError(Exception):
    """Base exception for all meter errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(MeterError):
    """Errors that may succeed on retry."""

    pass


class PersistenceError(TransientError):
    """Active-ride store or ride history read/write failed."""

    pass


class PermanentError(MeterError):
    """Errors that will not succeed on retry."""

    pass


class ValidationError(PermanentError):
    """Invalid input or data format."""

    pass


class NotFoundError(PermanentError):
    """Requested entity does not exist."""

    pass


class StateError(PermanentError):
    """Invalid ride state transition."""

    pass


class ConfigurationError(PermanentError):
    """Missing or invalid rate configuration."""

    pass


class SignalError(MeterError):
    """Location source failure, surfaced as a ride status rather than a crash."""

    def __init__(
        self,
        status: "SignalStatus",
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message or f"Location signal error: {status.value}", details)
        self.status = status
