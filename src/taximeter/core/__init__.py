from .exceptions import (
    ConfigurationError,
    MeterError,
    NotFoundError,
    PermanentError,
    PersistenceError,
    SignalError,
    StateError,
    TransientError,
    ValidationError,
)
from .retry import RetryConfig, with_retry

__all__ = [
    "MeterError",
    "TransientError",
    "PersistenceError",
    "PermanentError",
    "ValidationError",
    "NotFoundError",
    "StateError",
    "ConfigurationError",
    "SignalError",
    "RetryConfig",
    "with_retry",
]
