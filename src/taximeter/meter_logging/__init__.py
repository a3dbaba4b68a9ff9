"""Logging module with structured formatters and ride context management."""

from .context import ContextFilter, LogContext, log_context, log_ride_context
from .filters import DefaultCorrelationFilter
from .formatters import DevFormatter, JSONFormatter
from .setup import setup_logging

__all__ = [
    "setup_logging",
    "log_context",
    "log_ride_context",
    "JSONFormatter",
    "DevFormatter",
    "DefaultCorrelationFilter",
    "LogContext",
    "ContextFilter",
]
