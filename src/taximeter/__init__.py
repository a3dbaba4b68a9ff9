"""Taxi-fare metering engine: GPS filtering, waiting time, fare and ride recovery."""

__version__ = "0.1.0"
