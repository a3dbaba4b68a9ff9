from .source import ErrorCallback, FixCallback, LocationSource, SimulatedLocationSource

__all__ = ["ErrorCallback", "FixCallback", "LocationSource", "SimulatedLocationSource"]
