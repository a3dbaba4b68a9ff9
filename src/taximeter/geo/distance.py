"""Great-circle distance between coordinates.

Haversine on a spherical Earth of radius 6371 km. Every distance the meter
credits to a ride goes through ``distance_km``.
"""

from math import atan2, cos, radians, sin, sqrt
from typing import Protocol

EARTH_RADIUS_KM = 6371.0


class Coordinate(Protocol):
    """Anything with a latitude and longitude in degrees."""

    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


def haversine_distance_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance between the two points in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push a just past 1.0 for antipodal points
    a = min(1.0, a)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def haversine_distance_m(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Same as haversine_distance_km, in meters (used by GPS simulation)."""
    return haversine_distance_km(lat1, lon1, lat2, lon2) * 1000.0


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Distance between two coordinates in kilometers.

    Symmetric, zero for identical coordinates, and never raises for valid floats.
    """
    return haversine_distance_km(a.latitude, a.longitude, b.latitude, b.longitude)
