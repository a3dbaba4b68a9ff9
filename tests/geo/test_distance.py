"""Tests for great-circle distance."""

import math

import pytest

from taximeter.geo.distance import (
    EARTH_RADIUS_KM,
    distance_km,
    haversine_distance_km,
    haversine_distance_m,
)
from taximeter.meter.models import Fix


def _fix(lat: float, lon: float) -> Fix:
    return Fix(latitude=lat, longitude=lon, timestamp=0)


@pytest.mark.unit
class TestHaversineDistance:
    def test_same_point_returns_zero(self) -> None:
        lat, lon = 9.0, 38.0  # Addis Ababa
        assert haversine_distance_km(lat, lon, lat, lon) == 0.0

    def test_known_distance_addis_to_nairobi(self) -> None:
        """Addis Ababa to Nairobi is roughly 1160 km."""
        distance = haversine_distance_km(9.03, 38.74, -1.286, 36.817)
        assert 1140 <= distance <= 1180

    def test_one_degree_of_latitude(self) -> None:
        expected = EARTH_RADIUS_KM * math.pi / 180
        assert haversine_distance_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)

    def test_short_distance_accuracy(self) -> None:
        """0.0009 degrees of latitude is about 100 m."""
        distance = haversine_distance_m(9.0, 38.0, 9.0009, 38.0)
        assert distance == pytest.approx(100.08, abs=0.5)

    def test_meters_match_kilometers(self) -> None:
        km = haversine_distance_km(9.0, 38.0, 9.01, 38.02)
        assert haversine_distance_m(9.0, 38.0, 9.01, 38.02) == pytest.approx(km * 1000)

    def test_symmetry(self) -> None:
        ab = haversine_distance_km(9.0, 38.0, -23.55, -46.63)
        ba = haversine_distance_km(-23.55, -46.63, 9.0, 38.0)
        assert ab == pytest.approx(ba, rel=1e-12)

    def test_antipodal_points_do_not_raise(self) -> None:
        distance = haversine_distance_km(0.0, 0.0, 0.0, 180.0)
        assert distance == pytest.approx(EARTH_RADIUS_KM * math.pi, rel=1e-9)

    def test_grows_with_angular_separation(self) -> None:
        distances = [haversine_distance_km(9.0, 38.0, 9.0 + d, 38.0) for d in (0.001, 0.01, 0.1, 1)]
        assert distances == sorted(distances)


@pytest.mark.unit
class TestDistanceKm:
    def test_accepts_fixes(self) -> None:
        a, b = _fix(9.0, 38.0), _fix(9.0009, 38.0)
        assert distance_km(a, b) == pytest.approx(0.1, abs=0.001)

    def test_identical_coordinates(self) -> None:
        a = _fix(-33.8688, 151.2093)
        assert distance_km(a, a) == 0.0

    def test_symmetric(self) -> None:
        a, b = _fix(51.5074, -0.1278), _fix(48.8566, 2.3522)
        assert distance_km(a, b) == distance_km(b, a)
