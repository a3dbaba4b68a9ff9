import bisect
import math
import random

from .distance import haversine_distance_m


class GPSSimulator:
    """Generates GPS-like readings along a route: noise, accuracy estimates, dropouts."""

    def __init__(
        self,
        noise_meters: float = 5.0,
        dropout_probability: float = 0.0,
        rng: random.Random | None = None,
    ):
        self.noise_meters = noise_meters
        self.dropout_probability = dropout_probability
        self._rng = rng or random.Random()

    def add_noise(
        self, lat: float, lon: float, max_noise_meters: float = 15.0
    ) -> tuple[float, float]:
        if self.noise_meters == 0:
            return lat, lon

        # Generate Gaussian noise and clamp to max value
        noise_lat = max(
            -max_noise_meters, min(max_noise_meters, self._rng.gauss(0, self.noise_meters))
        )
        noise_lon = max(
            -max_noise_meters, min(max_noise_meters, self._rng.gauss(0, self.noise_meters))
        )

        lat_offset = noise_lat / 111000
        lon_offset = noise_lon / (111000 * math.cos(math.radians(lat)))

        return lat + lat_offset, lon + lon_offset

    def should_dropout(self) -> bool:
        return self._rng.random() < self.dropout_probability

    def get_gps_accuracy(self) -> float:
        """Reported accuracy radius in meters, jittered around the noise level."""
        variation = self._rng.uniform(-0.2, 0.2)
        return max(1.0, self.noise_meters * (1 + variation))

    def interpolate_position(
        self,
        polyline: list[tuple[float, float]],
        progress: float,
        cumulative_distances: list[float] | None = None,
    ) -> tuple[float, float]:
        if progress <= 0.0:
            return polyline[0]
        if progress >= 1.0:
            return polyline[-1]

        if cumulative_distances is None:
            cumulative_distances = precompute_cumulative_distances(polyline)

        if not cumulative_distances:
            return polyline[0]

        total_distance = cumulative_distances[-1]
        target_distance = total_distance * progress

        idx = bisect.bisect_left(cumulative_distances, target_distance)
        idx = min(idx, len(polyline) - 2)

        prev_cumulative = cumulative_distances[idx - 1] if idx > 0 else 0.0
        segment_distance = cumulative_distances[idx] - prev_cumulative

        if segment_distance == 0.0:
            return polyline[idx]

        segment_progress = (target_distance - prev_cumulative) / segment_distance
        start, end = polyline[idx], polyline[idx + 1]
        return (
            start[0] + (end[0] - start[0]) * segment_progress,
            start[1] + (end[1] - start[1]) * segment_progress,
        )


def precompute_cumulative_distances(polyline: list[tuple[float, float]]) -> list[float]:
    """Precompute cumulative Haversine distances along a polyline.

    Returns a list of length len(polyline) - 1 where entry i is the
    cumulative distance from polyline[0] to polyline[i+1] in meters.
    Returns empty list for polylines shorter than 2 points.
    """
    if len(polyline) < 2:
        return []

    cumulative: list[float] = []
    total = 0.0
    for (lat1, lon1), (lat2, lon2) in zip(polyline, polyline[1:]):
        total += haversine_distance_m(lat1, lon1, lat2, lon2)
        cumulative.append(total)
    return cumulative
