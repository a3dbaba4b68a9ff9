"""Location source contract and a simulated implementation.

A location source pushes fixes and signal errors into callbacks. The meter
never polls it; callbacks may fire from any thread because RideSession
funnels them onto its own queue.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Iterator
from typing import Protocol

from taximeter.geo.gps_simulation import GPSSimulator, precompute_cumulative_distances
from taximeter.meter.models import Fix, SignalStatus

logger = logging.getLogger(__name__)

FixCallback = Callable[[Fix], None]
ErrorCallback = Callable[[SignalStatus], None]


class LocationSource(Protocol):
    async def start(self, on_fix: FixCallback, on_error: ErrorCallback) -> None: ...

    async def stop(self) -> None: ...


class SimulatedLocationSource:
    """Drives along a polyline at constant speed, emitting noisy fixes.

    Fix timestamps advance by ``interval_seconds`` per reading regardless of
    ``time_scale``, which only shortens the real wait between readings.
    ``max_dropouts`` consecutive missing readings report SIGNAL_LOST.
    """

    def __init__(
        self,
        polyline: list[tuple[float, float]],
        speed_kmh: float = 30.0,
        interval_seconds: float = 2.0,
        simulator: GPSSimulator | None = None,
        start_timestamp_ms: int | None = None,
        max_dropouts: int = 3,
        time_scale: float = 1.0,
    ):
        if len(polyline) < 2:
            raise ValueError("Simulated route needs at least two points")
        if speed_kmh <= 0 or interval_seconds <= 0 or time_scale <= 0:
            raise ValueError("speed_kmh, interval_seconds and time_scale must be positive")

        self.polyline = polyline
        self.speed_kmh = speed_kmh
        self.interval_seconds = interval_seconds
        self.simulator = simulator or GPSSimulator()
        self.start_timestamp_ms = start_timestamp_ms
        self.max_dropouts = max_dropouts
        self.time_scale = time_scale
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def readings(self) -> Iterator[Fix | None]:
        """Readings along the route; None marks a dropout."""
        cumulative = precompute_cumulative_distances(self.polyline)
        total_m = cumulative[-1]
        step_m = self.speed_kmh / 3.6 * self.interval_seconds
        start_ms = (
            self.start_timestamp_ms
            if self.start_timestamp_ms is not None
            else int(time.time() * 1000)
        )

        travelled_m = 0.0
        index = 0
        while True:
            progress = travelled_m / total_m if total_m > 0 else 1.0
            timestamp = start_ms + int(index * self.interval_seconds * 1000)
            if self.simulator.should_dropout():
                yield None
            else:
                lat, lon = self.simulator.interpolate_position(self.polyline, progress, cumulative)
                lat, lon = self.simulator.add_noise(lat, lon)
                yield Fix(
                    latitude=lat,
                    longitude=lon,
                    timestamp=timestamp,
                    accuracy_m=self.simulator.get_gps_accuracy(),
                )
            if progress >= 1.0:
                return
            travelled_m += step_m
            index += 1

    async def start(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(on_fix, on_error))

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        dropouts = 0
        delay = self.interval_seconds / self.time_scale
        for reading in self.readings():
            if reading is None:
                dropouts += 1
                if dropouts == self.max_dropouts:
                    on_error(SignalStatus.SIGNAL_LOST)
            else:
                dropouts = 0
                on_fix(reading)
            await asyncio.sleep(delay)
        logger.info("Simulated route finished")
