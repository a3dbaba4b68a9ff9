"""Serialized ride session.

RideSession is the only way to touch a running ride. Every mutation, whether
a location fix, a clock tick or a driver command, becomes a Command on one
asyncio.Queue, and a single consumer task applies them to the state machine
in order. Fix and signal entry points are thread-safe so a background
location thread can push into the same queue as the foreground UI.

Commands are applied in submission order: awaited commands are scheduled with
``call_soon`` and thread-safe posts with ``call_soon_threadsafe``, which share
the loop's FIFO of callbacks.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from taximeter.core.exceptions import PersistenceError, SignalError, StateError
from taximeter.meter_logging import log_ride_context

from .location_filter import Accept
from .models import CompletedRide, Fix, RidePhase, RideState, SignalStatus
from .state_machine import RideStateMachine

if TYPE_CHECKING:
    from taximeter.db.active_ride_store import ActiveRideStore
    from taximeter.location.source import LocationSource

logger = logging.getLogger(__name__)

StateListener = Callable[[RideState], None]


class CommandType(str, Enum):
    """Mutations and queries processed by the session consumer."""

    FIX = "fix"
    SIGNAL = "signal"
    TICK = "tick"
    PAUSE = "pause"
    RESUME = "resume"
    TOGGLE_WAITING = "toggle_waiting"
    SNAPSHOT = "snapshot"
    STOP = "stop"


@dataclass
class Command:
    type: CommandType
    payload: Any = None
    future: "asyncio.Future[Any] | None" = None


class RideSession:
    """Actor owning one RideStateMachine for the lifetime of a ride."""

    def __init__(
        self,
        machine: RideStateMachine,
        store: "ActiveRideStore | None" = None,
        location_source: "LocationSource | None" = None,
        tick_interval_seconds: float = 1.0,
        snapshot_interval_seconds: float = 2.0,
    ) -> None:
        self._machine = machine
        self._store = store
        self._location_source = location_source
        self._tick_interval = tick_interval_seconds
        self._snapshot_interval = snapshot_interval_seconds

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[Command] = asyncio.Queue()
        self._tasks: list[asyncio.Task[None]] = []
        self._persist_lock = asyncio.Lock()
        self._listeners: list[StateListener] = []
        self._latest = machine.snapshot()
        self._closed = False

    @property
    def ride_id(self) -> str:
        return self._machine.ride_id

    @property
    def is_open(self) -> bool:
        return self._loop is not None and not self._closed

    @property
    def state(self) -> RideState:
        """Most recently published state. Readable from any thread."""
        return self._latest.detached()

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with a state copy after every change."""
        self._listeners.append(listener)

    async def open(self) -> None:
        """Start the consumer, clock and snapshot tasks and subscribe to locations."""
        if self._loop is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._tasks = [
            asyncio.create_task(self._consume(), name=f"ride-{self.ride_id}-consumer"),
            asyncio.create_task(self._run_clock(), name=f"ride-{self.ride_id}-clock"),
            asyncio.create_task(self._run_snapshots(), name=f"ride-{self.ride_id}-snapshots"),
        ]
        try:
            await self._save_snapshot()
            if self._location_source is not None:
                await self._start_location_source()
        except BaseException:
            await self._teardown(clear=False)
            raise
        logger.info("Ride session %s opened", self.ride_id)

    async def _start_location_source(self) -> None:
        """Subscribe to locations. A source that cannot start degrades the signal only."""
        try:
            await self._location_source.start(self.submit_fix, self.report_signal)
        except SignalError as e:
            self.report_signal(e.status)
        except PermissionError as e:
            logger.error("Location source for ride %s denied: %s", self.ride_id, e)
            self.report_signal(SignalStatus.PERMISSION_DENIED)
        except Exception:
            logger.exception("Location source for ride %s failed to start", self.ride_id)
            self.report_signal(SignalStatus.UNSUPPORTED)

    def submit_fix(self, fix: Fix) -> None:
        """Queue a raw fix. Thread-safe, returns immediately."""
        self._post(Command(CommandType.FIX, fix))

    def report_signal(self, status: SignalStatus) -> None:
        """Queue a location source status change. Thread-safe, returns immediately."""
        self._post(Command(CommandType.SIGNAL, status))

    async def pause(self) -> RideState:
        return await self._call(CommandType.PAUSE)

    async def resume(self) -> RideState:
        return await self._call(CommandType.RESUME)

    async def toggle_waiting_mode(self) -> RideState:
        return await self._call(CommandType.TOGGLE_WAITING)

    async def snapshot(self) -> RideState:
        """State after every command submitted before this call has been applied."""
        return await self._call(CommandType.SNAPSHOT)

    async def stop(self) -> CompletedRide | None:
        """End the ride, halt the session and clear the active-ride record."""
        completed: CompletedRide | None = await self._call(CommandType.STOP)
        await self._teardown(clear=True)
        return completed

    async def close(self) -> None:
        """Halt the session without ending the ride, leaving it resumable."""
        if self._closed or self._loop is None:
            return
        await self._teardown(clear=False)

    def _post(self, command: Command) -> None:
        if self._loop is None or self._closed:
            logger.debug("Ride session %s not accepting %s", self.ride_id, command.type.value)
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, command)
        except RuntimeError:
            logger.debug("Event loop closed, dropping %s", command.type.value)

    async def _call(self, command_type: CommandType, payload: Any = None) -> Any:
        if self._loop is None or self._closed:
            raise StateError(
                f"Ride session is not open ({command_type.value})",
                details={"ride_id": self.ride_id},
            )
        future: asyncio.Future[Any] = self._loop.create_future()
        self._loop.call_soon(self._queue.put_nowait, Command(command_type, payload, future))
        return await future

    async def _consume(self) -> None:
        while True:
            command = await self._queue.get()
            try:
                result = self._apply(command)
            except Exception as e:
                if command.future is not None and not command.future.done():
                    command.future.set_exception(e)
                else:
                    logger.exception("Ride %s failed to apply %s", self.ride_id, command.type.value)
                continue
            if command.future is not None and not command.future.done():
                command.future.set_result(result)

    def _apply(self, command: Command) -> Any:
        machine = self._machine
        result: Any = None
        changed = True

        with log_ride_context(self.ride_id):
            if command.type == CommandType.FIX:
                decision = machine.on_location_update(command.payload)
                changed = isinstance(decision, Accept)
                result = decision
            elif command.type == CommandType.TICK:
                changed = machine.on_clock_tick()
            elif command.type == CommandType.SIGNAL:
                machine.set_signal_status(command.payload)
            elif command.type == CommandType.PAUSE:
                result = machine.pause()
            elif command.type == CommandType.RESUME:
                result = machine.resume()
            elif command.type == CommandType.TOGGLE_WAITING:
                result = machine.toggle_waiting_mode()
            elif command.type == CommandType.STOP:
                result = machine.stop()
            else:
                return machine.snapshot()

        if changed:
            self._publish()
        return result

    def _publish(self) -> None:
        self._latest = self._machine.snapshot()
        for listener in self._listeners:
            try:
                listener(self._latest.detached())
            except Exception:
                logger.exception("Ride %s state listener failed", self.ride_id)

    async def _run_clock(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._tick_interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            self._queue.put_nowait(Command(CommandType.TICK))
            next_tick += self._tick_interval

    async def _run_snapshots(self) -> None:
        while True:
            await asyncio.sleep(self._snapshot_interval)
            await self._save_snapshot()

    async def _save_snapshot(self) -> bool:
        if self._store is None:
            return False
        state = self._latest
        if state.phase not in {RidePhase.ACTIVE, RidePhase.PAUSED}:
            return False
        async with self._persist_lock:
            try:
                await asyncio.to_thread(self._store.save_active_ride, state)
            except PersistenceError as e:
                logger.warning(
                    "Snapshot of ride %s failed, retrying next interval: %s", self.ride_id, e
                )
                return False
        return True

    async def _teardown(self, clear: bool) -> None:
        self._closed = True
        if self._location_source is not None:
            await self._location_source.stop()

        # Holding the lock guarantees no snapshot write is in flight
        async with self._persist_lock:
            tasks, self._tasks = self._tasks, []
            for task in tasks:
                task.cancel()
            for task in tasks:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            self._fail_pending()

            if self._store is not None:
                try:
                    if clear:
                        await asyncio.to_thread(self._store.clear_active_ride)
                    elif self._latest.phase in {RidePhase.ACTIVE, RidePhase.PAUSED}:
                        await asyncio.to_thread(self._store.save_active_ride, self._latest)
                except PersistenceError as e:
                    logger.error("Ride %s final persistence failed: %s", self.ride_id, e)
        logger.info("Ride session %s closed", self.ride_id)

    def _fail_pending(self) -> None:
        while not self._queue.empty():
            command = self._queue.get_nowait()
            if command.future is not None and not command.future.done():
                command.future.set_exception(
                    StateError("Ride session closed", details={"ride_id": self.ride_id})
                )
