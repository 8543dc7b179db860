from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from transit_replay.domain.algorithms.gtfs_time import DAY_SECONDS, format_time
from transit_replay.domain.exceptions import InvalidConfiguration
from transit_replay.domain.models import ClockMode, ClockSnapshot

logger = logging.getLogger(__name__)

ClockListener = Callable[[ClockSnapshot], None]


def _validate_seconds(seconds: float) -> float:
    value = float(seconds)
    if not math.isfinite(value) or not (0.0 <= value < DAY_SECONDS):
        raise InvalidConfiguration(
            f"Simulated time must be within [0, {DAY_SECONDS}), got {seconds!r}"
        )
    return value


def _validate_speed(factor: float) -> float:
    value = float(factor)
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidConfiguration(f"Speed factor must be positive, got {factor!r}")
    return value


@dataclass(slots=True)
class ClockState:
    seconds: float
    speed: float
    running: bool = False
    mode: ClockMode = ClockMode.SIMULATED
    # Wall-clock reading taken at play() or at the previous tick.
    last_tick_at: float | None = None


@dataclass(slots=True, eq=False)
class Subscription:
    """Handle for one `subscribe` call; compared by identity."""

    clock: VirtualClock
    listener: ClockListener

    @property
    def active(self) -> bool:
        return self in self.clock._subscriptions

    def unsubscribe(self) -> None:
        if self.active:
            self.clock._subscriptions.remove(self)


@dataclass(slots=True)
class VirtualClock:
    """Simulated time of day, advanced by wall-clock deltas times a speed factor.

    The clock never schedules itself: the host calls `tick()` from a timer or
    event loop (see `run_clock`). Each tick advances the time and then calls
    every listener, in subscription order, before returning.

    In REAL mode the reported time is the local wall time and ticks only
    notify listeners.
    """

    start_seconds: float = 0.0
    speed: float = 1.0
    mode: ClockMode = ClockMode.SIMULATED
    wall_clock: Callable[[], float] = time.monotonic
    local_now: Callable[[], datetime] = datetime.now
    state: ClockState = field(init=False)
    _subscriptions: list[Subscription] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.start_seconds = _validate_seconds(self.start_seconds)
        self.state = ClockState(
            seconds=self.start_seconds,
            speed=_validate_speed(self.speed),
            mode=ClockMode(self.mode),
        )

    @property
    def current_seconds(self) -> float:
        if self.state.mode is ClockMode.REAL:
            now = self.local_now()
            return float(now.hour * 3600 + now.minute * 60 + now.second)
        return self.state.seconds

    @property
    def is_running(self) -> bool:
        return self.state.running

    def snapshot(self) -> ClockSnapshot:
        seconds = self.current_seconds
        return ClockSnapshot(
            seconds=seconds,
            time_string=format_time(seconds),
            speed=self.state.speed,
            is_running=self.state.running,
            mode=self.state.mode,
        )

    def subscribe(self, listener: ClockListener) -> Subscription:
        sub = Subscription(clock=self, listener=listener)
        self._subscriptions.append(sub)
        return sub

    def play(self) -> ClockSnapshot:
        if not self.state.running:
            self.state.running = True
            self.state.last_tick_at = self.wall_clock()
            logger.info("Clock started at %s", format_time(self.current_seconds))
        return self._notify()

    def pause(self) -> ClockSnapshot:
        if self.state.running:
            self.state.running = False
            self.state.last_tick_at = None
            logger.info("Clock paused at %s", format_time(self.current_seconds))
        return self._notify()

    def reset(self, start_time: float | None = None) -> ClockSnapshot:
        seconds = (
            self.start_seconds if start_time is None else _validate_seconds(start_time)
        )
        self.state.running = False
        self.state.last_tick_at = None
        self.state.seconds = seconds
        logger.info("Clock reset to %s", format_time(seconds))
        return self._notify()

    def set_time(self, seconds: float) -> ClockSnapshot:
        """Seek without changing the running state."""

        self.state.seconds = _validate_seconds(seconds)
        if self.state.running:
            self.state.last_tick_at = self.wall_clock()
        logger.info("Clock moved to %s", format_time(self.state.seconds))
        return self._notify()

    def set_speed(self, factor: float) -> None:
        self.state.speed = _validate_speed(factor)
        logger.info("Clock speed set to x%s", self.state.speed)

    def set_mode(self, mode: ClockMode | str) -> ClockSnapshot:
        try:
            new_mode = ClockMode(mode)
        except ValueError as exc:
            raise InvalidConfiguration(
                f"Mode must be one of {[m.value for m in ClockMode]}, got {mode!r}"
            ) from exc
        self.state.mode = new_mode
        if self.state.running:
            self.state.last_tick_at = self.wall_clock()
        logger.info("Clock mode set to %s", new_mode.value)
        return self._notify()

    def tick(self) -> ClockSnapshot | None:
        """Advance once and notify listeners; no-op while stopped."""

        if not self.state.running:
            return None

        now = self.wall_clock()
        last = self.state.last_tick_at if self.state.last_tick_at is not None else now
        elapsed = max(0.0, now - last)

        if self.state.mode is ClockMode.SIMULATED:
            self.state.seconds += elapsed * self.state.speed
            # Overshooting midnight lands on exactly 0; the remainder is dropped.
            if self.state.seconds >= DAY_SECONDS:
                self.state.seconds = 0.0
        self.state.last_tick_at = now

        return self._notify()

    def _notify(self) -> ClockSnapshot:
        snap = self.snapshot()
        for sub in list(self._subscriptions):
            try:
                sub.listener(snap)
            except Exception:
                logger.exception("Clock listener %r failed", sub.listener)
        return snap


async def run_clock(clock: VirtualClock, *, interval_s: float = 1.0) -> None:
    """Drive `clock` from the running event loop until cancelled.

    The next tick is only scheduled once the current one, including all
    listener calls, has returned.
    """

    if interval_s <= 0:
        raise InvalidConfiguration(
            f"Tick interval must be positive, got {interval_s!r}"
        )

    while True:
        clock.tick()
        await asyncio.sleep(interval_s)
