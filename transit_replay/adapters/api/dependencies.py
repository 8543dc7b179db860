from __future__ import annotations

import os
from functools import lru_cache

from transit_replay.adapters.persistence.local_gtfs_repository import (
    LocalGtfsRepository,
)
from transit_replay.app.services.simulation_service import SimulationService
from transit_replay.app.services.virtual_clock import VirtualClock
from transit_replay.domain.algorithms.gtfs_time import parse_gtfs_time
from transit_replay.domain.exceptions import InvalidConfiguration
from transit_replay.domain.models import ClockMode

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def parse_clock_time(raw: str) -> int:
    try:
        seconds = parse_gtfs_time(raw)
    except ValueError as exc:
        raise InvalidConfiguration(str(exc)) from exc
    if seconds is None:
        raise InvalidConfiguration("A time of day is required")
    return seconds


def tick_interval_s() -> float:
    raw = os.getenv("SIM_TICK_INTERVAL_S") or "1.0"
    try:
        return float(raw)
    except ValueError as exc:
        raise InvalidConfiguration(f"Invalid SIM_TICK_INTERVAL_S: {raw!r}") from exc


def build_clock() -> VirtualClock:
    start = parse_clock_time(os.getenv("SIM_START_TIME") or "00:00:00")

    raw_speed = os.getenv("SIM_SPEED") or "1.0"
    try:
        speed = float(raw_speed)
    except ValueError as exc:
        raise InvalidConfiguration(f"Invalid SIM_SPEED: {raw_speed!r}") from exc

    mode = os.getenv("SIM_MODE") or ClockMode.SIMULATED.value
    try:
        clock_mode = ClockMode(mode.strip().lower())
    except ValueError as exc:
        raise InvalidConfiguration(f"Invalid SIM_MODE: {mode!r}") from exc

    clock = VirtualClock(start_seconds=start, speed=speed, mode=clock_mode)
    if env_flag("SIM_AUTOPLAY"):
        clock.play()
    return clock


@lru_cache(maxsize=1)
def get_simulation_service() -> SimulationService:
    # One process-wide simulation: the clock state must survive across requests.
    return SimulationService.from_repository(
        LocalGtfsRepository(),
        clock=build_clock(),
        use_shapes=env_flag("SIM_USE_SHAPES"),
    )
