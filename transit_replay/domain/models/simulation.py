from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .gtfs import GtfsRoute, GtfsStopTime, GtfsTrip
from .stop import Stop


class ClockMode(str, Enum):
    SIMULATED = "simulated"
    REAL = "real"


@dataclass(frozen=True, slots=True)
class ClockSnapshot:
    seconds: float
    time_string: str
    speed: float
    is_running: bool
    mode: ClockMode = ClockMode.SIMULATED


@dataclass(frozen=True, slots=True)
class Segment:
    """The two consecutive stop times a vehicle is currently between."""

    from_stop: GtfsStopTime
    to_stop: GtfsStopTime
    from_stop_info: Stop | None
    to_stop_info: Stop | None
    departure_time: int
    arrival_time: int
    progress: float


@dataclass(frozen=True, slots=True)
class ActiveBus:
    trip_id: str
    trip: GtfsTrip
    route: GtfsRoute | None
    segment: Segment
    current_seconds: float


@dataclass(frozen=True, slots=True)
class InterpolatedPoint:
    lat: float
    lon: float
    progress: float


@dataclass(frozen=True, slots=True)
class BusPosition:
    bus: ActiveBus
    lat: float
    lon: float
    progress: float
    bearing_degrees: float


@dataclass(frozen=True, slots=True)
class Eta:
    seconds: float
    formatted: str
