from .geo import GeoPoint
from .gtfs import GtfsRoute, GtfsStopTime, GtfsTables, GtfsTrip
from .simulation import (
    ActiveBus,
    BusPosition,
    ClockMode,
    ClockSnapshot,
    Eta,
    InterpolatedPoint,
    Segment,
)
from .stop import Stop

__all__ = [
    "ActiveBus",
    "BusPosition",
    "ClockMode",
    "ClockSnapshot",
    "Eta",
    "GeoPoint",
    "GtfsRoute",
    "GtfsStopTime",
    "GtfsTables",
    "GtfsTrip",
    "InterpolatedPoint",
    "Segment",
    "Stop",
]
