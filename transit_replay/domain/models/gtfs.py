from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, cast

Row = Mapping[str, str | None]


@dataclass(frozen=True, slots=True)
class GtfsRoute:
    route_id: str
    short_name: str | None = None
    long_name: str | None = None
    color: str | None = None  # hex without '#'
    text_color: str | None = None  # hex without '#'


@dataclass(frozen=True, slots=True)
class GtfsTrip:
    trip_id: str
    route_id: str | None = None
    headsign: str | None = None
    shape_id: str | None = None


@dataclass(frozen=True, slots=True)
class GtfsStopTime:
    """Scheduled passage of one trip at one stop.

    Times are seconds since service day midnight (GTFS time semantics; may exceed 24h).
    At least one of arrival/departure is always set once indexed.
    """

    trip_id: str
    stop_id: str
    stop_sequence: int
    arrival_s: int | None = None
    departure_s: int | None = None

    @property
    def departure_time_s(self) -> int:
        if self.departure_s is not None:
            return self.departure_s
        return cast(int, self.arrival_s)

    @property
    def arrival_time_s(self) -> int:
        if self.arrival_s is not None:
            return self.arrival_s
        return cast(int, self.departure_s)


@dataclass(frozen=True, slots=True)
class GtfsTables:
    """Raw rows of the static tables, as read from the feed files."""

    routes: tuple[Row, ...] = ()
    trips: tuple[Row, ...] = ()
    stop_times: tuple[Row, ...] = ()
    stops: tuple[Row, ...] = ()
    shapes: tuple[Row, ...] = field(default_factory=tuple)
