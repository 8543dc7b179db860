from __future__ import annotations

from dataclasses import dataclass

from .geo import GeoPoint, parse_coordinate


@dataclass(frozen=True, slots=True)
class Stop:
    """A stop as published in stops.txt.

    Coordinates are kept as the raw strings from the feed; they are only
    parsed when a position is needed so that one bad row never blocks loading.
    """

    id: str
    name: str
    lat: str | None = None
    lon: str | None = None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        """(lat, lon) as finite floats, without any range check."""

        lat = parse_coordinate(self.lat)
        lon = parse_coordinate(self.lon)
        if lat is None or lon is None:
            return None
        return lat, lon

    @property
    def location(self) -> GeoPoint | None:
        coords = self.coordinates
        if coords is None:
            return None
        try:
            return GeoPoint(lat=coords[0], lon=coords[1])
        except ValueError:
            return None
