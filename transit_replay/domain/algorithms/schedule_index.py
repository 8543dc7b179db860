from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from transit_replay.domain.algorithms.gtfs_time import parse_gtfs_time
from transit_replay.domain.models import (
    GeoPoint,
    GtfsRoute,
    GtfsStopTime,
    GtfsTables,
    GtfsTrip,
    Stop,
)
from transit_replay.domain.models.geo import parse_coordinate
from transit_replay.domain.models.gtfs import Row

logger = logging.getLogger(__name__)


def _field(row: Row, name: str) -> str | None:
    return (row.get(name) or "").strip() or None


@dataclass(frozen=True, slots=True)
class ScheduleIndex:
    """Read-only lookup tables over a static GTFS feed.

    Built once with `build_index`; never mutated afterwards, so it can be shared
    freely between readers.
    """

    routes_by_id: dict[str, GtfsRoute] = field(default_factory=dict)
    trips_by_id: dict[str, GtfsTrip] = field(default_factory=dict)
    stops_by_id: dict[str, Stop] = field(default_factory=dict)
    # Sorted by stop_sequence; keys keep first-appearance order from stop_times.
    stop_times_by_trip: dict[str, tuple[GtfsStopTime, ...]] = field(
        default_factory=dict
    )
    trips_by_route: dict[str, tuple[GtfsTrip, ...]] = field(default_factory=dict)
    # (first departure, last arrival) for trips with at least two stop times.
    service_windows: dict[str, tuple[int, int]] = field(default_factory=dict)
    shapes_by_id: dict[str, tuple[GeoPoint, ...]] = field(default_factory=dict)

    def trip_stop_times(self, trip_id: str) -> tuple[GtfsStopTime, ...]:
        return self.stop_times_by_trip.get(trip_id, ())

    def stop(self, stop_id: str) -> Stop | None:
        return self.stops_by_id.get(stop_id)

    def route(self, route_id: str | None) -> GtfsRoute | None:
        if route_id is None:
            return None
        return self.routes_by_id.get(route_id)

    def trip(self, trip_id: str) -> GtfsTrip | None:
        return self.trips_by_id.get(trip_id)

    def trips_for_route(self, route_id: str) -> tuple[GtfsTrip, ...]:
        return self.trips_by_route.get(route_id, ())

    def shape(self, shape_id: str | None) -> tuple[GeoPoint, ...]:
        if shape_id is None:
            return ()
        return self.shapes_by_id.get(shape_id, ())


def build_index(
    routes: Iterable[Row],
    trips: Iterable[Row],
    stop_times: Iterable[Row],
    stops: Iterable[Row],
    shapes: Iterable[Row] = (),
) -> ScheduleIndex:
    """Index raw GTFS rows.

    Malformed optional fields never abort the build: the offending row is
    dropped and a warning is logged.
    """

    routes_by_id: dict[str, GtfsRoute] = {}
    for row in routes:
        route_id = _field(row, "route_id")
        if not route_id:
            logger.warning("Skipping route row without route_id: %r", dict(row))
            continue
        routes_by_id[route_id] = GtfsRoute(
            route_id=route_id,
            short_name=_field(row, "route_short_name"),
            long_name=_field(row, "route_long_name"),
            color=_field(row, "route_color"),
            text_color=_field(row, "route_text_color"),
        )

    trips_by_id: dict[str, GtfsTrip] = {}
    route_trips: dict[str, list[GtfsTrip]] = {}
    for row in trips:
        trip_id = _field(row, "trip_id")
        if not trip_id:
            logger.warning("Skipping trip row without trip_id: %r", dict(row))
            continue
        trip = GtfsTrip(
            trip_id=trip_id,
            route_id=_field(row, "route_id"),
            headsign=_field(row, "trip_headsign"),
            shape_id=_field(row, "shape_id"),
        )
        if trip.route_id is not None and trip.route_id not in routes_by_id:
            logger.warning(
                "Trip %s references unknown route %s", trip_id, trip.route_id
            )
        trips_by_id[trip_id] = trip
        if trip.route_id is not None:
            route_trips.setdefault(trip.route_id, []).append(trip)

    stops_by_id: dict[str, Stop] = {}
    for row in stops:
        stop_id = _field(row, "stop_id")
        if not stop_id:
            logger.warning("Skipping stop row without stop_id: %r", dict(row))
            continue
        stops_by_id[stop_id] = Stop(
            id=stop_id,
            name=_field(row, "stop_name") or stop_id,
            lat=_field(row, "stop_lat"),
            lon=_field(row, "stop_lon"),
        )

    by_trip: dict[str, dict[int, GtfsStopTime]] = {}
    stop_time_count = 0
    for row in stop_times:
        stop_time = _parse_stop_time(row)
        if stop_time is None:
            continue
        entries = by_trip.setdefault(stop_time.trip_id, {})
        if stop_time.stop_sequence in entries:
            logger.warning(
                "Dropping duplicate stop_sequence %s on trip %s",
                stop_time.stop_sequence,
                stop_time.trip_id,
            )
            continue
        entries[stop_time.stop_sequence] = stop_time
        stop_time_count += 1

    stop_times_by_trip: dict[str, tuple[GtfsStopTime, ...]] = {}
    service_windows: dict[str, tuple[int, int]] = {}
    for trip_id, entries in by_trip.items():
        ordered = tuple(entries[seq] for seq in sorted(entries))
        stop_times_by_trip[trip_id] = ordered
        if len(ordered) >= 2:
            service_windows[trip_id] = (
                ordered[0].departure_time_s,
                ordered[-1].arrival_time_s,
            )

    shapes_by_id = _index_shapes(shapes)

    logger.info(
        "Schedule index built: %d routes, %d trips, %d stop times, %d stops, %d shapes",
        len(routes_by_id),
        len(trips_by_id),
        stop_time_count,
        len(stops_by_id),
        len(shapes_by_id),
    )

    return ScheduleIndex(
        routes_by_id=routes_by_id,
        trips_by_id=trips_by_id,
        stops_by_id=stops_by_id,
        stop_times_by_trip=stop_times_by_trip,
        trips_by_route={rid: tuple(ts) for rid, ts in route_trips.items()},
        service_windows=service_windows,
        shapes_by_id=shapes_by_id,
    )


def build_index_from_tables(tables: GtfsTables) -> ScheduleIndex:
    return build_index(
        routes=tables.routes,
        trips=tables.trips,
        stop_times=tables.stop_times,
        stops=tables.stops,
        shapes=tables.shapes,
    )


def _parse_stop_time(row: Row) -> GtfsStopTime | None:
    trip_id = _field(row, "trip_id")
    stop_id = _field(row, "stop_id")
    if not trip_id or not stop_id:
        logger.warning("Skipping stop_time without trip_id/stop_id: %r", dict(row))
        return None

    try:
        seq = int(_field(row, "stop_sequence") or "")
    except ValueError:
        logger.warning(
            "Skipping stop_time with invalid stop_sequence on trip %s (stop %s)",
            trip_id,
            stop_id,
        )
        return None

    arrival_s = _parse_time_field(row, "arrival_time", trip_id)
    departure_s = _parse_time_field(row, "departure_time", trip_id)
    if arrival_s is None and departure_s is None:
        logger.warning(
            "Dropping stop_time without arrival/departure: trip %s, stop %s, seq %s",
            trip_id,
            stop_id,
            seq,
        )
        return None

    return GtfsStopTime(
        trip_id=trip_id,
        stop_id=stop_id,
        stop_sequence=seq,
        arrival_s=arrival_s,
        departure_s=departure_s,
    )


def _parse_time_field(row: Row, name: str, trip_id: str) -> int | None:
    raw = _field(row, name)
    try:
        return parse_gtfs_time(raw)
    except ValueError:
        logger.warning("Ignoring malformed %s %r on trip %s", name, raw, trip_id)
        return None


def _index_shapes(rows: Iterable[Row]) -> dict[str, tuple[GeoPoint, ...]]:
    tmp: dict[str, list[tuple[int, GeoPoint]]] = {}
    for row in rows:
        shape_id = _field(row, "shape_id")
        if not shape_id:
            continue
        lat = parse_coordinate(_field(row, "shape_pt_lat"))
        lon = parse_coordinate(_field(row, "shape_pt_lon"))
        try:
            seq = int(_field(row, "shape_pt_sequence") or 0)
            if lat is None or lon is None:
                raise ValueError("missing coordinate")
            point = GeoPoint(lat=lat, lon=lon)
        except ValueError:
            continue
        tmp.setdefault(shape_id, []).append((seq, point))

    shapes_by_id: dict[str, tuple[GeoPoint, ...]] = {}
    for shape_id, pts in tmp.items():
        pts.sort(key=lambda x: x[0])
        shapes_by_id[shape_id] = tuple(p for _, p in pts)
    return shapes_by_id
