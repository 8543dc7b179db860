from __future__ import annotations

import logging
from typing import Iterable

from transit_replay.domain.algorithms.geo_utils import (
    azimuth_deg,
    build_cumulative_distances_m,
    haversine_distance_km,
    interpolate_along_polyline,
    nearest_vertex_index,
)
from transit_replay.domain.algorithms.schedule_index import ScheduleIndex
from transit_replay.domain.models import (
    ActiveBus,
    BusPosition,
    GeoPoint,
    InterpolatedPoint,
    Segment,
)

logger = logging.getLogger(__name__)


def _coordinates(
    segment: Segment,
) -> tuple[tuple[float, float], tuple[float, float]] | None:
    if segment.from_stop_info is None or segment.to_stop_info is None:
        return None
    a = segment.from_stop_info.coordinates
    b = segment.to_stop_info.coordinates
    if a is None or b is None:
        return None
    return a, b


def _endpoints(segment: Segment) -> tuple[GeoPoint, GeoPoint] | None:
    if segment.from_stop_info is None or segment.to_stop_info is None:
        return None
    a = segment.from_stop_info.location
    b = segment.to_stop_info.location
    if a is None or b is None:
        return None
    return a, b


def position(segment: Segment) -> InterpolatedPoint | None:
    """Planar interpolation between the segment's two stops.

    Returns None when a stop is unknown or has unusable coordinates.
    """

    coords = _coordinates(segment)
    if coords is None:
        logger.warning(
            "Invalid coordinates for segment %s -> %s on trip %s",
            segment.from_stop.stop_id,
            segment.to_stop.stop_id,
            segment.from_stop.trip_id,
        )
        return None

    (lat_a, lon_a), (lat_b, lon_b) = coords
    t = segment.progress
    return InterpolatedPoint(
        lat=lat_a + (lat_b - lat_a) * t,
        lon=lon_a + (lon_b - lon_a) * t,
        progress=t,
    )


def position_along_shape(
    segment: Segment, shape: tuple[GeoPoint, ...]
) -> InterpolatedPoint | None:
    """Interpolate along the trip's shape between the vertices nearest each stop.

    Returns None when the shape cannot be used for this segment; callers then
    fall back to `position`.
    """

    endpoints = _endpoints(segment)
    if endpoints is None or len(shape) < 2:
        return None

    a, b = endpoints
    ia = nearest_vertex_index(shape, a)
    ib = nearest_vertex_index(shape, b)
    if ia is None or ib is None or ia == ib:
        return None

    if ia < ib:
        path = shape[ia : ib + 1]
    else:
        path = tuple(reversed(shape[ib : ia + 1]))

    cum = build_cumulative_distances_m(path)
    total_m = cum[-1]
    if total_m <= 0.0:
        return None

    p = interpolate_along_polyline(path, cum, total_m * segment.progress)
    return InterpolatedPoint(lat=p.lat, lon=p.lon, progress=segment.progress)


def bearing(segment: Segment) -> float:
    """Heading from the from-stop to the to-stop; 0 (north) when unknown."""

    coords = _coordinates(segment)
    if coords is None:
        return 0.0
    (lat_a, lon_a), (lat_b, lon_b) = coords
    return azimuth_deg(lat_a, lon_a, lat_b, lon_b)


def distance_km(lat_a: float, lon_a: float, lat_b: float, lon_b: float) -> float:
    return haversine_distance_km(lat_a, lon_a, lat_b, lon_b)


def bus_positions(
    buses: Iterable[ActiveBus],
    *,
    index: ScheduleIndex | None = None,
    use_shapes: bool = False,
) -> tuple[BusPosition, ...]:
    """Positions for every bus that can be placed; the others are dropped."""

    out: list[BusPosition] = []
    for bus in buses:
        point = None
        if use_shapes and index is not None:
            point = position_along_shape(bus.segment, index.shape(bus.trip.shape_id))
        if point is None:
            point = position(bus.segment)
        if point is None:
            continue

        out.append(
            BusPosition(
                bus=bus,
                lat=point.lat,
                lon=point.lon,
                progress=point.progress,
                bearing_degrees=bearing(bus.segment),
            )
        )
    return tuple(out)
