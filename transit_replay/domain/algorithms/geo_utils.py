from __future__ import annotations

import math

from transit_replay.domain.models import GeoPoint

EARTH_RADIUS_M = 6371000.0
EARTH_RADIUS_KM = 6371.0


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""

    return _haversine(a.lat, a.lon, b.lat, b.lon, EARTH_RADIUS_M)


def haversine_distance_km(
    lat_a: float, lon_a: float, lat_b: float, lon_b: float
) -> float:
    """Great-circle distance in kilometers."""

    return _haversine(lat_a, lon_a, lat_b, lon_b, EARTH_RADIUS_KM)


def _haversine(
    lat_a: float, lon_a: float, lat_b: float, lon_b: float, radius: float
) -> float:
    lat1 = math.radians(lat_a)
    lon1 = math.radians(lon_a)
    lat2 = math.radians(lat_b)
    lon2 = math.radians(lon_b)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    s = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    )
    return 2.0 * radius * math.asin(math.sqrt(s))


def azimuth_deg(lat_a: float, lon_a: float, lat_b: float, lon_b: float) -> float:
    """Initial great-circle bearing from a to b, in degrees within [0, 360)."""

    lat1 = math.radians(lat_a)
    lat2 = math.radians(lat_b)
    dlon = math.radians(lon_b) - math.radians(lon_a)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlon
    )
    degrees = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    # Float modulo can round a tiny negative angle up to exactly 360.
    return 0.0 if degrees >= 360.0 else degrees


def build_cumulative_distances_m(points: tuple[GeoPoint, ...]) -> tuple[float, ...]:
    if len(points) < 2:
        return (0.0,) * len(points)

    out: list[float] = [0.0]
    total = 0.0
    for i in range(1, len(points)):
        total += haversine_distance_m(points[i - 1], points[i])
        out.append(total)
    return tuple(out)


def interpolate_along_polyline(
    points: tuple[GeoPoint, ...], cumulative_m: tuple[float, ...], distance_m: float
) -> GeoPoint:
    if not points:
        return GeoPoint(lat=0.0, lon=0.0)
    if len(points) == 1:
        return points[0]

    total_m = cumulative_m[-1] if cumulative_m else 0.0
    if total_m <= 0.0:
        return points[0]

    d = max(0.0, min(float(distance_m), float(total_m)))

    # Linear scan; shapes are a few hundred vertices at most.
    for i in range(1, len(points)):
        if cumulative_m[i] >= d:
            d0 = cumulative_m[i - 1]
            d1 = cumulative_m[i]
            denom = max(1e-9, d1 - d0)
            t = (d - d0) / denom
            p0 = points[i - 1]
            p1 = points[i]
            return GeoPoint(
                lat=p0.lat + (p1.lat - p0.lat) * t,
                lon=p0.lon + (p1.lon - p0.lon) * t,
            )

    return points[-1]


def nearest_vertex_index(points: tuple[GeoPoint, ...], target: GeoPoint) -> int | None:
    best_i: int | None = None
    best_d = float("inf")
    for i, p in enumerate(points):
        d = haversine_distance_m(target, p)
        if d < best_d:
            best_d = d
            best_i = i
    return best_i
