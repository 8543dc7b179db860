from __future__ import annotations

from typing import Collection

from transit_replay.domain.algorithms.gtfs_time import format_countdown
from transit_replay.domain.algorithms.schedule_index import ScheduleIndex
from transit_replay.domain.models import ActiveBus, Eta, GtfsStopTime, Segment

UNKNOWN_DESTINATION = "Unknown destination"


def segment_progress(departure_s: float, arrival_s: float, now_s: float) -> float:
    """Fraction of the segment covered at now_s, clamped to [0, 1].

    A zero-duration segment reports 0.
    """

    total = arrival_s - departure_s
    if total == 0:
        return 0.0
    return max(0.0, min(1.0, (now_s - departure_s) / total))


def find_current_segment(
    index: ScheduleIndex, stop_times: tuple[GtfsStopTime, ...], now_s: float
) -> Segment | None:
    for current, nxt in zip(stop_times, stop_times[1:]):
        departure_s = current.departure_time_s
        arrival_s = nxt.arrival_time_s
        if departure_s <= now_s <= arrival_s:
            return Segment(
                from_stop=current,
                to_stop=nxt,
                from_stop_info=index.stop(current.stop_id),
                to_stop_info=index.stop(nxt.stop_id),
                departure_time=departure_s,
                arrival_time=arrival_s,
                progress=segment_progress(departure_s, arrival_s, now_s),
            )
    return None


def active_buses(
    index: ScheduleIndex,
    now_s: float,
    *,
    route_ids: Collection[str] | None = None,
) -> tuple[ActiveBus, ...]:
    """Every trip in service at now_s together with the segment it is on.

    A trip is in service from its first departure to its last arrival, both
    inclusive. Trips whose times never bracket now_s in a single segment
    (inconsistent data) are left out rather than reported as errors.
    """

    out: list[ActiveBus] = []
    for trip_id, (start_s, end_s) in index.service_windows.items():
        if not (start_s <= now_s <= end_s):
            continue

        trip = index.trip(trip_id)
        if trip is None:
            continue
        if route_ids is not None and (
            trip.route_id is None or trip.route_id not in route_ids
        ):
            continue

        segment = find_current_segment(index, index.trip_stop_times(trip_id), now_s)
        if segment is None:
            continue

        out.append(
            ActiveBus(
                trip_id=trip_id,
                trip=trip,
                route=index.route(trip.route_id),
                segment=segment,
                current_seconds=now_s,
            )
        )

    return tuple(out)


def next_stop_eta(segment: Segment, now_s: float) -> Eta:
    remaining = segment.arrival_time - now_s
    return Eta(seconds=remaining, formatted=format_countdown(remaining))


def trip_destination(index: ScheduleIndex, trip_id: str) -> str:
    stop_times = index.trip_stop_times(trip_id)
    if not stop_times:
        return UNKNOWN_DESTINATION

    last = stop_times[-1]
    stop = index.stop(last.stop_id)
    return stop.name if stop is not None else last.stop_id
