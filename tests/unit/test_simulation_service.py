from __future__ import annotations

from dataclasses import dataclass

import pytest

from transit_replay.app.services.simulation_service import SimulationService
from transit_replay.app.services.virtual_clock import VirtualClock
from transit_replay.domain.exceptions import GtfsLoadError
from transit_replay.domain.models import ActiveBus, ClockSnapshot, GtfsTables

TABLES = GtfsTables(
    routes=(
        {"route_id": "R2", "route_short_name": "2"},
        {"route_id": "R1", "route_short_name": "1"},
        {"route_id": "R0", "route_long_name": "Z"},
    ),
    trips=(
        {"trip_id": "T1", "route_id": "R1"},
        {"trip_id": "T2", "route_id": "R2"},
    ),
    stop_times=(
        {"trip_id": "T1", "stop_id": "A", "stop_sequence": "1", "departure_time": "08:00:00"},
        {"trip_id": "T1", "stop_id": "B", "stop_sequence": "2", "arrival_time": "08:10:00"},
        {"trip_id": "T2", "stop_id": "B", "stop_sequence": "1", "departure_time": "09:00:00"},
        {"trip_id": "T2", "stop_id": "X", "stop_sequence": "2", "arrival_time": "09:10:00"},
    ),
    stops=(
        {"stop_id": "A", "stop_name": "Alpha", "stop_lat": "45.0", "stop_lon": "0.0"},
        {"stop_id": "B", "stop_name": "Beta", "stop_lat": "45.1", "stop_lon": "0.1"},
    ),
)


@dataclass(slots=True)
class FakeGtfsRepository:
    tables: GtfsTables

    def load_tables(self) -> GtfsTables:
        return self.tables


class FailingGtfsRepository:
    def load_tables(self) -> GtfsTables:
        raise GtfsLoadError("stops.txt", "file not found")


@dataclass(slots=True)
class FakeWallClock:
    now: float = 0.0

    def __call__(self) -> float:
        return self.now


def _service(start: float = 8 * 3600) -> tuple[SimulationService, FakeWallClock]:
    wall = FakeWallClock()
    clock = VirtualClock(start_seconds=start, wall_clock=wall)
    return (
        SimulationService.from_repository(FakeGtfsRepository(TABLES), clock=clock),
        wall,
    )


def test_list_routes_sorted() -> None:
    svc, _ = _service()
    assert [r.route_id for r in svc.list_routes()] == ["R0", "R1", "R2"]


def test_route_stops_unique_sorted_and_skip_unknown() -> None:
    svc, _ = _service()

    assert [s.id for s in svc.route_stops(route_id="R1")] == ["A", "B"]
    assert [s.id for s in svc.route_stops(route_id="R2")] == ["B"]
    assert svc.route_stops(route_id="nope") == ()


def test_watch_pushes_recomputed_buses_on_each_tick() -> None:
    svc, wall = _service()
    received: list[tuple[ClockSnapshot, tuple[ActiveBus, ...]]] = []
    sub = svc.watch(lambda snap, buses: received.append((snap, buses)))

    svc.clock.play()
    wall.now += 300
    svc.clock.tick()

    assert len(received) == 2
    snap, buses = received[-1]
    assert snap.seconds == 8 * 3600 + 300
    assert [b.trip_id for b in buses] == ["T1"]
    assert buses[0].segment.progress == pytest.approx(0.5)
    # Snapshots are rebuilt each tick, never reused.
    assert received[0][1][0] is not buses[0]

    sub.unsubscribe()
    wall.now += 1
    svc.clock.tick()
    assert len(received) == 2


def test_positions_at_filters_by_route_and_drops_unplaceable() -> None:
    svc, _ = _service()

    (pos,) = svc.positions_at(8 * 3600 + 300, route_ids={"R1"})
    assert pos.lat == pytest.approx(45.05)
    assert svc.positions_at(8 * 3600 + 300, route_ids={"R2"}) == ()

    # T2 heads to stop X which is not in stops.txt.
    assert [b.trip_id for b in svc.buses_at(9 * 3600 + 60)] == ["T2"]
    assert svc.positions_at(9 * 3600 + 60) == ()


def test_load_failure_propagates() -> None:
    with pytest.raises(GtfsLoadError) as excinfo:
        SimulationService.from_repository(FailingGtfsRepository(), clock=VirtualClock())

    assert excinfo.value.table == "stops.txt"
