from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Collection

from transit_replay.app.ports.output import IGtfsRepository
from transit_replay.app.services.virtual_clock import Subscription, VirtualClock
from transit_replay.domain.algorithms.active_trips import active_buses
from transit_replay.domain.algorithms.positioning import bus_positions
from transit_replay.domain.algorithms.schedule_index import (
    ScheduleIndex,
    build_index_from_tables,
)
from transit_replay.domain.models import (
    ActiveBus,
    BusPosition,
    ClockSnapshot,
    GtfsRoute,
    Stop,
)

logger = logging.getLogger(__name__)

BusesListener = Callable[[ClockSnapshot, tuple[ActiveBus, ...]], None]


@dataclass(slots=True)
class SimulationService:
    """Ties the schedule index to the virtual clock.

    - Resolves the buses in service at the clock's current time.
    - Pushes a fresh bus list to watchers on every clock tick.
    - Lists routes and the stops they serve for map views.
    """

    index: ScheduleIndex
    clock: VirtualClock
    use_shapes: bool = False

    @classmethod
    def from_repository(
        cls,
        repository: IGtfsRepository,
        *,
        clock: VirtualClock,
        use_shapes: bool = False,
    ) -> SimulationService:
        # Load failures propagate: there is nothing to simulate without tables.
        tables = repository.load_tables()
        return cls(
            index=build_index_from_tables(tables),
            clock=clock,
            use_shapes=use_shapes,
        )

    def buses_at(
        self, seconds: float, *, route_ids: Collection[str] | None = None
    ) -> tuple[ActiveBus, ...]:
        return active_buses(self.index, seconds, route_ids=route_ids)

    def positions_at(
        self, seconds: float, *, route_ids: Collection[str] | None = None
    ) -> tuple[BusPosition, ...]:
        return bus_positions(
            self.buses_at(seconds, route_ids=route_ids),
            index=self.index,
            use_shapes=self.use_shapes,
        )

    def watch(self, listener: BusesListener) -> Subscription:
        """Call `listener` with the snapshot and freshly resolved buses on each tick."""

        def _on_tick(snapshot: ClockSnapshot) -> None:
            listener(snapshot, self.buses_at(snapshot.seconds))

        return self.clock.subscribe(_on_tick)

    def list_routes(self) -> tuple[GtfsRoute, ...]:
        routes = list(self.index.routes_by_id.values())
        routes.sort(key=lambda r: (r.short_name or "", r.long_name or "", r.route_id))
        return tuple(routes)

    def route_stops(self, *, route_id: str) -> tuple[Stop, ...]:
        """Return unique stops served by trips of a route, sorted by name."""

        stop_ids: set[str] = set()
        for trip in self.index.trips_for_route(route_id):
            for st in self.index.trip_stop_times(trip.trip_id):
                stop_ids.add(st.stop_id)

        stops: list[Stop] = []
        for sid in stop_ids:
            s = self.index.stop(sid)
            if s is None:
                logger.warning("Route %s uses unknown stop %s", route_id, sid)
                continue
            stops.append(s)

        stops.sort(key=lambda s: (s.name, s.id))
        return tuple(stops)
