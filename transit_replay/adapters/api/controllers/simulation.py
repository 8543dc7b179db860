from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from transit_replay.adapters.api.dependencies import (
    get_simulation_service,
    parse_clock_time,
)
from transit_replay.adapters.api.schemas.simulation import (
    ActiveBusSchema,
    BusesResponseSchema,
    ClockSchema,
    GeoPointSchema,
    ModeRequestSchema,
    ResetRequestSchema,
    SeekRequestSchema,
    SegmentSchema,
    SpeedRequestSchema,
    StopSchema,
    StopTimeSchema,
    TransitRouteSchema,
    VehicleSchema,
    VehiclesResponseSchema,
)
from transit_replay.app.services.simulation_service import SimulationService
from transit_replay.domain.algorithms.active_trips import (
    next_stop_eta,
    trip_destination,
)
from transit_replay.domain.models import (
    ActiveBus,
    ClockSnapshot,
    GtfsRoute,
    GtfsStopTime,
    Stop,
)

router = APIRouter(prefix="/simulation", tags=["simulation"])


def _clock_to_schema(snap: ClockSnapshot) -> ClockSchema:
    return ClockSchema(
        seconds=snap.seconds,
        time_string=snap.time_string,
        speed=snap.speed,
        is_running=snap.is_running,
        mode=snap.mode.value,
    )


def _route_to_schema(route: GtfsRoute) -> TransitRouteSchema:
    return TransitRouteSchema(
        route_id=route.route_id,
        short_name=route.short_name,
        long_name=route.long_name,
        color=route.color,
        text_color=route.text_color,
    )


def _stop_to_schema(stop: Stop) -> StopSchema:
    loc = stop.location
    return StopSchema(
        stop_id=stop.id,
        name=stop.name,
        location=GeoPointSchema(lat=loc.lat, lon=loc.lon) if loc else None,
    )


def _stop_time_to_schema(st: GtfsStopTime) -> StopTimeSchema:
    return StopTimeSchema(
        stop_id=st.stop_id,
        stop_sequence=st.stop_sequence,
        arrival_s=st.arrival_s,
        departure_s=st.departure_s,
    )


def _bus_to_schema(service: SimulationService, bus: ActiveBus) -> ActiveBusSchema:
    seg = bus.segment
    return ActiveBusSchema(
        trip_id=bus.trip_id,
        route=_route_to_schema(bus.route) if bus.route else None,
        headsign=bus.trip.headsign,
        destination=trip_destination(service.index, bus.trip_id),
        segment=SegmentSchema(
            from_stop=_stop_time_to_schema(seg.from_stop),
            to_stop=_stop_time_to_schema(seg.to_stop),
            from_stop_info=(
                _stop_to_schema(seg.from_stop_info) if seg.from_stop_info else None
            ),
            to_stop_info=(
                _stop_to_schema(seg.to_stop_info) if seg.to_stop_info else None
            ),
            departure_time=seg.departure_time,
            arrival_time=seg.arrival_time,
            progress=seg.progress,
        ),
        eta_next_stop=next_stop_eta(seg, bus.current_seconds).formatted,
        current_seconds=bus.current_seconds,
    )


@router.get("/clock", response_model=ClockSchema)
async def get_clock(
    service: SimulationService = Depends(get_simulation_service),
) -> ClockSchema:
    return _clock_to_schema(service.clock.snapshot())


@router.post("/clock/play", response_model=ClockSchema)
async def play(
    service: SimulationService = Depends(get_simulation_service),
) -> ClockSchema:
    return _clock_to_schema(service.clock.play())


@router.post("/clock/pause", response_model=ClockSchema)
async def pause(
    service: SimulationService = Depends(get_simulation_service),
) -> ClockSchema:
    return _clock_to_schema(service.clock.pause())


@router.post("/clock/reset", response_model=ClockSchema)
async def reset(
    req: ResetRequestSchema | None = None,
    service: SimulationService = Depends(get_simulation_service),
) -> ClockSchema:
    start = None
    if req is not None and req.start_time:
        start = parse_clock_time(req.start_time)
    return _clock_to_schema(service.clock.reset(start))


@router.post("/clock/seek", response_model=ClockSchema)
async def seek(
    req: SeekRequestSchema,
    service: SimulationService = Depends(get_simulation_service),
) -> ClockSchema:
    return _clock_to_schema(service.clock.set_time(parse_clock_time(req.time)))


@router.post("/clock/speed", response_model=ClockSchema)
async def set_speed(
    req: SpeedRequestSchema,
    service: SimulationService = Depends(get_simulation_service),
) -> ClockSchema:
    service.clock.set_speed(req.speed)
    return _clock_to_schema(service.clock.snapshot())


@router.post("/clock/mode", response_model=ClockSchema)
async def set_mode(
    req: ModeRequestSchema,
    service: SimulationService = Depends(get_simulation_service),
) -> ClockSchema:
    return _clock_to_schema(service.clock.set_mode(req.mode))


@router.get("/routes", response_model=list[TransitRouteSchema])
def list_routes(
    service: SimulationService = Depends(get_simulation_service),
) -> list[TransitRouteSchema]:
    return [_route_to_schema(r) for r in service.list_routes()]


@router.get("/routes/{route_id}/stops", response_model=list[StopSchema])
def route_stops(
    route_id: str,
    service: SimulationService = Depends(get_simulation_service),
) -> list[StopSchema]:
    if service.index.route(route_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown route: {route_id}")
    return [_stop_to_schema(s) for s in service.route_stops(route_id=route_id)]


@router.get("/buses", response_model=BusesResponseSchema)
async def list_buses(
    route_id: list[str] | None = Query(default=None),
    service: SimulationService = Depends(get_simulation_service),
) -> BusesResponseSchema:
    route_ids = set(route_id) if route_id else None
    snap = service.clock.snapshot()
    buses = service.buses_at(snap.seconds, route_ids=route_ids)
    return BusesResponseSchema(
        clock=_clock_to_schema(snap),
        buses=[_bus_to_schema(service, b) for b in buses],
    )


@router.get("/vehicles", response_model=VehiclesResponseSchema)
async def list_vehicles(
    route_id: list[str] | None = Query(default=None),
    service: SimulationService = Depends(get_simulation_service),
) -> VehiclesResponseSchema:
    route_ids = set(route_id) if route_id else None
    snap = service.clock.snapshot()
    positions = service.positions_at(snap.seconds, route_ids=route_ids)
    return VehiclesResponseSchema(
        clock=_clock_to_schema(snap),
        vehicles=[
            VehicleSchema(
                trip_id=p.bus.trip_id,
                route_id=p.bus.trip.route_id,
                lat=p.lat,
                lon=p.lon,
                progress=p.progress,
                bearing=p.bearing_degrees,
            )
            for p in positions
        ],
    )
