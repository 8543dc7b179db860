from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class ClockSchema(BaseModel):
    seconds: float
    time_string: str
    speed: float
    is_running: bool
    mode: Literal["simulated", "real"]


class ResetRequestSchema(BaseModel):
    start_time: str | None = Field(default=None, examples=["08:00:00"])


class SeekRequestSchema(BaseModel):
    time: str = Field(..., examples=["17:30:00"])


class SpeedRequestSchema(BaseModel):
    # Positivity is checked by the clock so the error shape matches other callers.
    speed: float


class ModeRequestSchema(BaseModel):
    mode: Literal["simulated", "real"]


class TransitRouteSchema(BaseModel):
    route_id: str
    short_name: str | None = None
    long_name: str | None = None
    color: str | None = None
    text_color: str | None = None


class StopSchema(BaseModel):
    stop_id: str
    name: str
    location: GeoPointSchema | None = None


class StopTimeSchema(BaseModel):
    stop_id: str
    stop_sequence: int
    arrival_s: int | None = None
    departure_s: int | None = None


class SegmentSchema(BaseModel):
    from_stop: StopTimeSchema
    to_stop: StopTimeSchema
    from_stop_info: StopSchema | None = None
    to_stop_info: StopSchema | None = None
    departure_time: int
    arrival_time: int
    progress: float = Field(..., ge=0.0, le=1.0)


class ActiveBusSchema(BaseModel):
    trip_id: str
    route: TransitRouteSchema | None = None
    headsign: str | None = None
    destination: str
    segment: SegmentSchema
    eta_next_stop: str
    current_seconds: float


class BusesResponseSchema(BaseModel):
    clock: ClockSchema
    buses: list[ActiveBusSchema]


class VehicleSchema(BaseModel):
    trip_id: str
    route_id: str | None = None
    lat: float
    lon: float
    progress: float
    bearing: float


class VehiclesResponseSchema(BaseModel):
    clock: ClockSchema
    vehicles: list[VehicleSchema]
