from __future__ import annotations

import threading
from dataclasses import dataclass

import httpx
import pytest

from transit_replay.adapters.api.dependencies import get_simulation_service
from transit_replay.app.services.simulation_service import SimulationService
from transit_replay.app.services.virtual_clock import VirtualClock
from transit_replay.domain.algorithms.schedule_index import build_index
from transit_replay.main import app


@dataclass(slots=True)
class FakeWallClock:
    now: float = 0.0

    def __call__(self) -> float:
        return self.now


def _service() -> SimulationService:
    index = build_index(
        routes=[{"route_id": "R1", "route_short_name": "1", "route_color": "FF0000"}],
        trips=[{"trip_id": "T1", "route_id": "R1", "trip_headsign": "Gare"}],
        stop_times=[
            {"trip_id": "T1", "stop_id": "A", "stop_sequence": "1", "departure_time": "08:00:00"},
            {"trip_id": "T1", "stop_id": "B", "stop_sequence": "2", "arrival_time": "08:10:00"},
        ],
        stops=[
            {"stop_id": "A", "stop_name": "Alpha", "stop_lat": "45.0", "stop_lon": "0.0"},
            {"stop_id": "B", "stop_name": "Beta", "stop_lat": "45.1", "stop_lon": "0.1"},
        ],
    )
    clock = VirtualClock(start_seconds=8 * 3600 + 300, wall_clock=FakeWallClock())
    return SimulationService(index=index, clock=clock)


@pytest.fixture
def service():
    svc = _service()
    app.dependency_overrides[get_simulation_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()


async def _request(method: str, url: str, **kwargs) -> httpx.Response:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.request(method, url, **kwargs)


@pytest.mark.unit
@pytest.mark.anyio
async def test_health() -> None:
    resp = await _request("GET", "/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_clock_controls(service: SimulationService) -> None:
    resp = await _request("GET", "/simulation/clock")
    assert resp.json()["time_string"] == "08:05:00"
    assert resp.json()["is_running"] is False

    resp = await _request("POST", "/simulation/clock/play")
    assert resp.json()["is_running"] is True

    resp = await _request("POST", "/simulation/clock/speed", json={"speed": 30})
    assert resp.json()["speed"] == 30.0

    resp = await _request("POST", "/simulation/clock/seek", json={"time": "17:30:00"})
    assert resp.json()["time_string"] == "17:30:00"
    assert resp.json()["is_running"] is True

    resp = await _request("POST", "/simulation/clock/pause")
    assert resp.json()["is_running"] is False

    resp = await _request("POST", "/simulation/clock/reset", json={"start_time": "06:00"})
    assert resp.json()["seconds"] == 6 * 3600

    resp = await _request("POST", "/simulation/clock/mode", json={"mode": "real"})
    assert resp.json()["mode"] == "real"


@pytest.mark.unit
@pytest.mark.anyio
async def test_invalid_speed_is_rejected(service: SimulationService) -> None:
    resp = await _request("POST", "/simulation/clock/speed", json={"speed": 0})

    assert resp.status_code == 422
    assert "positive" in resp.json()["detail"]
    assert service.clock.snapshot().speed == 1.0


@pytest.mark.unit
@pytest.mark.anyio
async def test_invalid_seek_time_is_rejected(service: SimulationService) -> None:
    resp = await _request("POST", "/simulation/clock/seek", json={"time": "24:30:00"})
    assert resp.status_code == 422

    resp = await _request("POST", "/simulation/clock/seek", json={"time": "noon"})
    assert resp.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_buses_and_vehicles(service: SimulationService) -> None:
    resp = await _request("GET", "/simulation/buses")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["clock"]["time_string"] == "08:05:00"
    (bus,) = payload["buses"]
    assert bus["trip_id"] == "T1"
    assert bus["route"]["color"] == "FF0000"
    assert bus["headsign"] == "Gare"
    assert bus["destination"] == "Beta"
    assert bus["eta_next_stop"] == "5m 0s"
    assert bus["segment"]["progress"] == pytest.approx(0.5)
    assert bus["segment"]["from_stop_info"]["name"] == "Alpha"

    resp = await _request("GET", "/simulation/vehicles", params={"route_id": "R1"})
    (vehicle,) = resp.json()["vehicles"]
    assert vehicle["lat"] == pytest.approx(45.05)
    assert vehicle["lon"] == pytest.approx(0.05)
    assert 0.0 <= vehicle["bearing"] < 360.0

    resp = await _request("GET", "/simulation/vehicles", params={"route_id": "R9"})
    assert resp.json()["vehicles"] == []


@pytest.mark.unit
@pytest.mark.anyio
async def test_routes_and_stops(service: SimulationService) -> None:
    resp = await _request("GET", "/simulation/routes")
    assert [r["route_id"] for r in resp.json()] == ["R1"]

    resp = await _request("GET", "/simulation/routes/R1/stops")
    assert [s["stop_id"] for s in resp.json()] == ["A", "B"]
    assert resp.json()[0]["location"] == {"lat": 45.0, "lon": 0.0}

    resp = await _request("GET", "/simulation/routes/R9/stops")
    assert resp.status_code == 404


@pytest.mark.unit
@pytest.mark.anyio
async def test_clock_controls_notify_on_event_loop_thread(
    service: SimulationService,
) -> None:
    loop_thread = threading.get_ident()
    listener_threads: list[int] = []
    service.clock.subscribe(lambda _: listener_threads.append(threading.get_ident()))

    await _request("POST", "/simulation/clock/play")
    await _request("POST", "/simulation/clock/seek", json={"time": "09:00:00"})
    await _request("POST", "/simulation/clock/mode", json={"mode": "simulated"})
    await _request("POST", "/simulation/clock/pause")
    await _request("POST", "/simulation/clock/reset")

    assert len(listener_threads) == 5
    assert set(listener_threads) == {loop_thread}
