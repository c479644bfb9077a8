from __future__ import annotations

import httpx
import pytest

from src.adapters.api.dependencies import get_app_context
from src.adapters.persistence.in_memory_backend import InMemoryBackend
from src.app.context import AppContext
from src.domain.models import BusInfo, GeoPoint, RouteInfo, Stop
from src.main import app

ROUTE = RouteInfo(id="r1", name="North Loop", start_point="Gate", end_point="Hostels")


def _backend() -> InMemoryBackend:
    backend = InMemoryBackend()
    backend.add_bus(BusInfo(id="b1", bus_number="Bus 01", driver_name="Ravi", route=ROUTE), route_id="r1")
    backend.add_bus(BusInfo(id="b2", bus_number="Bus 02", driver_name="Anil"))
    backend.add_route(
        ROUTE,
        [
            Stop(id="s2", name="Library", location=GeoPoint(lat=17.40, lon=78.4867), stop_order=2),
            Stop(id="s1", name="Gate", location=GeoPoint(lat=17.385, lon=78.4867), stop_order=1),
        ],
    )
    return backend


@pytest.fixture
def backend():
    backend = _backend()
    app.dependency_overrides[get_app_context] = lambda: AppContext(
        buses=backend, assignments=backend, location_feed=backend
    )
    yield backend
    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.unit
@pytest.mark.anyio
async def test_list_buses_and_bus_details(backend: InMemoryBackend) -> None:
    async with _client() as client:
        listing = await client.get("/buses")
        detail = await client.get("/buses/b1")
        missing = await client.get("/buses/nope")

    assert listing.status_code == 200
    assert [b["bus_number"] for b in listing.json()["buses"]] == ["Bus 01", "Bus 02"]
    assert listing.json()["notices"] == []

    assert detail.json()["route"]["name"] == "North Loop"
    assert missing.status_code == 404


@pytest.mark.unit
@pytest.mark.anyio
async def test_stops_are_ordered(backend: InMemoryBackend) -> None:
    async with _client() as client:
        resp = await client.get("/buses/b1/stops")
        none = await client.get("/buses/b2/stops")

    assert [s["stop_id"] for s in resp.json()] == ["s1", "s2"]
    assert none.json() == []


@pytest.mark.unit
@pytest.mark.anyio
async def test_reported_location_becomes_latest(backend: InMemoryBackend) -> None:
    async with _client() as client:
        before = await client.get("/buses/b1/location")
        posted = await client.post(
            "/buses/b1/locations",
            json={"lat": 17.386, "lon": 78.4867, "speed": 20.0, "timestamp": "2025-11-24T08:00:00Z"},
        )
        after = await client.get("/buses/b1/location")
        invalid = await client.post("/buses/b1/locations", json={"lat": 91.0, "lon": 0.0})

    assert before.status_code == 404
    assert posted.status_code == 201
    assert after.json()["lat"] == 17.386
    assert after.json()["speed"] == 20.0
    assert invalid.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_select_bus_twice_keeps_one_assignment(backend: InMemoryBackend) -> None:
    async with _client() as client:
        empty = await client.get("/students/st1/bus")
        first = await client.put("/students/st1/bus", json={"bus_id": "b1"})
        second = await client.put("/students/st1/bus", json={"bus_id": "b2"})
        mine = await client.get("/students/st1/bus")

    assert empty.status_code == 200
    assert empty.json() is None

    assert first.json()["ok"] is True
    assert second.json()["notices"] == [
        {"level": "success", "message": "Bus selected successfully", "duration_s": None}
    ]
    assert mine.json()["bus_id"] == "b2"
    assert mine.json()["bus"]["bus_number"] == "Bus 02"
    assert backend.assignment_count("st1") == 1


@pytest.mark.unit
@pytest.mark.anyio
async def test_health() -> None:
    async with _client() as client:
        resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}
