from __future__ import annotations

from fastapi.testclient import TestClient

from src.adapters.api.dependencies import (
    TrackingSettings,
    get_app_context,
    get_tracking_settings,
)
from src.adapters.persistence.in_memory_backend import InMemoryBackend
from src.app.context import AppContext
from src.domain.models import BusInfo, GeoPoint, RouteInfo, Stop
from src.main import app

ROUTE = RouteInfo(id="r1", name="North Loop")


def test_tracking_socket_streams_markers_and_alerts() -> None:
    backend = InMemoryBackend()
    backend.add_bus(BusInfo(id="b1", bus_number="Bus 01", route=ROUTE), route_id="r1")
    backend.add_route(
        ROUTE,
        [Stop(id="s1", name="Main Gate", location=GeoPoint(lat=17.3850, lon=78.4867), stop_order=1)],
    )

    app.dependency_overrides[get_app_context] = lambda: AppContext(
        buses=backend, assignments=backend, location_feed=backend
    )
    app.dependency_overrides[get_tracking_settings] = lambda: TrackingSettings(threshold_km=0.5)
    try:
        with TestClient(app) as client:
            # Far from the stop: no alert on the first fix.
            client.post("/buses/b1/locations", json={"lat": 17.30, "lon": 78.4867})

            with client.websocket_connect("/ws/track/b1") as ws:
                first = [ws.receive_json() for _ in range(3)]
                by_type = {m["type"]: m for m in first}

                assert set(by_type) == {"session", "stop_markers", "bus_marker"}
                assert by_type["session"]["bus"]["bus_number"] == "Bus 01"
                assert by_type["session"]["state"] == "active"
                assert [s["stop_id"] for s in by_type["stop_markers"]["stops"]] == ["s1"]
                assert by_type["bus_marker"]["action"] == "create"
                assert by_type["bus_marker"]["focus"] == {"center": [78.4867, 17.30], "zoom": 14}

                # The driver reaches the gate.
                client.post("/buses/b1/locations", json={"lat": 17.3851, "lon": 78.4867})
                moved = ws.receive_json()
                toast = ws.receive_json()

        assert moved["type"] == "bus_marker"
        assert moved["action"] == "move"
        assert moved["lat"] == 17.3851
        assert toast == {
            "type": "toast",
            "level": "info",
            "message": "Bus approaching Main Gate",
            "duration_s": 5.0,
            "stop_id": "s1",
        }
        assert backend.open_channel_count("b1") == 0
    finally:
        app.dependency_overrides.clear()
