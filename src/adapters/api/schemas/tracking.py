from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from src.adapters.api.schemas.buses import BusSchema, StopSchema


class FocusSchema(BaseModel):
    center: tuple[float, float]  # (lng, lat)
    zoom: int


class StopMarkersMessage(BaseModel):
    type: Literal["stop_markers"] = "stop_markers"
    color: str
    stops: list[StopSchema]


class BusMarkerMessage(BaseModel):
    type: Literal["bus_marker"] = "bus_marker"
    action: Literal["create", "move"]
    color: str
    label: str
    lat: float
    lon: float
    speed: float | None = None
    heading: float | None = None
    timestamp: datetime
    focus: FocusSchema


class ToastMessage(BaseModel):
    type: Literal["toast"] = "toast"
    level: Literal["info", "success", "error"]
    message: str
    duration_s: float | None = None
    stop_id: str | None = None


class SessionMessage(BaseModel):
    type: Literal["session"] = "session"
    bus_id: str
    state: str
    bus: BusSchema | None = None
    stop_count: int
