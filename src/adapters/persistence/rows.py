from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.models import BusInfo, GeoPoint, Position, RouteInfo, Stop, StudentAssignment

# Postgres may render offsets as "+00" rather than "+00:00".
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)([+-]\d{2})$")


def _normalize_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        value = _SHORT_OFFSET.sub(r"\1\2:00", value)
    return value


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RouteRow(_Row):
    id: str
    name: str
    start_point: str | None = None
    end_point: str | None = None
    is_active: bool | None = True

    def to_domain(self) -> RouteInfo:
        return RouteInfo(
            id=self.id,
            name=self.name,
            start_point=self.start_point,
            end_point=self.end_point,
            is_active=self.is_active is not False,
        )


class BusRouteLinkRow(_Row):
    route_id: str | None = None
    is_active: bool | None = True
    routes: RouteRow | None = None


def active_link(links: Iterable[BusRouteLinkRow]) -> BusRouteLinkRow | None:
    """First link not explicitly deactivated; a null flag counts as active."""

    return next((link for link in links if link.is_active is not False), None)


class BusRow(_Row):
    id: str
    bus_number: str
    driver_name: str | None = None
    driver_phone: str | None = None
    capacity: int | None = None
    is_active: bool | None = True
    bus_routes: list[BusRouteLinkRow] = Field(default_factory=list)

    def to_domain(self) -> BusInfo:
        link = active_link(self.bus_routes)
        route = link.routes.to_domain() if link is not None and link.routes else None

        return BusInfo(
            id=self.id,
            bus_number=self.bus_number,
            driver_name=self.driver_name,
            driver_phone=self.driver_phone,
            is_active=self.is_active is not False,
            capacity=self.capacity,
            route=route,
        )


class StopRow(_Row):
    id: str
    route_id: str | None = None
    name: str
    latitude: float
    longitude: float
    stop_order: int

    def to_domain(self) -> Stop:
        return Stop(
            id=self.id,
            name=self.name,
            location=GeoPoint(lat=self.latitude, lon=self.longitude),
            stop_order=self.stop_order,
            route_id=self.route_id,
        )


class PositionRow(_Row):
    bus_id: str
    latitude: float
    longitude: float
    speed: float | None = None
    heading: float | None = None
    timestamp: datetime
    created_at: datetime | None = None

    @field_validator("timestamp", "created_at", mode="before")
    @classmethod
    def normalize_timestamps(cls, v: Any) -> Any:
        return _normalize_timestamp(v)

    def to_domain(self) -> Position:
        ts = self.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)

        # Validates coordinate ranges.
        point = GeoPoint(lat=self.latitude, lon=self.longitude)
        return Position(
            bus_id=self.bus_id,
            lat=point.lat,
            lon=point.lon,
            speed=self.speed,
            heading=self.heading,
            timestamp=ts,
            created_at=self.created_at,
        )


class AssignmentRow(_Row):
    student_id: str
    bus_id: str
    assigned_at: datetime | None = None
    buses: BusRow | None = None

    @field_validator("assigned_at", mode="before")
    @classmethod
    def normalize_timestamps(cls, v: Any) -> Any:
        return _normalize_timestamp(v)

    def to_domain(self) -> StudentAssignment:
        return StudentAssignment(
            student_id=self.student_id,
            bus_id=self.bus_id,
            assigned_at=self.assigned_at,
            bus=self.buses.to_domain() if self.buses is not None else None,
        )


def position_to_row(position: Position) -> dict[str, Any]:
    row: dict[str, Any] = {
        "bus_id": position.bus_id,
        "latitude": position.lat,
        "longitude": position.lon,
        "timestamp": position.timestamp.isoformat(),
    }
    if position.speed is not None:
        row["speed"] = position.speed
    if position.heading is not None:
        row["heading"] = position.heading
    return row
