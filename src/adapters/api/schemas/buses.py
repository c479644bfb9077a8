from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.domain.models import BusInfo, Position, Stop


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class NoticeSchema(BaseModel):
    level: Literal["info", "success", "error"]
    message: str
    duration_s: float | None = None


class RouteInfoSchema(BaseModel):
    id: str
    name: str
    start_point: str | None = None
    end_point: str | None = None


class BusSchema(BaseModel):
    id: str
    bus_number: str
    driver_name: str | None = None
    driver_phone: str | None = None
    is_active: bool = True
    capacity: int | None = None
    route: RouteInfoSchema | None = None

    @staticmethod
    def from_domain(bus: BusInfo) -> "BusSchema":
        return BusSchema(
            id=bus.id,
            bus_number=bus.bus_number,
            driver_name=bus.driver_name,
            driver_phone=bus.driver_phone,
            is_active=bus.is_active,
            capacity=bus.capacity,
            route=(
                RouteInfoSchema(
                    id=bus.route.id,
                    name=bus.route.name,
                    start_point=bus.route.start_point,
                    end_point=bus.route.end_point,
                )
                if bus.route is not None
                else None
            ),
        )


class BusListResponseSchema(BaseModel):
    buses: list[BusSchema]
    notices: list[NoticeSchema] = Field(default_factory=list)


class StopSchema(BaseModel):
    stop_id: str
    name: str
    stop_order: int
    location: GeoPointSchema

    @staticmethod
    def from_domain(stop: Stop) -> "StopSchema":
        return StopSchema(
            stop_id=stop.id,
            name=stop.name,
            stop_order=stop.stop_order,
            location=GeoPointSchema(lat=stop.location.lat, lon=stop.location.lon),
        )


class PositionSchema(BaseModel):
    bus_id: str
    lat: float
    lon: float
    speed: float | None = None
    heading: float | None = None
    timestamp: datetime

    @staticmethod
    def from_domain(position: Position) -> "PositionSchema":
        return PositionSchema(
            bus_id=position.bus_id,
            lat=position.lat,
            lon=position.lon,
            speed=position.speed,
            heading=position.heading,
            timestamp=position.timestamp,
        )


class PositionReportSchema(BaseModel):
    """A driver's location report."""

    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)
    speed: float | None = Field(default=None, ge=0.0)
    heading: float | None = Field(default=None, ge=0.0, le=360.0)
    timestamp: datetime | None = None
