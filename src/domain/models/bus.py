from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .position import Position
from .stop import Stop


@dataclass(frozen=True, slots=True)
class RouteInfo:
    id: str
    name: str
    start_point: str | None = None
    end_point: str | None = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class BusInfo:
    id: str
    bus_number: str
    driver_name: str | None = None
    driver_phone: str | None = None
    is_active: bool = True
    capacity: int | None = None
    route: RouteInfo | None = None


@dataclass(frozen=True, slots=True)
class StudentAssignment:
    student_id: str
    bus_id: str
    assigned_at: datetime | None = None
    bus: BusInfo | None = None


@dataclass(slots=True)
class TrackedBus:
    """The bus followed by one tracking session.

    `stops` are loaded once per session; `position` is replaced wholesale on
    every delivered event and stays `None` until the first one arrives.
    """

    bus_id: str
    bus: BusInfo | None = None
    stops: tuple[Stop, ...] = field(default_factory=tuple)
    position: Position | None = None
