from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .geo import GeoPoint


@dataclass(frozen=True, slots=True)
class Position:
    """One observed bus location.

    A new instance is produced for every feed row; positions are never mutated.
    """

    bus_id: str
    lat: float
    lon: float
    timestamp: datetime
    speed: float | None = None
    heading: float | None = None
    created_at: datetime | None = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)
