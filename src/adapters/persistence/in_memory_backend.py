from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import AsyncIterator

from src.app.ports.output import (
    IAssignmentRepository,
    IBusRepository,
    ILocationChannel,
    ILocationFeed,
)
from src.domain.exceptions import BackendError, NotFound
from src.domain.models import BusInfo, Position, RouteInfo, Stop, StudentAssignment

logger = logging.getLogger(__name__)


class InMemoryLocationChannel(ILocationChannel):
    def __init__(self, backend: "InMemoryBackend", bus_id: str) -> None:
        self.backend = backend
        self.bus_id = bus_id
        self._queue: asyncio.Queue[Position | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, position: Position) -> None:
        if not self._closed:
            self._queue.put_nowait(position)

    async def __aiter__(self) -> AsyncIterator[Position]:  # type: ignore[override]
        while True:
            item = await self._queue.get()
            if item is None:
                return
            yield item

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.backend.detach(self)
        self._queue.put_nowait(None)


@dataclass(slots=True)
class InMemoryBackend(IBusRepository, IAssignmentRepository, ILocationFeed):
    """Process-local stand-in for the hosted backend.

    Used when no Supabase project is configured. Inserting a position fans it
    out to every open channel for that bus, like the realtime feed does.
    """

    buses: dict[str, BusInfo] = field(default_factory=dict)
    route_by_bus: dict[str, str] = field(default_factory=dict)
    stops_by_route: dict[str, list[Stop]] = field(default_factory=dict)
    positions: dict[str, list[Position]] = field(default_factory=dict)
    assignments: dict[str, list[StudentAssignment]] = field(default_factory=dict)
    _channels: dict[str, list[InMemoryLocationChannel]] = field(
        default_factory=dict, init=False, repr=False
    )

    # Seeding helpers

    def add_route(self, route: RouteInfo, stops: list[Stop]) -> None:
        self.stops_by_route[route.id] = [replace(s, route_id=route.id) for s in stops]
        for bus_id, route_id in self.route_by_bus.items():
            if route_id == route.id and bus_id in self.buses:
                self.buses[bus_id] = replace(self.buses[bus_id], route=route)

    def add_bus(self, bus: BusInfo, *, route_id: str | None = None) -> None:
        self.buses[bus.id] = bus
        if route_id is not None:
            self.route_by_bus[bus.id] = route_id

    # IBusRepository

    async def list_active_buses(self) -> tuple[BusInfo, ...]:
        active = [b for b in self.buses.values() if b.is_active]
        active.sort(key=lambda b: (b.bus_number, b.id))
        return tuple(active)

    async def get_bus(self, bus_id: str) -> BusInfo:
        bus = self.buses.get(bus_id)
        if bus is None:
            raise NotFound(f"Bus {bus_id} not found")
        return bus

    async def get_route_stops(self, bus_id: str) -> tuple[Stop, ...]:
        route_id = self.route_by_bus.get(bus_id)
        if route_id is None:
            return ()
        stops = self.stops_by_route.get(route_id, [])
        return tuple(sorted(stops, key=lambda s: s.stop_order))

    async def get_latest_position(self, bus_id: str) -> Position | None:
        history = self.positions.get(bus_id)
        if not history:
            return None
        return max(history, key=lambda p: p.timestamp)

    async def insert_position(self, position: Position) -> None:
        if position.created_at is None:
            position = replace(position, created_at=datetime.now(timezone.utc))
        self.positions.setdefault(position.bus_id, []).append(position)
        for channel in list(self._channels.get(position.bus_id, ())):
            channel.push(position)

    # IAssignmentRepository

    async def get_assignment(self, student_id: str) -> StudentAssignment:
        rows = self.assignments.get(student_id)
        if not rows:
            raise NotFound(f"No bus assigned to {student_id}")
        if len(rows) > 1:
            # Mirrors PostgREST: a single-object request over several rows fails.
            raise NotFound(f"{len(rows)} assignments for {student_id}", code="PGRST116")
        row = rows[0]
        return replace(row, bus=self.buses.get(row.bus_id))

    async def delete_assignments(self, student_id: str) -> None:
        self.assignments.pop(student_id, None)

    async def insert_assignment(self, student_id: str, bus_id: str) -> None:
        rows = self.assignments.setdefault(student_id, [])
        if any(r.bus_id == bus_id for r in rows):
            raise BackendError(
                f"Duplicate assignment {student_id} -> {bus_id}", code="23505"
            )
        rows.append(
            StudentAssignment(
                student_id=student_id,
                bus_id=bus_id,
                assigned_at=datetime.now(timezone.utc),
            )
        )

    def assignment_count(self, student_id: str) -> int:
        return len(self.assignments.get(student_id, ()))

    # ILocationFeed

    async def open(self, bus_id: str) -> InMemoryLocationChannel:
        channel = InMemoryLocationChannel(self, bus_id)
        self._channels.setdefault(bus_id, []).append(channel)
        logger.debug("Opened in-memory location channel", extra={"bus_id": bus_id})
        return channel

    def open_channel_count(self, bus_id: str) -> int:
        return len(self._channels.get(bus_id, ()))

    def detach(self, channel: InMemoryLocationChannel) -> None:
        channels = self._channels.get(channel.bus_id)
        if channels and channel in channels:
            channels.remove(channel)
