from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from src.adapters.api.schemas.buses import StopSchema
from src.adapters.api.schemas.tracking import (
    BusMarkerMessage,
    FocusSchema,
    StopMarkersMessage,
    ToastMessage,
)
from src.app.ports.output import IMapSurface, INotifier
from src.app.ports.output.map_surface import DEFAULT_FOCUS_ZOOM
from src.domain.models import NotificationEvent, Position, Stop

SendJson = Callable[[dict[str, Any]], Awaitable[None]]

BUS_MARKER_COLOR = "#10B981"
STOP_MARKER_COLOR = "#F59E0B"


@dataclass(slots=True)
class WebSocketMapSurface(IMapSurface):
    """Drives the browser map by sending marker commands over the socket.

    Keeps track of whether the single bus marker exists so the client gets one
    `create` followed by `move` commands.
    """

    send: SendJson
    focus_zoom: int = DEFAULT_FOCUS_ZOOM
    bus_marker_created: bool = False

    async def place_stop_markers(self, stops: tuple[Stop, ...]) -> None:
        msg = StopMarkersMessage(
            color=STOP_MARKER_COLOR,
            stops=[StopSchema.from_domain(s) for s in stops],
        )
        await self.send(msg.model_dump(mode="json"))

    async def show_bus(self, position: Position) -> None:
        action = "move" if self.bus_marker_created else "create"
        self.bus_marker_created = True

        msg = BusMarkerMessage(
            action=action,
            color=BUS_MARKER_COLOR,
            label="Your Bus",
            lat=position.lat,
            lon=position.lon,
            speed=position.speed,
            heading=position.heading,
            timestamp=position.timestamp,
            focus=FocusSchema(center=position.point.as_lng_lat(), zoom=self.focus_zoom),
        )
        await self.send(msg.model_dump(mode="json"))


@dataclass(slots=True)
class WebSocketNotifier(INotifier):
    send: SendJson

    async def notify(self, event: NotificationEvent) -> None:
        msg = ToastMessage(
            level="info",
            message=event.message,
            duration_s=event.duration_s,
            stop_id=event.stop.id,
        )
        await self.send(msg.model_dump(mode="json"))

    async def error(self, message: str) -> None:
        await self.send(ToastMessage(level="error", message=message).model_dump(mode="json"))

    async def success(self, message: str) -> None:
        await self.send(
            ToastMessage(level="success", message=message).model_dump(mode="json")
        )
