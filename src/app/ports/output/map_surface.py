from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import Position, Stop

DEFAULT_FOCUS_ZOOM = 14


class IMapSurface(ABC):
    """The map widget a tracking session drives.

    Tiles, pan and zoom belong to the widget; the session only places markers.
    """

    @abstractmethod
    async def place_stop_markers(self, stops: tuple[Stop, ...]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def show_bus(self, position: Position) -> None:
        """Create the single live marker or move it, then focus the view on it."""
