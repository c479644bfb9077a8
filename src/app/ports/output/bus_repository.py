from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import BusInfo, Position, Stop


class IBusRepository(ABC):
    """Read side of buses, route stops and the append-only location feed.

    Failures raise `BackendError`; single-row misses raise `NotFound`.
    """

    @abstractmethod
    async def list_active_buses(self) -> tuple[BusInfo, ...]:
        raise NotImplementedError

    @abstractmethod
    async def get_bus(self, bus_id: str) -> BusInfo:
        """Bus metadata including its assigned route, if any."""

    @abstractmethod
    async def get_route_stops(self, bus_id: str) -> tuple[Stop, ...]:
        """Stops of the bus's route ordered by `stop_order` ascending.

        Returns an empty tuple when the bus has no route.
        """

    @abstractmethod
    async def get_latest_position(self, bus_id: str) -> Position | None:
        raise NotImplementedError

    @abstractmethod
    async def insert_position(self, position: Position) -> None:
        raise NotImplementedError
