from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from src.domain.models import Position


class ILocationChannel(ABC):
    """A live, cancellable stream of newly inserted positions for one bus.

    Positions are yielded in backend delivery order. Iteration ends after
    `close()`.
    """

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[Position]:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError


class ILocationFeed(ABC):
    """Port for the push channel on the location feed table."""

    @abstractmethod
    async def open(self, bus_id: str) -> ILocationChannel:
        """Start listening for insert events filtered to `bus_id`."""
