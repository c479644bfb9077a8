from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from src.app.ports.output import IBusRepository, ILocationChannel, ILocationFeed, INotifier
from src.domain.exceptions import BackendError
from src.domain.models import Position

logger = logging.getLogger(__name__)

PositionCallback = Callable[[Position], "Awaitable[None] | None"]


@dataclass(slots=True, eq=False)
class LocationSubscription:
    """Handle returned by `LocationStreamSubscriber.subscribe`.

    Live events and the eager latest-position fetch share one callback and one
    dispatch lock, so the consumer sees them strictly one after another.
    Nothing is delivered once `unsubscribe()` has been called.
    """

    bus_id: str
    channel: ILocationChannel
    on_event: PositionCallback
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _tasks: list[asyncio.Task[None]] = field(default_factory=list, init=False, repr=False)
    _closed: bool = field(default=False, init=False)

    @property
    def closed(self) -> bool:
        return self._closed

    async def deliver(self, position: Position) -> bool:
        """Hand one position to the consumer; False if the handle is closed."""

        async with self._lock:
            if self._closed:
                return False
            try:
                result = self.on_event(position)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Location callback failed", extra={"bus_id": self.bus_id}
                )
            return True

    def track(self, task: asyncio.Task[None]) -> None:
        """Tie a background task to this handle; `unsubscribe` cancels it."""

        self._tasks.append(task)

    async def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True

        current = asyncio.current_task()
        pending = [t for t in self._tasks if t is not current]
        for task in pending:
            task.cancel()

        try:
            await self.channel.close()
        except Exception:
            logger.warning(
                "Closing location channel failed",
                exc_info=True,
                extra={"bus_id": self.bus_id},
            )

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


@dataclass(slots=True)
class LocationStreamSubscriber:
    """Follows one bus's position feed.

    On subscribe, opens the live channel and also fetches the most recent
    stored row once, so consumers get a value before the first push arrives.
    The two may land in either order.
    """

    buses: IBusRepository
    feed: ILocationFeed
    notifier: INotifier | None = None

    async def subscribe(
        self, bus_id: str, on_event: PositionCallback
    ) -> LocationSubscription:
        channel = await self.feed.open(bus_id)
        sub = LocationSubscription(bus_id=bus_id, channel=channel, on_event=on_event)

        sub.track(asyncio.create_task(self._pump(sub)))
        sub.track(asyncio.create_task(self._load_latest(sub)))
        return sub

    async def _pump(self, sub: LocationSubscription) -> None:
        try:
            async for position in sub.channel:
                if not await sub.deliver(position):
                    break
        except asyncio.CancelledError:
            raise
        except Exception:
            # No reconnect; the stream ends here.
            logger.exception("Location channel failed", extra={"bus_id": sub.bus_id})
            if self.notifier is not None and not sub.closed:
                await self.notifier.error("Live updates are unavailable")

    async def _load_latest(self, sub: LocationSubscription) -> None:
        try:
            latest = await self.buses.get_latest_position(sub.bus_id)
        except BackendError as exc:
            logger.warning(
                "Latest position fetch failed: %s", exc, extra={"bus_id": sub.bus_id}
            )
            if self.notifier is not None and not sub.closed:
                await self.notifier.error("Failed to load bus location")
            return

        if latest is None:
            logger.info("Bus has not reported a position yet", extra={"bus_id": sub.bus_id})
            return

        await sub.deliver(latest)
