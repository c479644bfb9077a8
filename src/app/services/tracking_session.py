from __future__ import annotations

import asyncio
import logging
from enum import Enum

from src.app.context import AppContext
from src.app.ports.output import IMapSurface, INotifier
from src.app.services.location_stream import LocationStreamSubscriber, LocationSubscription
from src.domain.algorithms.proximity import (
    DEFAULT_PROXIMITY_THRESHOLD_KM,
    StopAlertFilter,
    evaluate_proximity,
)
from src.domain.exceptions import BackendError, NotFound
from src.domain.models import BusInfo, Position, Stop, TrackedBus

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    ACTIVE = "active"
    TORN_DOWN = "torn_down"


class LiveTrackingSession:
    """Follows one bus for one viewer.

    Loads the bus and its route stops, subscribes to the bus's location feed
    and, for every delivered position, moves the live marker and raises stop
    proximity alerts. Positions are handled one at a time in delivery order.

    Load failures surface as notices and never block live updates. Once torn
    down, late fetch results and late events are dropped.
    """

    def __init__(
        self,
        context: AppContext,
        bus_id: str,
        *,
        notifier: INotifier,
        map_surface: IMapSurface | None = None,
        threshold_km: float = DEFAULT_PROXIMITY_THRESHOLD_KM,
        alert_filter: StopAlertFilter | None = None,
    ) -> None:
        self.context = context
        self.notifier = notifier
        self.map_surface = map_surface
        self.threshold_km = threshold_km
        self.alert_filter = alert_filter
        self.tracked = TrackedBus(bus_id=bus_id)
        self.state = SessionState.UNINITIALIZED
        self._subscription: LocationSubscription | None = None

    @property
    def bus_id(self) -> str:
        return self.tracked.bus_id

    @property
    def bus(self) -> BusInfo | None:
        return self.tracked.bus

    @property
    def stops(self) -> tuple[Stop, ...]:
        return self.tracked.stops

    @property
    def position(self) -> Position | None:
        return self.tracked.position

    @property
    def torn_down(self) -> bool:
        return self.state is SessionState.TORN_DOWN

    async def __aenter__(self) -> "LiveTrackingSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def start(self) -> None:
        if self.state is not SessionState.UNINITIALIZED:
            raise RuntimeError(f"Session already started ({self.state.value})")

        self.state = SessionState.LOADING

        subscriber = LocationStreamSubscriber(
            buses=self.context.buses,
            feed=self.context.location_feed,
            notifier=self.notifier,
        )
        try:
            subscription = await subscriber.subscribe(self.bus_id, self.handle_position)
        except BackendError as exc:
            logger.warning("Live location channel unavailable: %s", exc)
            await self._notice_error("Live updates are unavailable")
        else:
            if self.torn_down:
                await subscription.unsubscribe()
            else:
                self._subscription = subscription

        await asyncio.gather(self._load_bus(), self._load_stops())

        if not self.torn_down:
            self.state = SessionState.ACTIVE

    async def _load_bus(self) -> None:
        try:
            bus = await self.context.buses.get_bus(self.bus_id)
        except BackendError as exc:
            logger.warning("Bus metadata load failed: %s", exc, extra={"bus_id": self.bus_id})
            await self._notice_error("Failed to load bus information")
            return

        if self.torn_down:
            return
        self.tracked.bus = bus

    async def _load_stops(self) -> None:
        try:
            stops = await self.context.buses.get_route_stops(self.bus_id)
        except NotFound:
            # Bus without a route: nothing to mark, nothing to alert on.
            stops = ()
        except BackendError as exc:
            logger.warning("Route stops load failed: %s", exc, extra={"bus_id": self.bus_id})
            await self._notice_error("Failed to load route stops")
            return

        if self.torn_down:
            return
        self.tracked.stops = tuple(sorted(stops, key=lambda s: (s.stop_order, s.id)))

        # Stop markers are placed once, here.
        if self.map_surface is not None and self.tracked.stops:
            await self.map_surface.place_stop_markers(self.tracked.stops)

    async def handle_position(self, position: Position) -> None:
        if self.torn_down:
            return

        self.tracked.position = position

        if self.map_surface is not None:
            await self.map_surface.show_bus(position)

        events = evaluate_proximity(
            position, self.tracked.stops, threshold_km=self.threshold_km
        )
        if self.alert_filter is not None:
            self.alert_filter.rearm(position, self.tracked.stops)
            events = self.alert_filter.filter(events)

        for event in events:
            if self.torn_down:
                return
            await self.notifier.notify(event)

    async def close(self) -> None:
        if self.torn_down:
            return
        self.state = SessionState.TORN_DOWN

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.unsubscribe()

    async def _notice_error(self, message: str) -> None:
        if self.torn_down:
            return
        await self.notifier.error(message)
