from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from src.domain.algorithms.geo_utils import haversine_distance_km
from src.domain.models import NotificationEvent, Position, Stop

# Documented as "~500 meters"; compared against kilometres.
DEFAULT_PROXIMITY_THRESHOLD_KM = 0.5


def evaluate_proximity(
    position: Position,
    stops: Iterable[Stop],
    *,
    threshold_km: float = DEFAULT_PROXIMITY_THRESHOLD_KM,
) -> tuple[NotificationEvent, ...]:
    """Return one alert per stop strictly closer than `threshold_km`.

    Stateless: a bus lingering near a stop yields the same alert on every call.
    Events come back in `stop_order`.
    """

    out: list[NotificationEvent] = []
    for stop in sorted(stops, key=lambda s: (s.stop_order, s.id)):
        d = haversine_distance_km(
            position.lat, position.lon, stop.location.lat, stop.location.lon
        )
        if d < threshold_km:
            out.append(NotificationEvent.approaching(stop))
    return tuple(out)


@dataclass(slots=True)
class StopAlertFilter:
    """Suppresses repeated alerts for the same stop within one session.

    A stop is re-armed once the bus is farther than
    `threshold_km * hysteresis_factor` from it.
    """

    threshold_km: float = DEFAULT_PROXIMITY_THRESHOLD_KM
    hysteresis_factor: float = 2.0
    _notified: set[str] = field(default_factory=set, init=False, repr=False)

    @property
    def notified_stop_ids(self) -> frozenset[str]:
        return frozenset(self._notified)

    def rearm(self, position: Position, stops: Iterable[Stop]) -> None:
        release_km = self.threshold_km * max(1.0, self.hysteresis_factor)
        for stop in stops:
            if stop.id not in self._notified:
                continue
            d = haversine_distance_km(
                position.lat, position.lon, stop.location.lat, stop.location.lon
            )
            if d > release_km:
                self._notified.discard(stop.id)

    def filter(
        self, events: Iterable[NotificationEvent]
    ) -> tuple[NotificationEvent, ...]:
        out: list[NotificationEvent] = []
        for ev in events:
            if ev.stop.id in self._notified:
                continue
            self._notified.add(ev.stop.id)
            out.append(ev)
        return tuple(out)
