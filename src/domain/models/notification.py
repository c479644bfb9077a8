from __future__ import annotations

from dataclasses import dataclass

from .stop import Stop

DEFAULT_TOAST_DURATION_S = 5.0


@dataclass(frozen=True, slots=True)
class NotificationEvent:
    stop: Stop
    message: str
    duration_s: float = DEFAULT_TOAST_DURATION_S

    @staticmethod
    def approaching(stop: Stop) -> "NotificationEvent":
        return NotificationEvent(stop=stop, message=f"Bus approaching {stop.name}")
