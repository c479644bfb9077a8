from .bus import BusInfo, RouteInfo, StudentAssignment, TrackedBus
from .geo import GeoPoint
from .notification import NotificationEvent
from .position import Position
from .stop import Stop

__all__ = [
    "BusInfo",
    "GeoPoint",
    "NotificationEvent",
    "Position",
    "RouteInfo",
    "Stop",
    "StudentAssignment",
    "TrackedBus",
]
