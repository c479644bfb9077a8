from .assignment_repository import IAssignmentRepository
from .bus_repository import IBusRepository
from .location_feed import ILocationChannel, ILocationFeed
from .map_surface import IMapSurface
from .notifier import INotifier

__all__ = [
    "IAssignmentRepository",
    "IBusRepository",
    "ILocationChannel",
    "ILocationFeed",
    "IMapSurface",
    "INotifier",
]
