from __future__ import annotations

from dataclasses import dataclass

from src.app.ports.output import IAssignmentRepository, IBusRepository, ILocationFeed


@dataclass(frozen=True, slots=True)
class AppContext:
    """Backend handles passed explicitly to sessions and services."""

    buses: IBusRepository
    assignments: IAssignmentRepository
    location_feed: ILocationFeed
