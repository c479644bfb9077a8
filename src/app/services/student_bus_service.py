from __future__ import annotations

import logging
from dataclasses import dataclass

from src.app.context import AppContext
from src.app.ports.output import INotifier
from src.domain.exceptions import AssignmentError, BackendError, NotFound
from src.domain.models import BusInfo, StudentAssignment

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StudentBusService:
    """Dashboard operations: list buses, show and change a student's bus."""

    context: AppContext
    notifier: INotifier

    async def list_active_buses(self) -> tuple[BusInfo, ...]:
        try:
            return await self.context.buses.list_active_buses()
        except BackendError as exc:
            logger.warning("Active bus listing failed: %s", exc)
            await self.notifier.error("Failed to load buses")
            return ()

    async def get_my_bus(self, student_id: str) -> StudentAssignment | None:
        try:
            return await self.context.assignments.get_assignment(student_id)
        except NotFound:
            return None
        except BackendError as exc:
            # Logged only; the dashboard just shows "no bus selected".
            logger.error(
                "Error loading student bus: %s", exc, extra={"student_id": student_id}
            )
            return None

    async def select_bus(self, student_id: str, bus_id: str) -> StudentAssignment | None:
        """Replace the student's assignment with `bus_id`.

        Two separate writes: remove every existing assignment, then insert the
        new one. If the insert fails after the delete succeeded, the student is
        left without a bus.
        """

        try:
            await self._replace_assignment(student_id, bus_id)
        except AssignmentError as exc:
            logger.warning(
                "Bus selection failed: %s",
                exc,
                extra={
                    "student_id": student_id,
                    "bus_id": bus_id,
                    "removed_previous": exc.removed_previous,
                },
            )
            await self.notifier.error("Failed to select bus")
            return None

        await self.notifier.success("Bus selected successfully")
        return await self.get_my_bus(student_id)

    async def _replace_assignment(self, student_id: str, bus_id: str) -> None:
        try:
            await self.context.assignments.delete_assignments(student_id)
        except BackendError as exc:
            raise AssignmentError(
                f"Could not remove previous assignment: {exc}", removed_previous=False
            ) from exc

        try:
            await self.context.assignments.insert_assignment(student_id, bus_id)
        except BackendError as exc:
            raise AssignmentError(
                f"Could not insert assignment: {exc}", removed_previous=True
            ) from exc
