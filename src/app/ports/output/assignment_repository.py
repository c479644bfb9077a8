from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import StudentAssignment


class IAssignmentRepository(ABC):
    """Port for student -> bus assignments."""

    @abstractmethod
    async def get_assignment(self, student_id: str) -> StudentAssignment:
        """Raise `NotFound` when the student has no bus yet."""

    @abstractmethod
    async def delete_assignments(self, student_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def insert_assignment(self, student_id: str, bus_id: str) -> None:
        raise NotImplementedError
