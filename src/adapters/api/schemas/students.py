from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.adapters.api.schemas.buses import BusSchema, NoticeSchema
from src.domain.models import StudentAssignment


class AssignmentSchema(BaseModel):
    student_id: str
    bus_id: str
    assigned_at: datetime | None = None
    bus: BusSchema | None = None

    @staticmethod
    def from_domain(assignment: StudentAssignment) -> "AssignmentSchema":
        return AssignmentSchema(
            student_id=assignment.student_id,
            bus_id=assignment.bus_id,
            assigned_at=assignment.assigned_at,
            bus=BusSchema.from_domain(assignment.bus) if assignment.bus else None,
        )


class SelectBusRequestSchema(BaseModel):
    bus_id: str = Field(..., min_length=1)


class SelectBusResponseSchema(BaseModel):
    ok: bool
    assignment: AssignmentSchema | None = None
    notices: list[NoticeSchema] = Field(default_factory=list)
