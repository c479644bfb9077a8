from __future__ import annotations

from fastapi import APIRouter, Depends

from src.adapters.api.dependencies import get_app_context
from src.adapters.api.notices import CollectingNotifier
from src.adapters.api.schemas.students import (
    AssignmentSchema,
    SelectBusRequestSchema,
    SelectBusResponseSchema,
)
from src.app.context import AppContext
from src.app.services.student_bus_service import StudentBusService

router = APIRouter(prefix="/students", tags=["students"])


@router.get("/{student_id}/bus", response_model=AssignmentSchema | None)
async def get_my_bus(
    student_id: str, context: AppContext = Depends(get_app_context)
) -> AssignmentSchema | None:
    service = StudentBusService(context=context, notifier=CollectingNotifier())
    assignment = await service.get_my_bus(student_id)
    return AssignmentSchema.from_domain(assignment) if assignment else None


@router.put("/{student_id}/bus", response_model=SelectBusResponseSchema)
async def select_bus(
    student_id: str,
    body: SelectBusRequestSchema,
    context: AppContext = Depends(get_app_context),
) -> SelectBusResponseSchema:
    notifier = CollectingNotifier()
    service = StudentBusService(context=context, notifier=notifier)
    assignment = await service.select_bus(student_id, body.bus_id)

    ok = not any(n.level == "error" for n in notifier.notices)
    return SelectBusResponseSchema(
        ok=ok,
        assignment=AssignmentSchema.from_domain(assignment) if assignment else None,
        notices=notifier.notices,
    )
