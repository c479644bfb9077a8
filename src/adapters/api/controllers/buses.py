from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from src.adapters.api.dependencies import get_app_context
from src.adapters.api.notices import CollectingNotifier
from src.adapters.api.schemas.buses import (
    BusListResponseSchema,
    BusSchema,
    PositionReportSchema,
    PositionSchema,
    StopSchema,
)
from src.app.context import AppContext
from src.app.services.student_bus_service import StudentBusService
from src.domain.exceptions import BackendError, NotFound
from src.domain.models import Position

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/buses", tags=["buses"])


@router.get("", response_model=BusListResponseSchema)
async def list_active_buses(
    context: AppContext = Depends(get_app_context),
) -> BusListResponseSchema:
    notifier = CollectingNotifier()
    buses = await StudentBusService(context=context, notifier=notifier).list_active_buses()
    return BusListResponseSchema(
        buses=[BusSchema.from_domain(b) for b in buses],
        notices=notifier.notices,
    )


@router.get("/{bus_id}", response_model=BusSchema)
async def get_bus(
    bus_id: str, context: AppContext = Depends(get_app_context)
) -> BusSchema:
    try:
        bus = await context.buses.get_bus(bus_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="Bus not found") from exc
    except BackendError as exc:
        raise HTTPException(status_code=502, detail="Failed to load bus information") from exc
    return BusSchema.from_domain(bus)


@router.get("/{bus_id}/stops", response_model=list[StopSchema])
async def get_route_stops(
    bus_id: str, context: AppContext = Depends(get_app_context)
) -> list[StopSchema]:
    try:
        stops = await context.buses.get_route_stops(bus_id)
    except BackendError as exc:
        raise HTTPException(status_code=502, detail="Failed to load route stops") from exc
    return [StopSchema.from_domain(s) for s in stops]


@router.get("/{bus_id}/location", response_model=PositionSchema)
async def get_latest_location(
    bus_id: str, context: AppContext = Depends(get_app_context)
) -> PositionSchema:
    try:
        position = await context.buses.get_latest_position(bus_id)
    except BackendError as exc:
        raise HTTPException(status_code=502, detail="Failed to load bus location") from exc
    if position is None:
        raise HTTPException(status_code=404, detail="No location reported yet")
    return PositionSchema.from_domain(position)


@router.post("/{bus_id}/locations", status_code=201, response_model=PositionSchema)
async def report_location(
    bus_id: str,
    body: PositionReportSchema,
    context: AppContext = Depends(get_app_context),
) -> PositionSchema:
    position = Position(
        bus_id=bus_id,
        lat=body.lat,
        lon=body.lon,
        speed=body.speed,
        heading=body.heading,
        timestamp=body.timestamp or datetime.now(timezone.utc),
    )
    try:
        await context.buses.insert_position(position)
    except BackendError as exc:
        logger.warning("Location report rejected: %s", exc, extra={"bus_id": bus_id})
        raise HTTPException(status_code=502, detail="Failed to store location") from exc
    return PositionSchema.from_domain(position)
