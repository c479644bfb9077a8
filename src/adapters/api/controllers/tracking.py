from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from src.adapters.api.dependencies import (
    TrackingSettings,
    get_app_context,
    get_tracking_settings,
)
from src.adapters.api.live_view import WebSocketMapSurface, WebSocketNotifier
from src.adapters.api.schemas.buses import BusSchema
from src.adapters.api.schemas.tracking import SessionMessage
from src.app.context import AppContext
from src.app.services.tracking_session import LiveTrackingSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tracking"])


@router.websocket("/ws/track/{bus_id}")
async def track_bus(
    websocket: WebSocket,
    bus_id: str,
    context: AppContext = Depends(get_app_context),
    settings: TrackingSettings = Depends(get_tracking_settings),
) -> None:
    """Live tracking view for one bus.

    Server messages: session, stop_markers, bus_marker, toast. Client frames
    are read only to notice the disconnect.
    """

    await websocket.accept()

    session = LiveTrackingSession(
        context,
        bus_id,
        notifier=WebSocketNotifier(send=websocket.send_json),
        map_surface=WebSocketMapSurface(send=websocket.send_json),
        threshold_km=settings.threshold_km,
        alert_filter=settings.alert_filter(),
    )
    try:
        await session.start()
        await websocket.send_json(
            SessionMessage(
                bus_id=bus_id,
                state=session.state.value,
                bus=BusSchema.from_domain(session.bus) if session.bus else None,
                stop_count=len(session.stops),
            ).model_dump(mode="json")
        )
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Tracking viewer left", extra={"bus_id": bus_id})
    finally:
        await session.close()
