from __future__ import annotations

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping

from pydantic import ValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from src.adapters.persistence.rows import PositionRow
from src.adapters.supabase import SupabaseRuntimeConfig
from src.app.ports.output import ILocationChannel, ILocationFeed
from src.domain.exceptions import BackendError
from src.domain.models import Position

logger = logging.getLogger(__name__)

LOCATIONS_SCHEMA = "public"
LOCATIONS_TABLE = "bus_locations"


def channel_topic(bus_id: str) -> str:
    return f"realtime:bus-location-{bus_id}"


def join_message(bus_id: str, *, access_token: str, ref: str) -> dict[str, Any]:
    """Phoenix join asking for INSERTs on the location table for one bus."""

    return {
        "topic": channel_topic(bus_id),
        "event": "phx_join",
        "payload": {
            "config": {
                "broadcast": {"ack": False, "self": False},
                "presence": {"key": ""},
                "postgres_changes": [
                    {
                        "event": "INSERT",
                        "schema": LOCATIONS_SCHEMA,
                        "table": LOCATIONS_TABLE,
                        "filter": f"bus_id=eq.{bus_id}",
                    }
                ],
            },
            "access_token": access_token,
        },
        "ref": ref,
        "join_ref": ref,
    }


def parse_location_message(message: Mapping[str, Any], bus_id: str) -> Position | None:
    """Return the inserted position carried by a realtime message, if any.

    Anything else (replies, presence, system notices, other buses) yields None.
    """

    if message.get("event") != "postgres_changes":
        return None

    payload = message.get("payload") or {}
    data = payload.get("data") if isinstance(payload, Mapping) else None
    if not isinstance(data, Mapping):
        return None
    if (data.get("type") or data.get("eventType")) != "INSERT":
        return None
    if data.get("table") not in (None, LOCATIONS_TABLE):
        return None

    record = data.get("record") or data.get("new")
    if not isinstance(record, Mapping):
        return None
    if str(record.get("bus_id")) != str(bus_id):
        return None

    try:
        return PositionRow.model_validate(record).to_domain()
    except (ValidationError, ValueError) as exc:
        logger.warning("Dropping malformed location row: %s", exc, extra={"bus_id": bus_id})
        return None


class SupabaseRealtimeChannel(ILocationChannel):
    def __init__(
        self,
        ws: ClientConnection,
        bus_id: str,
        *,
        heartbeat_s: float,
        refs: "itertools.count[int]",
    ) -> None:
        self.ws = ws
        self.bus_id = bus_id
        self.topic = channel_topic(bus_id)
        self.heartbeat_s = heartbeat_s
        self._refs = refs
        self._closed = False
        self._heartbeat = asyncio.create_task(self._heartbeat_loop())

    def _next_ref(self) -> str:
        return str(next(self._refs))

    async def _send(self, topic: str, event: str, payload: Mapping[str, Any]) -> None:
        await self.ws.send(
            json.dumps(
                {"topic": topic, "event": event, "payload": dict(payload), "ref": self._next_ref()}
            )
        )

    async def _heartbeat_loop(self) -> None:
        while not self._closed:
            await asyncio.sleep(self.heartbeat_s)
            try:
                await self._send("phoenix", "heartbeat", {})
            except ConnectionClosed:
                return

    async def __aiter__(self) -> AsyncIterator[Position]:  # type: ignore[override]
        try:
            async for raw in self.ws:
                try:
                    message = json.loads(raw)
                except (TypeError, json.JSONDecodeError):
                    logger.debug("Ignoring non-JSON realtime frame")
                    continue
                if not isinstance(message, Mapping):
                    continue

                if message.get("topic") == self.topic and message.get("event") in {
                    "phx_error",
                    "phx_close",
                }:
                    if self._closed:
                        return
                    raise BackendError(f"Realtime channel {message.get('event')}")

                position = parse_location_message(message, self.bus_id)
                if position is not None:
                    yield position
        except ConnectionClosed as exc:
            if self._closed:
                return
            raise BackendError(f"Realtime connection closed: {exc}") from exc

        # A clean close from the server ends iteration without raising.
        if not self._closed:
            raise BackendError("Realtime connection closed by server")

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._heartbeat.cancel()
        try:
            await self._send(self.topic, "phx_leave", {})
        except ConnectionClosed:
            pass
        await self.ws.close()


@dataclass(slots=True)
class SupabaseRealtimeLocationFeed(ILocationFeed):
    """Listens to inserts on `bus_locations` via Supabase Realtime.

    Env vars:
      - SUPABASE_URL, SUPABASE_KEY, SUPABASE_ACCESS_TOKEN
      - REALTIME_HEARTBEAT_S (default 25)
      - SUPABASE_TIMEOUT_S: how long to wait for the join reply (default 10)

    Reconnects are not attempted; a dropped socket ends the stream.
    """

    config: SupabaseRuntimeConfig | None = None

    def _config(self) -> SupabaseRuntimeConfig:
        if self.config is None:
            self.config = SupabaseRuntimeConfig.from_env()
        return self.config

    async def open(self, bus_id: str) -> SupabaseRealtimeChannel:
        cfg = self._config()
        refs = itertools.count(1)
        join_ref = str(next(refs))

        try:
            ws = await connect(cfg.realtime_url(), open_timeout=cfg.timeout_s)
        except (OSError, WebSocketException, asyncio.TimeoutError) as exc:
            raise BackendError(f"Realtime connect failed: {exc}") from exc

        try:
            await ws.send(json.dumps(join_message(bus_id, access_token=cfg.bearer(), ref=join_ref)))
            await asyncio.wait_for(_await_join_reply(ws, join_ref), timeout=cfg.timeout_s)
        except BaseException as exc:
            await ws.close()
            if isinstance(exc, BackendError):
                raise
            if isinstance(exc, (ConnectionClosed, asyncio.TimeoutError)):
                raise BackendError(f"Realtime join failed: {exc!r}") from exc
            raise

        logger.info("Subscribed to realtime locations", extra={"bus_id": bus_id})
        return SupabaseRealtimeChannel(ws, bus_id, heartbeat_s=cfg.heartbeat_s, refs=refs)


async def _await_join_reply(ws: ClientConnection, join_ref: str) -> None:
    while True:
        raw = await ws.recv()
        try:
            message = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            continue
        if not isinstance(message, Mapping):
            continue
        if message.get("event") != "phx_reply" or str(message.get("ref")) != join_ref:
            continue

        payload = message.get("payload") or {}
        if payload.get("status") == "ok":
            return
        raise BackendError(f"Realtime join rejected: {payload.get('response')}")
