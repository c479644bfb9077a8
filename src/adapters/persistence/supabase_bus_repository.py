from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from src.adapters.persistence.rows import (
    BusRouteLinkRow,
    BusRow,
    PositionRow,
    StopRow,
    active_link,
    position_to_row,
)
from src.adapters.supabase import (
    SINGLE_OBJECT_ACCEPT,
    SupabaseRuntimeConfig,
    raise_for_postgrest,
    rest_client,
)
from src.app.ports.output import IBusRepository
from src.domain.exceptions import BackendError
from src.domain.models import BusInfo, Position, Stop

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SupabaseBusRepository(IBusRepository):
    """Reads buses, stops and positions through PostgREST.

    Env vars:
      - SUPABASE_URL, SUPABASE_KEY
      - SUPABASE_ACCESS_TOKEN (optional user JWT; row-level rules apply to it)
      - SUPABASE_TIMEOUT_S (default 10)
    """

    config: SupabaseRuntimeConfig | None = None
    transport: httpx.AsyncBaseTransport | None = None

    def _config(self) -> SupabaseRuntimeConfig:
        if self.config is None:
            self.config = SupabaseRuntimeConfig.from_env()
        return self.config

    async def _get(
        self, table: str, params: dict[str, str], *, single: bool = False
    ) -> Any:
        headers = {"Accept": SINGLE_OBJECT_ACCEPT} if single else {}
        try:
            async with rest_client(self._config(), transport=self.transport) as client:
                resp = await client.get(f"/{table}", params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise BackendError(f"{table} query failed: {exc}") from exc

        raise_for_postgrest(resp)
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError(f"{table} returned a non-JSON body") from exc

    async def list_active_buses(self) -> tuple[BusInfo, ...]:
        rows = await self._get(
            "buses",
            {"select": "*", "is_active": "eq.true", "order": "bus_number.asc"},
        )
        return tuple(_validate(BusRow, r).to_domain() for r in rows or [])

    async def get_bus(self, bus_id: str) -> BusInfo:
        row = await self._get(
            "buses",
            {"select": "*,bus_routes(route_id,is_active,routes(*))", "id": f"eq.{bus_id}"},
            single=True,
        )
        return _validate(BusRow, row).to_domain()

    async def get_route_stops(self, bus_id: str) -> tuple[Stop, ...]:
        links = await self._get(
            "bus_routes", {"select": "route_id,is_active", "bus_id": f"eq.{bus_id}"}
        )
        link = active_link(_validate(BusRouteLinkRow, r) for r in links or [])
        if link is None or not link.route_id:
            return ()
        route_id = link.route_id

        rows = await self._get(
            "stops",
            {"select": "*", "route_id": f"eq.{route_id}", "order": "stop_order.asc"},
        )
        return tuple(_validate(StopRow, r).to_domain() for r in rows or [])

    async def get_latest_position(self, bus_id: str) -> Position | None:
        rows = await self._get(
            "bus_locations",
            {
                "select": "*",
                "bus_id": f"eq.{bus_id}",
                "order": "timestamp.desc",
                "limit": "1",
            },
        )
        if not rows:
            return None
        return _validate(PositionRow, rows[0]).to_domain()

    async def insert_position(self, position: Position) -> None:
        try:
            async with rest_client(self._config(), transport=self.transport) as client:
                resp = await client.post(
                    "/bus_locations",
                    json=position_to_row(position),
                    headers={"Prefer": "return=minimal"},
                )
        except httpx.HTTPError as exc:
            raise BackendError(f"bus_locations insert failed: {exc}") from exc

        raise_for_postgrest(resp)
        logger.debug("Inserted position", extra={"bus_id": position.bus_id})


def _validate(model: Any, raw: Any) -> Any:
    try:
        return model.model_validate(raw)
    except (ValidationError, ValueError) as exc:
        raise BackendError(f"Malformed {model.__name__}: {exc}") from exc
