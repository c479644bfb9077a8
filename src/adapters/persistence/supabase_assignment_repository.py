from __future__ import annotations

from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from src.adapters.persistence.rows import AssignmentRow
from src.adapters.supabase import (
    SINGLE_OBJECT_ACCEPT,
    SupabaseRuntimeConfig,
    raise_for_postgrest,
    rest_client,
)
from src.app.ports.output import IAssignmentRepository
from src.domain.exceptions import BackendError
from src.domain.models import StudentAssignment

_TABLE = "/student_buses"


@dataclass(slots=True)
class SupabaseAssignmentRepository(IAssignmentRepository):
    """Student -> bus assignments in the `student_buses` table."""

    config: SupabaseRuntimeConfig | None = None
    transport: httpx.AsyncBaseTransport | None = None

    def _config(self) -> SupabaseRuntimeConfig:
        if self.config is None:
            self.config = SupabaseRuntimeConfig.from_env()
        return self.config

    async def get_assignment(self, student_id: str) -> StudentAssignment:
        try:
            async with rest_client(self._config(), transport=self.transport) as client:
                resp = await client.get(
                    _TABLE,
                    params={
                        "select": "student_id,bus_id,assigned_at,buses(*)",
                        "student_id": f"eq.{student_id}",
                    },
                    headers={"Accept": SINGLE_OBJECT_ACCEPT},
                )
        except httpx.HTTPError as exc:
            raise BackendError(f"student_buses query failed: {exc}") from exc

        raise_for_postgrest(resp)
        try:
            return AssignmentRow.model_validate(resp.json()).to_domain()
        except (ValidationError, ValueError) as exc:
            raise BackendError(f"Malformed assignment row: {exc}") from exc

    async def delete_assignments(self, student_id: str) -> None:
        try:
            async with rest_client(self._config(), transport=self.transport) as client:
                resp = await client.delete(
                    _TABLE, params={"student_id": f"eq.{student_id}"}
                )
        except httpx.HTTPError as exc:
            raise BackendError(f"student_buses delete failed: {exc}") from exc

        raise_for_postgrest(resp)

    async def insert_assignment(self, student_id: str, bus_id: str) -> None:
        try:
            async with rest_client(self._config(), transport=self.transport) as client:
                resp = await client.post(
                    _TABLE,
                    json={"student_id": student_id, "bus_id": bus_id},
                    headers={"Prefer": "return=minimal"},
                )
        except httpx.HTTPError as exc:
            raise BackendError(f"student_buses insert failed: {exc}") from exc

        raise_for_postgrest(resp)
