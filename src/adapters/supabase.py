from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlsplit, urlunsplit

import httpx

from src.domain.exceptions import NO_ROWS_CODE, BackendError, NotFound

SINGLE_OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True, slots=True)
class SupabaseRuntimeConfig:
    url: str
    api_key: str
    access_token: str | None = None
    timeout_s: float = 10.0
    heartbeat_s: float = 25.0

    @staticmethod
    def from_env() -> "SupabaseRuntimeConfig":
        url = (os.getenv("SUPABASE_URL") or "").strip()
        if not url:
            raise RuntimeError("Missing SUPABASE_URL")

        api_key = (os.getenv("SUPABASE_KEY") or "").strip()
        if not api_key:
            raise RuntimeError("Missing SUPABASE_KEY")

        access_token = (os.getenv("SUPABASE_ACCESS_TOKEN") or "").strip() or None

        return SupabaseRuntimeConfig(
            url=url.rstrip("/"),
            api_key=api_key,
            access_token=access_token,
            timeout_s=_env_float("SUPABASE_TIMEOUT_S", 10.0),
            heartbeat_s=_env_float("REALTIME_HEARTBEAT_S", 25.0),
        )

    @property
    def rest_url(self) -> str:
        return f"{self.url}/rest/v1"

    def realtime_url(self) -> str:
        """Phoenix websocket endpoint of the Realtime service."""

        parts = urlsplit(self.url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        query = f"apikey={self.api_key}&vsn=1.0.0"
        return urlunsplit((scheme, parts.netloc, "/realtime/v1/websocket", query, ""))

    def bearer(self) -> str:
        return self.access_token or self.api_key

    def headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.bearer()}",
        }


def rest_client(
    cfg: SupabaseRuntimeConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    cfg = cfg or SupabaseRuntimeConfig.from_env()
    return httpx.AsyncClient(
        base_url=cfg.rest_url,
        headers=cfg.headers(),
        timeout=cfg.timeout_s,
        transport=transport,
    )


def raise_for_postgrest(resp: httpx.Response) -> None:
    """Translate a PostgREST error response into a `BackendError`.

    A single-object request that matched nothing becomes `NotFound`.
    """

    if resp.is_success:
        return

    code: str | None = None
    message = f"HTTP {resp.status_code}"
    try:
        body: Any = resp.json()
    except ValueError:
        body = None

    if isinstance(body, Mapping):
        code = str(body.get("code")) if body.get("code") is not None else None
        message = str(body.get("message") or message)

    if code == NO_ROWS_CODE:
        raise NotFound(message, code=code)
    raise BackendError(message, code=code)
