from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from src.adapters.persistence.in_memory_backend import InMemoryBackend
from src.adapters.persistence.supabase_assignment_repository import (
    SupabaseAssignmentRepository,
)
from src.adapters.persistence.supabase_bus_repository import SupabaseBusRepository
from src.adapters.realtime.supabase_location_feed import SupabaseRealtimeLocationFeed
from src.adapters.supabase import SupabaseRuntimeConfig
from src.app.context import AppContext
from src.domain.algorithms.proximity import DEFAULT_PROXIMITY_THRESHOLD_KM, StopAlertFilter


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True, slots=True)
class TrackingSettings:
    threshold_km: float = DEFAULT_PROXIMITY_THRESHOLD_KM
    dedupe: bool = False
    hysteresis_factor: float = 2.0

    @staticmethod
    def from_env() -> "TrackingSettings":
        settings = TrackingSettings(dedupe=_env_bool("PROXIMITY_DEDUPE", False))

        # Allow tuning via env without changing code.
        if os.getenv("PROXIMITY_THRESHOLD_KM"):
            settings = TrackingSettings(
                threshold_km=float(os.environ["PROXIMITY_THRESHOLD_KM"]),
                dedupe=settings.dedupe,
                hysteresis_factor=settings.hysteresis_factor,
            )
        if os.getenv("PROXIMITY_HYSTERESIS"):
            settings = TrackingSettings(
                threshold_km=settings.threshold_km,
                dedupe=settings.dedupe,
                hysteresis_factor=float(os.environ["PROXIMITY_HYSTERESIS"]),
            )
        return settings

    def alert_filter(self) -> StopAlertFilter | None:
        """A fresh per-session filter, or None to alert on every event."""

        if not self.dedupe:
            return None
        return StopAlertFilter(
            threshold_km=self.threshold_km, hysteresis_factor=self.hysteresis_factor
        )


@lru_cache(maxsize=1)
def get_in_memory_backend() -> InMemoryBackend:
    return InMemoryBackend()


def get_app_context() -> AppContext:
    if not os.getenv("SUPABASE_URL"):
        backend = get_in_memory_backend()
        return AppContext(buses=backend, assignments=backend, location_feed=backend)

    cfg = SupabaseRuntimeConfig.from_env()
    return AppContext(
        buses=SupabaseBusRepository(config=cfg),
        assignments=SupabaseAssignmentRepository(config=cfg),
        location_feed=SupabaseRealtimeLocationFeed(config=cfg),
    )


def get_tracking_settings() -> TrackingSettings:
    return TrackingSettings.from_env()
