from __future__ import annotations

import os

import httpx
import pytest


def _supabase_healthy(url: str, api_key: str) -> bool:
    try:
        resp = httpx.get(
            url.rstrip("/") + "/rest/v1/",
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=2.0,
        )
    except httpx.HTTPError:
        return False
    return resp.status_code < 500


@pytest.fixture(scope="session")
def require_supabase() -> str:
    """Skip unless a Supabase project (local `supabase start` or hosted) is reachable."""

    os.environ.setdefault("SUPABASE_URL", "http://127.0.0.1:54321")
    url = os.environ["SUPABASE_URL"]
    api_key = os.environ.get("SUPABASE_KEY", "")

    if not api_key or not _supabase_healthy(url, api_key):
        msg = f"Supabase not reachable at {url}"

        # In CI we want this to be a hard failure, because the workflow is
        # expected to start the local stack.
        if os.getenv("REQUIRE_SUPABASE"):
            pytest.fail(msg, pytrace=False)

        pytest.skip(f"{msg}; skipping integration tests")
    return url


@pytest.fixture(scope="session")
def seeded_bus_id() -> str:
    bus_id = os.getenv("TEST_BUS_ID")
    if not bus_id:
        pytest.skip("TEST_BUS_ID not set; needs a seeded bus with a route")
    return bus_id
