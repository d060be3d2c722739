from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from supabase import create_client, Client

from city_research.config import settings
from city_research.models.research import RUN_MARKER_TYPE


def get_client() -> Client:
    return create_client(settings.supabase_url, settings.supabase_service_key)


_client: Client | None = None


def client() -> Client:
    global _client
    if _client is None:
        _client = get_client()
    return _client


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# --- Cities ---


async def get_city(city_id: str) -> dict[str, Any] | None:
    result = client().table("cities").select("*").eq("id", city_id).execute()
    return result.data[0] if result.data else None


# --- Run markers ---


async def insert_run_marker(
    city_id: str, run_id: str, value: dict[str, Any], status: str
) -> dict[str, Any]:
    row = {
        "city_id": city_id,
        "element_type": RUN_MARKER_TYPE,
        "element_key": run_id,
        "element_value": {**value, "status": status},
        "status": "pending",
        "created_at": _now(),
        "updated_at": _now(),
    }
    result = client().table("city_elements").insert(row).execute()
    return result.data[0]


async def update_run_marker(city_id: str, run_id: str, patch: dict[str, Any]) -> None:
    current = (
        client()
        .table("city_elements")
        .select("element_value")
        .eq("city_id", city_id)
        .eq("element_type", RUN_MARKER_TYPE)
        .eq("element_key", run_id)
        .execute()
    )
    value = current.data[0]["element_value"] if current.data else {}
    (
        client()
        .table("city_elements")
        .update({"element_value": {**(value or {}), **patch}, "updated_at": _now()})
        .eq("city_id", city_id)
        .eq("element_type", RUN_MARKER_TYPE)
        .eq("element_key", run_id)
        .execute()
    )


# --- Elements ---


async def upsert_elements(rows: list[dict[str, Any]]) -> int:
    if not rows:
        return 0
    stamped = [{**row, "created_at": _now(), "updated_at": _now()} for row in rows]
    result = (
        client()
        .table("city_elements")
        .upsert(stamped, on_conflict="city_id,element_type,element_key")
        .execute()
    )
    return len(result.data or [])


# --- Analytics ---


async def log_analytics(
    city_id: str, metric_type: str, metric_value: float, metadata: dict | None = None
) -> None:
    row = {
        "date": _now()[:10],
        "metric_type": metric_type,
        "metric_value": metric_value,
        "city_id": city_id,
        "metadata": metadata or {},
    }
    client().table("analytics").insert(row).execute()
