"""Run persistence: one interface, an in-memory and a Supabase implementation."""
from __future__ import annotations

from typing import Any, Protocol

from city_research.config import settings
from city_research.models.research import Element
from city_research.services import logger as log_service


class RunStore(Protocol):
    persistent: bool

    async def get_city(self, city_id: str) -> dict[str, Any] | None: ...
    async def insert_run_marker(
        self, city_id: str, run_id: str, value: dict[str, Any], status: str
    ) -> None: ...
    async def update_run_marker(self, city_id: str, run_id: str, patch: dict[str, Any]) -> None: ...
    async def insert_elements(self, elements: list[Element]) -> int: ...
    async def log_analytics(
        self, city_id: str, metric_type: str, metric_value: float, metadata: dict | None = None
    ) -> None: ...


class InMemoryRunStore:
    """Process-local store used when no write credential is configured."""

    persistent = False

    def __init__(self, cities: dict[str, dict[str, Any]] | None = None):
        self.cities: dict[str, dict[str, Any]] = dict(cities or {})
        self.run_markers: dict[tuple[str, str], dict[str, Any]] = {}
        self.elements: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.analytics: list[dict[str, Any]] = []

    def add_city(self, city_id: str, name: str, **fields: Any) -> dict[str, Any]:
        city = {"id": city_id, "name": name, **fields}
        self.cities[city_id] = city
        return city

    async def get_city(self, city_id: str) -> dict[str, Any] | None:
        return self.cities.get(city_id)

    async def insert_run_marker(
        self, city_id: str, run_id: str, value: dict[str, Any], status: str
    ) -> None:
        self.run_markers[(city_id, run_id)] = {**value, "status": status}

    async def update_run_marker(self, city_id: str, run_id: str, patch: dict[str, Any]) -> None:
        marker = self.run_markers.get((city_id, run_id))
        if marker is None:
            raise KeyError(f"No run marker for run {run_id}")
        marker.update(patch)

    async def insert_elements(self, elements: list[Element]) -> int:
        for element in elements:
            row = element.to_row()
            key = (row["city_id"], row["element_type"], row["element_key"])
            self.elements[key] = row
        return len(elements)

    async def log_analytics(
        self, city_id: str, metric_type: str, metric_value: float, metadata: dict | None = None
    ) -> None:
        self.analytics.append(
            {
                "city_id": city_id,
                "metric_type": metric_type,
                "metric_value": metric_value,
                "metadata": metadata or {},
            }
        )


class SupabaseRunStore:
    """Supabase-backed store. Selected only when a service key is configured."""

    persistent = True

    async def get_city(self, city_id: str) -> dict[str, Any] | None:
        from city_research.services import supabase as db

        return await db.get_city(city_id)

    async def insert_run_marker(
        self, city_id: str, run_id: str, value: dict[str, Any], status: str
    ) -> None:
        from city_research.services import supabase as db

        await db.insert_run_marker(city_id, run_id, value, status)
        log_service.log_db_operation("insert", "city_elements", "success", details=f"run {run_id} {status}")

    async def update_run_marker(self, city_id: str, run_id: str, patch: dict[str, Any]) -> None:
        from city_research.services import supabase as db

        await db.update_run_marker(city_id, run_id, patch)
        log_service.log_db_operation("update", "city_elements", "success", details=f"run {run_id}")

    async def insert_elements(self, elements: list[Element]) -> int:
        from city_research.services import supabase as db

        stored = await db.upsert_elements([element.to_row() for element in elements])
        log_service.log_db_operation("upsert", "city_elements", "success", details=f"{stored} rows")
        return stored

    async def log_analytics(
        self, city_id: str, metric_type: str, metric_value: float, metadata: dict | None = None
    ) -> None:
        from city_research.services import supabase as db

        await db.log_analytics(city_id, metric_type, metric_value, metadata)


_store: RunStore | None = None


def get_run_store() -> RunStore:
    global _store
    if _store is None:
        if settings.has_write_credentials:
            _store = SupabaseRunStore()
        else:
            _store = InMemoryRunStore()
    return _store


def reset_run_store() -> None:
    global _store
    _store = None
