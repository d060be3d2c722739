from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable

from loguru import logger

from city_research.config import settings
from city_research.errors import FatalInputError, PersistenceMarkerError, TransientFetchError
from city_research.models.outcomes import MarkerWrite
from city_research.models.research import (
    CATEGORY_ELEMENT_TYPES,
    DEFAULT_CATEGORIES,
    CategoryReport,
    Element,
    ElementType,
    ResearchResult,
    ResearchRun,
    RunMode,
    RunStatus,
)
from city_research.research_core.extract.service import ExtractionEngine
from city_research.research_core.normalize.service import Normalizer
from city_research.research_core.researcher import CategoryResearcher
from city_research.research_core import synthesis
from city_research.services import logger as log_service
from city_research.services.run_store import RunStore, get_run_store

EPHEMERAL_WARNING = (
    "Results were not saved: no Supabase write credential is configured. "
    "Set SUPABASE_URL and SUPABASE_SERVICE_KEY to enable persistence."
)

CategoryOutcome = tuple[CategoryReport, list[Element]]


class RunCoordinator:
    """Runs one research pass over a city's categories.

    Flow:
      1. Pick FULL or EPHEMERAL mode from the store (once per run)
      2. FULL only: write the run-start marker
      3. Per category: fetch -> extract -> normalize, each category isolated
      4. Merge elements in category input order and build the synthesis
      5. FULL only: write the run-complete marker and analytics

    Marker writes never fail the run; their outcomes are kept on the result.
    """

    def __init__(
        self,
        store: RunStore | None = None,
        researcher: CategoryResearcher | None = None,
        engine: ExtractionEngine | None = None,
        normalizer: Normalizer | None = None,
        *,
        max_concurrency: int | None = None,
    ):
        self.store = store if store is not None else get_run_store()
        self.researcher = researcher or CategoryResearcher()
        self.engine = engine or ExtractionEngine(max_items=settings.research_max_items)
        self.normalizer = normalizer or Normalizer()
        concurrency = settings.research_max_concurrency if max_concurrency is None else max_concurrency
        self.max_concurrency = max(int(concurrency), 1)

    async def research_city(
        self,
        city_id: str,
        categories: list[str] | None = None,
        custom_prompt: str | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ResearchResult:
        """Resolve the city through the store, then run with default categories if none given."""
        if not city_id or not city_id.strip():
            raise FatalInputError("city_id is required")
        city = await self.store.get_city(city_id)
        if not city:
            raise FatalInputError(f"City not found: {city_id}")
        return await self.run(
            str(city.get("id") or city_id),
            str(city.get("name") or ""),
            list(categories) if categories else list(DEFAULT_CATEGORIES),
            custom_prompt,
            cancel_event=cancel_event,
        )

    async def run(
        self,
        city_id: str,
        city_name: str,
        categories: list[str],
        custom_prompt: str | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ResearchResult:
        self._validate(city_id, city_name, categories)
        mode = RunMode.FULL if self.store.persistent else RunMode.EPHEMERAL
        run = ResearchRun(city_id=city_id, categories=list(categories))
        marker_writes: list[MarkerWrite] = []

        logger.info(f"Starting research run {run.id} for {city_name} ({city_id})")
        log_service.log_run(
            run.id, city_id, mode.value, RunStatus.RUNNING.value, categories=run.categories
        )

        if mode is RunMode.FULL:
            marker_writes.append(
                await self._best_effort(
                    "insert_run_marker",
                    "city_elements",
                    lambda: self.store.insert_run_marker(
                        city_id, run.id, run.start_marker(), RunStatus.RUNNING.value
                    ),
                )
            )

        outcomes = await self._process_categories(run, city_name, custom_prompt, cancel_event)

        reports = [report for report, _ in outcomes]
        elements = self._merge_elements(category_elements for _, category_elements in outcomes)

        summary = synthesis.summarize(city_name, len(elements), len(run.categories))
        run.complete(summary)
        self._log_coverage(city_name, run.categories, elements)

        if mode is RunMode.FULL:
            failed = [r.category for r in reports if r.status == "failed"]
            marker_writes.append(
                await self._best_effort(
                    "update_run_marker",
                    "city_elements",
                    lambda: self.store.update_run_marker(
                        city_id,
                        run.id,
                        run.completion_patch(element_count=len(elements), failed_categories=failed),
                    ),
                )
            )
            marker_writes.append(
                await self._best_effort(
                    "log_analytics",
                    "analytics",
                    lambda: self.store.log_analytics(
                        city_id,
                        "research_completed",
                        len(elements),
                        {"city_name": city_name, "categories": run.categories, "run_id": run.id},
                    ),
                )
            )

        log_service.log_run(
            run.id,
            city_id,
            mode.value,
            run.status.value,
            element_count=len(elements),
            marker_failures=[w.operation for w in marker_writes if not w.ok],
        )

        return ResearchResult(
            run_id=run.id,
            city_id=city_id,
            city_name=city_name,
            mode=mode,
            elements=elements,
            synthesis=summary,
            saved_to_database=mode is RunMode.FULL,
            warning=EPHEMERAL_WARNING if mode is RunMode.EPHEMERAL else None,
            category_reports=reports,
            marker_writes=marker_writes,
        )

    @staticmethod
    def _validate(city_id: str, city_name: str, categories: list[str]) -> None:
        if not isinstance(city_id, str) or not city_id.strip():
            raise FatalInputError("city_id is required")
        if not isinstance(city_name, str) or not city_name.strip():
            raise FatalInputError("city_name is required")
        if not categories:
            raise FatalInputError("at least one category is required")

    async def _process_categories(
        self,
        run: ResearchRun,
        city_name: str,
        custom_prompt: str | None,
        cancel_event: asyncio.Event | None,
    ) -> list[CategoryOutcome]:
        """Return one outcome per category, in input order."""
        if self.max_concurrency == 1:
            outcomes: list[CategoryOutcome] = []
            for category in run.categories:
                if cancel_event is not None and cancel_event.is_set():
                    outcomes.append(self._cancelled(run, category))
                    continue
                outcomes.append(await self._process_category(run, city_name, category, custom_prompt))
            return outcomes

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_one(category: str) -> CategoryOutcome:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return self._cancelled(run, category)
                return await self._process_category(run, city_name, category, custom_prompt)

        # gather keeps slot order regardless of completion order
        return list(await asyncio.gather(*(run_one(category) for category in run.categories)))

    async def _process_category(
        self,
        run: ResearchRun,
        city_name: str,
        category: str,
        custom_prompt: str | None,
    ) -> CategoryOutcome:
        if not self.researcher.supports(category):
            logger.warning(f"Unknown category: {category}, skipping...")
            log_service.log_research_step(run.id, category, "skipped", {"reason": "unknown category"})
            return CategoryReport(category=category, status="skipped", error="unknown category"), []

        try:
            raw_text = await self.researcher.fetch(category, city_name, custom_prompt)
            report = self.engine.analyze(raw_text, category)
            elements = self.normalizer.normalize(run.city_id, category, report.items)
        except Exception as exc:
            error = TransientFetchError(category, exc)
            logger.error(f"Research failed for category {category}: {error}")
            log_service.log_research_step(run.id, category, "failed", {"error": str(error)})
            return CategoryReport(category=category, status="failed", error=str(error)), []

        log_service.log_research_step(
            run.id,
            category,
            "completed",
            {"tier": report.tier, "items": len(report.items), "elements": len(elements)},
        )
        return (
            CategoryReport(
                category=category,
                status="ok",
                tier=report.tier,
                item_count=len(report.items),
                element_count=len(elements),
            ),
            elements,
        )

    @staticmethod
    def _merge_elements(per_category: Iterable[list[Element]]) -> list[Element]:
        """Concatenate in category order; alias categories share a type, first key wins."""
        merged: list[Element] = []
        seen: set[tuple[ElementType, str]] = set()
        for category_elements in per_category:
            for element in category_elements:
                key = (element.element_type, element.element_key)
                if key in seen:
                    logger.debug(f"Dropping duplicate element {key[0].value}/{key[1]}")
                    continue
                seen.add(key)
                merged.append(element)
        return merged

    @staticmethod
    def _cancelled(run: ResearchRun, category: str) -> CategoryOutcome:
        log_service.log_research_step(run.id, category, "cancelled")
        return CategoryReport(category=category, status="cancelled"), []

    @staticmethod
    async def _best_effort(
        operation: str, table: str, write: Callable[[], Awaitable[Any]]
    ) -> MarkerWrite:
        try:
            await write()
        except Exception as exc:
            error = PersistenceMarkerError(operation, exc)
            log_service.log_db_operation(
                operation, table, "failed", error=str(error)
            )
            return MarkerWrite.failure(operation, exc)
        return MarkerWrite.success(operation)

    @staticmethod
    def _log_coverage(city_name: str, categories: list[str], elements: list[Element]) -> None:
        requested = {CATEGORY_ELEMENT_TYPES[c] for c in categories if c in CATEGORY_ELEMENT_TYPES}
        counts = synthesis.count_by_type(elements)
        shortfalls = synthesis.coverage_shortfalls(counts, requested)
        if shortfalls:
            logger.warning(f"Insufficient elements found for {city_name}: {shortfalls}")
        else:
            logger.info(f"Element counts for {city_name}: {counts}")
