"""City Research - cultural research extraction

Simple CLI for running a research pass over one city.
"""

import argparse
import asyncio
import json
import sys
from uuid import uuid4

from pydantic import ValidationError

from city_research.errors import FatalInputError
from city_research.models.research import DEFAULT_CATEGORIES
from city_research.models.schemas import ResearchRequest, ResearchResponse
from city_research.orchestrator import RunCoordinator
from city_research.services import logger as log_service
from city_research.services.run_store import InMemoryRunStore, get_run_store


async def run_research(
    city_name: str,
    city_id: str | None,
    categories: list[str],
    custom_prompt: str | None,
    as_json: bool,
) -> int:
    """Run research for the given city and print the outcome."""
    store = get_run_store()
    ephemeral = isinstance(store, InMemoryRunStore)
    if ephemeral and city_id is not None and not city_name.strip():
        print(
            "Error: --city-id needs a city name when no Supabase write credential is configured",
            file=sys.stderr,
        )
        return 2

    try:
        request = ResearchRequest(
            city_id=city_id or f"city-{uuid4().hex[:12]}",
            # --city-id alone resolves the name from the store
            city_name=city_name or city_id or "",
            categories=categories,
            custom_prompt=custom_prompt,
        )
    except ValidationError as exc:
        print(f"Invalid request: {exc}", file=sys.stderr)
        return 2

    if ephemeral:
        store.add_city(request.city_id, request.city_name)

    coordinator = RunCoordinator(store=store)
    try:
        if city_id is not None:
            result = await coordinator.research_city(
                request.city_id, request.categories, request.custom_prompt
            )
        else:
            result = await coordinator.run(
                request.city_id, request.city_name, request.categories, request.custom_prompt
            )
    except FatalInputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if result.saved_to_database:
        try:
            stored = await store.insert_elements(result.elements)
        except Exception as exc:
            log_service.log_db_operation("upsert", "city_elements", "failed", error=str(exc))
            print(f"[!] Failed to store elements: {exc}", file=sys.stderr)
        else:
            print(f"[+] Stored {stored}/{len(result.elements)} elements", file=sys.stderr)

    if as_json:
        response = ResearchResponse.model_validate(result.to_payload())
        print(json.dumps(response.model_dump(exclude_none=True), indent=2, ensure_ascii=False))
        return 0

    print(f"City: {result.city_name} ({result.city_id})")
    print("-" * 50)
    for report in result.category_reports:
        detail = f"tier={report.tier} elements={report.element_count}"
        if report.error:
            detail = report.error
        print(f"  [{report.status}] {report.category}: {detail}")
    print(f"\n{'=' * 50}")
    for element in result.elements:
        value = element.element_value
        print(f"- [{element.element_type.value}] {value.name}: {value.description}")
    print(f"\n{result.synthesis}")
    if result.warning:
        print(f"\n[!] {result.warning}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="City Research - cultural research extraction")
    parser.add_argument("city", nargs="?", default="", help="City name to research")
    parser.add_argument("--city-id", help="Existing city id to resolve from the store")
    parser.add_argument(
        "--categories",
        nargs="+",
        default=list(DEFAULT_CATEGORIES),
        help="Research categories (default: %(default)s)",
    )
    parser.add_argument("--prompt", help="Custom instructions appended to every category prompt")
    parser.add_argument("--json", action="store_true", help="Print the JSON payload")

    args = parser.parse_args()
    if not args.city and not args.city_id:
        parser.error("a city name or --city-id is required")

    sys.exit(
        asyncio.run(
            run_research(
                args.city,
                args.city_id,
                args.categories,
                args.prompt,
                args.json,
            )
        )
    )


if __name__ == "__main__":
    main()
