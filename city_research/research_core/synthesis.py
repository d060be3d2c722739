from __future__ import annotations

from collections import Counter

from city_research.models.research import Element, ElementType

# Minimum element counts for a city to be considered well covered.
COVERAGE_MINIMUMS: dict[ElementType, int] = {
    ElementType.SLANG: 5,
    ElementType.LANDMARK: 5,
    ElementType.SPORT: 3,
}


def summarize(city_name: str, element_count: int, category_count: int) -> str:
    return (
        f"Research completed for {city_name}. "
        f"Found {element_count} elements across {category_count} categories."
    )


def count_by_type(elements: list[Element]) -> dict[str, int]:
    counts = Counter(element.element_type.value for element in elements)
    return {element_type.value: counts.get(element_type.value, 0) for element_type in ElementType}


def coverage_shortfalls(
    counts: dict[str, int], requested_types: set[ElementType] | None = None
) -> dict[str, str]:
    """Return ``{type: "found/required"}`` for every requested type under its minimum."""
    shortfalls: dict[str, str] = {}
    for element_type, minimum in COVERAGE_MINIMUMS.items():
        if requested_types is not None and element_type not in requested_types:
            continue
        found = counts.get(element_type.value, 0)
        if found < minimum:
            shortfalls[element_type.value] = f"{found}/{minimum}"
    return shortfalls
