from __future__ import annotations

import re

from city_research.models.research import (
    CATEGORY_ELEMENT_TYPES,
    SOURCE_AI_RESEARCH,
    CandidateItem,
    Element,
    ElementStatus,
    ElementType,
    ElementValue,
)

MAX_KEY_LENGTH = 50
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Storage-safe key: lowercase, ``_`` separated, at most 50 characters."""
    slug = _NON_SLUG_RE.sub("_", (value or "").lower()).strip("_")
    # Re-strip after the cut so the result is a fixed point.
    return slug[:MAX_KEY_LENGTH].rstrip("_")


def element_type_for(category: str) -> ElementType:
    return CATEGORY_ELEMENT_TYPES.get(category, ElementType.CULTURAL)


class Normalizer:
    def __init__(self, *, source: str = SOURCE_AI_RESEARCH):
        self.source = source

    def normalize(self, city_id: str, category: str, items: list[CandidateItem]) -> list[Element]:
        element_type = element_type_for(category)
        elements: list[Element] = []
        seen: set[str] = set()
        for item in items:
            key = slugify(item.name)
            if not key or key in seen:
                continue
            seen.add(key)
            elements.append(
                Element(
                    city_id=city_id,
                    element_type=element_type,
                    element_key=key,
                    element_value=ElementValue(
                        name=item.name,
                        description=item.description,
                        source=self.source,
                    ),
                    status=ElementStatus.PENDING,
                )
            )
        return elements
