"""Tagged result values passed between extraction tiers and side effects."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from city_research.models.research import CandidateItem


@dataclass(frozen=True, slots=True)
class Ok:
    items: list[CandidateItem]


@dataclass(frozen=True, slots=True)
class Malformed:
    reason: str


@dataclass(frozen=True, slots=True)
class Empty:
    pass


TierOutcome = Union[Ok, Malformed, Empty]


@dataclass(slots=True)
class ExtractionReport:
    """Items picked by the extractor plus the outcome of every tier tried."""

    items: list[CandidateItem]
    tier: str  # json | lines | summary | none
    outcomes: dict[str, TierOutcome] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MarkerWrite:
    """Result of a best-effort persistence side effect."""

    operation: str
    ok: bool
    error: str | None = None

    @classmethod
    def success(cls, operation: str) -> "MarkerWrite":
        return cls(operation=operation, ok=True)

    @classmethod
    def failure(cls, operation: str, error: BaseException) -> "MarkerWrite":
        return cls(operation=operation, ok=False, error=f"{type(error).__name__}: {error}")
