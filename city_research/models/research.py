from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"


class RunMode(str, Enum):
    FULL = "full"
    EPHEMERAL = "ephemeral"


class ElementStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    REJECTED = "rejected"


class ElementType(str, Enum):
    SLANG = "slang"
    LANDMARK = "landmark"
    SPORT = "sport"
    CULTURAL = "cultural"
    VISUAL_IDENTITY = "visual_identity"
    AREA_CODE = "area_code"


# Client-facing category keys -> storage element types.
CATEGORY_ELEMENT_TYPES: dict[str, ElementType] = {
    "slang": ElementType.SLANG,
    "landmark": ElementType.LANDMARK,
    "landmarks": ElementType.LANDMARK,
    "sport": ElementType.SPORT,
    "sports": ElementType.SPORT,
    "cultural": ElementType.CULTURAL,
    "culture": ElementType.CULTURAL,
    "visualIdentity": ElementType.VISUAL_IDENTITY,
    "areaCodes": ElementType.AREA_CODE,
}

DEFAULT_CATEGORIES: tuple[str, ...] = ("slang", "landmark", "sport", "cultural")

SOURCE_AI_RESEARCH = "ai_research"
SOURCE_MANUAL = "manual"

RUN_MARKER_TYPE = "research_run"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ResearchRun:
    city_id: str
    categories: list[str]
    id: str = field(default_factory=lambda: str(uuid4()))
    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    status: RunStatus = RunStatus.RUNNING
    summary: str | None = None

    def complete(self, summary: str) -> None:
        if self.status is not RunStatus.RUNNING:
            raise RuntimeError(f"Run {self.id} already {self.status.value}")
        self.status = RunStatus.COMPLETED
        self.summary = summary
        self.completed_at = utc_now()

    def start_marker(self) -> dict[str, Any]:
        return {
            "run_id": self.id,
            "categories": list(self.categories),
            "started_at": self.started_at.isoformat(),
        }

    def completion_patch(self, **extra: Any) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "summary": self.summary,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            **extra,
        }


@dataclass(slots=True)
class CandidateItem:
    name: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class ElementValue:
    name: str
    description: str
    source: str = SOURCE_AI_RESEARCH

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "description": self.description, "source": self.source}


@dataclass(frozen=True, slots=True)
class Element:
    city_id: str
    element_type: ElementType
    element_key: str
    element_value: ElementValue
    status: ElementStatus = ElementStatus.PENDING

    def __post_init__(self) -> None:
        if not self.element_key:
            raise ValueError("element_key must be a non-empty slug")

    def to_row(self) -> dict[str, Any]:
        return {
            "city_id": self.city_id,
            "element_type": self.element_type.value,
            "element_key": self.element_key,
            "element_value": self.element_value.to_dict(),
            "status": self.status.value,
        }


@dataclass(slots=True)
class CategoryReport:
    category: str
    status: str  # ok | failed | skipped | cancelled
    tier: str | None = None
    item_count: int = 0
    element_count: int = 0
    error: str | None = None


@dataclass(slots=True)
class ResearchResult:
    run_id: str
    city_id: str
    city_name: str
    mode: RunMode
    elements: list[Element]
    synthesis: str
    saved_to_database: bool
    warning: str | None = None
    category_reports: list[CategoryReport] = field(default_factory=list)
    marker_writes: list[Any] = field(default_factory=list)  # MarkerWrite
    timestamp: datetime = field(default_factory=utc_now)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "elements": [element.to_row() for element in self.elements],
            "synthesis": self.synthesis,
            "savedToDatabase": self.saved_to_database,
        }
        if self.warning:
            payload["warning"] = self.warning
        return payload
