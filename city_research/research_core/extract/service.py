from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger

from city_research.models.outcomes import Empty, ExtractionReport, Malformed, Ok, TierOutcome
from city_research.models.research import CandidateItem

MAX_ITEMS = 10
SUMMARY_MIN_CHARS = 50
SUMMARY_MAX_CHARS = 500

JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
# The term starts and ends on a non-space character so no two whitespace
# quantifiers can claim the same run of spaces.
LIST_LINE_RE = re.compile(
    r"^\s*(?:[-*•]|\d+[.)])\s+"
    r"(?:\*\*|__)?(?P<term>[^\s:](?:[^:\n]*?[^\s:])?)(?:\*\*|__)?"
    r"\s*(?::|\s[-–—]\s)"
    r"\s*(?:(?:\*\*|__)\s*)?(?P<description>\S.*)$"
)
EMPHASIS_RE = re.compile(r"\*+|_{2,}|`+")
ITALIC_UNDERSCORE_RE = re.compile(r"^_(.+)_$")


def strip_emphasis(text: str) -> str:
    text = EMPHASIS_RE.sub("", text).strip()
    return ITALIC_UNDERSCORE_RE.sub(r"\1", text).strip()


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


class ExtractionEngine:
    """Coerces free-form model output into candidate items.

    Tiers, first hit wins:
      1. JSON array anywhere in the text
      2. bulleted / numbered "term: description" lines
      3. a single "<category> summary" item for substantive text

    Never raises; degraded input yields fewer items.
    """

    def __init__(self, *, max_items: int = MAX_ITEMS):
        self.max_items = max(int(max_items), 1)

    def extract(self, raw_text: str | None, category: str = "") -> list[CandidateItem]:
        return self.analyze(raw_text, category).items

    def analyze(self, raw_text: str | None, category: str = "") -> ExtractionReport:
        text = raw_text if isinstance(raw_text, str) else ""
        outcomes: dict[str, TierOutcome] = {}

        tiers = (
            ("json", lambda: self.parse_json(text)),
            ("lines", lambda: self.parse_lines(text)),
            ("summary", lambda: self.summarize(text, category)),
        )
        for tier, run in tiers:
            try:
                outcome = run()
            except Exception as exc:  # noqa: BLE001
                logger.warning(f"Extraction tier {tier} crashed for {category or 'unknown'}: {exc}")
                outcome = Malformed(reason=f"{type(exc).__name__}: {exc}")
            outcomes[tier] = outcome
            if isinstance(outcome, Ok):
                return ExtractionReport(
                    items=outcome.items[: self.max_items], tier=tier, outcomes=outcomes
                )
            if isinstance(outcome, Malformed):
                logger.debug(f"Extraction tier {tier} malformed for {category}: {outcome.reason}")

        return ExtractionReport(items=[], tier="none", outcomes=outcomes)

    def parse_json(self, text: str) -> TierOutcome:
        match = JSON_ARRAY_RE.search(text)
        if not match:
            return Empty()
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            return Malformed(reason=f"invalid JSON array: {exc.msg}")
        if not isinstance(data, list):
            return Malformed(reason="JSON payload is not an array")

        items: list[CandidateItem] = []
        for entry in data:
            if not isinstance(entry, dict):
                continue
            name = _as_text(entry.get("name"))
            if not name:
                continue
            items.append(CandidateItem(name=name, description=_as_text(entry.get("description"))))
        return Ok(items) if items else Empty()

    def parse_lines(self, text: str) -> TierOutcome:
        items: list[CandidateItem] = []
        for line in text.splitlines():
            if not line.strip():
                continue
            match = LIST_LINE_RE.match(line)
            if not match:
                continue
            name = strip_emphasis(match.group("term"))
            if not name:
                continue
            items.append(
                CandidateItem(name=name, description=match.group("description").strip())
            )
        return Ok(items) if items else Empty()

    def summarize(self, text: str, category: str) -> TierOutcome:
        if len(text) <= SUMMARY_MIN_CHARS:
            return Empty()
        label = category or "research"
        return Ok([CandidateItem(name=f"{label} summary", description=text[:SUMMARY_MAX_CHARS])])
