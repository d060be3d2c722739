"""Research prompt catalog backed by prompts/prompts.json."""
from __future__ import annotations

import json
from pathlib import Path
from string import Template
from typing import Any

from city_research.models.research import ElementType


PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"
_catalog: dict[str, Any] | None = None
_catalog_mtime_ns: int | None = None


def _research_section() -> dict[str, Any]:
    global _catalog, _catalog_mtime_ns
    mtime_ns = PROMPTS_PATH.stat().st_mtime_ns
    if _catalog is None or _catalog_mtime_ns != mtime_ns:
        payload = json.loads(PROMPTS_PATH.read_text(encoding="utf-8"))
        research = payload.get("research") if isinstance(payload, dict) else None
        if not isinstance(research, dict) or not isinstance(research.get("categories"), dict):
            raise ValueError("Prompt catalog needs a 'research' object with 'categories'.")
        _catalog, _catalog_mtime_ns = research, mtime_ns
    return _catalog


def _template(text: Any, name: str) -> Template:
    if not isinstance(text, str):
        raise KeyError(f"No prompt template for {name}")
    return Template(text)


def system_prompt() -> str:
    return _template(_research_section().get("system_prompt"), "system_prompt").template


def category_prompt(
    element_type: ElementType, city_name: str, custom_prompt: str | None = None
) -> str:
    """Render the user prompt for one element type, with optional extra instructions."""
    section = _research_section()
    prompt = _template(section["categories"].get(element_type.value), element_type.value)
    text = prompt.substitute(city_name=city_name)
    if custom_prompt:
        suffix = _template(section.get("custom_suffix"), "custom_suffix")
        text += suffix.substitute(custom_prompt=custom_prompt)
    return text


def missing_category_prompts() -> list[str]:
    templates = _research_section()["categories"]
    return [t.value for t in ElementType if not isinstance(templates.get(t.value), str)]


def clear_prompt_cache() -> None:
    global _catalog, _catalog_mtime_ns
    _catalog = None
    _catalog_mtime_ns = None
