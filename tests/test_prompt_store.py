from __future__ import annotations

from city_research.models.research import ElementType
from city_research.services.prompt_store import (
    category_prompt,
    clear_prompt_cache,
    missing_category_prompts,
    system_prompt,
)


def test_every_element_type_has_a_category_template():
    clear_prompt_cache()
    assert missing_category_prompts() == []
    for element_type in ElementType:
        assert "Oakland" in category_prompt(element_type, "Oakland")


def test_system_prompt_demands_json_array():
    prompt = system_prompt()
    assert "JSON array" in prompt
    assert '"name"' in prompt and '"description"' in prompt


def test_custom_prompt_is_appended():
    prompt = category_prompt(ElementType.SLANG, "Detroit", "Focus on the east side")
    assert prompt.endswith("Additional instructions: Focus on the east side")
    assert "Additional instructions" not in category_prompt(ElementType.SLANG, "Detroit")
