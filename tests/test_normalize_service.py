from __future__ import annotations

import pytest

from city_research.models.research import (
    SOURCE_AI_RESEARCH,
    SOURCE_MANUAL,
    CandidateItem,
    Element,
    ElementStatus,
    ElementType,
    ElementValue,
)
from city_research.research_core.normalize.service import Normalizer, element_type_for, slugify


def test_visual_identity_category_maps_and_slugifies():
    elements = Normalizer().normalize(
        "city-1", "visualIdentity", [CandidateItem(name="Sage & Chrome!!", description="d")]
    )

    assert len(elements) == 1
    assert elements[0].element_type is ElementType.VISUAL_IDENTITY
    assert elements[0].element_type.value == "visual_identity"
    assert elements[0].element_key == "sage_chrome"
    assert elements[0].city_id == "city-1"


def test_elements_start_pending_and_tagged_with_source():
    element = Normalizer().normalize("c", "slang", [CandidateItem(name="Dap", description="greeting")])[0]

    assert element.status is ElementStatus.PENDING
    assert element.element_value.source == "ai_research"
    assert element.to_row()["element_value"] == {
        "name": "Dap",
        "description": "greeting",
        "source": "ai_research",
    }


def test_items_with_empty_slug_are_dropped():
    items = [CandidateItem(name="!!!"), CandidateItem(name="   "), CandidateItem(name="Wit")]
    elements = Normalizer().normalize("c", "slang", items)
    assert [e.element_key for e in elements] == ["wit"]
    assert all(e.element_key for e in elements)


def test_duplicate_keys_within_category_are_dropped():
    items = [CandidateItem(name="The Bean"), CandidateItem(name="the bean!")]
    elements = Normalizer().normalize("c", "landmark", items)
    assert len(elements) == 1
    assert elements[0].element_value.name == "The Bean"


@pytest.mark.parametrize(
    ("category", "expected"),
    [
        ("slang", ElementType.SLANG),
        ("landmarks", ElementType.LANDMARK),
        ("sports", ElementType.SPORT),
        ("culture", ElementType.CULTURAL),
        ("areaCodes", ElementType.AREA_CODE),
        ("music", ElementType.CULTURAL),
    ],
)
def test_element_type_lookup(category, expected):
    assert element_type_for(category) is expected


@pytest.mark.parametrize(
    "value",
    [
        "Sage & Chrome!!",
        "  Leading and trailing  ",
        "ÜBER cool café",
        "a" * 49 + "!" + "b" * 10,
        "x" * 120,
        "__already_slugged__",
        "",
    ],
)
def test_slugify_is_idempotent(value):
    once = slugify(value)
    assert slugify(once) == once
    assert len(once) <= 50
    assert not once.startswith("_") and not once.endswith("_")


def test_slugify_truncates_to_fifty():
    assert slugify("a" * 80) == "a" * 50


def test_element_rejects_empty_key():
    with pytest.raises(ValueError):
        Element(
            city_id="c",
            element_type=ElementType.SLANG,
            element_key="",
            element_value=ElementValue(name="", description=""),
        )


def test_source_marks_provenance():
    items = [CandidateItem("Belle Isle", "island park")]
    (pipeline,) = Normalizer().normalize("c", "landmarks", items)
    (manual,) = Normalizer(source=SOURCE_MANUAL).normalize("c", "landmarks", items)

    assert pipeline.element_value.source == SOURCE_AI_RESEARCH
    assert manual.element_value.source == SOURCE_MANUAL
    assert manual.status is ElementStatus.PENDING
