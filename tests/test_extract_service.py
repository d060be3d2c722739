from __future__ import annotations

import json
import time

import pytest

from city_research.models.outcomes import Empty, Malformed, Ok
from city_research.research_core.extract.service import ExtractionEngine, strip_emphasis


@pytest.fixture
def engine() -> ExtractionEngine:
    return ExtractionEngine()


def test_json_array_is_parsed(engine: ExtractionEngine):
    items = engine.extract('[{"name":"Dap","description":"a greeting"}]', "slang")
    assert [(i.name, i.description) for i in items] == [("Dap", "a greeting")]


def test_json_array_inside_prose_wins_over_list_lines(engine: ExtractionEngine):
    text = (
        "Here is what I found:\n"
        '```json\n[{"name": "Jawn", "description": "anything"}, {"name": "Wit"}]\n```\n'
        "- **Ignored**: should not be used"
    )
    report = engine.analyze(text, "slang")

    assert report.tier == "json"
    assert [i.name for i in report.items] == ["Jawn", "Wit"]
    assert report.items[1].description == ""
    assert set(report.outcomes) == {"json"}


def test_json_entries_without_name_are_skipped(engine: ExtractionEngine):
    text = json.dumps(
        [{"name": ""}, {"description": "no name"}, "plain string", {"name": "Dap", "description": "hi"}]
    )
    assert [i.name for i in engine.extract(text)] == ["Dap"]


def test_json_output_is_capped_at_ten(engine: ExtractionEngine):
    text = json.dumps([{"name": f"Item {n}", "description": "d"} for n in range(15)])
    items = engine.extract(text, "landmark")
    assert len(items) == 10
    assert items[0].name == "Item 0"
    assert items[-1].name == "Item 9"


def test_bullet_lines_with_bold_terms(engine: ExtractionEngine):
    text = "- **Boogie Down**: nickname for the Bronx\n- **The Heights**: Washington Heights"
    report = engine.analyze(text, "slang")

    assert report.tier == "lines"
    assert [i.name for i in report.items] == ["Boogie Down", "The Heights"]
    assert report.items[0].description == "nickname for the Bronx"
    assert isinstance(report.outcomes["json"], Empty)


def test_numbered_and_dash_separated_lines(engine: ExtractionEngine):
    text = (
        "Some intro text that is not a list item.\n"
        "1. **Cloud Gate:** the Bean in Millennium Park\n"
        "2) Wrigley Field - home of the Cubs\n"
        "* *Navy Pier*: lakefront attraction\n"
        "- _Jawn_: anything at all\n"
        "\n"
        "Closing remarks."
    )
    items = engine.extract(text, "landmark")
    assert [(i.name, i.description) for i in items] == [
        ("Cloud Gate", "the Bean in Millennium Park"),
        ("Wrigley Field", "home of the Cubs"),
        ("Navy Pier", "lakefront attraction"),
        ("Jawn", "anything at all"),
    ]


def test_malformed_json_falls_through_to_lines(engine: ExtractionEngine):
    text = "[not actually json]\n- **Dap**: a greeting"
    report = engine.analyze(text, "slang")

    assert isinstance(report.outcomes["json"], Malformed)
    assert isinstance(report.outcomes["lines"], Ok)
    assert [i.name for i in report.items] == ["Dap"]


def test_summary_fallback_for_substantive_text(engine: ExtractionEngine):
    text = "Philadelphia has a rich vocabulary that mixes Italian and Irish roots. " * 20
    report = engine.analyze(text, "slang")

    assert report.tier == "summary"
    assert len(report.items) == 1
    assert report.items[0].name == "slang summary"
    assert report.items[0].description == text[:500]
    assert len(report.items[0].description) <= 500


def test_short_unstructured_text_yields_nothing(engine: ExtractionEngine):
    assert engine.extract("A") == []
    assert engine.extract("x" * 50, "slang") == []
    assert engine.analyze("A").tier == "none"


def test_text_just_over_threshold_gets_summary(engine: ExtractionEngine):
    items = engine.extract("x" * 51, "sport")
    assert [i.name for i in items] == ["sport summary"]


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "[",
        "]]][[[",
        '[{"name": {"nested": true}}]',
        '[{"name": null, "description": 5}]',
        "- : :",
        "\x00\x01\x02",
    ],
)
def test_extract_never_raises(engine: ExtractionEngine, raw):
    assert isinstance(engine.extract(raw, "cultural"), list)


def test_strip_emphasis():
    assert strip_emphasis("**Bold**") == "Bold"
    assert strip_emphasis("__Under__") == "Under"
    assert strip_emphasis("`code`") == "code"
    assert strip_emphasis("_Jawn_") == "Jawn"
    assert strip_emphasis("snake_case_term") == "snake_case_term"


@pytest.mark.parametrize(
    "raw",
    [
        "- " + " " * 5000 + "x",
        "- x" + " " * 5000 + "y",
        "- x:" + " " * 5000,
        "1. " + "a " * 5000,
    ],
)
def test_long_whitespace_runs_extract_quickly(engine: ExtractionEngine, raw):
    started = time.perf_counter()
    report = engine.analyze(raw, "slang")
    assert time.perf_counter() - started < 1.0
    assert report.tier in {"summary", "none"}
