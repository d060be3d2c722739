"""Tests for the command-line entry point."""
from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import main
from city_research.orchestrator import RunCoordinator
from city_research.research_core.researcher import CategoryResearcher
from city_research.services.run_store import InMemoryRunStore

SLANG_REPLY = json.dumps([{"name": "Dap", "description": "greeting"}])


class CannedResearcher(CategoryResearcher):
    def __init__(self):
        super().__init__(client=MagicMock(), model="test/model")

    async def fetch(self, category, city_name, custom_prompt=None):
        return SLANG_REPLY if category == "slang" else ""


def _coordinator(store):
    return RunCoordinator(store=store, researcher=CannedResearcher())


@pytest.mark.asyncio
async def test_city_id_with_name_runs_without_credentials(capsys):
    store = InMemoryRunStore()

    with patch("main.get_run_store", return_value=store), patch("main.RunCoordinator", _coordinator):
        code = await main.run_research("Detroit", "city-7", ["slang"], None, True)

    assert code == 0
    assert store.cities["city-7"]["name"] == "Detroit"
    payload = json.loads(capsys.readouterr().out)
    assert [e["element_key"] for e in payload["elements"]] == ["dap"]
    assert payload["savedToDatabase"] is False


@pytest.mark.asyncio
async def test_city_id_without_name_is_rejected_without_credentials(capsys):
    with patch("main.get_run_store", return_value=InMemoryRunStore()):
        code = await main.run_research("", "city-7", ["slang"], None, False)

    assert code == 2
    assert "--city-id needs a city name" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_element_store_failure_is_reported_not_raised(capsys):
    store = MagicMock()
    store.persistent = True
    store.insert_run_marker = AsyncMock()
    store.update_run_marker = AsyncMock()
    store.log_analytics = AsyncMock()
    store.insert_elements = AsyncMock(side_effect=RuntimeError("cannot affect row a second time"))

    with patch("main.get_run_store", return_value=store), patch("main.RunCoordinator", _coordinator):
        code = await main.run_research("Detroit", None, ["slang"], None, False)

    assert code == 0
    captured = capsys.readouterr()
    assert "[!] Failed to store elements: cannot affect row a second time" in captured.err
    assert "Research completed for Detroit. Found 1 elements across 1 categories." in captured.out
