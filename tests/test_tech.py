"""Tests for the tech service: research lifecycle and unlocks."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dustcore.engine.tech_service import TechService
from dustcore.loaders.catalog_loader import load_catalog
from dustcore.models.tech import Unlock
from dustcore.util.events import ResearchCompleted

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


@pytest.fixture(scope="module")
def catalog():
    return load_catalog(CONFIG_DIR)


@pytest.fixture
def tech(catalog):
    return TechService(catalog)


class TestStartResearch:
    def test_start(self, tech):
        assert tech.start_research("basic_division") is None
        assert tech.state.current == "basic_division"

    def test_unknown(self, tech):
        assert "Unknown technology" in tech.start_research("time_travel")

    def test_prerequisites(self, tech):
        error = tech.start_research("workshop_basics")
        assert "basic_division" in error

    def test_prerequisites_come_from_catalog(self, catalog, monkeypatch):
        check = MagicMock(return_value=True)
        monkeypatch.setattr(catalog, "check_prerequisites", check)
        assert TechService(catalog).start_research("workshop_basics") is None
        check.assert_called_once_with("workshop_basics", set())

    def test_one_at_a_time(self, tech):
        tech.start_research("basic_division")
        assert "Already researching" in tech.start_research("scavenging")

    def test_already_researched(self, tech):
        tech.state.researched.add("basic_division")
        assert "already researched" in tech.start_research("basic_division")


class TestProgress:
    def test_partial(self, tech):
        tech.start_research("basic_division")
        result = tech.add_progress(30)
        assert not result.completed
        assert tech.state.progress == 30

    def test_complete(self, catalog):
        bus = MagicMock()
        tech = TechService(catalog, bus)
        tech.start_research("basic_division")
        tech.add_progress(30)
        result = tech.add_progress(15)
        assert result.completed
        assert result.tech_id == "basic_division"
        assert Unlock("feature", "job_assignment") in result.unlocks
        assert tech.is_researched("basic_division")
        assert tech.state.current is None
        bus.emit.assert_called_once_with(ResearchCompleted(tech_id="basic_division"))

    def test_nothing_current(self, tech):
        assert not tech.add_progress(100).completed

    def test_non_positive_points(self, tech):
        tech.start_research("basic_division")
        assert not tech.add_progress(0).completed
        assert tech.state.progress == 0

    def test_cancel_loses_progress(self, tech):
        assert not tech.cancel_research()
        tech.start_research("basic_division")
        tech.add_progress(20)
        assert tech.cancel_research()
        assert tech.state.progress == 0
        assert tech.state.current is None


class TestUnlocks:
    def test_recipes_unlocked(self, tech):
        tech.state.researched.update({"basic_division", "workshop_basics"})
        assert tech.unlocked("recipe") == {"craft_wood", "craft_metal"}
        assert "workshop" in tech.unlocked("building")

    def test_snapshot(self, catalog, tech):
        tech.state.researched.update({"scavenging", "basic_division"})
        tech.start_research("simple_storage")
        tech.add_progress(10)
        data = tech.snapshot()
        assert data["researched"] == ["basic_division", "scavenging"]

        fresh = TechService(catalog)
        fresh.restore(data)
        assert fresh.state.current == "simple_storage"
        assert fresh.state.progress == 10
        assert fresh.is_researched("scavenging")
