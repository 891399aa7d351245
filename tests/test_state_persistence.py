"""Tests for state_save and state_load round-trip persistence."""

from __future__ import annotations

import random
from pathlib import Path

import pytest
import yaml

from dustcore.engine.game_session import GameSession
from dustcore.loaders.catalog_loader import load_catalog
from dustcore.models.buildings import BuildingId
from dustcore.models.population import JobId
from dustcore.models.resources import ResourceId
from dustcore.models.time import Phase
from dustcore.persistence.state_load import RestoredState, load_state
from dustcore.persistence.state_save import save_state

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

@pytest.fixture(scope="module")
def catalog():
    return load_catalog(CONFIG_DIR)


def _make_session(catalog) -> GameSession:
    """A session with something in every engine."""
    session = GameSession(catalog, rng=random.Random(5))
    session.new_game("normal", "shelter_remnant")
    session.time.restore(2, Phase.MORNING)
    session.buildings.set_level(BuildingId.WORKSHOP, 1)
    session.buildings.set_level(BuildingId.SHELTER, 1)
    session.ledger.add_resource(ResourceId.RUBBER, 3)
    session.start_crafting_task("craft_seal_ring", 2)
    session.assign_job("w1", JobId.ENGINEER)
    session.tech.start_research("basic_division")
    session.tech.add_progress(12.5)
    session.actions.reset_phase_actions()
    session.start_expedition("dried_riverbed", ["w2"])
    session.crafting.add_work(7)
    return session


# -------------------------------------------------------------------
# Tests
# -------------------------------------------------------------------

class TestSaveLoad:
    def test_round_trip(self, catalog, tmp_path):
        session = _make_session(catalog)
        path = tmp_path / "state.yaml"
        save_state(session.collect_state(), path)

        restored = load_state(path)
        assert isinstance(restored, RestoredState)
        assert restored.meta["day"] == 2
        assert restored.meta["phase"] == "morning"

        other = GameSession(catalog)
        assert other.restore_state(restored.session)
        assert other.collect_state() == session.collect_state()
        assert other.population.get("w2").on_expedition
        assert other.crafting.current_task.recipe_id == "craft_seal_ring"
        assert other.tech.state.progress == 12.5

    def test_file_is_plain_yaml(self, catalog, tmp_path):
        path = tmp_path / "state.yaml"
        save_state(_make_session(catalog).collect_state(), path)
        raw = yaml.safe_load(path.read_text())
        assert set(raw) == {"meta", "session"}
        assert raw["session"]["buildings"]["levels"] == {"shelter": 1, "workshop": 1}

    def test_no_tmp_file_left(self, catalog, tmp_path):
        path = tmp_path / "state.yaml"
        save_state(_make_session(catalog).collect_state(), path)
        assert not (tmp_path / "state.yaml.tmp").exists()

    def test_overwrite(self, catalog, tmp_path):
        path = tmp_path / "state.yaml"
        session = _make_session(catalog)
        save_state(session.collect_state(), path)
        session.process_phase_end()
        save_state(session.collect_state(), path)
        assert load_state(path).meta["phase"] == "noon"

    def test_unwritable_target_raises(self, catalog, tmp_path):
        path = tmp_path / "missing_dir" / "state.yaml"
        with pytest.raises(OSError):
            save_state(_make_session(catalog).collect_state(), path)


class TestLoadErrors:
    def test_missing_file(self, tmp_path):
        assert load_state(tmp_path / "none.yaml") is None

    def test_broken_yaml(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("session: [unclosed\n")
        assert load_state(path) is None

    def test_no_session_mapping(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("meta: {version: 1}\n")
        assert load_state(path) is None

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("- just\n- a list\n")
        assert load_state(path) is None
