"""Tests for game_config_loader."""

from pathlib import Path

import pytest

from dustcore.loaders.game_config_loader import GameConfig, load_game_config

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class TestLoadGameConfig:
    def test_real_config(self):
        config = load_game_config(CONFIG_DIR / "game.yaml")
        assert config.difficulty == "normal"
        assert config.scenario == "lone_survivor"
        assert config.food_per_pop_per_au == pytest.approx(1.2)
        assert config.seed is None
        assert config.state_file == "state.yaml"

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_game_config(tmp_path / "nope.yaml")
        assert config == GameConfig()

    def test_partial_file(self, tmp_path):
        path = tmp_path / "game.yaml"
        path.write_text("seed: 7\nscenario: scavenger\nunknown_key: 1\n")
        config = load_game_config(path)
        assert config.seed == 7
        assert config.scenario == "scavenger"
        assert config.water_per_pop_per_au == 1.0

    def test_difficulty_override(self, tmp_path):
        path = tmp_path / "game.yaml"
        path.write_text("difficulties:\n  brutal: {consumption_multiplier: 2}\n")
        config = load_game_config(path)
        assert config.modifiers("brutal").consumption_multiplier == 2.0
        assert config.modifiers("easy").starting_resource_multiplier == 1.5


class TestModifiers:
    @pytest.mark.parametrize("difficulty,consumption,starting", [
        ("easy", 0.8, 1.5), ("normal", 1.0, 1.0), ("hard", 1.2, 0.7),
    ])
    def test_defaults(self, difficulty, consumption, starting):
        mods = GameConfig().modifiers(difficulty)
        assert mods.consumption_multiplier == consumption
        assert mods.starting_resource_multiplier == starting

    def test_unknown_falls_back_to_normal(self):
        assert GameConfig().modifiers("nightmare").consumption_multiplier == 1.0

    def test_configured_difficulty(self):
        assert GameConfig(difficulty="hard").modifiers().consumption_multiplier == 1.2
