"""Game configuration — loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then passed (or injected) wherever constants are needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from dustcore.util import constants

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass
class DifficultyModifiers:
    """Multipliers applied by a difficulty level."""
    consumption_multiplier: float = 1.0
    starting_resource_multiplier: float = 1.0


def _default_difficulties() -> Dict[str, DifficultyModifiers]:
    return {
        "easy": DifficultyModifiers(0.8, 1.5),
        "normal": DifficultyModifiers(1.0, 1.0),
        "hard": DifficultyModifiers(1.2, 0.7),
    }


@dataclass
class GameConfig:
    """All tunable gameplay constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so the simulation can run even without the file.
    """

    # -- Consumption -------------------------------------------------
    water_per_pop_per_au: float = constants.WATER_PER_POP_PER_AU
    food_per_pop_per_au: float = constants.FOOD_PER_POP_PER_AU

    # -- New game ----------------------------------------------------
    difficulty: str = "normal"
    scenario: str = "lone_survivor"
    base_population_cap: int = constants.BASE_POPULATION_CAP
    worker_names: List[str] = field(default_factory=lambda: [
        "Survivor", "Wanderer", "Scavenger", "Refugee",
    ])
    difficulties: Dict[str, DifficultyModifiers] = field(default_factory=_default_difficulties)

    # -- Exploration -------------------------------------------------
    exploration_water_per_explorer_per_au: float = constants.EXPLORATION_WATER_PER_EXPLORER_PER_AU
    exploration_food_per_explorer_per_au: float = constants.EXPLORATION_FOOD_PER_EXPLORER_PER_AU

    # -- Randomness --------------------------------------------------
    seed: Optional[int] = None

    # -- Persistence -------------------------------------------------
    state_file: str = "state.yaml"

    def modifiers(self, difficulty: str | None = None) -> DifficultyModifiers:
        """Return the modifiers of *difficulty* (default: the configured one)."""
        key = difficulty or self.difficulty
        mods = self.difficulties.get(key)
        if mods is None:
            log.warning("Unknown difficulty %r — using normal", key)
            return self.difficulties.get("normal", DifficultyModifiers())
        return mods


def load_game_config(path: str | Path = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s — using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    # Handle nested difficulties
    diff_raw = raw.pop("difficulties", None)
    difficulties = _default_difficulties()
    if isinstance(diff_raw, dict):
        for name, mods in diff_raw.items():
            if isinstance(mods, dict):
                difficulties[name] = DifficultyModifiers(**{
                    k: float(v) for k, v in mods.items()
                    if k in DifficultyModifiers.__dataclass_fields__
                })

    return GameConfig(difficulties=difficulties, **{
        k: v for k, v in raw.items()
        if k in GameConfig.__dataclass_fields__
    })
