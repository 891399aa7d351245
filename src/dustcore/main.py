"""Headless simulation entry point.

Loads the catalog and game config, restores the previous session from
the state file (or starts a new game), runs a number of phases with a
simple idle policy and saves the result.

Usage:
    python -m dustcore.main [--phases N] [--state_file PATH] [--config_dir DIR] [--seed N]
    # or via entry point:
    dustcore
"""

from __future__ import annotations

import logging
import os
import random
import sys
from typing import Optional

from dustcore.engine.game_session import GameSession
from dustcore.loaders.catalog_loader import load_catalog
from dustcore.loaders.game_config_loader import load_game_config
from dustcore.models.resources import ResourceId
from dustcore.persistence.state_load import load_state
from dustcore.persistence.state_save import save_state

log = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "config"
DEFAULT_PHASES = 6

# Generic actions the idle policy cycles through while AU remains.
IDLE_ACTIONS = ("quick_scavenge", "gather_wood", "purify_small", "quick_cook")


def _arg(name: str, default: Optional[str] = None) -> Optional[str]:
    """Value following ``--name`` on the command line, or *default*."""
    flag = f"--{name}"
    if flag not in sys.argv:
        return default
    idx = sys.argv.index(flag)
    if idx + 1 >= len(sys.argv):
        print(f"Error: {flag} requires an argument", file=sys.stderr)
        sys.exit(1)
    return sys.argv[idx + 1]


def create_session(config_dir: str, state_file: Optional[str] = None,
                   seed: Optional[int] = None) -> GameSession:
    """Build a session from *config_dir* and restore *state_file* if present.

    *state_file* defaults to ``state_file`` in ``game.yaml``.
    """
    game_config = load_game_config(os.path.join(config_dir, "game.yaml"))
    if state_file is not None:
        game_config.state_file = state_file
    if seed is not None:
        game_config.seed = seed
    catalog = load_catalog(config_dir)
    session = GameSession(catalog, game_config, rng=random.Random(game_config.seed))

    saved = load_state(game_config.state_file)
    if saved is not None and session.restore_state(saved.session):
        log.info("Continuing saved game (day %d, %s)", session.time.day, session.time.phase.value)
    else:
        session.new_game()
    return session


def spend_phase(session: GameSession) -> None:
    """Spend the phase's AU on the first idle action that succeeds."""
    while session.remaining_au() > 0:
        for action_id in IDLE_ACTIONS:
            if session.execute_action(action_id).success:
                break
        else:
            return


def run(phases: int, config_dir: str, state_file: Optional[str] = None,
        seed: Optional[int] = None) -> GameSession:
    session = create_session(config_dir, state_file, seed)
    for _ in range(phases):
        if session.game_over:
            log.warning("Game over: nobody is left (day %d)", session.time.day)
            break
        spend_phase(session)
        report = session.process_phase_end()
        log.info("Day %d %-9s water %.1f food %.1f scrap %.1f wood %.1f%s",
                 report.day, report.phase.value,
                 session.ledger.get_amount(ResourceId.WATER),
                 session.ledger.get_amount(ResourceId.FOOD),
                 session.ledger.get_amount(ResourceId.SCRAP),
                 session.ledger.get_amount(ResourceId.WOOD),
                 " (shortage)" if report.consumption.has_shortage else "")
    save_state(session.collect_state(), session.config.state_file)
    return session


def main() -> None:
    """Entry point for the headless simulation.

    Supports command-line arguments:
        --phases <n>         Phases to simulate (default: 6)
        --state_file <path>  State file to restore from and save to (default: from game.yaml)
        --config_dir <dir>   Configuration directory (default: config)
        --seed <n>           Random seed (overrides game.yaml)
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        phases = int(_arg("phases", str(DEFAULT_PHASES)))
        seed_arg = _arg("seed")
        seed = int(seed_arg) if seed_arg is not None else None
    except ValueError:
        print("Error: --phases and --seed must be integers", file=sys.stderr)
        sys.exit(1)
    config_dir = _arg("config_dir", DEFAULT_CONFIG_DIR)
    state_file = _arg("state_file")

    log.info("=== dustcore simulation: %d phases ===", phases)
    run(phases, config_dir, state_file, seed)


if __name__ == "__main__":
    main()
