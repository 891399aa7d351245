"""State save — serializes a game session snapshot to YAML.

The snapshot produced by ``GameSession.collect_state()`` is plain data
(dicts, lists, strings, numbers) and is written as-is under a
``session`` key, next to a ``meta`` block.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

# Default path for the state file (relative to working directory)
DEFAULT_STATE_PATH = "state.yaml"


# ===================================================================
# Public API
# ===================================================================


def save_state(session_state: dict[str, Any], path: str | Path = DEFAULT_STATE_PATH) -> None:
    """Write a session snapshot to a YAML file.

    The file is written to a temporary sibling first and then moved
    into place, so an interrupted save never leaves a truncated file.

    Args:
        session_state: Output of ``GameSession.collect_state()``.
        path: Output file path.
    """
    state: dict[str, Any] = {
        "meta": _serialize_meta(session_state),
        "session": session_state,
    }

    out = Path(path)
    tmp = out.with_suffix(".yaml.tmp")
    try:
        tmp.write_text(
            yaml.safe_dump(state, default_flow_style=False, allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
        tmp.replace(out)
        log.info("Game state saved to %s (day %s, %s)", path,
                 state["meta"]["day"], state["meta"]["phase"])
    except Exception:
        log.exception("Failed to save game state to %s", path)
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


# ===================================================================
# Meta
# ===================================================================

def _serialize_meta(session_state: dict[str, Any]) -> dict[str, Any]:
    clock = session_state.get("time", {})
    return {
        "version": session_state.get("version", 1),
        "saved_at": time.strftime("%Y-%m-%dT%H:%M:%S"),
        "saved_at_unix": time.time(),
        "day": clock.get("day"),
        "phase": clock.get("phase"),
    }
