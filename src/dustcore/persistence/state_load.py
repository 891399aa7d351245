"""State load — reads a game session snapshot back from YAML.

Only parsing happens here.  Validating the snapshot and applying it is
``GameSession.restore_state()``'s job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from dustcore.persistence.state_save import DEFAULT_STATE_PATH

log = logging.getLogger(__name__)


# ===================================================================
# Result container
# ===================================================================

@dataclass
class RestoredState:
    """Container for the data read from a YAML state file.

    Attributes:
        session: Snapshot to hand to ``GameSession.restore_state()``.
        meta: Metadata from the save file (version, save timestamp).
    """

    session: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)


# ===================================================================
# Public API
# ===================================================================


def load_state(path: str | Path = DEFAULT_STATE_PATH) -> Optional[RestoredState]:
    """Load a session snapshot from a YAML file.

    Returns None if the file does not exist or cannot be parsed.

    Args:
        path: Path to the YAML state file.

    Returns:
        A :class:`RestoredState`, or None.
    """
    state_file = Path(path)
    if not state_file.exists():
        log.info("No state file found at %s", path)
        return None

    try:
        raw = yaml.safe_load(state_file.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        log.exception("Failed to parse state file %s", path)
        return None

    if not isinstance(raw, dict) or not isinstance(raw.get("session"), dict):
        log.warning("State file %s has unexpected format (no session mapping)", path)
        return None

    result = RestoredState(session=raw["session"], meta=raw.get("meta") or {})
    log.info("Loaded state from %s (saved at %s, version %s)",
             path, result.meta.get("saved_at", "?"), result.meta.get("version", "?"))
    return result
