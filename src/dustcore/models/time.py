"""Time model — the day/phase clock.

A day is six phases.  Each phase grants a fixed number of Action Units.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Phase(Enum):
    """Phases of a day, in order."""

    DAWN = "dawn"
    MORNING = "morning"
    NOON = "noon"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    MIDNIGHT = "midnight"


PHASE_ORDER: tuple[Phase, ...] = (
    Phase.DAWN,
    Phase.MORNING,
    Phase.NOON,
    Phase.AFTERNOON,
    Phase.EVENING,
    Phase.MIDNIGHT,
)

PHASE_AU: dict[Phase, float] = {
    Phase.DAWN: 0.5,
    Phase.MORNING: 1.0,
    Phase.NOON: 0.5,
    Phase.AFTERNOON: 1.0,
    Phase.EVENING: 1.0,
    Phase.MIDNIGHT: 1.0,
}


def next_phase(phase: Phase) -> Phase:
    """Return the phase following *phase* (midnight wraps to dawn)."""
    idx = PHASE_ORDER.index(phase)
    return PHASE_ORDER[(idx + 1) % len(PHASE_ORDER)]


@dataclass
class TimeState:
    """Current position on the clock.

    Attributes:
        day: Day counter, starting at 1.
        phase: Current phase.
        phase_au: AU granted by the current phase (always ``PHASE_AU[phase]``).
    """

    day: int = 1
    phase: Phase = Phase.DAWN
    phase_au: float = PHASE_AU[Phase.DAWN]
