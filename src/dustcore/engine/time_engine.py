"""Time engine — the day/phase clock and per-phase AU issuance.

The clock only moves through ``advance_phase``.  AU is not banked: the
new phase always grants exactly its table value.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from dustcore.util.events import EventBus

from dustcore.models.time import PHASE_AU, Phase, TimeState, next_phase
from dustcore.util.events import PhaseAdvanced

log = logging.getLogger(__name__)


class TimeEngine:
    """Owns the :class:`TimeState`.

    Args:
        event_bus: Receives a ``PhaseAdvanced`` event on every advance.
    """

    def __init__(self, event_bus: Optional[EventBus] = None) -> None:
        self._events = event_bus
        self._state = TimeState()

    @property
    def state(self) -> TimeState:
        """Current clock position (do not mutate)."""
        return self._state

    @property
    def day(self) -> int:
        return self._state.day

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def get_current_phase_au(self) -> float:
        """AU granted by the current phase."""
        return self._state.phase_au

    def advance_phase(self) -> TimeState:
        """Move to the next phase; a new day starts when leaving midnight."""
        old = self._state.phase
        new = next_phase(old)
        new_day = old == Phase.MIDNIGHT
        self._state.phase = new
        self._state.phase_au = PHASE_AU[new]
        if new_day:
            self._state.day += 1
            log.info("Day %d begins", self._state.day)
        log.debug("Phase advanced: %s → %s (day %d, %.1f AU)",
                  old.value, new.value, self._state.day, self._state.phase_au)
        if self._events is not None:
            self._events.emit(PhaseAdvanced(
                day=self._state.day,
                phase=new.value,
                phase_au=self._state.phase_au,
                new_day=new_day,
            ))
        return self._state

    def reset(self) -> None:
        """Back to day 1, dawn."""
        self._state = TimeState()

    def restore(self, day: int, phase: Phase) -> None:
        """Set the clock from a snapshot.  ``phase_au`` is derived from *phase*."""
        if day < 1:
            raise ValueError(f"Day must be >= 1, got {day}")
        self._state = TimeState(day=day, phase=phase, phase_au=PHASE_AU[phase])
