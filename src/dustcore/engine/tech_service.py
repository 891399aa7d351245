"""Tech service — research state and progress.

Technologies are researched one at a time.  Research points come from
researchers each phase; when the current technology's cost is reached
it is marked researched and its unlocks become available.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from dustcore.engine.catalog import Catalog
    from dustcore.util.events import EventBus

from dustcore.models.tech import ResearchProgress, ResearchState
from dustcore.util.events import ResearchCompleted

log = logging.getLogger(__name__)


class TechService:
    """Owns the colony's :class:`ResearchState`.

    Args:
        catalog: Technology definitions.
        event_bus: Receives ``ResearchCompleted`` events.
    """

    def __init__(self, catalog: Catalog, event_bus: Optional[EventBus] = None) -> None:
        self._catalog = catalog
        self._events = event_bus
        self.state = ResearchState()

    def reset(self) -> None:
        self.state = ResearchState()

    @property
    def researched(self) -> set[str]:
        return self.state.researched

    def is_researched(self, tech_id: str) -> bool:
        return tech_id in self.state.researched

    def unlocked(self, kind: str) -> set[str]:
        """Ids of *kind* unlocked by everything researched so far."""
        return self._catalog.unlocked(kind, self.state.researched)

    def start_research(self, tech_id: str) -> Optional[str]:
        """Begin researching *tech_id*.

        Returns:
            None on success, or an error message.
        """
        tech = self._catalog.technology(tech_id)
        if tech is None:
            return f"Unknown technology: {tech_id}"
        if tech_id in self.state.researched:
            return f"{tech.name or tech_id} is already researched"
        if self.state.current is not None:
            return f"Already researching {self.state.current}"
        if not self._catalog.check_prerequisites(tech_id, self.state.researched):
            missing = [req for req in tech.prerequisites if req not in self.state.researched]
            return f"Missing prerequisites: {', '.join(missing)}"

        self.state.current = tech_id
        self.state.progress = 0.0
        log.info("Research started: %s (%.0f RP)", tech_id, tech.rp_cost)
        return None

    def add_progress(self, points: float) -> ResearchProgress:
        """Apply research points to the current technology."""
        current = self.state.current
        if current is None or points <= 0:
            return ResearchProgress(completed=False)
        tech = self._catalog.technology(current)
        if tech is None:
            log.error("Current research %s is not in the catalog", current)
            return ResearchProgress(completed=False)

        self.state.progress += points
        if self.state.progress < tech.rp_cost:
            return ResearchProgress(completed=False, tech_id=current)

        self.state.researched.add(current)
        self.state.current = None
        self.state.progress = 0.0
        log.info("Research completed: %s", current)
        if self._events is not None:
            self._events.emit(ResearchCompleted(tech_id=current))
        return ResearchProgress(completed=True, tech_id=current, unlocks=tech.unlocks)

    def cancel_research(self) -> bool:
        """Abandon the current research; its progress is lost."""
        if self.state.current is None:
            return False
        log.info("Research cancelled: %s", self.state.current)
        self.state.current = None
        self.state.progress = 0.0
        return True

    # -- Snapshot --------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "researched": sorted(self.state.researched),
            "current": self.state.current,
            "progress": self.state.progress,
        }

    def restore(self, data: dict[str, Any]) -> None:
        self.state = ResearchState(
            researched=set(data.get("researched", []) or []),
            current=data.get("current"),
            progress=float(data.get("progress", 0.0)),
        )
