"""Technology models — static research definitions and research state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Unlock:
    """Content made available by a technology (``kind`` = building, recipe, job, ...)."""

    kind: str
    target: str


@dataclass(frozen=True)
class Technology:
    """Static definition of a technology.

    Attributes:
        tech_id: Technology identifier.
        name: Display name.
        tier: Tree tier label (T1..T4).
        branch: Tree branch.
        rp_cost: Research points needed.
        prerequisites: Technologies that must be researched first.
        unlocks: Content the technology unlocks.
    """

    tech_id: str
    name: str = ""
    tier: str = "T1"
    branch: str = ""
    rp_cost: float = 0.0
    prerequisites: tuple[str, ...] = ()
    unlocks: tuple[Unlock, ...] = ()


@dataclass
class ResearchState:
    """Research progress of the colony.

    Attributes:
        researched: Completed technology ids.
        current: Technology under research, if any.
        progress: Research points applied to ``current``.
    """

    researched: set[str] = field(default_factory=set)
    current: Optional[str] = None
    progress: float = 0.0


@dataclass(frozen=True)
class ResearchProgress:
    """Result of adding research points."""

    completed: bool
    tech_id: Optional[str] = None
    unlocks: tuple[Unlock, ...] = ()
