"""Action models — definitions, validation context and results.

Action definitions are loaded from config/actions.yaml.  An ActionResult
never mutates state; the executor applies its changes through injected
callbacks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dustcore.models.buildings import BuildingId
from dustcore.models.resources import ResourceChange, ResourceId
from dustcore.models.time import Phase


class ActionType(Enum):
    """Short actions cost half an AU, standard actions a full AU."""

    SHORT = "short"
    STANDARD = "standard"


class FailureCategory(Enum):
    """Why a domain operation was refused."""

    INSUFFICIENT_AU = "insufficient_au"
    INSUFFICIENT_RESOURCES = "insufficient_resources"
    MISSING_BUILDING = "missing_building"
    MAX_LEVEL_REACHED = "max_level_reached"
    PHASE_NOT_ALLOWED = "phase_not_allowed"
    EXPEDITION_ALREADY_ACTIVE = "expedition_already_active"
    NODE_INACCESSIBLE = "node_inaccessible"
    UNKNOWN_RECIPE_OR_TECH = "unknown_recipe_or_tech"


DELEGATED_ACTIONS: frozenset[str] = frozenset({"build", "research", "workshop_craft", "explore"})
"""Actions whose resource effects belong to another engine."""


@dataclass(frozen=True)
class ActionRequirements:
    """Prerequisites of an action.

    Attributes:
        resources: Minimum stock per resource.
        buildings: Minimum level per building.
        technologies: Technologies that must be researched.
        min_workers: Minimum colony size.
    """

    resources: dict[ResourceId, float] = field(default_factory=dict)
    buildings: dict[BuildingId, int] = field(default_factory=dict)
    technologies: tuple[str, ...] = ()
    min_workers: int = 0


@dataclass(frozen=True)
class ActionDefinition:
    """Static definition of a player action.

    Attributes:
        action_id: Action identifier.
        name: Display name.
        action_type: Short or standard.
        au_cost: AU debited on success.
        requirements: Prerequisites checked before execution.
        allowed_phases: Phases the action may run in (None = all).
        description: Free text.
    """

    action_id: str
    name: str = ""
    action_type: ActionType = ActionType.STANDARD
    au_cost: float = 1.0
    requirements: ActionRequirements = field(default_factory=ActionRequirements)
    allowed_phases: Optional[frozenset[Phase]] = None
    description: str = ""

    @property
    def delegated(self) -> bool:
        return self.action_id in DELEGATED_ACTIONS


@dataclass
class ActionContext:
    """Snapshot of the colony an action is validated against.

    Attributes:
        phase: Current phase.
        phase_au: AU granted by the current phase.
        resources: Current amount per resource.
        buildings: Current level per building.
        technologies: Researched technology ids.
        worker_count: Colony size.
    """

    phase: Phase
    phase_au: float
    resources: dict[ResourceId, float] = field(default_factory=dict)
    buildings: dict[BuildingId, int] = field(default_factory=dict)
    technologies: set[str] = field(default_factory=set)
    worker_count: int = 0


@dataclass
class ActionResult:
    """Outcome of an action.

    Attributes:
        success: Whether the action ran.
        message: Human readable outcome or failure reason.
        category: Failure category (None on success).
        resource_changes: Signed resource deltas the action produced.
        au_spent: AU debited by the action.
    """

    success: bool
    message: str = ""
    category: Optional[FailureCategory] = None
    resource_changes: list[ResourceChange] = field(default_factory=list)
    au_spent: float = 0.0

    @classmethod
    def fail(cls, category: FailureCategory, message: str) -> ActionResult:
        return cls(success=False, message=message, category=category)
