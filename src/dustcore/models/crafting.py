"""Crafting models — recipes and workshop tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dustcore.models.actions import FailureCategory
from dustcore.models.resources import ResourceChange, ResourceId


class TaskStatus(Enum):
    """Lifecycle of a crafting task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Recipe:
    """A workshop recipe.

    Attributes:
        recipe_id: Recipe identifier.
        name: Display name.
        output: Resource and amount produced per craft.
        inputs: Materials consumed per craft.
        work_required: Work consumed per craft.
    """

    recipe_id: str
    output: ResourceChange
    inputs: tuple[ResourceChange, ...] = ()
    work_required: float = 0.0
    name: str = ""


@dataclass
class CraftingTask:
    """A queued craft driven by engineer Work.

    Attributes:
        task_id: Unique task ID.
        recipe_id: Recipe being crafted.
        quantity: Number of crafts.
        work_required: ``recipe.work_required * quantity``.
        work_progress: Work applied so far.
        status: Current status.
    """

    task_id: int
    recipe_id: str
    quantity: int
    work_required: float
    work_progress: float = 0.0
    status: TaskStatus = TaskStatus.PENDING

    @property
    def remaining_work(self) -> float:
        return max(0.0, self.work_required - self.work_progress)


@dataclass(frozen=True)
class CraftingProgress:
    """Result of feeding Work into the current task."""

    work_used: float
    completed: bool
    task: Optional[CraftingTask]


@dataclass
class CraftCheck:
    """Whether a craft can run right now.

    Attributes:
        can_craft: True when every precondition holds.
        reason: Failure reason (empty on success).
        missing: Materials short, as ``(resource, required, available)``.
        category: Failure category (None on success).
    """

    can_craft: bool
    reason: str = ""
    missing: list[tuple[ResourceId, float, float]] = field(default_factory=list)
    category: Optional[FailureCategory] = None


@dataclass
class CraftResult:
    """Outcome of an immediate craft."""

    success: bool
    output_resource_id: Optional[ResourceId] = None
    output_amount: float = 0.0
    work_consumed: float = 0.0
    reason: str = ""
    category: Optional[FailureCategory] = None


@dataclass(frozen=True)
class RecipeCost:
    """Full cost of crafting a recipe *quantity* times."""

    materials: tuple[ResourceChange, ...]
    work_required: float
    total_vu: float
