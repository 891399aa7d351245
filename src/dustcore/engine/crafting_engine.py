"""Crafting engine — workshop recipes, the Work pool and queued tasks.

Engineers produce Work each phase.  Work either accumulates in a pool
(spent by immediate crafts) or drives the single queued crafting task.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from dustcore.engine.catalog import Catalog
    from dustcore.util.events import EventBus

from dustcore.engine.production import workshop_efficiency_multiplier
from dustcore.models.actions import FailureCategory
from dustcore.models.crafting import (
    CraftCheck,
    CraftingProgress,
    CraftingTask,
    CraftResult,
    Recipe,
    RecipeCost,
    TaskStatus,
)
from dustcore.models.resources import ResourceChange, ResourceId
from dustcore.util.constants import WORK_PER_ENGINEER_PER_AU, WORK_VU
from dustcore.util.events import CraftingTaskCompleted

log = logging.getLogger(__name__)


def work_from_engineers(engineers: int | Sequence[float], phase_au: float) -> float:
    """Work produced in one phase: ``n × 60 × phase_au``.

    *engineers* is either a head count or the per-engineer efficiencies,
    in which case ``n`` is their sum.  Workshop level does not matter.
    """
    if isinstance(engineers, int):
        effective = float(max(0, engineers))
    else:
        effective = float(sum(engineers))
    return effective * WORK_PER_ENGINEER_PER_AU * phase_au


def recipe_materials(recipe: Recipe, quantity: int) -> list[ResourceChange]:
    """Inputs of *quantity* crafts of *recipe*."""
    return [ResourceChange(i.resource_id, i.amount * quantity) for i in recipe.inputs]


class CraftingEngine:
    """Owns the Work pool and the current crafting task.

    Args:
        catalog: Recipe database.
        event_bus: Receives ``CraftingTaskCompleted`` events.
    """

    def __init__(self, catalog: Catalog, event_bus: Optional[EventBus] = None) -> None:
        self._catalog = catalog
        self._events = event_bus
        self.accumulated_work = 0.0
        self.current_task: Optional[CraftingTask] = None
        self.history: list[CraftingTask] = []
        self._next_task_id = 1

    def reset(self) -> None:
        self.accumulated_work = 0.0
        self.current_task = None
        self.history = []
        self._next_task_id = 1

    # -- Work pool -------------------------------------------------------

    def add_work(self, points: float) -> None:
        if points < 0:
            raise ValueError(f"Cannot add negative Work: {points}")
        self.accumulated_work += points

    def consume_work(self, points: float) -> float:
        """Take up to *points* from the pool.  Returns what was taken."""
        consumed = min(max(0.0, points), self.accumulated_work)
        self.accumulated_work -= consumed
        return consumed

    # -- Tasks -----------------------------------------------------------

    def create_task(self, recipe_id: str, quantity: int) -> Optional[CraftingTask]:
        """Queue a crafting task.

        Returns None for an unknown recipe, a non-positive quantity, or
        while another task is in progress.  A pending task is replaced.
        """
        recipe = self._catalog.recipe(recipe_id)
        if recipe is None or quantity <= 0:
            return None
        if self.current_task is not None and self.current_task.status == TaskStatus.IN_PROGRESS:
            return None

        task = CraftingTask(
            task_id=self._next_task_id,
            recipe_id=recipe_id,
            quantity=quantity,
            work_required=recipe.work_required * quantity,
        )
        self._next_task_id += 1
        self.current_task = task
        log.info("Crafting task %d queued: %dx %s (%.0f Work)",
                 task.task_id, quantity, recipe_id, task.work_required)
        return task

    def cancel_task(self) -> bool:
        """Drop the current task.  Returns False if there is none."""
        task = self.current_task
        if task is None:
            return False
        task.status = TaskStatus.CANCELLED
        self.history.append(task)
        self.current_task = None
        log.info("Crafting task %d cancelled", task.task_id)
        return True

    def advance_crafting_progress(self, work_available: float) -> CraftingProgress:
        """Apply up to *work_available* Work to the current task.

        A completed task moves to ``history`` and a
        ``CraftingTaskCompleted`` event is emitted.
        """
        task = self.current_task
        if task is None or task.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED):
            return CraftingProgress(work_used=0.0, completed=False, task=None)

        work_used = min(max(0.0, work_available), task.remaining_work)
        task.work_progress += work_used
        completed = task.work_progress >= task.work_required
        if completed:
            task.status = TaskStatus.COMPLETED
            self.history.append(task)
            self.current_task = None
            log.info("Crafting task %d completed: %dx %s",
                     task.task_id, task.quantity, task.recipe_id)
            if self._events is not None:
                self._events.emit(CraftingTaskCompleted(
                    task_id=task.task_id, recipe_id=task.recipe_id, quantity=task.quantity,
                ))
        else:
            task.status = TaskStatus.IN_PROGRESS
        return CraftingProgress(work_used=work_used, completed=completed, task=task)

    # -- Immediate crafting ----------------------------------------------

    def can_craft(self, recipe_id: str, quantity: int,
                  resources: Mapping[ResourceId, float], workshop_level: int) -> CraftCheck:
        """Check workshop, recipe, quantity, materials and Work, in that order."""
        if workshop_level <= 0:
            return CraftCheck(False, "A workshop is required",
                              category=FailureCategory.MISSING_BUILDING)
        recipe = self._catalog.recipe(recipe_id)
        if recipe is None:
            return CraftCheck(False, f"Unknown recipe: {recipe_id}",
                              category=FailureCategory.UNKNOWN_RECIPE_OR_TECH)
        if quantity <= 0:
            return CraftCheck(False, "Quantity must be greater than 0",
                              category=FailureCategory.UNKNOWN_RECIPE_OR_TECH)

        missing = [
            (m.resource_id, m.amount, resources.get(m.resource_id, 0.0))
            for m in recipe_materials(recipe, quantity)
            if resources.get(m.resource_id, 0.0) < m.amount
        ]
        if missing:
            detail = ", ".join(f"{rid.value}: need {req:g}, have {have:g}"
                               for rid, req, have in missing)
            return CraftCheck(False, f"Not enough materials: {detail}", missing,
                              FailureCategory.INSUFFICIENT_RESOURCES)

        work_required = recipe.work_required * quantity
        if self.accumulated_work < work_required:
            return CraftCheck(False, f"Not enough Work: need {work_required:g}, "
                                     f"have {self.accumulated_work:.1f}",
                              category=FailureCategory.INSUFFICIENT_RESOURCES)
        return CraftCheck(True)

    def craft_immediate(
        self,
        recipe_id: str,
        quantity: int,
        resources: Mapping[ResourceId, float],
        workshop_level: int,
        consume_resources: Callable[[Sequence[ResourceChange]], bool],
        add_resource: Callable[[ResourceId, float], float],
    ) -> CraftResult:
        """Craft right now from stock and the Work pool.

        Output is ``amount × quantity × workshop efficiency``.  Nothing
        changes unless every check and the material consumption succeed.
        """
        check = self.can_craft(recipe_id, quantity, resources, workshop_level)
        if not check.can_craft:
            return CraftResult(success=False, reason=check.reason, category=check.category)
        recipe = self._catalog.recipe(recipe_id)

        if not consume_resources(recipe_materials(recipe, quantity)):
            return CraftResult(success=False, reason="Material consumption failed",
                               category=FailureCategory.INSUFFICIENT_RESOURCES)

        work_consumed = self.consume_work(recipe.work_required * quantity)
        amount = recipe.output.amount * quantity * workshop_efficiency_multiplier(workshop_level)
        added = add_resource(recipe.output.resource_id, amount)
        log.info("Crafted %dx %s -> %.1f %s", quantity, recipe_id, added,
                 recipe.output.resource_id.value)
        return CraftResult(
            success=True,
            output_resource_id=recipe.output.resource_id,
            output_amount=added,
            work_consumed=work_consumed,
        )

    # -- Queries ---------------------------------------------------------

    def get_recipe_cost(self, recipe_id: str, quantity: int) -> Optional[RecipeCost]:
        """Materials, Work and total VU of *quantity* crafts."""
        recipe = self._catalog.recipe(recipe_id)
        if recipe is None:
            return None
        materials = recipe_materials(recipe, quantity)
        work = recipe.work_required * quantity
        total_vu = sum(self._catalog.resource_vu(m.resource_id) * m.amount for m in materials)
        return RecipeCost(materials=tuple(materials), work_required=work,
                          total_vu=total_vu + work * WORK_VU)

    def get_available_recipes(self, workshop_level: int,
                              unlocked: Optional[set[str]] = None) -> list[Recipe]:
        """Recipes craftable with a workshop of *workshop_level*.

        With *unlocked* given, technology-gated recipes must be in it.
        """
        if workshop_level <= 0:
            return []
        recipes = list(self._catalog.recipes.values())
        if unlocked is None:
            return recipes
        gated = self._catalog.tech_gated_recipes()
        return [r for r in recipes if r.recipe_id not in gated or r.recipe_id in unlocked]

    # -- Snapshot --------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        task = self.current_task
        return {
            "accumulated_work": self.accumulated_work,
            "next_task_id": self._next_task_id,
            "current_task": None if task is None else _serialize_task(task),
            "history": [_serialize_task(t) for t in self.history],
        }

    def restore(self, data: dict[str, Any]) -> None:
        self.accumulated_work = float(data.get("accumulated_work", 0.0))
        self._next_task_id = int(data.get("next_task_id", 1))
        raw = data.get("current_task")
        self.current_task = None if raw is None else _deserialize_task(raw)
        self.history = [_deserialize_task(r) for r in data.get("history") or []]


def _serialize_task(task: CraftingTask) -> dict[str, Any]:
    return {
        "task_id": task.task_id,
        "recipe_id": task.recipe_id,
        "quantity": task.quantity,
        "work_required": task.work_required,
        "work_progress": task.work_progress,
        "status": task.status.value,
    }


def _deserialize_task(raw: dict[str, Any]) -> CraftingTask:
    return CraftingTask(
        task_id=int(raw["task_id"]),
        recipe_id=raw["recipe_id"],
        quantity=int(raw["quantity"]),
        work_required=float(raw["work_required"]),
        work_progress=float(raw.get("work_progress", 0.0)),
        status=TaskStatus(raw.get("status", "pending")),
    )
