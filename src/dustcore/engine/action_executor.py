"""Action executor — validates and runs player actions against the AU budget.

Responsibilities:
- AU accounting for the current phase (``used_au``)
- Requirement checks: AU, phase, resources, buildings, technologies, workers
- Resource effects of the generic actions (seeded RNG)
- Delegated actions (build, research, workshop_craft, explore): the
  owning engine commits through the ``commit`` callable, AU is debited in
  the same call only when that commit succeeds

The executor never touches the ledger directly; it works through the
``consume_resources`` / ``add_resources`` callbacks it is handed.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Callable, Optional, Sequence

if TYPE_CHECKING:
    from dustcore.engine.catalog import Catalog
    from dustcore.util.events import EventBus

from dustcore.models.actions import (
    ActionContext,
    ActionDefinition,
    ActionResult,
    FailureCategory,
)
from dustcore.models.resources import ResourceChange, ResourceId

log = logging.getLogger(__name__)

ConsumeCallback = Callable[[Sequence[ResourceChange]], bool]
AddCallback = Callable[[Sequence[ResourceChange]], None]
CommitCallback = Callable[[], ActionResult]

_SCAVENGE_BONUS_MATERIALS = (ResourceId.CLOTH, ResourceId.PLASTIC, ResourceId.GLASS)

# Tolerance for AU comparisons (0.5 + 0.5 must still fit in 1.0).
_AU_EPSILON = 1e-9


class ActionExecutor:
    """Runs actions and tracks the AU spent in the current phase.

    Args:
        catalog: Action definitions.
        event_bus: Event bus (reserved for action notifications).
        rng: Random source for action yields.
    """

    def __init__(self, catalog: Catalog, event_bus: Optional[EventBus] = None,
                 rng: Optional[random.Random] = None) -> None:
        self._catalog = catalog
        self._events = event_bus
        self._rng = rng or random.Random()
        self._used_au = 0.0
        self.executed: list[str] = []  # action ids run this phase

    # -- AU budget -------------------------------------------------------

    @property
    def used_au(self) -> float:
        """AU spent by actions in the current phase."""
        return self._used_au

    def remaining_au(self, phase_au: float) -> float:
        return max(0.0, phase_au - self._used_au)

    def reset_phase_actions(self) -> None:
        """Forget the AU spent so far; called on every phase advance."""
        self._used_au = 0.0
        self.executed.clear()

    def restore_used_au(self, used_au: float) -> None:
        if used_au < 0:
            raise ValueError(f"Used AU must be >= 0, got {used_au}")
        self._used_au = float(used_au)

    # -- Validation ------------------------------------------------------

    def validate_action(self, action_id: str, context: ActionContext) -> Optional[ActionResult]:
        """Check whether *action_id* may run in *context*.

        Returns:
            None if the action may run, else a failed ``ActionResult``.
        """
        action = self._catalog.action(action_id)
        if action is None:
            return ActionResult.fail(FailureCategory.UNKNOWN_RECIPE_OR_TECH,
                                     f"Unknown action: {action_id}")

        remaining = context.phase_au - self._used_au
        if remaining + _AU_EPSILON < action.au_cost:
            return ActionResult.fail(
                FailureCategory.INSUFFICIENT_AU,
                f"Not enough AU (need {action.au_cost:g}, have {max(0.0, remaining):g})",
            )

        if action.allowed_phases is not None and context.phase not in action.allowed_phases:
            return ActionResult.fail(
                FailureCategory.PHASE_NOT_ALLOWED,
                f"{action.name or action_id} is not allowed during {context.phase.value}",
            )

        return self._check_requirements(action, context)

    def _check_requirements(self, action: ActionDefinition,
                            context: ActionContext) -> Optional[ActionResult]:
        req = action.requirements
        for rid, amount in req.resources.items():
            have = context.resources.get(rid, 0.0)
            if have < amount:
                return ActionResult.fail(
                    FailureCategory.INSUFFICIENT_RESOURCES,
                    f"Not enough {rid.value} (need {amount:g}, have {have:g})",
                )
        for bid, level in req.buildings.items():
            if context.buildings.get(bid, 0) < level:
                return ActionResult.fail(
                    FailureCategory.MISSING_BUILDING,
                    f"Requires {bid.value} level {level}",
                )
        for tech_id in req.technologies:
            if tech_id not in context.technologies:
                return ActionResult.fail(
                    FailureCategory.UNKNOWN_RECIPE_OR_TECH,
                    f"Requires technology {tech_id}",
                )
        if context.worker_count < req.min_workers:
            return ActionResult.fail(
                FailureCategory.INSUFFICIENT_RESOURCES,
                f"Requires at least {req.min_workers} workers",
            )
        return None

    # -- Execution -------------------------------------------------------

    def execute_action(
        self,
        action_id: str,
        context: ActionContext,
        consume_resources: ConsumeCallback,
        add_resources: AddCallback,
        commit: Optional[CommitCallback] = None,
    ) -> ActionResult:
        """Validate and run an action.

        Failures have no side effects.  For delegated actions *commit*
        performs the owning engine's state change; its result is returned
        and AU is only debited if it succeeded.

        Args:
            action_id: Action to run.
            context: Colony snapshot to validate against.
            consume_resources: Removes positive amounts, all or nothing.
            add_resources: Adds positive amounts.
            commit: Domain commit for delegated actions.
        """
        failure = self.validate_action(action_id, context)
        if failure is not None:
            log.debug("Action %s refused: %s", action_id, failure.message)
            return failure
        action = self._catalog.action(action_id)

        if commit is not None:
            result = commit()
            if not result.success:
                log.debug("Action %s commit failed: %s", action_id, result.message)
                return result
        else:
            result = self._apply_effects(action, consume_resources, add_resources)
            if not result.success:
                return result

        self._used_au += action.au_cost
        self.executed.append(action_id)
        result.au_spent = action.au_cost
        log.info("Action %s done (%.1f AU, %.1f used): %s",
                 action_id, action.au_cost, self._used_au, result.message)
        return result

    def _apply_effects(self, action: ActionDefinition, consume_resources: ConsumeCallback,
                       add_resources: AddCallback) -> ActionResult:
        changes = self.roll_effects(action.action_id)
        costs = [ResourceChange(c.resource_id, -c.amount) for c in changes if c.amount < 0]
        gains = [c for c in changes if c.amount > 0]

        if costs and not consume_resources(costs):
            missing = ", ".join(c.resource_id.value for c in costs)
            return ActionResult.fail(FailureCategory.INSUFFICIENT_RESOURCES,
                                     f"Not enough {missing}")
        if gains:
            add_resources(gains)

        if changes:
            summary = ", ".join(f"{c.amount:+g} {c.resource_id.value}" for c in changes)
        else:
            summary = action.description or "done"
        return ActionResult(success=True, message=f"{action.name or action.action_id}: {summary}",
                            resource_changes=changes)

    def roll_effects(self, action_id: str) -> list[ResourceChange]:
        """Signed resource changes of a generic action."""
        rng = self._rng
        changes: list[ResourceChange] = []
        if action_id == "quick_scavenge":
            changes.append(ResourceChange(ResourceId.SCRAP, float(rng.randint(2, 4))))
            if rng.random() < 0.1:
                changes.append(ResourceChange(rng.choice(_SCAVENGE_BONUS_MATERIALS), 1.0))
        elif action_id == "gather_wood":
            changes.append(ResourceChange(ResourceId.WOOD, float(rng.randint(1, 2))))
            if rng.random() < 0.2:
                changes.append(ResourceChange(ResourceId.SCRAP, 1.0))
        elif action_id == "quick_cook":
            changes.append(ResourceChange(ResourceId.RAW_MEAT, -1.0))
            changes.append(ResourceChange(ResourceId.FOOD, 1.0))
        elif action_id == "purify_small":
            changes.append(ResourceChange(ResourceId.DIRTY_WATER, -2.0))
            changes.append(ResourceChange(ResourceId.WATER, 1.0))
        elif action_id == "hunt":
            changes.append(ResourceChange(ResourceId.FOOD, float(rng.randint(2, 4))))
            if rng.random() < 0.3:
                changes.append(ResourceChange(ResourceId.RAW_MEAT, 1.0))
        return changes
