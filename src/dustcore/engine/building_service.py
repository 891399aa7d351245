"""Building service — building levels and their colony-wide effects.

Responsibilities:
- Construction / upgrade checks and commits (costs per target level,
  unlocking technology, max level)
- Bonfire intensity, fuel burn and wanderer attraction
- Population cap and storage caps derived from shelter / warehouse levels

Costs are paid through the injected ``consume_resources`` callback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from dustcore.engine.catalog import Catalog
    from dustcore.util.events import EventBus

from dustcore.engine.production import (
    building_efficiency_multiplier,
    max_worker_slots,
    workshop_efficiency_multiplier,
)
from dustcore.models.actions import FailureCategory
from dustcore.models.buildings import BonfireIntensity, BuildingId
from dustcore.models.resources import ResourceChange, ResourceId
from dustcore.util.constants import BASE_POPULATION_CAP, SHELTER_CAP_PER_LEVEL, WANDERER_BASE_RATE
from dustcore.util.events import BuildingLevelChanged

log = logging.getLogger(__name__)


@dataclass
class BuildCheck:
    """Whether the next level of a building can be built.

    Attributes:
        can_build: True when every precondition holds.
        reason: Failure reason (empty on success).
        category: Failure category (None on success).
        cost: Cost of the next level, when known.
    """

    can_build: bool
    reason: str = ""
    category: Optional[FailureCategory] = None
    cost: list[ResourceChange] = field(default_factory=list)


def wanderer_rate(intensity: BonfireIntensity, population_cap: int, population: int) -> float:
    """Expected wanderers per day: ``0.2 × coefficient × free slots``."""
    free = max(0, population_cap - population)
    return WANDERER_BASE_RATE * intensity.coefficient * free


def bonfire_fuel(intensity: BonfireIntensity, phase_au: float) -> float:
    """Wood burned by the bonfire in one phase."""
    return intensity.fuel_per_au * phase_au


class BuildingService:
    """Owns building levels and the bonfire setting.

    Args:
        catalog: Building definitions and resource base caps.
        event_bus: Receives ``BuildingLevelChanged`` events.
        base_population_cap: Population cap without shelter.
    """

    def __init__(self, catalog: Catalog, event_bus: Optional[EventBus] = None,
                 base_population_cap: int = BASE_POPULATION_CAP) -> None:
        self._catalog = catalog
        self._events = event_bus
        self._base_population_cap = base_population_cap
        self.levels: dict[BuildingId, int] = {}
        self.bonfire_intensity = BonfireIntensity.OFF
        self.reset()

    def reset(self) -> None:
        self.levels = {bid: 0 for bid in BuildingId}
        self.bonfire_intensity = BonfireIntensity.OFF

    # -- Queries ---------------------------------------------------------

    def level(self, building_id: BuildingId) -> int:
        return self.levels.get(building_id, 0)

    def is_built(self, building_id: BuildingId) -> bool:
        return self.level(building_id) > 0

    def efficiency(self, building_id: BuildingId) -> float:
        if building_id == BuildingId.WORKSHOP:
            return workshop_efficiency_multiplier(self.level(building_id))
        return building_efficiency_multiplier(self.level(building_id))

    def worker_slots(self, building_id: BuildingId) -> int:
        return max_worker_slots(building_id, self.level(building_id))

    # -- Construction ----------------------------------------------------

    def can_build_or_upgrade(self, building_id: BuildingId, resources: Mapping[ResourceId, float],
                             researched: set[str]) -> BuildCheck:
        """Check the next level of *building_id* against stock and research."""
        definition = self._catalog.building(building_id)
        if definition is None:
            return BuildCheck(False, f"Unknown building: {building_id.value}",
                              FailureCategory.UNKNOWN_RECIPE_OR_TECH)

        target = self.level(building_id) + 1
        if target > definition.max_level:
            return BuildCheck(False, f"{definition.name} is at max level",
                              FailureCategory.MAX_LEVEL_REACHED)
        if definition.unlock_tech and definition.unlock_tech not in researched:
            return BuildCheck(False, f"Requires research: {definition.unlock_tech}",
                              FailureCategory.UNKNOWN_RECIPE_OR_TECH)

        cost_map = definition.cost_for_level(target)
        if cost_map is None:
            return BuildCheck(False, f"No cost defined for {definition.name} level {target}",
                              FailureCategory.UNKNOWN_RECIPE_OR_TECH)
        cost = [ResourceChange(rid, amount) for rid, amount in cost_map.items()]
        for c in cost:
            if resources.get(c.resource_id, 0.0) < c.amount:
                return BuildCheck(False, f"Not enough {c.resource_id.value}",
                                  FailureCategory.INSUFFICIENT_RESOURCES, cost)
        return BuildCheck(True, cost=cost)

    def build_or_upgrade(
        self,
        building_id: BuildingId,
        resources: Mapping[ResourceId, float],
        researched: set[str],
        consume_resources: Callable[[Sequence[ResourceChange]], bool],
    ) -> BuildCheck:
        """Pay for and raise *building_id* by one level."""
        check = self.can_build_or_upgrade(building_id, resources, researched)
        if not check.can_build:
            return check
        if check.cost and not consume_resources(check.cost):
            return BuildCheck(False, "Resource consumption failed",
                              FailureCategory.INSUFFICIENT_RESOURCES, check.cost)
        self.set_level(building_id, self.level(building_id) + 1)
        return check

    def set_level(self, building_id: BuildingId, level: int) -> None:
        """Set a level directly (new game, restore) and announce it."""
        if level < 0:
            raise ValueError(f"Building level must be >= 0, got {level}")
        self.levels[building_id] = level
        log.info("Building %s now level %d", building_id.value, level)
        if self._events is not None:
            self._events.emit(BuildingLevelChanged(building_id=building_id.value, level=level))

    # -- Effects ---------------------------------------------------------

    def population_cap(self) -> int:
        return self._base_population_cap + SHELTER_CAP_PER_LEVEL * self.level(BuildingId.SHELTER)

    def storage_caps(self) -> dict[ResourceId, float]:
        """Cap of every resource: base + warehouse increment per level."""
        warehouse = self.level(BuildingId.WAREHOUSE)
        return {
            rid: definition.base_cap + definition.warehouse_increment * warehouse
            for rid, definition in self._catalog.resources.items()
        }

    def set_bonfire_intensity(self, intensity: BonfireIntensity) -> None:
        self.bonfire_intensity = intensity
        log.info("Bonfire set to %s", intensity.label)

    def bonfire_fuel(self, phase_au: float) -> float:
        return bonfire_fuel(self.bonfire_intensity, phase_au)

    def wanderer_rate(self, population: int) -> float:
        return wanderer_rate(self.bonfire_intensity, self.population_cap(), population)

    # -- Snapshot --------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "levels": {bid.value: level for bid, level in self.levels.items() if level > 0},
            "bonfire": self.bonfire_intensity.label,
        }

    def restore(self, data: dict[str, Any]) -> None:
        """Restore levels without emitting events."""
        self.reset()
        for key, level in (data.get("levels") or {}).items():
            self.levels[BuildingId(key)] = int(level)
        self.bonfire_intensity = BonfireIntensity.from_label(data.get("bonfire", "off"))
