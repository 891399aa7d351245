"""Resource ledger — amount and cap of every resource.

Responsibilities:
- Clamp every mutation into ``[0, cap]``
- All-or-nothing multi-resource consumption (the callbacks handed to
  the action executor, crafting and exploration engines)
- Population water/food consumption per phase, with shortage reporting
- Midnight spoilage of perishables

The ledger reports shortages; turning them into health damage is the
health system's job.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from dustcore.engine.catalog import Catalog
    from dustcore.loaders.game_config_loader import GameConfig
    from dustcore.util.events import EventBus

from dustcore.models.resources import (
    Consumption,
    ConsumptionResult,
    CrisisEvent,
    ResourceChange,
    ResourceEntry,
    ResourceId,
)
from dustcore.models.time import Phase
from dustcore.util.constants import (
    CRITICAL_SHORTAGE_RATIO,
    FOOD_PER_POP_PER_AU,
    FOOD_SHORTAGE_DAMAGE_PER_UNIT,
    WATER_PER_POP_PER_AU,
    WATER_SHORTAGE_DAMAGE_PER_UNIT,
)
from dustcore.util.events import ResourceShortage, ResourcesSpoiled

log = logging.getLogger(__name__)


def calculate_phase_consumption(
    population: int,
    phase_au: float,
    multiplier: float = 1.0,
    water_rate: float = WATER_PER_POP_PER_AU,
    food_rate: float = FOOD_PER_POP_PER_AU,
) -> Consumption:
    """Water and food the population needs for one phase.

    ``water = population × 1.0 × phase_au``, ``food = population × 1.2 ×
    phase_au``, both scaled by the difficulty *multiplier*.
    """
    return Consumption(
        water=population * water_rate * phase_au * multiplier,
        food=population * food_rate * phase_au * multiplier,
    )


def shortage_damage(water_shortage: float, food_shortage: float) -> float:
    """Health damage a shortage would cause (for the health system)."""
    return (water_shortage * WATER_SHORTAGE_DAMAGE_PER_UNIT
            + food_shortage * FOOD_SHORTAGE_DAMAGE_PER_UNIT)


class ResourceLedger:
    """Shared resource store.

    Args:
        catalog: Provides base caps, VU values and the perishable list.
        event_bus: Receives shortage and spoilage events.
        game_config: Consumption rates and difficulty multiplier.
    """

    def __init__(self, catalog: Optional[Catalog] = None, event_bus: Optional[EventBus] = None,
                 game_config: Optional[GameConfig] = None) -> None:
        self._catalog = catalog
        self._events = event_bus
        self._entries: dict[ResourceId, ResourceEntry] = {}
        self.crisis_log: list[CrisisEvent] = []

        # Game balance constants (fall back to defaults if no config)
        if game_config is not None:
            self._water_rate = game_config.water_per_pop_per_au
            self._food_rate = game_config.food_per_pop_per_au
            self.consumption_multiplier = game_config.modifiers().consumption_multiplier
        else:
            self._water_rate = WATER_PER_POP_PER_AU
            self._food_rate = FOOD_PER_POP_PER_AU
            self.consumption_multiplier = 1.0

        self.reset()

    def reset(self) -> None:
        """Empty every resource and restore the base caps."""
        self._entries = {rid: ResourceEntry(rid, 0.0, self.base_cap(rid)) for rid in ResourceId}
        self.crisis_log = []

    def base_cap(self, rid: ResourceId) -> float:
        """Cap of *rid* without warehouse bonuses."""
        if self._catalog is None:
            return 0.0
        definition = self._catalog.resource(rid)
        return definition.base_cap if definition else 0.0

    # -- Queries ---------------------------------------------------------

    def get_amount(self, rid: ResourceId) -> float:
        return self._entries[rid].amount

    def get_cap(self, rid: ResourceId) -> float:
        return self._entries[rid].cap

    def entry(self, rid: ResourceId) -> ResourceEntry:
        return self._entries[rid]

    def amounts(self) -> dict[ResourceId, float]:
        """Current amount of every resource."""
        return {rid: e.amount for rid, e in self._entries.items()}

    def caps(self) -> dict[ResourceId, float]:
        return {rid: e.cap for rid, e in self._entries.items()}

    def has_resources(self, changes: Iterable[ResourceChange]) -> bool:
        """True if every change's amount is in stock."""
        needed: dict[ResourceId, float] = {}
        for c in changes:
            needed[c.resource_id] = needed.get(c.resource_id, 0.0) + c.amount
        return all(self._entries[rid].amount >= amount for rid, amount in needed.items())

    def total_vu(self) -> float:
        """Value of everything in stock."""
        if self._catalog is None:
            return 0.0
        return sum(e.amount * self._catalog.resource_vu(rid) for rid, e in self._entries.items())

    # -- Mutation --------------------------------------------------------

    def add_resource(self, rid: ResourceId, amount: float) -> float:
        """Add up to the cap.  Returns the amount actually added."""
        if amount < 0:
            raise ValueError(f"Cannot add a negative amount of {rid.value}: {amount}")
        entry = self._entries[rid]
        before = entry.amount
        entry.amount = max(before, min(entry.cap, before + amount))
        return entry.amount - before

    def set_resource(self, rid: ResourceId, amount: float) -> None:
        """Set an amount, clamped into ``[0, cap]``."""
        entry = self._entries[rid]
        entry.amount = max(0.0, min(entry.cap, amount))

    def consume_resource(self, rid: ResourceId, amount: float) -> bool:
        """Subtract *amount*.  Returns False (no change) if stock is short."""
        if amount < 0:
            raise ValueError(f"Cannot consume a negative amount of {rid.value}: {amount}")
        entry = self._entries[rid]
        if entry.amount < amount:
            return False
        entry.amount -= amount
        return True

    def set_cap(self, rid: ResourceId, cap: float) -> None:
        """Change a cap; the amount is clamped down if it now exceeds it."""
        entry = self._entries[rid]
        entry.cap = max(0.0, cap)
        if entry.amount > entry.cap:
            entry.amount = entry.cap

    def consume_resources(self, changes: Iterable[ResourceChange]) -> bool:
        """Consume several resources at once, all or nothing."""
        changes = list(changes)
        if not self.has_resources(changes):
            return False
        for c in changes:
            self._entries[c.resource_id].amount -= c.amount
        return True

    def add_resources(self, changes: Iterable[ResourceChange]) -> None:
        """Add several resources, each clamped at its cap."""
        for c in changes:
            self.add_resource(c.resource_id, c.amount)

    # -- Phase processing ------------------------------------------------

    def calculate_phase_consumption(self, population: int, phase_au: float) -> Consumption:
        return calculate_phase_consumption(
            population, phase_au, self.consumption_multiplier, self._water_rate, self._food_rate,
        )

    def process_phase_consumption(self, population: int, phase_au: float,
                                  day: int, phase: Phase) -> ConsumptionResult:
        """Feed the population for one phase.

        Consumes what is available and reports the unmet remainder.  Each
        shortage is logged to ``crisis_log`` and published as a
        ``ResourceShortage`` event.
        """
        need = self.calculate_phase_consumption(population, phase_au)
        result = ConsumptionResult()

        water = self._entries[ResourceId.WATER]
        result.water_consumed = min(water.amount, need.water)
        result.water_shortage = need.water - result.water_consumed
        water.amount -= result.water_consumed

        food = self._entries[ResourceId.FOOD]
        result.food_consumed = min(food.amount, need.food)
        result.food_shortage = need.food - result.food_consumed
        food.amount -= result.food_consumed

        if result.water_shortage > 0:
            self._record_crisis(day, phase, "water_shortage", result.water_shortage, need.water)
        if result.food_shortage > 0:
            self._record_crisis(day, phase, "food_shortage", result.food_shortage, need.food)
        return result

    def _record_crisis(self, day: int, phase: Phase, kind: str, deficit: float, demand: float) -> None:
        severity = "critical" if deficit >= demand * CRITICAL_SHORTAGE_RATIO else "warning"
        crisis = CrisisEvent(day=day, phase=phase.value, kind=kind, severity=severity, deficit=deficit)
        self.crisis_log.append(crisis)
        log.warning("Day %d %s: %s (%s), deficit %.2f", day, phase.value, kind, severity, deficit)
        if self._events is not None:
            self._events.emit(ResourceShortage(
                day=day, phase=phase.value, kind=kind, severity=severity, deficit=deficit,
            ))

    def process_perishables(self) -> dict[ResourceId, float]:
        """Spoil every perishable resource.  Returns the amounts lost."""
        perishables = self._catalog.perishables() if self._catalog else []
        lost: dict[ResourceId, float] = {}
        for rid in perishables:
            entry = self._entries[rid]
            if entry.amount > 0:
                lost[rid] = entry.amount
                entry.amount = 0.0
        if lost:
            log.info("Spoiled at midnight: %s",
                     ", ".join(f"{rid.value}={amount:.1f}" for rid, amount in lost.items()))
            if self._events is not None:
                self._events.emit(ResourcesSpoiled(amounts={rid.value: a for rid, a in lost.items()}))
        return lost

    # -- Snapshot --------------------------------------------------------

    def snapshot(self) -> dict[str, dict[str, float]]:
        """Amounts and caps keyed by resource id string."""
        return {
            "amounts": {rid.value: e.amount for rid, e in self._entries.items()},
            "caps": {rid.value: e.cap for rid, e in self._entries.items()},
        }

    def restore(self, data: dict[str, dict[str, float]]) -> None:
        """Restore from :meth:`snapshot` output.  Caps are applied first."""
        for key, cap in (data.get("caps") or {}).items():
            self.set_cap(ResourceId(key), float(cap))
        for key, amount in (data.get("amounts") or {}).items():
            self.set_resource(ResourceId(key), float(amount))
