"""Exploration engine — map nodes and the single active expedition.

Responsibilities:
- Range limits from the radio tower level
- Travel/search timing and the supplies an expedition carries
- Per-phase expedition progress: traveling → exploring → returning → completed
- Loot generation on completion (seeded RNG)
- Node discovery; node state only ever moves forward
"""

from __future__ import annotations

import copy
import logging
import random
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

if TYPE_CHECKING:
    from dustcore.engine.catalog import Catalog
    from dustcore.loaders.game_config_loader import GameConfig
    from dustcore.util.events import EventBus

from dustcore.models.map import (
    Expedition,
    ExpeditionOutcome,
    ExpeditionProgress,
    ExpeditionStatus,
    ExplorationPreview,
    MapNode,
    NodeState,
    Supplies,
    TierDefinition,
)
from dustcore.models.resources import ResourceChange, ResourceId
from dustcore.models.time import PHASE_AU, Phase
from dustcore.util.constants import (
    BASE_SEARCH_TIME,
    EXPLORATION_FOOD_PER_EXPLORER_PER_AU,
    EXPLORATION_WATER_PER_EXPLORER_PER_AU,
    MAX_EXPLORATION_DISTANCE,
    RADIO_TOWER_RANGE,
    REGION_DIFFICULTY_BASE,
    REGION_DIFFICULTY_PER_DISTANCE,
)
from dustcore.util.events import (
    ExpeditionFinished,
    ExpeditionStarted,
    ExpeditionStatusChanged,
)

log = logging.getLogger(__name__)


# ── Formulas ────────────────────────────────────────────────────────────


def get_max_exploration_distance(radio_level: int) -> int:
    """How far expeditions may go with a radio tower of *radio_level*."""
    return RADIO_TOWER_RANGE.get(max(0, radio_level), MAX_EXPLORATION_DISTANCE)


def calculate_search_time(distance: int) -> int:
    """AU spent searching a node: ``2 + distance // 3``."""
    return BASE_SEARCH_TIME + distance // 3


def calculate_total_travel_time(distance: int) -> int:
    """Whole trip in AU: out, search, back."""
    return 2 * distance + calculate_search_time(distance)


def calculate_exploration_supplies(
    explorers: int,
    total_au: float,
    water_rate: float = EXPLORATION_WATER_PER_EXPLORER_PER_AU,
    food_rate: float = EXPLORATION_FOOD_PER_EXPLORER_PER_AU,
) -> Supplies:
    """Water and food *explorers* need for a *total_au* trip."""
    return Supplies(water=explorers * water_rate * total_au,
                    food=explorers * food_rate * total_au)


def region_difficulty(distance: int) -> float:
    return REGION_DIFFICULTY_BASE + REGION_DIFFICULTY_PER_DISTANCE * distance


def expected_loot_value(tier: TierDefinition, risk_coefficient: float) -> float:
    """``base_loot_vu × (1 + risk)``."""
    return tier.base_loot_vu * (1 + risk_coefficient)


def generate_loot(tier: TierDefinition, risk_coefficient: float,
                  rng: random.Random) -> list[ResourceChange]:
    """Roll every entry of the tier's loot table once.

    A hit yields ``max(1, round(randint(min, max) × (1 + risk)))``.
    """
    multiplier = 1 + risk_coefficient
    loot: list[ResourceChange] = []
    for entry in tier.loot_table:
        if rng.random() < entry.probability:
            base = rng.randint(entry.min_amount, entry.max_amount)
            loot.append(ResourceChange(entry.resource_id, float(max(1, round(base * multiplier)))))
    return loot


# ── Engine ──────────────────────────────────────────────────────────────


class ExplorationEngine:
    """Owns the map node states and the active expedition.

    Args:
        catalog: Node templates and tier definitions.
        event_bus: Receives expedition events.
        game_config: Supply rates.
        rng: Random source for loot rolls.
    """

    def __init__(self, catalog: Catalog, event_bus: Optional[EventBus] = None,
                 game_config: Optional[GameConfig] = None,
                 rng: Optional[random.Random] = None) -> None:
        self._catalog = catalog
        self._events = event_bus
        self._rng = rng or random.Random()

        if game_config is not None:
            self._water_rate = game_config.exploration_water_per_explorer_per_au
            self._food_rate = game_config.exploration_food_per_explorer_per_au
        else:
            self._water_rate = EXPLORATION_WATER_PER_EXPLORER_PER_AU
            self._food_rate = EXPLORATION_FOOD_PER_EXPLORER_PER_AU

        self.nodes: dict[str, MapNode] = {}
        self.active_expedition: Optional[Expedition] = None
        self.radio_tower_level = 0
        self._next_expedition_id = 1
        self.reset()

    def reset(self) -> None:
        """Fresh copy of the map; no expedition."""
        self.nodes = {nid: copy.deepcopy(node) for nid, node in self._catalog.nodes.items()}
        self.active_expedition = None
        self._next_expedition_id = 1

    # -- Nodes -----------------------------------------------------------

    def get_node(self, node_id: str) -> Optional[MapNode]:
        return self.nodes.get(node_id)

    def discover_node(self, node_id: str) -> bool:
        """Mark an undiscovered node as discovered.  Returns True on change."""
        node = self.nodes.get(node_id)
        if node is None:
            return False
        changed = node.advance_state(NodeState.DISCOVERED)
        if changed:
            log.info("Node discovered: %s (%s, distance %d)", node_id, node.tier.value, node.distance)
        return changed

    def discovered_nodes(self) -> list[MapNode]:
        return [n for n in self.nodes.values() if n.state != NodeState.UNDISCOVERED]

    @property
    def max_distance(self) -> int:
        return get_max_exploration_distance(self.radio_tower_level)

    def get_explorable_nodes(self) -> list[MapNode]:
        """Nodes an expedition may target now.

        Within radio range, excluding the base, and either already
        discovered or at most one step past the furthest discovered node.
        """
        max_distance = self.max_distance
        discovered = self.discovered_nodes()
        frontier = max([n.distance for n in discovered], default=0) + 1
        return [
            n for n in self.nodes.values()
            if 0 < n.distance <= max_distance
            and (n.state != NodeState.UNDISCOVERED or n.distance <= frontier)
        ]

    def get_exploration_preview(self, node_id: str, explorers: int) -> Optional[ExplorationPreview]:
        node = self.nodes.get(node_id)
        if node is None:
            return None
        total = calculate_total_travel_time(node.distance)
        return ExplorationPreview(
            node_id=node_id,
            distance=node.distance,
            search_time=calculate_search_time(node.distance),
            total_time=total,
            supplies=self.supplies_needed(explorers, total),
            risk_coefficient=node.risk_coefficient,
            expected_loot_vu=expected_loot_value(self._catalog.tier(node.tier), node.risk_coefficient),
            difficulty=region_difficulty(node.distance),
            accessible=0 < node.distance <= self.max_distance,
        )

    def supplies_needed(self, explorers: int, total_au: float) -> Supplies:
        return calculate_exploration_supplies(explorers, total_au, self._water_rate, self._food_rate)

    # -- Expedition lifecycle --------------------------------------------

    def start_expedition(
        self,
        node_id: str,
        worker_ids: Sequence[str],
        day: int,
        phase: Phase,
        consume_supplies: Callable[[Sequence[ResourceChange]], bool],
    ) -> Optional[Expedition]:
        """Send *worker_ids* to *node_id*.

        Returns None (nothing changes) if an expedition is already out,
        the node is unknown or out of range, nobody goes, or the supplies
        cannot be taken from stock.
        """
        if self.active_expedition is not None:
            return None
        node = self.nodes.get(node_id)
        if node is None or node.distance > self.max_distance or not worker_ids:
            return None

        total = calculate_total_travel_time(node.distance)
        supplies = self.supplies_needed(len(worker_ids), total)
        if not consume_supplies([
            ResourceChange(ResourceId.WATER, supplies.water),
            ResourceChange(ResourceId.FOOD, supplies.food),
        ]):
            return None

        expedition = Expedition(
            expedition_id=self._next_expedition_id,
            target_node_id=node_id,
            worker_ids=list(worker_ids),
            supplies=supplies,
            total_au=float(total),
            travel_au=float(node.distance),
            search_au=float(calculate_search_time(node.distance)),
            start_day=day,
            start_phase=phase,
        )
        self._next_expedition_id += 1
        self.active_expedition = expedition
        self.discover_node(node_id)
        log.info("Expedition %d left for %s with %d explorers (%.0f AU, water %.1f, food %.1f)",
                 expedition.expedition_id, node_id, len(worker_ids), total,
                 supplies.water, supplies.food)
        if self._events is not None:
            self._events.emit(ExpeditionStarted(
                expedition_id=expedition.expedition_id, node_id=node_id, explorers=len(worker_ids),
            ))
        return expedition

    def process_expedition_progress(self, day: int, phase: Phase) -> ExpeditionProgress:
        """Advance the active expedition by the AU of *phase*.

        The trip never runs past ``total_au``; a phase that outlasts the
        remaining trip only charges the AU actually travelled.

        Explorers eat from the carried supplies; what is missing is
        reported as ``shortage``.
        """
        expedition = self.active_expedition
        if expedition is None:
            return ExpeditionProgress(supplies_consumed=Supplies(), status=ExpeditionStatus.COMPLETED)

        leg_au = min(float(PHASE_AU[phase]), max(0.0, expedition.total_au - expedition.elapsed_au))
        need = self.supplies_needed(len(expedition.worker_ids), leg_au)
        carried = expedition.supplies
        consumed = Supplies(water=min(carried.water, need.water), food=min(carried.food, need.food))
        shortage = Supplies(water=need.water - consumed.water, food=need.food - consumed.food)
        expedition.supplies = Supplies(water=carried.water - consumed.water,
                                       food=carried.food - consumed.food)
        if shortage.water > 0 or shortage.food > 0:
            log.warning("Expedition %d short on supplies (water %.1f, food %.1f)",
                        expedition.expedition_id, shortage.water, shortage.food)

        expedition.elapsed_au += leg_au
        status = self._status_for(expedition)
        if status != expedition.status:
            expedition.status = status
            log.info("Expedition %d (day %d %s): %s", expedition.expedition_id,
                     day, phase.value, status.value)
            if self._events is not None:
                self._events.emit(ExpeditionStatusChanged(
                    expedition_id=expedition.expedition_id,
                    node_id=expedition.target_node_id,
                    new_status=status.value,
                ))
        return ExpeditionProgress(supplies_consumed=consumed, status=status, shortage=shortage)

    @staticmethod
    def _status_for(expedition: Expedition) -> ExpeditionStatus:
        elapsed = expedition.elapsed_au
        if elapsed < expedition.travel_au:
            return ExpeditionStatus.TRAVELING
        if elapsed < expedition.travel_au + expedition.search_au:
            return ExpeditionStatus.EXPLORING
        if elapsed < expedition.total_au:
            return ExpeditionStatus.RETURNING
        return ExpeditionStatus.COMPLETED

    def complete_expedition(self) -> ExpeditionOutcome:
        """Roll loot for the target node and free the expedition slot.

        The node becomes explored.  The loot is returned, not stored.
        """
        expedition = self.active_expedition
        if expedition is None:
            return ExpeditionOutcome(success=False)
        node = self.nodes.get(expedition.target_node_id)
        self.active_expedition = None
        if node is None:
            log.error("Expedition %d targets unknown node %s",
                      expedition.expedition_id, expedition.target_node_id)
            return ExpeditionOutcome(success=False, node_id=expedition.target_node_id)

        loot = generate_loot(self._catalog.tier(node.tier), node.risk_coefficient, self._rng)
        node.advance_state(NodeState.EXPLORED)
        log.info("Expedition %d returned from %s: %s", expedition.expedition_id, node.node_id,
                 ", ".join(f"{c.amount:g} {c.resource_id.value}" for c in loot) or "nothing")
        if self._events is not None:
            self._events.emit(ExpeditionFinished(
                expedition_id=expedition.expedition_id, node_id=node.node_id, completed=True,
            ))
        return ExpeditionOutcome(success=True, node_id=node.node_id, loot=loot,
                                 events=list(node.events))

    def cancel_expedition(self) -> Optional[Expedition]:
        """Call off the active expedition.  Carried supplies are lost."""
        expedition = self.active_expedition
        if expedition is None:
            return None
        self.active_expedition = None
        log.info("Expedition %d to %s cancelled", expedition.expedition_id, expedition.target_node_id)
        if self._events is not None:
            self._events.emit(ExpeditionFinished(
                expedition_id=expedition.expedition_id,
                node_id=expedition.target_node_id,
                completed=False,
            ))
        return expedition

    # -- Snapshot --------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        exp = self.active_expedition
        return {
            "radio_tower_level": self.radio_tower_level,
            "next_expedition_id": self._next_expedition_id,
            "node_states": {nid: n.state.value for nid, n in self.nodes.items()},
            "active_expedition": None if exp is None else {
                "expedition_id": exp.expedition_id,
                "target_node_id": exp.target_node_id,
                "worker_ids": list(exp.worker_ids),
                "supplies": {"water": exp.supplies.water, "food": exp.supplies.food},
                "total_au": exp.total_au,
                "travel_au": exp.travel_au,
                "search_au": exp.search_au,
                "status": exp.status.value,
                "elapsed_au": exp.elapsed_au,
                "start_day": exp.start_day,
                "start_phase": exp.start_phase.value,
            },
        }

    def restore(self, data: dict[str, Any]) -> None:
        self.reset()
        self.radio_tower_level = int(data.get("radio_tower_level", 0))
        self._next_expedition_id = int(data.get("next_expedition_id", 1))
        for nid, state in (data.get("node_states") or {}).items():
            node = self.nodes.get(nid)
            if node is None:
                log.warning("Ignoring state of unknown node %s", nid)
                continue
            node.state = NodeState(state)
        raw = data.get("active_expedition")
        if raw is not None:
            supplies = raw.get("supplies") or {}
            self.active_expedition = Expedition(
                expedition_id=int(raw["expedition_id"]),
                target_node_id=raw["target_node_id"],
                worker_ids=list(raw.get("worker_ids", [])),
                supplies=Supplies(water=float(supplies.get("water", 0.0)),
                                  food=float(supplies.get("food", 0.0))),
                total_au=float(raw["total_au"]),
                travel_au=float(raw["travel_au"]),
                search_au=float(raw["search_au"]),
                status=ExpeditionStatus(raw.get("status", "traveling")),
                elapsed_au=float(raw.get("elapsed_au", 0.0)),
                start_day=int(raw.get("start_day", 1)),
                start_phase=Phase(raw.get("start_phase", "dawn")),
            )
