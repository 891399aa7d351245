"""Map model — region tiers, map nodes and the expedition state machine.

Nodes are loaded from config/map.yaml.  A node's state only ever moves
forward: undiscovered → discovered → explored → cleared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from dustcore.models.resources import ResourceChange, ResourceId
from dustcore.models.time import Phase


class RegionTier(Enum):
    """Danger tier of a map region."""

    T0 = "T0"
    T1 = "T1"
    T2 = "T2"
    T3 = "T3"
    T4 = "T4"
    T5 = "T5"


class NodeState(Enum):
    """Exploration state of a map node, in progression order."""

    UNDISCOVERED = "undiscovered"
    DISCOVERED = "discovered"
    EXPLORED = "explored"
    CLEARED = "cleared"

    @property
    def rank(self) -> int:
        return _NODE_STATE_RANK[self]


_NODE_STATE_RANK = {
    NodeState.UNDISCOVERED: 0,
    NodeState.DISCOVERED: 1,
    NodeState.EXPLORED: 2,
    NodeState.CLEARED: 3,
}


class ExpeditionStatus(Enum):
    """Phases of an expedition."""

    TRAVELING = "traveling"
    EXPLORING = "exploring"
    RETURNING = "returning"
    COMPLETED = "completed"


@dataclass(frozen=True)
class LootEntry:
    """One roll in a tier's loot table."""

    resource_id: ResourceId
    min_amount: int
    max_amount: int
    probability: float


@dataclass(frozen=True)
class TierDefinition:
    """Static properties of a region tier.

    Attributes:
        tier: Tier identifier.
        risk_coefficient: Danger factor; also the loot bonus.
        base_loot_vu: Expected loot value before the risk bonus.
        loot_table: Rolls made when an expedition completes.
    """

    tier: RegionTier
    risk_coefficient: float = 0.0
    base_loot_vu: float = 0.0
    loot_table: tuple[LootEntry, ...] = ()


@dataclass
class MapNode:
    """A location on the map.

    Attributes:
        node_id: Node identifier.
        name: Display name.
        tier: Region tier.
        distance: Distance from base in travel steps.
        risk_coefficient: Danger factor of the node's tier.
        state: Exploration state.
        events: Event tags that may happen at the node.
    """

    node_id: str
    name: str
    tier: RegionTier
    distance: int
    risk_coefficient: float = 0.0
    state: NodeState = NodeState.UNDISCOVERED
    events: list[str] = field(default_factory=list)

    def advance_state(self, new_state: NodeState) -> bool:
        """Move to *new_state* if it is further along.  Returns True on change."""
        if new_state.rank <= self.state.rank:
            return False
        self.state = new_state
        return True


@dataclass(frozen=True)
class Supplies:
    """Water and food an expedition carries."""

    water: float = 0.0
    food: float = 0.0


@dataclass
class Expedition:
    """State of the single active expedition.

    Attributes:
        expedition_id: Unique expedition ID.
        target_node_id: Node being explored.
        worker_ids: Explorers taking part.
        supplies: Supplies still carried.
        status: Current expedition phase.
        elapsed_au: AU spent since departure.
        total_au: AU the whole trip occupies.
        travel_au: AU of each travel leg.
        search_au: AU spent searching the node.
        start_day: Day of departure.
        start_phase: Phase of departure.
    """

    expedition_id: int
    target_node_id: str
    worker_ids: list[str]
    supplies: Supplies
    total_au: float
    travel_au: float
    search_au: float
    status: ExpeditionStatus = ExpeditionStatus.TRAVELING
    elapsed_au: float = 0.0
    start_day: int = 1
    start_phase: Phase = Phase.DAWN


@dataclass(frozen=True)
class ExpeditionProgress:
    """Result of advancing the expedition by one phase."""

    supplies_consumed: Supplies
    status: ExpeditionStatus
    shortage: Supplies = Supplies()


@dataclass
class ExpeditionOutcome:
    """Result of completing an expedition."""

    success: bool
    node_id: str = ""
    loot: list[ResourceChange] = field(default_factory=list)
    events: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExplorationPreview:
    """What an expedition to a node would take and yield."""

    node_id: str
    distance: int
    search_time: int
    total_time: int
    supplies: Supplies
    risk_coefficient: float
    expected_loot_vu: float
    difficulty: float
    accessible: bool
