"""Catalog — static game data database.

Holds every resource, building, recipe, action, technology, map tier,
map node template and starting scenario, and provides lookup and
requirement checking.  Read-only after initialization.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dustcore.models.actions import ActionDefinition
from dustcore.models.buildings import BuildingDefinition, BuildingId
from dustcore.models.crafting import Recipe
from dustcore.models.map import MapNode, RegionTier, TierDefinition
from dustcore.models.resources import ResourceDefinition, ResourceId
from dustcore.models.tech import Technology


@dataclass(frozen=True)
class Scenario:
    """A new-game starting position."""

    scenario_id: str
    name: str = ""
    description: str = ""
    workers: int = 1
    resources: dict[ResourceId, float] = field(default_factory=dict)


class Catalog:
    """Static game data — read-only after initialization.

    Attributes:
        resources: Resource definitions keyed by id.
        buildings: Building definitions keyed by id.
        recipes: Recipes keyed by id, in config order.
        actions: Action definitions keyed by id.
        technologies: Technologies keyed by id.
        tiers: Region tier definitions keyed by tier.
        nodes: Map node templates keyed by id, in config order.
        scenarios: Starting scenarios keyed by id.
    """

    def __init__(self) -> None:
        self.resources: dict[ResourceId, ResourceDefinition] = {}
        self.buildings: dict[BuildingId, BuildingDefinition] = {}
        self.recipes: dict[str, Recipe] = {}
        self.actions: dict[str, ActionDefinition] = {}
        self.technologies: dict[str, Technology] = {}
        self.tiers: dict[RegionTier, TierDefinition] = {}
        self.nodes: dict[str, MapNode] = {}
        self.scenarios: dict[str, Scenario] = {}

    def load(
        self,
        resources: list[ResourceDefinition] = (),
        buildings: list[BuildingDefinition] = (),
        recipes: list[Recipe] = (),
        actions: list[ActionDefinition] = (),
        technologies: list[Technology] = (),
        tiers: list[TierDefinition] = (),
        nodes: list[MapNode] = (),
        scenarios: list[Scenario] = (),
    ) -> None:
        """Load definitions into the catalog."""
        self.resources = {r.resource_id: r for r in resources}
        self.buildings = {b.building_id: b for b in buildings}
        self.recipes = {r.recipe_id: r for r in recipes}
        self.actions = {a.action_id: a for a in actions}
        self.technologies = {t.tech_id: t for t in technologies}
        self.tiers = {t.tier: t for t in tiers}
        self.nodes = {n.node_id: n for n in nodes}
        self.scenarios = {s.scenario_id: s for s in scenarios}

    # -- Lookups ---------------------------------------------------------

    def resource(self, rid: ResourceId) -> ResourceDefinition | None:
        return self.resources.get(rid)

    def building(self, bid: BuildingId) -> BuildingDefinition | None:
        return self.buildings.get(bid)

    def recipe(self, recipe_id: str) -> Recipe | None:
        return self.recipes.get(recipe_id)

    def action(self, action_id: str) -> ActionDefinition | None:
        return self.actions.get(action_id)

    def technology(self, tech_id: str) -> Technology | None:
        return self.technologies.get(tech_id)

    def tier(self, tier: RegionTier) -> TierDefinition:
        """Return the definition of *tier* (an empty one if unconfigured)."""
        return self.tiers.get(tier) or TierDefinition(tier=tier)

    def resource_vu(self, rid: ResourceId) -> float:
        """Value of one unit of *rid* (0 if unknown)."""
        definition = self.resources.get(rid)
        return definition.vu if definition else 0.0

    def perishables(self) -> list[ResourceId]:
        """All resources that spoil at midnight."""
        return [r.resource_id for r in self.resources.values() if r.perishable]

    # -- Technology helpers ----------------------------------------------

    def check_prerequisites(self, tech_id: str, researched: set[str]) -> bool:
        """Check if all prerequisites of a technology are researched."""
        tech = self.technologies.get(tech_id)
        if tech is None:
            return False
        return all(req in researched for req in tech.prerequisites)

    def available_technologies(self, researched: set[str]) -> list[Technology]:
        """Technologies not yet researched whose prerequisites are met."""
        return [
            t for t in self.technologies.values()
            if t.tech_id not in researched
            and self.check_prerequisites(t.tech_id, researched)
        ]

    def unlocked(self, kind: str, researched: set[str]) -> set[str]:
        """Ids of *kind* (``"recipe"``, ``"building"``, ...) unlocked by *researched*."""
        result: set[str] = set()
        for tech_id in researched:
            tech = self.technologies.get(tech_id)
            if tech is None:
                continue
            result.update(u.target for u in tech.unlocks if u.kind == kind)
        return result

    def tech_gated_recipes(self) -> set[str]:
        """Recipe ids that some technology gates."""
        return {
            u.target
            for t in self.technologies.values()
            for u in t.unlocks
            if u.kind == "recipe"
        }
