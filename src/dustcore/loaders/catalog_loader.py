"""Catalog loader — parses the static game data YAML files.

Reads one file per category from a config directory:
resources.yaml, buildings.yaml, recipes.yaml, actions.yaml,
technologies.yaml, map.yaml and scenarios.yaml.  Missing files leave
their section empty.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from dustcore.engine.catalog import Catalog, Scenario
from dustcore.models.actions import ActionDefinition, ActionRequirements, ActionType
from dustcore.models.buildings import BuildingDefinition, BuildingId
from dustcore.models.crafting import Recipe
from dustcore.models.map import LootEntry, MapNode, NodeState, RegionTier, TierDefinition
from dustcore.models.resources import (
    ResourceCategory,
    ResourceChange,
    ResourceDefinition,
    ResourceId,
)
from dustcore.models.tech import Technology, Unlock
from dustcore.models.time import Phase
from dustcore.util.constants import SHORT_ACTION_AU_COST, STANDARD_ACTION_AU_COST

log = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "config"


def _read(path: Path) -> dict[str, Any]:
    if not path.exists():
        log.warning("Catalog file not found: %s", path)
        return {}
    with path.open() as f:
        return yaml.safe_load(f) or {}


def _amounts(raw: dict[str, Any] | None) -> dict[ResourceId, float]:
    """Parse a ``{resource: amount}`` mapping."""
    return {ResourceId(k): float(v) for k, v in (raw or {}).items()}


# ── Sections ────────────────────────────────────────────────────────────


def parse_resources(data: dict[str, Any]) -> list[ResourceDefinition]:
    """Parse resources.yaml (category → resource id → attributes)."""
    result: list[ResourceDefinition] = []
    for category, section in data.items():
        cat = ResourceCategory(category)
        for rid, attrs in (section or {}).items():
            if not isinstance(attrs, dict):
                continue
            result.append(ResourceDefinition(
                resource_id=ResourceId(rid),
                name=attrs.get("name", rid),
                category=cat,
                vu=float(attrs.get("vu", 0)),
                base_cap=float(attrs.get("base_cap", 0)),
                warehouse_increment=float(attrs.get("warehouse_increment", 0)),
                perishable=bool(attrs.get("perishable", False)),
            ))
    return result


def parse_buildings(data: dict[str, Any]) -> list[BuildingDefinition]:
    result: list[BuildingDefinition] = []
    for bid, attrs in data.items():
        if not isinstance(attrs, dict):
            continue
        costs = tuple(_amounts(level) for level in attrs.get("costs", []) or [])
        result.append(BuildingDefinition(
            building_id=BuildingId(bid),
            name=attrs.get("name", bid),
            max_level=int(attrs.get("max_level", len(costs) or 1)),
            costs=costs,
            unlock_tech=attrs.get("unlock_tech"),
        ))
    return result


def parse_recipes(data: dict[str, Any]) -> list[Recipe]:
    """Parse recipes.yaml (group → recipe id → attributes)."""
    result: list[Recipe] = []
    for group in data.values():
        for recipe_id, attrs in (group or {}).items():
            if not isinstance(attrs, dict):
                continue
            output = _amounts(attrs.get("output"))
            if len(output) != 1:
                raise ValueError(f"Recipe {recipe_id} must have exactly one output")
            (out_id, out_amount), = output.items()
            result.append(Recipe(
                recipe_id=recipe_id,
                name=attrs.get("name", recipe_id),
                output=ResourceChange(out_id, out_amount),
                inputs=tuple(ResourceChange(r, a) for r, a in _amounts(attrs.get("inputs")).items()),
                work_required=float(attrs.get("work", 0)),
            ))
    return result


def parse_actions(data: dict[str, Any]) -> list[ActionDefinition]:
    """Parse actions.yaml (short / standard → action id → attributes)."""
    result: list[ActionDefinition] = []
    for type_key, section in data.items():
        action_type = ActionType(type_key)
        default_cost = SHORT_ACTION_AU_COST if action_type == ActionType.SHORT else STANDARD_ACTION_AU_COST
        for action_id, attrs in (section or {}).items():
            attrs = attrs or {}
            req = attrs.get("requires", {}) or {}
            phases = attrs.get("phases")
            result.append(ActionDefinition(
                action_id=action_id,
                name=attrs.get("name", action_id),
                action_type=action_type,
                au_cost=float(attrs.get("au_cost", default_cost)),
                requirements=ActionRequirements(
                    resources=_amounts(req.get("resources")),
                    buildings={BuildingId(b): int(level) for b, level in (req.get("buildings") or {}).items()},
                    technologies=tuple(req.get("technologies", []) or []),
                    min_workers=int(req.get("min_workers", 0)),
                ),
                allowed_phases=frozenset(Phase(p) for p in phases) if phases else None,
                description=attrs.get("description", ""),
            ))
    return result


def parse_technologies(data: dict[str, Any]) -> list[Technology]:
    result: list[Technology] = []
    for tech_id, attrs in data.items():
        if not isinstance(attrs, dict):
            continue
        unlocks = tuple(
            Unlock(kind, str(target))
            for kind, targets in (attrs.get("unlocks") or {}).items()
            for target in targets or []
        )
        result.append(Technology(
            tech_id=tech_id,
            name=attrs.get("name", tech_id),
            tier=attrs.get("tier", "T1"),
            branch=attrs.get("branch", ""),
            rp_cost=float(attrs.get("rp", 0)),
            prerequisites=tuple(attrs.get("requires", []) or []),
            unlocks=unlocks,
        ))
    return result


def parse_map(data: dict[str, Any]) -> tuple[list[TierDefinition], list[MapNode]]:
    """Parse map.yaml into tier definitions and node templates."""
    tiers: list[TierDefinition] = []
    for tier_key, attrs in (data.get("tiers") or {}).items():
        attrs = attrs or {}
        tiers.append(TierDefinition(
            tier=RegionTier(tier_key),
            risk_coefficient=float(attrs.get("risk", 0)),
            base_loot_vu=float(attrs.get("base_loot_vu", 0)),
            loot_table=tuple(
                LootEntry(
                    resource_id=ResourceId(e["resource"]),
                    min_amount=int(e["min"]),
                    max_amount=int(e["max"]),
                    probability=float(e["chance"]),
                )
                for e in attrs.get("loot", []) or []
            ),
        ))
    risk = {t.tier: t.risk_coefficient for t in tiers}

    nodes: list[MapNode] = []
    for node_id, attrs in (data.get("nodes") or {}).items():
        tier = RegionTier(attrs["tier"])
        nodes.append(MapNode(
            node_id=node_id,
            name=attrs.get("name", node_id),
            tier=tier,
            distance=int(attrs.get("distance", 0)),
            risk_coefficient=risk.get(tier, 0.0),
            state=NodeState(attrs.get("state", "undiscovered")),
            events=list(attrs.get("events", []) or []),
        ))
    return tiers, nodes


def parse_scenarios(data: dict[str, Any]) -> list[Scenario]:
    return [
        Scenario(
            scenario_id=sid,
            name=attrs.get("name", sid),
            description=attrs.get("description", ""),
            workers=int(attrs.get("workers", 1)),
            resources=_amounts(attrs.get("resources")),
        )
        for sid, attrs in data.items()
        if isinstance(attrs, dict)
    ]


# ── Public API ──────────────────────────────────────────────────────────


def load_catalog(path: str | Path = DEFAULT_CONFIG_DIR) -> Catalog:
    """Load all static game data from a config directory.

    Args:
        path: Directory holding the per-category YAML files.

    Returns:
        A populated :class:`Catalog`.
    """
    path = Path(path)
    tiers, nodes = parse_map(_read(path / "map.yaml"))
    catalog = Catalog()
    catalog.load(
        resources=parse_resources(_read(path / "resources.yaml")),
        buildings=parse_buildings(_read(path / "buildings.yaml")),
        recipes=parse_recipes(_read(path / "recipes.yaml")),
        actions=parse_actions(_read(path / "actions.yaml")),
        technologies=parse_technologies(_read(path / "technologies.yaml")),
        tiers=tiers,
        nodes=nodes,
        scenarios=parse_scenarios(_read(path / "scenarios.yaml")),
    )
    log.info(
        "Loaded catalog from %s: %d resources, %d buildings, %d recipes, "
        "%d actions, %d technologies, %d map nodes",
        path, len(catalog.resources), len(catalog.buildings), len(catalog.recipes),
        len(catalog.actions), len(catalog.technologies), len(catalog.nodes),
    )
    return catalog
