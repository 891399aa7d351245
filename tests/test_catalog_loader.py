"""Tests for catalog_loader — ensures config files load correctly."""

from pathlib import Path

import pytest

from dustcore.loaders.catalog_loader import (
    load_catalog,
    parse_actions,
    parse_map,
    parse_recipes,
    parse_technologies,
)
from dustcore.models.actions import ActionType
from dustcore.models.buildings import BuildingId
from dustcore.models.map import NodeState, RegionTier
from dustcore.models.resources import ResourceCategory, ResourceId
from dustcore.models.time import Phase

# Path to the real config directory
CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


@pytest.fixture(scope="module")
def catalog():
    return load_catalog(CONFIG_DIR)


class TestLoadCatalogFromConfigDir:
    """Verify that load_catalog() works with the per-category YAML files."""

    def test_config_directory_exists(self):
        assert CONFIG_DIR.is_dir(), f"Config directory not found: {CONFIG_DIR}"

    @pytest.mark.parametrize("name", [
        "resources", "buildings", "recipes", "actions", "technologies", "map", "scenarios",
    ])
    def test_category_file_exists(self, name):
        f = CONFIG_DIR / f"{name}.yaml"
        assert f.exists(), f"Missing config file: {f}"

    def test_every_resource_defined(self, catalog):
        assert set(catalog.resources) == set(ResourceId)

    def test_every_building_defined(self, catalog):
        assert set(catalog.buildings) == set(BuildingId)

    def test_resource_attributes(self, catalog):
        scrap = catalog.resource(ResourceId.SCRAP)
        assert scrap.vu == 1
        assert scrap.base_cap == 100
        assert scrap.category == ResourceCategory.PRIMARY
        assert set(catalog.perishables()) == {ResourceId.RAW_MEAT, ResourceId.VEGETABLES}

    def test_shared_cost_anchor(self, catalog):
        assert catalog.building(BuildingId.TRAP).costs == catalog.building(BuildingId.WATER_COLLECTOR).costs

    def test_building_cost_for_level(self, catalog):
        workshop = catalog.building(BuildingId.WORKSHOP)
        assert workshop.cost_for_level(1) == {ResourceId.SCRAP: 80.0}
        assert workshop.cost_for_level(0) is None
        assert workshop.cost_for_level(workshop.max_level + 1) is None

    def test_action_costs(self, catalog):
        assert catalog.action("quick_scavenge").au_cost == 0.5
        assert catalog.action("quick_scavenge").action_type == ActionType.SHORT
        assert catalog.action("salvage").au_cost == 1.0
        assert catalog.action("assign_workers").au_cost == 0

    def test_delegated_actions(self, catalog):
        assert catalog.action("build").delegated
        assert not catalog.action("hunt").delegated

    def test_every_recipe_input_is_a_resource(self, catalog):
        for recipe in catalog.recipes.values():
            assert recipe.work_required > 0
            for material in recipe.inputs:
                assert material.resource_id in catalog.resources

    def test_technology_prerequisites_exist(self, catalog):
        for tech in catalog.technologies.values():
            for req in tech.prerequisites:
                assert req in catalog.technologies, f"{tech.tech_id} needs unknown {req}"

    def test_unlocked_recipes_exist(self, catalog):
        for recipe_id in catalog.tech_gated_recipes():
            assert recipe_id in catalog.recipes

    def test_available_technologies(self, catalog):
        first = {t.tech_id for t in catalog.available_technologies(set())}
        assert "basic_division" in first
        assert "workshop_basics" not in first
        assert catalog.check_prerequisites("workshop_basics", {"basic_division"})

    def test_map(self, catalog):
        assert catalog.nodes["base"].state == NodeState.CLEARED
        highway = catalog.nodes["collapsed_highway"]
        assert highway.tier == RegionTier.T1
        assert highway.risk_coefficient == pytest.approx(0.10)
        assert catalog.tier(RegionTier.T1).base_loot_vu == 20

    def test_scenarios(self, catalog):
        assert set(catalog.scenarios) == {"lone_survivor", "scavenger", "shelter_remnant"}
        assert catalog.scenarios["scavenger"].workers == 2


class TestParsers:
    def test_missing_directory_gives_empty_catalog(self, tmp_path):
        catalog = load_catalog(tmp_path)
        assert catalog.recipes == {}
        assert catalog.actions == {}

    def test_recipe_needs_single_output(self):
        with pytest.raises(ValueError):
            parse_recipes({"group": {"bad": {"output": {"wood": 1, "metal": 1}}}})

    def test_action_phases(self):
        (action,) = parse_actions({"short": {"nap": {"phases": ["midnight"], "au_cost": 0.25}}})
        assert action.allowed_phases == frozenset({Phase.MIDNIGHT})
        assert action.au_cost == 0.25

    def test_unknown_resource_raises(self):
        with pytest.raises(ValueError):
            parse_recipes({"group": {"bad": {"output": {"unobtainium": 1}}}})

    def test_technology_unlocks(self):
        (tech,) = parse_technologies({"t": {"rp": 10, "unlocks": {"recipe": ["a", "b"]}}})
        assert [u.target for u in tech.unlocks] == ["a", "b"]
        assert tech.rp_cost == 10

    def test_node_takes_tier_risk(self):
        tiers, nodes = parse_map({
            "tiers": {"T2": {"risk": 0.25}},
            "nodes": {"spot": {"tier": "T2", "distance": 3}},
        })
        assert nodes[0].risk_coefficient == 0.25
        assert nodes[0].state == NodeState.UNDISCOVERED
