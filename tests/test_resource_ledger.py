"""Tests for the resource ledger: caps, consumption, shortages, spoilage."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dustcore.engine.resource_ledger import (
    ResourceLedger,
    calculate_phase_consumption,
    shortage_damage,
)
from dustcore.loaders.catalog_loader import load_catalog
from dustcore.loaders.game_config_loader import GameConfig
from dustcore.models.resources import ResourceChange, ResourceId
from dustcore.models.time import Phase
from dustcore.util.events import ResourceShortage, ResourcesSpoiled

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


@pytest.fixture(scope="module")
def catalog():
    return load_catalog(CONFIG_DIR)


@pytest.fixture
def ledger(catalog):
    return ResourceLedger(catalog)


# ── Caps ────────────────────────────────────────────────────────────────


class TestCaps:
    def test_base_caps_from_catalog(self, ledger):
        assert ledger.get_cap(ResourceId.SCRAP) == 100
        assert ledger.get_cap(ResourceId.WATER) == 50

    def test_add_is_clamped_at_cap(self, ledger):
        added = ledger.add_resource(ResourceId.WATER, 80)
        assert added == 50
        assert ledger.get_amount(ResourceId.WATER) == 50

    def test_add_returns_amount_added(self, ledger):
        assert ledger.add_resource(ResourceId.SCRAP, 12.5) == 12.5

    def test_negative_add_raises(self, ledger):
        with pytest.raises(ValueError):
            ledger.add_resource(ResourceId.SCRAP, -1)

    def test_set_is_clamped(self, ledger):
        ledger.set_resource(ResourceId.FOOD, -5)
        assert ledger.get_amount(ResourceId.FOOD) == 0
        ledger.set_resource(ResourceId.FOOD, 500)
        assert ledger.get_amount(ResourceId.FOOD) == 50

    def test_lowering_cap_clamps_amount(self, ledger):
        ledger.add_resource(ResourceId.SCRAP, 90)
        ledger.set_cap(ResourceId.SCRAP, 40)
        assert ledger.get_amount(ResourceId.SCRAP) == 40

    def test_amount_above_lowered_cap_is_kept_by_add(self, ledger):
        ledger.add_resource(ResourceId.SCRAP, 90)
        ledger.entry(ResourceId.SCRAP).cap = 50  # raw cap change, no re-clamp
        assert ledger.add_resource(ResourceId.SCRAP, 5) == 0
        assert ledger.get_amount(ResourceId.SCRAP) == 90

    @pytest.mark.parametrize("ops", [
        [("add", 30), ("consume", 10), ("add", 200)],
        [("add", 5), ("consume", 50), ("add", 1)],
        [("add", 100), ("add", 100), ("consume", 100)],
    ])
    def test_amount_stays_within_bounds(self, ledger, ops):
        for op, amount in ops:
            if op == "add":
                ledger.add_resource(ResourceId.SCRAP, amount)
            else:
                ledger.consume_resource(ResourceId.SCRAP, amount)
            assert 0 <= ledger.get_amount(ResourceId.SCRAP) <= ledger.get_cap(ResourceId.SCRAP)


# ── Consumption ─────────────────────────────────────────────────────────


class TestConsume:
    def test_consume_single(self, ledger):
        ledger.add_resource(ResourceId.WOOD, 10)
        assert ledger.consume_resource(ResourceId.WOOD, 4) is True
        assert ledger.get_amount(ResourceId.WOOD) == 6

    def test_consume_single_short_changes_nothing(self, ledger):
        ledger.add_resource(ResourceId.WOOD, 3)
        assert ledger.consume_resource(ResourceId.WOOD, 4) is False
        assert ledger.get_amount(ResourceId.WOOD) == 3

    def test_consume_many_is_all_or_nothing(self, ledger):
        ledger.add_resource(ResourceId.SCRAP, 20)
        ledger.add_resource(ResourceId.WOOD, 1)
        ok = ledger.consume_resources([
            ResourceChange(ResourceId.SCRAP, 10),
            ResourceChange(ResourceId.WOOD, 5),
        ])
        assert ok is False
        assert ledger.get_amount(ResourceId.SCRAP) == 20
        assert ledger.get_amount(ResourceId.WOOD) == 1

    def test_consume_many_success(self, ledger):
        ledger.add_resource(ResourceId.SCRAP, 20)
        ledger.add_resource(ResourceId.WOOD, 8)
        assert ledger.consume_resources([
            ResourceChange(ResourceId.SCRAP, 10),
            ResourceChange(ResourceId.WOOD, 5),
        ])
        assert ledger.get_amount(ResourceId.SCRAP) == 10
        assert ledger.get_amount(ResourceId.WOOD) == 3

    def test_duplicate_entries_are_summed(self, ledger):
        ledger.add_resource(ResourceId.SCRAP, 15)
        ok = ledger.consume_resources([
            ResourceChange(ResourceId.SCRAP, 10),
            ResourceChange(ResourceId.SCRAP, 10),
        ])
        assert ok is False
        assert ledger.get_amount(ResourceId.SCRAP) == 15


class TestPhaseConsumption:
    @pytest.mark.parametrize("population,au", [(1, 0.5), (3, 1.0), (5, 1.0), (0, 1.0)])
    def test_formula(self, population, au):
        need = calculate_phase_consumption(population, au)
        assert need.water == pytest.approx(population * 1.0 * au)
        assert need.food == pytest.approx(population * 1.2 * au)

    def test_difficulty_multiplier(self):
        need = calculate_phase_consumption(2, 1.0, multiplier=1.2)
        assert need.water == pytest.approx(2.4)
        assert need.food == pytest.approx(2.88)

    def test_game_config_multiplier(self, catalog):
        ledger = ResourceLedger(catalog, game_config=GameConfig(difficulty="easy"))
        assert ledger.consumption_multiplier == 0.8

    def test_enough_stock_no_shortage(self, ledger):
        ledger.add_resource(ResourceId.WATER, 10)
        ledger.add_resource(ResourceId.FOOD, 10)
        result = ledger.process_phase_consumption(2, 1.0, 1, Phase.MORNING)
        assert result.water_consumed == pytest.approx(2.0)
        assert result.food_consumed == pytest.approx(2.4)
        assert not result.has_shortage
        assert ledger.get_amount(ResourceId.WATER) == pytest.approx(8.0)
        assert ledger.get_amount(ResourceId.FOOD) == pytest.approx(7.6)
        assert ledger.crisis_log == []

    def test_shortage_consumes_what_is_there(self, ledger):
        ledger.add_resource(ResourceId.WATER, 1.5)
        ledger.add_resource(ResourceId.FOOD, 10)
        result = ledger.process_phase_consumption(2, 1.0, 3, Phase.EVENING)
        assert result.water_consumed == pytest.approx(1.5)
        assert result.water_shortage == pytest.approx(0.5)
        assert result.food_shortage == 0
        assert ledger.get_amount(ResourceId.WATER) == 0

    def test_shortage_severity(self, ledger):
        ledger.add_resource(ResourceId.WATER, 1.5)  # deficit 0.5 of 2.0 -> warning
        result = ledger.process_phase_consumption(2, 1.0, 3, Phase.EVENING)
        kinds = {c.kind: c for c in ledger.crisis_log}
        assert kinds["water_shortage"].severity == "warning"
        assert kinds["food_shortage"].severity == "critical"  # no food at all
        assert result.food_shortage == pytest.approx(2.4)

    def test_shortage_event_emitted(self, catalog):
        bus = MagicMock()
        ledger = ResourceLedger(catalog, bus)
        ledger.add_resource(ResourceId.FOOD, 10)
        ledger.process_phase_consumption(1, 1.0, 2, Phase.NOON)
        bus.emit.assert_called_once_with(ResourceShortage(
            day=2, phase="noon", kind="water_shortage", severity="critical", deficit=1.0,
        ))

    def test_shortage_damage(self):
        assert shortage_damage(1.0, 0.5) == pytest.approx(14.0)


# ── Perishables ─────────────────────────────────────────────────────────


class TestPerishables:
    def test_perishables_zeroed(self, ledger):
        ledger.add_resource(ResourceId.RAW_MEAT, 3)
        ledger.add_resource(ResourceId.VEGETABLES, 2)
        ledger.add_resource(ResourceId.FOOD, 5)
        lost = ledger.process_perishables()
        assert lost == {ResourceId.RAW_MEAT: 3, ResourceId.VEGETABLES: 2}
        assert ledger.get_amount(ResourceId.RAW_MEAT) == 0
        assert ledger.get_amount(ResourceId.FOOD) == 5

    def test_spoilage_event(self, catalog):
        bus = MagicMock()
        ledger = ResourceLedger(catalog, bus)
        ledger.add_resource(ResourceId.RAW_MEAT, 1)
        ledger.process_perishables()
        bus.emit.assert_called_once_with(ResourcesSpoiled(amounts={"raw_meat": 1.0}))

    def test_nothing_to_spoil(self, catalog):
        bus = MagicMock()
        ledger = ResourceLedger(catalog, bus)
        assert ledger.process_perishables() == {}
        bus.emit.assert_not_called()


class TestSnapshot:
    def test_restore_applies_caps_first(self, catalog, ledger):
        ledger.set_cap(ResourceId.SCRAP, 250)
        ledger.add_resource(ResourceId.SCRAP, 200)
        data = ledger.snapshot()

        fresh = ResourceLedger(catalog)
        fresh.restore(data)
        assert fresh.get_cap(ResourceId.SCRAP) == 250
        assert fresh.get_amount(ResourceId.SCRAP) == 200

    def test_total_vu(self, ledger):
        ledger.add_resource(ResourceId.SCRAP, 10)
        ledger.add_resource(ResourceId.WATER, 2)
        assert ledger.total_vu() == pytest.approx(20.0)
