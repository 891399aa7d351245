"""Tests for the day/phase clock."""

from unittest.mock import MagicMock

import pytest

from dustcore.engine.time_engine import TimeEngine
from dustcore.models.time import PHASE_AU, PHASE_ORDER, Phase
from dustcore.util.events import PhaseAdvanced


class TestPhaseAU:
    def test_day_totals_five_au(self):
        assert sum(PHASE_AU.values()) == pytest.approx(5.0)

    @pytest.mark.parametrize("phase,au", [
        (Phase.DAWN, 0.5),
        (Phase.MORNING, 1.0),
        (Phase.NOON, 0.5),
        (Phase.AFTERNOON, 1.0),
        (Phase.EVENING, 1.0),
        (Phase.MIDNIGHT, 1.0),
    ])
    def test_phase_table(self, phase, au):
        assert PHASE_AU[phase] == au


class TestAdvancePhase:
    def test_starts_at_day_one_dawn(self):
        engine = TimeEngine()
        assert engine.day == 1
        assert engine.phase == Phase.DAWN
        assert engine.get_current_phase_au() == 0.5

    def test_walks_phase_order(self):
        engine = TimeEngine()
        seen = [engine.phase]
        for _ in range(5):
            seen.append(engine.advance_phase().phase)
        assert tuple(seen) == PHASE_ORDER

    def test_day_increments_only_after_midnight(self):
        engine = TimeEngine()
        for _ in range(5):
            engine.advance_phase()
        assert engine.phase == Phase.MIDNIGHT
        assert engine.day == 1
        engine.advance_phase()
        assert engine.phase == Phase.DAWN
        assert engine.day == 2

    def test_phase_au_matches_table_after_advance(self):
        engine = TimeEngine()
        for _ in range(12):
            state = engine.advance_phase()
            assert state.phase_au == PHASE_AU[state.phase]

    def test_two_days(self):
        engine = TimeEngine()
        for _ in range(12):
            engine.advance_phase()
        assert engine.day == 3
        assert engine.phase == Phase.DAWN

    def test_emits_phase_advanced(self):
        bus = MagicMock()
        engine = TimeEngine(bus)
        engine.advance_phase()
        bus.emit.assert_called_once_with(
            PhaseAdvanced(day=1, phase="morning", phase_au=1.0, new_day=False)
        )

    def test_new_day_flag(self):
        bus = MagicMock()
        engine = TimeEngine(bus)
        engine.restore(4, Phase.MIDNIGHT)
        engine.advance_phase()
        event = bus.emit.call_args[0][0]
        assert event.new_day is True
        assert event.day == 5


class TestRestore:
    def test_restore_derives_phase_au(self):
        engine = TimeEngine()
        engine.restore(7, Phase.NOON)
        assert engine.day == 7
        assert engine.get_current_phase_au() == 0.5

    def test_restore_rejects_day_zero(self):
        with pytest.raises(ValueError):
            TimeEngine().restore(0, Phase.DAWN)

    def test_reset(self):
        engine = TimeEngine()
        engine.restore(3, Phase.EVENING)
        engine.reset()
        assert (engine.day, engine.phase) == (1, Phase.DAWN)
