"""
Tests for map_state.py - the grid and the timed sink/rise scheduler.
"""

import logging
import os
import random
import sys

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from game_logic import SnakeConfig
from map_state import (
    DEACTIVATING,
    PHASE_DEACTIVATED,
    PHASE_IDLE,
    PHASE_RISING,
    PHASE_SINKING,
    PHASE_WARNING,
    REACTIVATING,
    CellTransition,
    Grid,
    MapState,
    deactivate_count,
)
from signals import CELL_DEACTIVATED, CELL_REACTIVATED, kinds


@pytest.fixture
def grid():
    return Grid(25)


@pytest.fixture
def map_state(grid):
    return MapState(grid, SnakeConfig())


class TestGrid:
    """Cell ids, bounds and walkable flags."""

    def test_every_cell_starts_walkable(self, grid):
        cells = grid.all_cells()
        assert len(cells) == 625
        assert all(walkable for _, _, walkable in cells)
        assert grid.obstacles() == set()

    def test_cell_ids_are_row_major_on_x(self, grid):
        assert grid.cell_id((0, 0)) == 0
        assert grid.cell_id((0, 24)) == 24
        assert grid.cell_id((1, 0)) == 25
        assert grid.position_of(grid.cell_id((7, 13))) == (7, 13)
        assert [cell_id for cell_id, _, _ in grid.all_cells()] == list(range(625))

    def test_out_of_bounds_cells(self, grid):
        assert grid.in_bounds((0, 0)) and grid.in_bounds((24, 24))
        assert not grid.in_bounds((-1, 0))
        assert not grid.in_bounds((0, 25))
        assert grid.is_walkable((25, 3)) is False
        with pytest.raises(ValueError):
            grid.cell_id((25, 3))

    def test_set_walkable_round_trips(self, grid):
        cell_id = grid.cell_id((3, 4))
        grid.set_walkable(cell_id, False)
        assert grid.obstacles() == {(3, 4)}
        assert grid.is_walkable((3, 4)) is False
        grid.set_walkable(cell_id, True)
        assert grid.obstacles() == set()

    def test_empty_grid_is_rejected(self):
        with pytest.raises(ValueError):
            Grid(0)


class TestCellTransition:
    def test_deactivation_phases(self):
        transition = CellTransition(DEACTIVATING, 1.5, 0.5)
        assert transition.phase == PHASE_WARNING
        assert transition.advance(1.5) is False
        assert transition.phase == PHASE_SINKING
        assert transition.progress() == pytest.approx(0.0)
        assert transition.advance(0.25) is False
        assert transition.progress() == pytest.approx(0.5)
        assert transition.advance(0.25) is True
        assert transition.phase == PHASE_DEACTIVATED
        assert transition.advance(1.0) is False

    def test_reactivation_phases(self):
        transition = CellTransition(REACTIVATING, 1.5, 0.5)
        transition.advance(1.6)
        assert transition.phase == PHASE_RISING
        assert transition.advance(0.4) is True
        assert transition.phase == PHASE_IDLE


class TestDeactivateCount:
    @pytest.mark.parametrize(
        "elapsed, expected",
        [(0.0, 10), (19.9, 10), (20.0, 11), (45.0, 12), (299.0, 24), (300.0, 25), (1000.0, 25)],
    )
    def test_grows_every_twenty_seconds_up_to_cap(self, elapsed, expected):
        assert deactivate_count(elapsed) == expected

    def test_uses_session_clock(self, map_state):
        map_state.time_elapsed = 45.0
        assert map_state.deactivate_count() == 12


class TestMapCycle:
    """Sinking and raising cells through MapState."""

    def test_cell_sinks_only_after_both_phases(self, grid, map_state):
        cell_id = grid.cell_id((5, 5))
        map_state.modify_map(1, [(cell_id, (5, 5))], random.Random(0))
        assert map_state.phase_of(cell_id) == PHASE_WARNING
        assert grid.is_walkable((5, 5))

        assert map_state.advance_transitions(1.0) == []
        assert map_state.advance_transitions(0.5) == []
        assert map_state.phase_of(cell_id) == PHASE_SINKING
        assert grid.is_walkable((5, 5))

        signals = map_state.advance_transitions(0.5)
        assert kinds(signals) == [CELL_DEACTIVATED]
        assert signals[0].cell == (5, 5)
        assert not grid.is_walkable((5, 5))
        assert map_state.phase_of(cell_id) == PHASE_DEACTIVATED

    def test_deactivate_then_reactivate_restores_cell(self, grid, map_state):
        rng = random.Random(0)
        cell_id = grid.cell_id((5, 5))
        map_state.modify_map(1, [(cell_id, (5, 5))], rng)
        map_state.advance_transitions(2.0)
        assert not grid.is_walkable((5, 5))

        map_state.modify_map(1, [(grid.cell_id((9, 9)), (9, 9))], rng)
        assert map_state.transitions[cell_id].kind == REACTIVATING
        map_state.advance_transitions(1.5)
        assert map_state.phase_of(cell_id) == PHASE_RISING
        assert not grid.is_walkable((5, 5))

        signals = map_state.advance_transitions(0.5)
        assert (5, 5) in [s.cell for s in signals if s.kind == CELL_REACTIVATED]
        assert grid.is_walkable((5, 5))
        assert cell_id not in map_state.transitions

    def test_in_flight_deactivation_is_not_raised(self, grid, map_state):
        rng = random.Random(0)
        cell_id = grid.cell_id((5, 5))
        map_state.modify_map(1, [(cell_id, (5, 5))], rng)
        map_state.advance_transitions(1.0)
        map_state.modify_map(0, [(grid.cell_id((9, 9)), (9, 9))], rng)
        assert map_state.transitions[cell_id].kind == DEACTIVATING

    def test_count_is_capped_by_candidates(self, grid, map_state):
        candidates = [(grid.cell_id((x, 0)), (x, 0)) for x in range(3)]
        map_state.modify_map(10, candidates, random.Random(1))
        assert sorted(map_state.transitions) == [cell_id for cell_id, _ in candidates]

    def test_no_candidates_logs_and_skips(self, grid, map_state, caplog):
        cell_id = grid.cell_id((5, 5))
        map_state.modify_map(1, [(cell_id, (5, 5))], random.Random(0))
        map_state.advance_transitions(2.0)
        with caplog.at_level(logging.WARNING, logger="map_state"):
            map_state.modify_map(10, [], random.Random(0))
        assert "No available position" in caplog.text
        # Finished deactivations are still raised on a skipped cycle.
        assert list(map_state.transitions) == [cell_id]
        assert map_state.transitions[cell_id].kind == REACTIVATING


class TestMapStateUpdate:
    def test_cycle_fires_every_period(self, map_state):
        candidates = [(i, divmod(i, 25)) for i in range(40)]
        rng = random.Random(2)
        for _ in range(4):
            map_state.update(1.0, lambda: candidates, rng)
        assert map_state.transitions == {}

        map_state.update(1.0, lambda: candidates, rng)
        assert map_state.time_elapsed == pytest.approx(5.0)
        assert len(map_state.transitions) == 10
        assert all(t.kind == DEACTIVATING for t in map_state.transitions.values())

    def test_same_seed_picks_same_cells(self):
        candidates = [(i, divmod(i, 25)) for i in range(100)]
        picks = []
        for _ in range(2):
            state = MapState(Grid(25), SnakeConfig())
            state.update(5.0, lambda: candidates, random.Random(11))
            picks.append(sorted(state.transitions))
        assert picks[0] == picks[1]

    def test_frozen_state_does_nothing(self, map_state):
        map_state.freeze()
        assert map_state.update(10.0, lambda: [(0, (0, 0))], random.Random(0)) == []
        assert map_state.time_elapsed == 0.0
        assert map_state.transitions == {}
