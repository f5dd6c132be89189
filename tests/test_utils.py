"""
Tests for utils.py and signals.py helpers.
"""

import os
import random
import sys

import numpy as np
import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from signals import FOOD_SPAWNED, GAME_OVER, Signal, kinds
from utils import (
    REVERSE_DIRECTION,
    RepeatingTimer,
    cell_of,
    choose_random,
    choose_random_n,
    chunked_mean,
    create_range,
    direction_vector,
    ease_in_out_sine,
    format_time,
    move_towards,
    planar_distance,
    summarize,
    vec3,
)


class TestDirections:
    def test_unit_vectors(self):
        assert np.allclose(direction_vector("up"), [0, 0, -1])
        assert np.allclose(direction_vector("down"), [0, 0, 1])
        assert np.allclose(direction_vector("left"), [1, 0, 0])
        assert np.allclose(direction_vector("right"), [-1, 0, 0])

    def test_reverse_pairs_cancel(self):
        for direction, reverse in REVERSE_DIRECTION.items():
            assert np.allclose(direction_vector(direction) + direction_vector(reverse), 0)

    def test_cell_of_rounds_to_nearest(self):
        assert cell_of(vec3(3.4, 2.0, 5.6)) == (3, 6)
        assert cell_of(vec3(-1.0, 0.0, 0.0)) == (-1, 0)

    def test_planar_distance_ignores_height(self):
        assert planar_distance(vec3(0, 5, 0), vec3(3, -2, 4)) == pytest.approx(5.0)


class TestMoveTowards:
    def test_partial_step(self):
        assert np.allclose(move_towards(vec3(0, 0, 0), vec3(0, 0, -1), 0.25), [0, 0, -0.25])

    def test_never_overshoots(self):
        target = vec3(1, 0, 0)
        assert np.allclose(move_towards(vec3(0, 0, 0), target, 5.0), target)


class TestRepeatingTimer:
    def test_fires_once_per_period_and_keeps_remainder(self):
        timer = RepeatingTimer(1.0)
        assert timer.tick(0.6) is False
        assert timer.tick(0.6) is True
        assert timer.just_finished
        assert timer.elapsed == pytest.approx(0.2)
        assert timer.tick(0.1) is False
        assert not timer.just_finished

    def test_large_delta_fires_once(self):
        timer = RepeatingTimer(1.0)
        assert timer.tick(3.5) is True
        assert timer.elapsed == pytest.approx(0.5)

    def test_zero_and_negative_deltas_do_not_fire(self):
        timer = RepeatingTimer(4.0)
        assert timer.tick(0.0) is False
        assert timer.tick(-1.0) is False
        assert timer.elapsed == 0.0

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            RepeatingTimer(0.0)


class TestRandomPicks:
    def test_choose_random_empty(self):
        assert choose_random([], random.Random(0)) is None

    def test_choose_random_n_is_distinct_and_capped(self):
        rng = random.Random(3)
        picks = choose_random_n(list(range(10)), 4, rng)
        assert len(set(picks)) == 4
        assert sorted(choose_random_n([1, 2], 5, rng)) == [1, 2]
        assert choose_random_n([1, 2], 0, rng) == []

    def test_same_seed_same_picks(self):
        items = list(range(50))
        assert choose_random_n(items, 5, random.Random(9)) == choose_random_n(items, 5, random.Random(9))


class TestFormattingAndEasing:
    @pytest.mark.parametrize("seconds, text", [(0, "0:00"), (9.9, "0:09"), (65.7, "1:05"), (600, "10:00")])
    def test_format_time(self, seconds, text):
        assert format_time(seconds) == text

    def test_ease_in_out_sine_endpoints(self):
        assert ease_in_out_sine(0.0) == pytest.approx(0.0)
        assert ease_in_out_sine(0.5) == pytest.approx(0.5)
        assert ease_in_out_sine(1.0) == pytest.approx(1.0)

    def test_create_range(self):
        assert create_range(2.0, 0) == []
        assert create_range(2.0, 1) == [0.0]
        assert create_range(2.0, 5) == pytest.approx([0.0, 0.5, 1.0, 1.5, 2.0])


class TestStats:
    def test_chunked_mean(self):
        x_end, means = chunked_mean([1, 2, 3, 4, 5], chunk_size=2)
        assert x_end.tolist() == [2.0, 4.0, 5.0]
        assert means.tolist() == pytest.approx([1.5, 3.5, 5.0])

    def test_summarize(self):
        stats = summarize([1.0, 2.0, 3.0, 4.0])
        assert stats["mean"] == pytest.approx(2.5)
        assert stats["median"] == pytest.approx(2.5)
        assert stats["max"] == pytest.approx(4.0)
        assert summarize([])["mean"] == 0.0


class TestSignals:
    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValueError):
            Signal("teleported")

    def test_signals_are_immutable(self):
        signal = Signal(GAME_OVER, cell=(1, 2), value=3, reason="wall")
        with pytest.raises(AttributeError):
            signal.kind = FOOD_SPAWNED

    def test_kinds_keeps_order(self):
        assert kinds([Signal(FOOD_SPAWNED), Signal(GAME_OVER)]) == [FOOD_SPAWNED, GAME_OVER]
