# Shared helpers: direction tables, vector math, timers, random picks, easing and stats.
from __future__ import annotations

import math
import random
from typing import Sequence, TypeVar

import numpy as np


T = TypeVar("T")

ACTIONS = ("up", "down", "left", "right")
REVERSE_DIRECTION = {"up": "down", "down": "up", "left": "right", "right": "left"}

# World axes: y is up and the camera looks down -z, so "up" walks toward z = 0
# and "left" walks toward +x.
DIRECTION_STEPS = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (1, 0),
    "right": (-1, 0),
}


def vec3(x: float, y: float, z: float) -> np.ndarray:
    return np.array([x, y, z], dtype=np.float64)


def direction_vector(direction: str) -> np.ndarray:
    """Unit step for a direction name as a float3."""
    dx, dz = DIRECTION_STEPS[direction]
    return vec3(dx, 0.0, dz)


def cell_of(position: np.ndarray) -> tuple[int, int]:
    """Discrete (x, z) cell of a float3 position."""
    return int(round(float(position[0]))), int(round(float(position[2])))


def cell_to_position(cell: tuple[int, int], y: float = 0.0) -> np.ndarray:
    return vec3(cell[0], y, cell[1])


def planar_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Distance on the x/z plane, ignoring height."""
    return float(math.hypot(float(a[0] - b[0]), float(a[2] - b[2])))


def normalize_or_zero(v: np.ndarray) -> np.ndarray:
    length = float(np.linalg.norm(v))
    if length <= 1e-9:
        return np.zeros(3, dtype=np.float64)
    return v / length


def move_towards(current: np.ndarray, target: np.ndarray, max_delta: float) -> np.ndarray:
    """Step from current toward target by at most max_delta, never overshooting."""
    offset = target - current
    distance = float(np.linalg.norm(offset))
    if distance <= max_delta or distance <= 1e-9:
        return target.copy()
    return current + offset / distance * max_delta


class RepeatingTimer:
    """Accumulating timer that fires each time a full period has elapsed."""

    def __init__(self, duration: float) -> None:
        if duration <= 0:
            raise ValueError("Timer duration must be > 0.")
        self.duration = float(duration)
        self.elapsed = 0.0
        self.just_finished = False

    def tick(self, delta: float) -> bool:
        """Advance by delta; keep the leftover fraction and report whether a period completed."""
        self.elapsed += max(0.0, float(delta))
        self.just_finished = self.elapsed >= self.duration
        if self.just_finished:
            self.elapsed = math.fmod(self.elapsed, self.duration)
        return self.just_finished


def choose_random(items: Sequence[T], rng: random.Random) -> T | None:
    if not items:
        return None
    return items[rng.randrange(len(items))]


def choose_random_n(items: Sequence[T], n: int, rng: random.Random) -> list[T]:
    """Pick up to n distinct items; n is capped at the number available."""
    count = max(0, min(int(n), len(items)))
    return rng.sample(list(items), count)


def ease_in_out_sine(t: float) -> float:
    return 0.5 * (1.0 - math.cos(math.pi * t))


def format_time(seconds: float) -> str:
    """Render play time as m:ss."""
    total = max(0, int(seconds))
    mins, secs = divmod(total, 60)
    return f"{mins}:{secs:02d}"


def create_range(span: float, count: int) -> list[float]:
    """
    Evenly spread `count` start offsets over [0, span].
    Used to stagger per-segment effects; a single entry starts at 0.
    """
    if count <= 0:
        return []
    if count == 1:
        return [0.0]
    return [float(v) for v in np.linspace(0.0, max(0.0, span), count)]


def chunked_mean(values: list[float], chunk_size: int) -> tuple[np.ndarray, np.ndarray]:
    """Compute mean value per fixed-size chunk."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    arr = np.asarray(values, dtype=np.float32)
    if arr.size == 0:
        empty = np.array([], dtype=np.float32)
        return empty, empty

    x_end: list[float] = []
    means: list[float] = []
    for start in range(0, arr.size, chunk_size):
        chunk = arr[start : start + chunk_size]
        x_end.append(float(start + chunk.size))
        means.append(float(np.mean(chunk)))

    return np.asarray(x_end, dtype=np.float32), np.asarray(means, dtype=np.float32)


def summarize(values: list[float]) -> dict[str, float]:
    """Mean/median/quartiles/max of a list, zeros for an empty list."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return {"mean": 0.0, "median": 0.0, "q1": 0.0, "q3": 0.0, "max": 0.0}
    return {
        "mean": float(np.mean(arr)),
        "median": float(np.median(arr)),
        "q1": float(np.percentile(arr, 25)),
        "q3": float(np.percentile(arr, 75)),
        "max": float(np.max(arr)),
    }
