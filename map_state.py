# Map cells, their walkable flags, and the timed two-phase sink/rise mutation of the map.
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import random
from typing import Callable

import numpy as np

try:
    from .signals import CELL_DEACTIVATED, CELL_REACTIVATED, Signal
    from .utils import RepeatingTimer, choose_random_n
except ImportError:
    from signals import CELL_DEACTIVATED, CELL_REACTIVATED, Signal
    from utils import RepeatingTimer, choose_random_n


logger = logging.getLogger(__name__)

DEACTIVATING = "deactivating"
REACTIVATING = "reactivating"

PHASE_IDLE = "idle"
PHASE_WARNING = "warning"
PHASE_SINKING = "sinking"
PHASE_DEACTIVATED = "deactivated"
PHASE_RISING = "rising"

Cell = tuple[int, int]


class Grid:
    """Fixed-size square of cells; walkable flags live in a NumPy bool array indexed [x, z]."""

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("Grid size must be at least 1.")
        self.size = size
        self.walkable = np.ones((size, size), dtype=bool)

    def in_bounds(self, cell: Cell) -> bool:
        x, z = cell
        return 0 <= x < self.size and 0 <= z < self.size

    def cell_id(self, cell: Cell) -> int:
        if not self.in_bounds(cell):
            raise ValueError(f"Cell {cell} is outside a {self.size}x{self.size} grid.")
        return cell[0] * self.size + cell[1]

    def position_of(self, cell_id: int) -> Cell:
        x, z = divmod(cell_id, self.size)
        return x, z

    def all_cells(self) -> list[tuple[int, Cell, bool]]:
        """Every cell as (id, (x, z), walkable), ordered by id."""
        return [
            (x * self.size + z, (x, z), bool(self.walkable[x, z]))
            for x in range(self.size)
            for z in range(self.size)
        ]

    def set_walkable(self, cell_id: int, walkable: bool) -> None:
        x, z = self.position_of(cell_id)
        self.walkable[x, z] = walkable

    def is_walkable(self, cell: Cell) -> bool:
        """Out-of-bounds cells are never walkable."""
        if not self.in_bounds(cell):
            return False
        return bool(self.walkable[cell[0], cell[1]])

    def obstacles(self) -> set[Cell]:
        xs, zs = np.where(~self.walkable)
        return set(zip(xs.tolist(), zs.tolist()))

    def to_dict(self) -> dict:
        return {"size": self.size, "walkable": self.walkable.tolist()}


@dataclass
class CellTransition:
    """
    Two-phase animated change of one cell.

    Deactivation: warning -> sinking -> deactivated (stays until superseded).
    Reactivation: warning -> rising -> record dropped.
    The owning MapState flips the walkable flag only when phase 2 completes.
    """
    kind: str
    warning_duration: float
    transition_duration: float
    elapsed: float = 0.0

    @property
    def total_duration(self) -> float:
        return self.warning_duration + self.transition_duration

    @property
    def complete(self) -> bool:
        return self.elapsed >= self.total_duration

    @property
    def phase(self) -> str:
        if self.elapsed < self.warning_duration:
            return PHASE_WARNING
        if not self.complete:
            return PHASE_SINKING if self.kind == DEACTIVATING else PHASE_RISING
        return PHASE_DEACTIVATED if self.kind == DEACTIVATING else PHASE_IDLE

    def progress(self) -> float:
        """0..1 progress through phase 2, for sink/rise offsets."""
        if self.elapsed <= self.warning_duration:
            return 0.0
        return min(1.0, (self.elapsed - self.warning_duration) / self.transition_duration)

    def advance(self, delta: float) -> bool:
        """Returns True on the frame this transition completes."""
        if self.complete:
            return False
        self.elapsed += delta
        return self.complete


def deactivate_count(time_elapsed: float, base: int = 10, every: float = 20.0, cap: int = 25) -> int:
    """Cells to sink on one cycle: grows by one every `every` seconds, capped."""
    return min(cap, base + int(math.floor(time_elapsed / every)))


class MapState:
    """Session clock, score and the repeating map-shrinking scheduler."""

    def __init__(self, grid: Grid, config) -> None:
        self.grid = grid
        self.config = config
        self.time_elapsed = 0.0
        self.score = 0
        self.frozen = False
        self.deactivation_timer = RepeatingTimer(config.deactivation_period)
        self.transitions: dict[int, CellTransition] = {}

    def deactivate_count(self) -> int:
        cfg = self.config
        return deactivate_count(
            self.time_elapsed,
            base=cfg.deactivate_base,
            every=cfg.deactivate_every,
            cap=cfg.deactivate_max,
        )

    def phase_of(self, cell_id: int) -> str:
        transition = self.transitions.get(cell_id)
        return PHASE_IDLE if transition is None else transition.phase

    def busy_cells(self) -> set[int]:
        """Cells with any transition attached, finished deactivations included."""
        return set(self.transitions)

    def update(
        self,
        delta: float,
        find_empty_cells: Callable[[], list[tuple[int, Cell]]],
        rng: random.Random,
    ) -> list[Signal]:
        """Advance the clock and animations, then run a mutation cycle when the timer fires."""
        if self.frozen:
            return []
        self.time_elapsed += delta
        signals = self.advance_transitions(delta)
        if self.deactivation_timer.tick(delta):
            self.modify_map(self.deactivate_count(), find_empty_cells(), rng)
        return signals

    def advance_transitions(self, delta: float) -> list[Signal]:
        signals: list[Signal] = []
        for cell_id in sorted(self.transitions):
            transition = self.transitions[cell_id]
            if not transition.advance(delta):
                continue
            cell = self.grid.position_of(cell_id)
            if transition.kind == DEACTIVATING:
                self.grid.set_walkable(cell_id, False)
                signals.append(Signal(CELL_DEACTIVATED, cell=cell))
            else:
                self.grid.set_walkable(cell_id, True)
                del self.transitions[cell_id]
                signals.append(Signal(CELL_REACTIVATED, cell=cell))
        return signals

    def modify_map(
        self,
        count: int,
        candidates: list[tuple[int, Cell]],
        rng: random.Random,
    ) -> None:
        """Start sinking `count` random candidates and start raising every finished deactivation."""
        finished = [
            cell_id
            for cell_id, transition in self.transitions.items()
            if transition.kind == DEACTIVATING and transition.complete
        ]
        for cell_id in finished:
            self.transitions[cell_id] = self._new_transition(REACTIVATING)

        if not candidates:
            logger.warning("No available position found for deactivating map cells; skipping this cycle.")
            return

        chosen = choose_random_n(candidates, count, rng)
        for cell_id, _cell in chosen:
            self.transitions[cell_id] = self._new_transition(DEACTIVATING)
        logger.debug(
            "Map cycle at %.1fs: sinking %d cells, raising %d cells.",
            self.time_elapsed,
            len(chosen),
            len(finished),
        )

    def _new_transition(self, kind: str) -> CellTransition:
        return CellTransition(
            kind=kind,
            warning_duration=self.config.warning_duration,
            transition_duration=self.config.transition_duration,
        )

    def freeze(self) -> None:
        self.frozen = True
