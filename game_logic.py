# Core Snake session state and rules, independent from GUI/simulation code.
from __future__ import annotations

from dataclasses import dataclass
import logging
import random

import numpy as np

try:
    from .map_state import Grid, MapState
    from .occupancy import empty_cells
    from .signals import (
        DIRECTION_REJECTED,
        FOOD_CONSUMED,
        FOOD_SPAWNED,
        GAME_OVER,
        SCORE_INCREMENTED,
        SEGMENT_GROWN,
        SPEED_BOOSTED,
        Signal,
    )
    from .utils import (
        ACTIONS,
        REVERSE_DIRECTION,
        RepeatingTimer,
        cell_of,
        cell_to_position,
        choose_random,
        direction_vector,
        ease_in_out_sine,
        move_towards,
        normalize_or_zero,
        planar_distance,
    )
except ImportError:
    from map_state import Grid, MapState
    from occupancy import empty_cells
    from signals import (
        DIRECTION_REJECTED,
        FOOD_CONSUMED,
        FOOD_SPAWNED,
        GAME_OVER,
        SCORE_INCREMENTED,
        SEGMENT_GROWN,
        SPEED_BOOSTED,
        Signal,
    )
    from utils import (
        ACTIONS,
        REVERSE_DIRECTION,
        RepeatingTimer,
        cell_of,
        cell_to_position,
        choose_random,
        direction_vector,
        ease_in_out_sine,
        move_towards,
        normalize_or_zero,
        planar_distance,
    )


logger = logging.getLogger(__name__)

# Bounds used when validating a config.
MIN_MAP_SIZE = 5
MAX_MAP_SIZE = 200
MIN_SPEED = 0.1
MAX_SPEED = 60.0

BOOST_SPEED_AT = (5, 10, 20, 30, 40)
HEAD_BUFFER_CAP = 10
FOOD_BUFFER = 3
MIN_FOOD_DISTANCE = 0.1

DEATH_WALL = "wall"
DEATH_OBSTACLE = "obstacle"
DEATH_SELF = "self"
DEATH_BODY_OBSTACLE = "body-obstacle"


@dataclass
class SnakeConfig:
    """Session settings shared between the rules, the simulator and the GUI."""
    map_size: int = 25
    base_speed: float = 3.0
    speed_step: float = 1.0
    boost_speed_at: tuple[int, ...] = BOOST_SPEED_AT
    deactivation_period: float = 5.0
    deactivate_base: int = 10
    deactivate_every: float = 20.0
    deactivate_max: int = 25
    warning_duration: float = 1.5
    transition_duration: float = 0.5
    food_buffer: int = FOOD_BUFFER
    head_buffer_cap: int = HEAD_BUFFER_CAP
    food_collision_distance: float = MIN_FOOD_DISTANCE
    origin_anchored_exclusion: bool = False
    state_transition_time: float = 4.0

    @property
    def start_cell(self) -> tuple[int, int]:
        return self.map_size // 2, self.map_size // 2

    def validate(self) -> SnakeConfig:
        """Raise ValueError with a readable message for out-of-range settings."""
        if not (MIN_MAP_SIZE <= self.map_size <= MAX_MAP_SIZE):
            raise ValueError(f"Map size must be between {MIN_MAP_SIZE} and {MAX_MAP_SIZE}.")
        if not (MIN_SPEED <= self.base_speed <= MAX_SPEED):
            raise ValueError(f"Base speed must be between {MIN_SPEED} and {MAX_SPEED}.")
        if self.speed_step < 0:
            raise ValueError("Speed step must be >= 0.")
        if list(self.boost_speed_at) != sorted(set(self.boost_speed_at)):
            raise ValueError("Speed boost thresholds must be strictly increasing.")
        for name in ("deactivation_period", "warning_duration", "transition_duration", "deactivate_every"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.replace('_', ' ').capitalize()} must be > 0.")
        if self.deactivate_base < 0 or self.deactivate_max < self.deactivate_base:
            raise ValueError("Deactivation counts must satisfy 0 <= base <= max.")
        if self.food_buffer < 0 or self.head_buffer_cap < 0:
            raise ValueError("Exclusion buffer sizes must be >= 0.")
        if self.food_collision_distance <= 0:
            raise ValueError("Food collision distance must be > 0.")
        if self.state_transition_time < 0:
            raise ValueError("State transition time must be >= 0.")
        return self


@dataclass(eq=False)
class Segment:
    """One body unit; index 0 trails the head."""
    index: int
    position: np.ndarray
    grid_position: np.ndarray
    target_position: np.ndarray

    @property
    def cell(self) -> tuple[int, int]:
        return cell_of(self.grid_position)

    @property
    def heading(self) -> np.ndarray:
        return normalize_or_zero(self.target_position - self.grid_position)


class Snake:
    """Head state plus the ordered body chain."""

    def __init__(self, start_cell: tuple[int, int], direction: str = "up", speed: float = 3.0) -> None:
        self.grid_position = cell_to_position(start_cell)
        self.position = self.grid_position.copy()
        self.direction = direction
        self.pending_direction = direction  # latched from input; applied next tick
        self.target_position = self.next_target()
        self.speed = speed
        self.tick_timer = RepeatingTimer(1.0)
        self.bodies: list[Segment] = []

    def next_target(self) -> np.ndarray:
        return self.grid_position + direction_vector(self.direction)

    @property
    def cell(self) -> tuple[int, int]:
        return cell_of(self.grid_position)

    @property
    def heading(self) -> np.ndarray:
        return direction_vector(self.direction)

    def queue_direction(self, direction: str) -> bool:
        """Latch a direction; a 180-degree turn into the neck is refused."""
        if REVERSE_DIRECTION[direction] == self.direction:
            return False
        self.pending_direction = direction
        return True

    def commit_tick(self) -> None:
        """Snap to the target cell, aim at the next one and shift targets down the chain."""
        self.direction = self.pending_direction
        leader_target = self.target_position
        self.grid_position = self.target_position.copy()
        self.position = self.grid_position.copy()
        self.target_position = self.next_target()

        for body in self.bodies:
            previous_target = body.target_position
            body.grid_position = previous_target.copy()
            body.position = previous_target.copy()
            body.target_position = leader_target.copy()
            leader_target = previous_target

    def travel(self, delta: float) -> None:
        """Between ticks everything glides toward its own target at the same speed."""
        step = self.speed * delta
        self.position = move_towards(self.position, self.target_position, step)
        for body in self.bodies:
            body.position = move_towards(body.position, body.target_position, step)


@dataclass(eq=False)
class Food:
    position: np.ndarray
    age: float = 0.0
    bob_cycle: float = 2.0
    bob_amplitude: float = 0.5

    @property
    def cell(self) -> tuple[int, int]:
        return cell_of(self.position)

    def bob_offset(self) -> float:
        """Cosmetic height above the cell; never used by the rules."""
        return self.bob_amplitude * ease_in_out_sine(self.age / self.bob_cycle)


class SnakeGame:
    """One play session: pure state + rules, stepped by update() once per frame."""

    def __init__(
        self,
        config: SnakeConfig | None = None,
        rng: random.Random | None = None,
        seed: int | None = None,
    ) -> None:
        self.config = (config or SnakeConfig()).validate()
        self.rng = rng if rng is not None else random.Random(seed)
        self.reset()

    def reset(self) -> None:
        """Fresh grid, snake at the centre heading up, one food item."""
        cfg = self.config
        self.grid = Grid(cfg.map_size)
        self.map_state = MapState(self.grid, cfg)
        self.snake = Snake(cfg.start_cell, "up", cfg.base_speed)
        self.food: Food | None = None
        self.alive = True
        self.death_reason: str | None = None
        self._outbox: list[Signal] = []
        self._outbox.extend(self.spawn_food())

    @property
    def score(self) -> int:
        return self.map_state.score

    @property
    def time_elapsed(self) -> float:
        return self.map_state.time_elapsed

    def empty_cells(self) -> list[tuple[int, tuple[int, int]]]:
        return empty_cells(self.grid, self.map_state, self.snake, self.food, self.config)

    def queue_direction(self, direction: str) -> bool:
        """Queue an input direction; reversals emit a rejection cue on the next update."""
        if not self.alive or direction not in ACTIONS:
            return False
        if self.snake.queue_direction(direction):
            return True
        self._outbox.append(
            Signal(DIRECTION_REJECTED, reason=f"{direction} reverses {self.snake.direction}")
        )
        return False

    def update(self, delta_time: float, direction: str | None = None) -> list[Signal]:
        """
        Advance one frame: map mutation, then movement, then collision.
        Returns every signal raised since the previous call.
        """
        if direction is not None:
            self.queue_direction(direction)
        signals, self._outbox = self._outbox, []
        if not self.alive:
            return signals

        delta = max(0.0, float(delta_time))
        signals.extend(self.map_state.update(delta, self.empty_cells, self.rng))
        if self.food is None and self.map_state.deactivation_timer.just_finished:
            signals.extend(self.spawn_food())
        signals.extend(self.advance_snake(delta))
        signals.extend(self.check_collisions())
        if self.food is not None:
            self.food.age += delta
        return signals

    def advance_snake(self, delta: float) -> list[Signal]:
        snake = self.snake
        if snake.tick_timer.tick(delta * snake.speed):
            snake.commit_tick()
            return self._eat_if_on_food()
        snake.travel(delta)
        return []

    def _eat_if_on_food(self) -> list[Signal]:
        food = self.food
        if food is None:
            return []
        if planar_distance(self.snake.grid_position, food.position) >= self.config.food_collision_distance:
            return []
        self.food = None
        signals = [Signal(FOOD_CONSUMED, cell=food.cell)]
        signals.extend(self.grow())
        signals.extend(self.spawn_food())
        return signals

    def grow(self) -> list[Signal]:
        """Append one trailing segment, bump the score, and boost speed at the length thresholds."""
        snake = self.snake
        if not snake.bodies:
            target = snake.grid_position.copy()
            position = snake.position - direction_vector(snake.direction)
            grid_position = cell_to_position(cell_of(position))
        else:
            last = snake.bodies[-1]
            back = normalize_or_zero(last.target_position - last.position)
            if not back.any():
                back = normalize_or_zero(last.target_position - last.grid_position)
            if not back.any():
                back = direction_vector(snake.direction)
            # Commits to the last segment's cell; only the drawn position sits a cell further back.
            target = last.target_position - back
            position = last.position - back
            grid_position = cell_to_position(cell_of(target))

        snake.bodies.append(
            Segment(
                index=len(snake.bodies),
                position=position,
                grid_position=grid_position,
                target_position=target,
            )
        )
        self.map_state.score += 1
        length = len(snake.bodies)
        signals = [
            Signal(SEGMENT_GROWN, cell=cell_of(grid_position), value=length),
            Signal(SCORE_INCREMENTED, value=self.map_state.score),
        ]
        if length in self.config.boost_speed_at:
            snake.speed += self.config.speed_step
            signals.append(Signal(SPEED_BOOSTED, value=snake.speed))
        return signals

    def spawn_food(self) -> list[Signal]:
        choice = choose_random(self.empty_cells(), self.rng)
        if choice is None:
            logger.warning("No available position found for spawning food; retrying next map cycle.")
            return []
        return self.place_food(choice[1])

    def place_food(self, cell: tuple[int, int]) -> list[Signal]:
        """Put the single food item on a cell, replacing any existing one."""
        self.food = Food(cell_to_position(cell))
        return [Signal(FOOD_SPAWNED, cell=cell)]

    def check_collisions(self) -> list[Signal]:
        """End the session on the first fatal contact; a no-op once it has ended."""
        if not self.alive:
            return []
        snake = self.snake
        head = snake.cell

        if not self.grid.in_bounds(head):
            return self.end_game(DEATH_WALL)

        obstacles = self.grid.obstacles()
        body_cells = [body.cell for body in snake.bodies]
        if head in obstacles:
            return self.end_game(DEATH_OBSTACLE)
        if head in body_cells:
            return self.end_game(DEATH_SELF)
        if any(cell in obstacles for cell in body_cells):
            return self.end_game(DEATH_BODY_OBSTACLE)
        return []

    def end_game(self, reason: str) -> list[Signal]:
        self.alive = False
        self.death_reason = reason
        self.map_state.freeze()
        logger.info(
            "Game over (%s) at %.1fs with score %d.", reason, self.map_state.time_elapsed, self.map_state.score
        )
        return [Signal(GAME_OVER, cell=self.snake.cell, value=self.map_state.score, reason=reason)]

    def snapshot(self) -> dict:
        """Serializable view of everything a presentation layer draws."""
        snake = self.snake
        transitions = {
            cell_id: {"phase": t.phase, "progress": t.progress()}
            for cell_id, t in self.map_state.transitions.items()
        }
        return {
            "alive": self.alive,
            "death_reason": self.death_reason,
            "time_elapsed": self.map_state.time_elapsed,
            "score": self.map_state.score,
            "speed": snake.speed,
            "direction": snake.direction,
            "head": {
                "position": snake.position.tolist(),
                "grid_position": snake.grid_position.tolist(),
                "target_position": snake.target_position.tolist(),
                "heading": snake.heading.tolist(),
            },
            "bodies": [
                {
                    "position": body.position.tolist(),
                    "grid_position": body.grid_position.tolist(),
                    "target_position": body.target_position.tolist(),
                    "heading": body.heading.tolist(),
                }
                for body in snake.bodies
            ],
            "food": None
            if self.food is None
            else {"cell": self.food.cell, "bob_offset": self.food.bob_offset()},
            "grid": self.grid.to_dict(),
            "transitions": transitions,
        }
