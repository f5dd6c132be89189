# Greedy steering policy used by the headless simulator and tests.
from __future__ import annotations

try:
    from .game_logic import SnakeGame
    from .map_state import PHASE_IDLE
    from .utils import ACTIONS, DIRECTION_STEPS, REVERSE_DIRECTION, cell_of
except ImportError:
    from game_logic import SnakeGame
    from map_state import PHASE_IDLE
    from utils import ACTIONS, DIRECTION_STEPS, REVERSE_DIRECTION, cell_of

VALID_ACTIONS_BY_DIRECTION = {
    direction: [action for action in ACTIONS if action != REVERSE_DIRECTION[direction]]
    for direction in ACTIONS
}


def _next_cell(cell: tuple[int, int], direction: str) -> tuple[int, int]:
    dx, dz = DIRECTION_STEPS[direction]
    return cell[0] + dx, cell[1] + dz


def is_danger(game: SnakeGame, cell: tuple[int, int]) -> bool:
    """Out of bounds, sunk, about to sink, or already covered by the body."""
    if not game.grid.in_bounds(cell):
        return True
    if not game.grid.is_walkable(cell):
        return True
    if game.map_state.phase_of(game.grid.cell_id(cell)) != PHASE_IDLE:
        return True
    return any(body.cell == cell or cell_of(body.target_position) == cell for body in game.snake.bodies)


class GreedyAutopilot:
    """Head for the food along safe cells; keep going straight when nothing is better."""

    def select_direction(self, game: SnakeGame) -> str:
        snake = game.snake
        # Decisions are made from the cell the head is about to commit to.
        origin = cell_of(snake.target_position)
        current = snake.pending_direction
        food_cell = game.food.cell if game.food is not None else None

        best: tuple[int, int, str] | None = None
        for action in VALID_ACTIONS_BY_DIRECTION[snake.direction]:
            cell = _next_cell(origin, action)
            danger = int(is_danger(game, cell))
            if food_cell is not None:
                distance = abs(food_cell[0] - cell[0]) + abs(food_cell[1] - cell[1])
            else:
                distance = 0 if action == current else 1
            candidate = (danger, distance, action)
            if best is None or candidate[:2] < best[:2]:
                best = candidate
        return best[2] if best is not None else current
