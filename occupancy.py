# Read-only query for cells that are safe to place food or new obstacles on.
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

try:
    from .utils import cell_of
except ImportError:
    from utils import cell_of

if TYPE_CHECKING:
    from game_logic import Food, Snake, SnakeConfig
    from map_state import Grid, MapState


Cell = tuple[int, int]


def exclusion_square(anchor: Cell, side: int, origin_anchored: bool) -> Iterable[Cell]:
    """
    Cells of a side x side square around `anchor`.

    With origin_anchored=True the square is pinned to [0, side) x [0, side)
    regardless of the anchor, which is how the first releases of the game
    placed it.
    """
    if side <= 0:
        return
    if origin_anchored:
        start_x = start_z = 0
    else:
        start_x = anchor[0] - side // 2
        start_z = anchor[1] - side // 2
    for i in range(side):
        for j in range(side):
            yield start_x + i, start_z + j


def occupied_cells(
    snake: Snake | None,
    food: Food | None,
    config: SnakeConfig,
) -> set[Cell]:
    """Cells blocked by the snake, its body, the food, and the proximity buffers around them."""
    blocked: set[Cell] = set()

    if snake is not None:
        head_target = cell_of(snake.target_position)
        blocked.add(head_target)
        for body in snake.bodies:
            blocked.add(cell_of(body.target_position))
        side = int(min(snake.speed, config.head_buffer_cap))
        blocked.update(exclusion_square(head_target, side, config.origin_anchored_exclusion))

    if food is not None:
        food_cell = food.cell
        blocked.add(food_cell)
        blocked.update(exclusion_square(food_cell, config.food_buffer, config.origin_anchored_exclusion))

    return blocked


def empty_cells(
    grid: Grid,
    map_state: MapState | None,
    snake: Snake | None,
    food: Food | None,
    config: SnakeConfig,
) -> list[tuple[int, Cell]]:
    """
    Walkable cells with no transition in flight and nothing on or near them.

    Returned as (cell id, (x, z)) in ascending id order so that a seeded
    random source always picks the same cells.
    """
    busy = map_state.busy_cells() if map_state is not None else set()
    blocked = occupied_cells(snake, food, config)
    return [
        (cell_id, cell)
        for cell_id, cell, walkable in grid.all_cells()
        if walkable and cell_id not in busy and cell not in blocked
    ]
