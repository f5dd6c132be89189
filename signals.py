# Outbound signal values returned from every session update.
from __future__ import annotations

from dataclasses import dataclass


FOOD_SPAWNED = "food-spawned"
FOOD_CONSUMED = "food-consumed"
SEGMENT_GROWN = "segment-grown"
CELL_DEACTIVATED = "cell-deactivated"
CELL_REACTIVATED = "cell-reactivated"
GAME_OVER = "game-over"
SCORE_INCREMENTED = "score-incremented"
SPEED_BOOSTED = "speed-boosted"
DIRECTION_REJECTED = "direction-rejected"

SIGNAL_KINDS = frozenset(
    {
        FOOD_SPAWNED,
        FOOD_CONSUMED,
        SEGMENT_GROWN,
        CELL_DEACTIVATED,
        CELL_REACTIVATED,
        GAME_OVER,
        SCORE_INCREMENTED,
        SPEED_BOOSTED,
        DIRECTION_REJECTED,
    }
)


@dataclass(frozen=True)
class Signal:
    """One tagged event for the presentation layer to react to.

    `cell` is set for food and map-cell events, `value` carries the new
    score/speed/segment count, and `reason` names why a game ended or an
    input was rejected.
    """
    kind: str
    cell: tuple[int, int] | None = None
    value: float | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in SIGNAL_KINDS:
            raise ValueError(f"Unknown signal kind: {self.kind}")


def kinds(signals: list[Signal]) -> list[str]:
    """Signal kinds in emission order, handy for callers that only branch on kind."""
    return [signal.kind for signal in signals]
