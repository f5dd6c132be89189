# Menu -> in-game -> game-over flow wrapped around one SnakeGame session at a time.
from __future__ import annotations

import logging
import random

try:
    from .game_logic import SnakeConfig, SnakeGame
    from .signals import GAME_OVER, Signal
    from .utils import RepeatingTimer, create_range
except ImportError:
    from game_logic import SnakeConfig, SnakeGame
    from signals import GAME_OVER, Signal
    from utils import RepeatingTimer, create_range


logger = logging.getLogger(__name__)

MENU = "menu"
IN_GAME = "in_game"
GAME_OVER_STATE = "game_over"

# Seconds of the game-over screen kept free after the last segment's death effect starts.
DEATH_EFFECT_TAIL = 2.0


class GameFlow:
    """Owns the current session and moves between menu, play and game-over screens."""

    def __init__(self, config: SnakeConfig | None = None, seed: int | None = None) -> None:
        self.config = (config or SnakeConfig()).validate()
        self.rng = random.Random(seed)
        self.state = MENU
        self.game: SnakeGame | None = None
        self.transition_timer: RepeatingTimer | None = None
        self.death_effect_delays: list[float] = []
        self.last_score = 0
        self.last_time = 0.0

    def start(self) -> list[Signal]:
        """Leave the menu with a brand-new session."""
        if self.state == IN_GAME:
            return []
        self.game = SnakeGame(self.config, rng=self.rng)
        self.state = IN_GAME
        self.transition_timer = None
        self.death_effect_delays = []
        return []

    def update(self, delta_time: float, direction: str | None = None) -> list[Signal]:
        if self.state == IN_GAME and self.game is not None:
            signals = self.game.update(delta_time, direction)
            if any(signal.kind == GAME_OVER for signal in signals):
                self._on_game_over()
            return signals
        if self.state == GAME_OVER_STATE:
            self._update_transition_timer(delta_time)
        return []

    def _on_game_over(self) -> None:
        game = self.game
        if game is None:
            return
        self.state = GAME_OVER_STATE
        self.last_score = game.score
        self.last_time = game.time_elapsed
        span = self.config.state_transition_time - DEATH_EFFECT_TAIL
        self.death_effect_delays = create_range(span, len(game.snake.bodies))
        if self.config.state_transition_time > 0:
            self.transition_timer = RepeatingTimer(self.config.state_transition_time)
        else:
            self._back_to_menu()

    def _update_transition_timer(self, delta_time: float) -> None:
        if self.transition_timer is not None and self.transition_timer.tick(delta_time):
            self._back_to_menu()

    def _back_to_menu(self) -> None:
        logger.debug("Returning to menu after score %d.", self.last_score)
        self.state = MENU
        self.game = None
        self.transition_timer = None
        self.death_effect_delays = []

    def death_effect_active(self, segment_index: int) -> bool:
        """True once the staggered death effect of a segment should be playing."""
        if self.state != GAME_OVER_STATE or self.transition_timer is None:
            return False
        if segment_index >= len(self.death_effect_delays):
            return False
        return self.transition_timer.elapsed >= self.death_effect_delays[segment_index]
