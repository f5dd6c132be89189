# Top-down Snake player GUI: draws the session and feeds it frame deltas and key input.
from __future__ import annotations

import time
import tkinter as tk
from tkinter import messagebox

# Support both package imports and running this file directly.
try:
    from .game_flow import GAME_OVER_STATE, IN_GAME, MENU, GameFlow
    from .game_logic import MAX_MAP_SIZE, MIN_MAP_SIZE, SnakeConfig
    from .map_state import PHASE_DEACTIVATED, PHASE_RISING, PHASE_SINKING, PHASE_WARNING
    from .signals import DIRECTION_REJECTED
    from .utils import format_time
except ImportError:
    from game_flow import GAME_OVER_STATE, IN_GAME, MENU, GameFlow
    from game_logic import MAX_MAP_SIZE, MIN_MAP_SIZE, SnakeConfig
    from map_state import PHASE_DEACTIVATED, PHASE_RISING, PHASE_SINKING, PHASE_WARNING
    from signals import DIRECTION_REJECTED
    from utils import format_time


class SnakeApp:
    """Tkinter presentation layer for GameFlow/SnakeGame."""
    UI_SCALE = 1.2
    FRAME_MS = 16
    MAX_FRAME_DELTA = 0.1  # seconds
    CELL_SIZE = 26
    BG = "#101418"
    BOARD_BG = "#1c2229"
    SIDEBAR_BG = "#0f1720"
    CELL_COLOR = "#7c90ff"
    WARNING_COLOR = "#ffb347"
    SINKING_COLOR = "#a0574a"
    DEACTIVATED_COLOR = "#2a2f3a"
    RISING_COLOR = "#5a6bb8"
    SNAKE_HEAD = "#ff3b3b"
    SNAKE_BODY = "#2f8cff"
    DEAD_BODY = "#555b66"
    FOOD_COLOR = "#00d0ff"
    TEXT_PRIMARY = "#e6eef7"
    TEXT_MUTED = "#95a4b8"
    ACCENT = "#42c4ff"

    PHASE_COLORS = {
        PHASE_WARNING: WARNING_COLOR,
        PHASE_SINKING: SINKING_COLOR,
        PHASE_DEACTIVATED: DEACTIVATED_COLOR,
        PHASE_RISING: RISING_COLOR,
    }

    # Screen arrows map onto world direction names with the x axis mirrored
    # (world "left" walks +x, which is drawn on the left of the board).
    KEY_DIRECTIONS = {
        "<Up>": "up",
        "<Down>": "down",
        "<Left>": "left",
        "<Right>": "right",
        "w": "up",
        "s": "down",
        "a": "left",
        "d": "right",
    }

    def __init__(self, root: tk.Tk, config: SnakeConfig | None = None) -> None:
        self.root = root
        self.root.title("Snake")
        self.root.configure(bg=self.BG)
        self.root.tk.call("tk", "scaling", self.UI_SCALE)

        self.config = config or SnakeConfig()
        self.flow = GameFlow(self.config)
        self.after_id: str | None = None  # Tkinter timer id for the frame loop
        self.paused = False
        self.queued_direction: str | None = None  # sampled once per frame
        self.last_frame_t = time.perf_counter()

        self._build_layout()
        self._bind_keys()
        self._apply_canvas_size()
        self.draw()
        self._schedule()

    def _s(self, value: int) -> int:
        """Scale pixel/font values for better readability."""
        return int(round(value * self.UI_SCALE))

    def _build_layout(self) -> None:
        """Create game canvas + right sidebar panels."""
        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)

        container = tk.Frame(self.root, bg=self.BG)
        container.grid(row=0, column=0, sticky="nsew", padx=self._s(16), pady=self._s(16))
        container.columnconfigure(0, weight=1)
        container.rowconfigure(0, weight=1)

        self.canvas = tk.Canvas(container, bg=self.BOARD_BG, highlightthickness=0, bd=0)
        self.canvas.grid(row=0, column=0, sticky="nsew", padx=(0, self._s(16)))

        self.sidebar = tk.Frame(container, bg=self.SIDEBAR_BG, width=self._s(300))
        self.sidebar.grid(row=0, column=1, sticky="ns")
        self.sidebar.grid_propagate(False)

        tk.Label(
            self.sidebar,
            text="Snake",
            fg=self.TEXT_PRIMARY,
            bg=self.SIDEBAR_BG,
            font=("Helvetica", self._s(16), "bold"),
        ).pack(anchor="w", padx=self._s(16), pady=(self._s(16), self._s(10)))

        self._build_status()
        self._build_controls()

    def _build_status(self) -> None:
        """Live time/score/speed/state labels."""
        frame = tk.LabelFrame(
            self.sidebar,
            text="Status",
            fg=self.TEXT_PRIMARY,
            bg=self.SIDEBAR_BG,
            bd=1,
            font=("Helvetica", self._s(10), "bold"),
            labelanchor="n",
        )
        frame.pack(fill="x", padx=self._s(16), pady=(0, self._s(14)))

        self.time_var = tk.StringVar(value="time: 0:00")
        self.score_var = tk.StringVar(value="score: 0")
        self.speed_var = tk.StringVar(value=f"speed: {self.config.base_speed:.1f}")
        self.state_var = tk.StringVar(value="State: Menu")

        for var in (self.time_var, self.score_var, self.speed_var, self.state_var):
            tk.Label(
                frame,
                textvariable=var,
                fg=self.TEXT_PRIMARY,
                bg=self.SIDEBAR_BG,
                font=("Helvetica", self._s(11)),
                anchor="w",
            ).pack(fill="x", padx=self._s(10), pady=self._s(4))

    def _build_controls(self) -> None:
        frame = tk.Frame(self.sidebar, bg=self.SIDEBAR_BG)
        frame.pack(fill="x", padx=self._s(16), pady=(0, self._s(10)))

        size_row = tk.Frame(frame, bg=self.SIDEBAR_BG)
        size_row.pack(fill="x", pady=self._s(4))
        tk.Label(
            size_row,
            text="Map size",
            fg=self.TEXT_PRIMARY,
            bg=self.SIDEBAR_BG,
            font=("Helvetica", self._s(10)),
        ).pack(side="left")
        self.map_size_var = tk.StringVar(value=str(self.config.map_size))
        tk.Spinbox(
            size_row,
            from_=MIN_MAP_SIZE,
            to=MAX_MAP_SIZE,
            textvariable=self.map_size_var,
            width=8,
            justify="center",
            bd=0,
            relief="flat",
            bg="#e8eef5",
            fg="#1a2734",
            font=("Helvetica", self._s(10)),
        ).pack(side="right")

        self._button(frame, "Start", self.start_game).pack(fill="x", pady=self._s(4))
        self._button(frame, "Pause", self.toggle_pause).pack(fill="x", pady=self._s(4))

        tk.Label(
            self.sidebar,
            text="Move: Arrow keys / WASD\nPause: Space",
            fg=self.TEXT_MUTED,
            bg=self.SIDEBAR_BG,
            justify="left",
            font=("Helvetica", self._s(10)),
        ).pack(anchor="w", padx=self._s(16), pady=(self._s(4), self._s(10)))

    def _button(self, parent: tk.Widget, text: str, command) -> tk.Button:
        return tk.Button(
            parent,
            text=text,
            command=command,
            fg="#09141f",
            bg=self.ACCENT,
            activebackground="#74d8ff",
            activeforeground="#09141f",
            bd=0,
            relief="flat",
            font=("Helvetica", self._s(11), "bold"),
            padx=self._s(12),
            pady=self._s(9),
            cursor="hand2",
        )

    def _bind_keys(self) -> None:
        for key, direction in self.KEY_DIRECTIONS.items():
            self.root.bind(key, lambda _e, d=direction: self._queue_direction(d))
        self.root.bind("<space>", lambda _e: self.toggle_pause())
        self.root.bind("<Return>", lambda _e: self.start_game())

    def _queue_direction(self, direction: str) -> None:
        self.queued_direction = direction

    def _apply_canvas_size(self) -> None:
        side_pixels = self.config.map_size * self.CELL_SIZE
        self.canvas.configure(width=side_pixels, height=side_pixels)

    def start_game(self) -> None:
        """Leave the menu, rebuilding the config if the map size changed."""
        if self.flow.state != MENU:
            return
        try:
            map_size = int(self.map_size_var.get())
            config = SnakeConfig(map_size=map_size).validate()
        except ValueError as exc:
            messagebox.showerror("Invalid Setting", str(exc))
            return
        if config.map_size != self.config.map_size:
            self.config = config
            self.flow = GameFlow(self.config)
            self._apply_canvas_size()
        self.paused = False
        self.flow.start()

    def toggle_pause(self) -> None:
        if self.flow.state != IN_GAME:
            return
        self.paused = not self.paused

    def _schedule(self) -> None:
        self.after_id = self.root.after(self.FRAME_MS, self.tick)

    def tick(self) -> None:
        """One frame: feed the real elapsed time into the flow, redraw, reschedule."""
        now = time.perf_counter()
        delta = now - self.last_frame_t
        self.last_frame_t = now

        if not self.paused:
            direction, self.queued_direction = self.queued_direction, None
            for signal in self.flow.update(min(delta, self.MAX_FRAME_DELTA), direction):
                if signal.kind == DIRECTION_REJECTED:
                    self.root.bell()

        self.draw()
        self._schedule()

    def _to_canvas(self, x: float, z: float) -> tuple[float, float]:
        cell = self.CELL_SIZE
        size = self.config.map_size
        return (size - 1 - x) * cell + cell / 2, z * cell + cell / 2

    def draw(self) -> None:
        """Render cells, food, snake, status labels and menu/game-over overlays."""
        self.canvas.delete("all")
        game = self.flow.game
        cell = self.CELL_SIZE
        side = self.config.map_size * cell

        if game is not None:
            snapshot = game.snapshot()
            for cell_id, (x, z), walkable in game.grid.all_cells():
                phase = game.map_state.phase_of(cell_id)
                color = self.PHASE_COLORS.get(phase, self.CELL_COLOR if walkable else self.DEACTIVATED_COLOR)
                cx, cy = self._to_canvas(x, z)
                half = cell / 2 - 2
                self.canvas.create_rectangle(cx - half, cy - half, cx + half, cy + half, fill=color, outline="")

            food = snapshot["food"]
            if food is not None:
                fx, fy = self._to_canvas(*food["cell"])
                radius = cell * (0.25 + 0.15 * food["bob_offset"])
                self.canvas.create_oval(fx - radius, fy - radius, fx + radius, fy + radius, fill=self.FOOD_COLOR, outline="")

            for index, body in enumerate(snapshot["bodies"]):
                bx, by = self._to_canvas(body["position"][0], body["position"][2])
                color = self.DEAD_BODY if self.flow.death_effect_active(index) else self.SNAKE_BODY
                half = cell * 0.2
                self.canvas.create_rectangle(bx - half, by - half, bx + half, by + half, fill=color, outline="")

            head = snapshot["head"]["position"]
            hx, hy = self._to_canvas(head[0], head[2])
            half = cell * 0.3
            self.canvas.create_rectangle(hx - half, hy - half, hx + half, hy + half, fill=self.SNAKE_HEAD, outline="")

            self.time_var.set(f"time: {format_time(snapshot['time_elapsed'])}")
            self.score_var.set(f"score: {snapshot['score']}")
            self.speed_var.set(f"speed: {snapshot['speed']:.1f}")

        if self.flow.state == MENU:
            self.state_var.set("State: Menu")
            self._overlay(side, "Snake", "Press Start or Enter")
        elif self.flow.state == GAME_OVER_STATE:
            self.state_var.set("State: Game Over")
            self._overlay(side, "Game Over", f"score {self.flow.last_score} in {format_time(self.flow.last_time)}")
        else:
            self.state_var.set("State: Paused" if self.paused else "State: Running")

    def _overlay(self, side: int, title: str, subtitle: str) -> None:
        self.canvas.create_rectangle(0, 0, side, side, fill="#000000", stipple="gray50", outline="")
        self.canvas.create_text(side // 2, side // 2 - 12, text=title, fill=self.TEXT_PRIMARY, font=("Helvetica", 22, "bold"))
        self.canvas.create_text(side // 2, side // 2 + 20, text=subtitle, fill=self.TEXT_MUTED, font=("Helvetica", 12))


def run_player_gui() -> None:
    """Launch the Snake player interface."""
    root = tk.Tk()
    SnakeApp(root)
    root.mainloop()


if __name__ == "__main__":
    run_player_gui()
