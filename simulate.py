# Headless simulation entrypoint: run autopilot sessions, print stats, optionally plot them.
from __future__ import annotations

import argparse
from dataclasses import dataclass
import logging
import os
import random
import time
from typing import Callable

# Keep matplotlib cache local for environments without writable home config.
LOCAL_MPLCONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), ".mplconfig")
os.makedirs(LOCAL_MPLCONFIG, exist_ok=True)
os.environ.setdefault("MPLCONFIGDIR", LOCAL_MPLCONFIG)

import matplotlib.pyplot as plt
import numpy as np

try:
    from .autopilot import GreedyAutopilot
    from .game_logic import MAX_MAP_SIZE, MIN_MAP_SIZE, SnakeConfig, SnakeGame
    from .signals import CELL_DEACTIVATED, FOOD_CONSUMED, Signal
    from .utils import chunked_mean, format_time, summarize
except ImportError:
    from autopilot import GreedyAutopilot
    from game_logic import MAX_MAP_SIZE, MIN_MAP_SIZE, SnakeConfig, SnakeGame
    from signals import CELL_DEACTIVATED, FOOD_CONSUMED, Signal
    from utils import chunked_mean, format_time, summarize


@dataclass
class SessionResult:
    survival_time: float
    score: int
    final_speed: float
    death_reason: str | None
    food_eaten: int
    cells_sunk: int


def run_session(
    game: SnakeGame,
    autopilot: GreedyAutopilot | None = None,
    fps: int = 60,
    max_seconds: float = 300.0,
    render_step: Callable[[SnakeGame, list[Signal]], None] | None = None,
) -> SessionResult:
    """Drive one session with fixed frame deltas until it ends or max_seconds pass."""
    if fps <= 0:
        raise ValueError("fps must be > 0")
    delta = 1.0 / fps
    max_frames = int(max_seconds * fps)
    food_eaten = 0
    cells_sunk = 0

    for _ in range(max_frames):
        direction = autopilot.select_direction(game) if autopilot is not None else None
        signals = game.update(delta, direction)
        for signal in signals:
            if signal.kind == FOOD_CONSUMED:
                food_eaten += 1
            elif signal.kind == CELL_DEACTIVATED:
                cells_sunk += 1
        if render_step is not None:
            render_step(game, signals)
        if not game.alive:
            break

    return SessionResult(
        survival_time=game.time_elapsed,
        score=game.score,
        final_speed=game.snake.speed,
        death_reason=game.death_reason,
        food_eaten=food_eaten,
        cells_sunk=cells_sunk,
    )


def _print_progress_bar(session: int, total: int, bar_length: int = 50) -> None:
    """Print a compact progress bar in the terminal."""
    total_safe = max(1, int(total))
    percent = min(1.0, max(0.0, session / total_safe))
    filled = int(bar_length * percent)
    bar = "#" * filled + "-" * (bar_length - filled)
    print(f"\rProgress: |{bar}| {session}/{total_safe} ({percent * 100:.1f}%)", end="", flush=True)


def run_simulation(
    cfg: SnakeConfig,
    sessions: int,
    seed: int | None = None,
    fps: int = 60,
    max_seconds: float = 300.0,
    show_progress: bool = True,
) -> list[SessionResult]:
    if sessions <= 0:
        raise ValueError("sessions must be > 0")
    rng = random.Random(seed)
    autopilot = GreedyAutopilot()
    results: list[SessionResult] = []
    for index in range(1, sessions + 1):
        game = SnakeGame(cfg, rng=rng)
        results.append(run_session(game, autopilot, fps=fps, max_seconds=max_seconds))
        if show_progress:
            _print_progress_bar(index, sessions)
    if show_progress:
        print()
    return results


def print_summary(results: list[SessionResult]) -> None:
    survival = summarize([r.survival_time for r in results])
    scores = summarize([float(r.score) for r in results])
    speeds = summarize([r.final_speed for r in results])
    sunk = summarize([float(r.cells_sunk) for r in results])

    print("=" * 60)
    print("SIMULATION RESULTS")
    print("=" * 60)
    print(f"{'Metric':<20} {'Mean':>9} {'Median':>9} {'Q1':>9} {'Q3':>9} {'Max':>9}")
    for name, stats in (("Survival (s)", survival), ("Score", scores), ("Final speed", speeds), ("Cells sunk", sunk)):
        print(
            f"{name:<20} {stats['mean']:>9.2f} {stats['median']:>9.2f} "
            f"{stats['q1']:>9.2f} {stats['q3']:>9.2f} {stats['max']:>9.2f}"
        )
    print("-" * 60)
    reasons: dict[str, int] = {}
    for r in results:
        key = r.death_reason or "timeout"
        reasons[key] = reasons.get(key, 0) + 1
    for reason, count in sorted(reasons.items()):
        print(f"{'Ended by ' + reason:<20} {count:>9}")
    print(f"Longest run: {format_time(survival['max'])}")


def plot_results(results: list[SessionResult], chunk_size: int = 10) -> None:
    scores = [float(r.score) for r in results]
    survival = [r.survival_time for r in results]
    fig, (ax_trend, ax_hist) = plt.subplots(1, 2, figsize=(12, 5))

    ax_trend.set_title(f"Score Trend (Average per {chunk_size} Sessions)")
    ax_trend.set_xlabel("Session")
    ax_trend.set_ylabel("Score")
    ax_trend.grid(alpha=0.25)
    x_end, means = chunked_mean(scores, chunk_size=chunk_size)
    if x_end.size > 0:
        ax_trend.plot(x_end, means, color="#1f77b4", linewidth=2.2, marker="o", markersize=3, label="Average score")
        ax_trend.legend(loc="upper left")

    ax_hist.set_title("Survival Time Distribution")
    ax_hist.set_xlabel("Seconds")
    ax_hist.set_ylabel("Count")
    ax_hist.grid(alpha=0.2)
    if survival:
        ax_hist.hist(survival, bins=20, color="#44b5a4", alpha=0.85, edgecolor="#17323a")
        mean_all = float(np.mean(survival))
        median_all = float(np.median(survival))
        ax_hist.axvline(mean_all, color="#1f77b4", linestyle="--", linewidth=1.6, label=f"Mean: {mean_all:.2f}")
        ax_hist.axvline(median_all, color="#ff7f0e", linestyle="-", linewidth=1.6, label=f"Median: {median_all:.2f}")
        ax_hist.legend(loc="upper right")

    fig.tight_layout()
    plt.show()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    defaults = SnakeConfig()
    parser = argparse.ArgumentParser(description="Headless Snake simulation with a greedy autopilot")
    parser.add_argument("--sessions", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--map-size", type=int, default=defaults.map_size)
    parser.add_argument("--speed", type=float, default=defaults.base_speed, help="Starting speed in cells/second.")
    parser.add_argument("--fps", type=int, default=60)
    parser.add_argument("--max-seconds", type=float, default=300.0, help="Stop a session after this much game time.")
    parser.add_argument(
        "--origin-anchored",
        action="store_true",
        help="Pin the head/food exclusion squares to the grid origin instead of centring them.",
    )
    parser.add_argument("--plot", action="store_true", help="Show matplotlib plots after the run")
    parser.add_argument("--verbose", action="store_true", help="Log per-session events")
    return parser.parse_args(argv)


def run_simulation_cli(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.sessions <= 0:
        raise SystemExit("--sessions must be > 0.")
    if args.fps <= 0:
        raise SystemExit("--fps must be > 0.")
    if not (MIN_MAP_SIZE <= args.map_size <= MAX_MAP_SIZE):
        raise SystemExit(f"--map-size must be between {MIN_MAP_SIZE} and {MAX_MAP_SIZE}.")

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = SnakeConfig(
            map_size=args.map_size,
            base_speed=args.speed,
            origin_anchored_exclusion=args.origin_anchored,
        ).validate()
    except ValueError as exc:
        raise SystemExit(f"Invalid settings: {exc}")

    print(f"\nSimulating {args.sessions} sessions on a {cfg.map_size}x{cfg.map_size} map...\n")
    start_t = time.perf_counter()
    results = run_simulation(cfg, args.sessions, seed=args.seed, fps=args.fps, max_seconds=args.max_seconds)
    print(f"Finished in {time.perf_counter() - start_t:.1f}s\n")
    print_summary(results)

    if args.plot:
        plot_results(results)


if __name__ == "__main__":
    run_simulation_cli()
