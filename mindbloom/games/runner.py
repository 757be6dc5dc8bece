"""Runner — dodge obstacles sliding in from the right edge.

The player is a square of half-size 20 moved in fixed steps inside the
field. Obstacles spawn on the spawn timer with a probability that rises with
the level's obstacle count, and slide left every frame at a speed scaled by
the level speed. Score grows one point per ten frames and is capped at 100.

Terminal rules: any overlap with an obstacle fails; score 100 succeeds;
the countdown reaching zero fails.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from mindbloom.games.base import COUNTDOWN, COUNTDOWN_INTERVAL_MS, GameState, GameStatus, GameVariant
from mindbloom.schemas import Direction

FIELD_WIDTH = 800
FIELD_HEIGHT = 500
PLAYER_HALF_SIZE = 20
PLAYER_START = (50.0, 250.0)
MOVE_STEP = 15
MIN_X, MAX_X = 20, 750
MIN_Y, MAX_Y = 20, 450

OBSTACLE_WIDTH = 30
OBSTACLE_MIN_HEIGHT = 50
OBSTACLE_MAX_HEIGHT = 199
SLIDE_PER_FRAME = 3.0

FRAMES_PER_POINT = 10
MAX_SCORE = 100

FRAME = "frame"
SPAWN = "spawn"
FRAME_INTERVAL_MS = 1000.0 / 60
SPAWN_INTERVAL_MS = 1500.0


@dataclass(frozen=True)
class Obstacle:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, kw_only=True)
class RunnerState(GameState):
    player: tuple[float, float] = PLAYER_START
    obstacles: tuple[Obstacle, ...] = ()
    frames: int = 0


def spawn_probability(obstacle_count: int) -> float:
    """Chance that a spawn tick produces an obstacle."""
    return max(0.25, min(0.9, 0.25 + 0.05 * obstacle_count))


def collides(player: tuple[float, float], obstacle: Obstacle) -> bool:
    """Strict axis-aligned overlap between the player square and an obstacle."""
    px, py = player
    return (
        px + PLAYER_HALF_SIZE > obstacle.x
        and px - PLAYER_HALF_SIZE < obstacle.x + obstacle.width
        and py + PLAYER_HALF_SIZE > obstacle.y
        and py - PLAYER_HALF_SIZE < obstacle.y + obstacle.height
    )


class Runner(GameVariant[RunnerState]):
    """Obstacle-avoidance runner."""

    name = "runner"

    def initial_state(self) -> RunnerState:
        return RunnerState(time_left=self.level.time_limit_seconds)

    def timers(self) -> dict[str, float]:
        return {
            COUNTDOWN: COUNTDOWN_INTERVAL_MS,
            FRAME: FRAME_INTERVAL_MS,
            SPAWN: SPAWN_INTERVAL_MS / self.level.speed,
        }

    def on_input(self, state: RunnerState, direction: Direction) -> RunnerState:
        x, y = state.player
        if direction == "up":
            y = max(MIN_Y, y - MOVE_STEP)
        elif direction == "down":
            y = min(MAX_Y, y + MOVE_STEP)
        elif direction == "left":
            x = max(MIN_X, x - MOVE_STEP)
        elif direction == "right":
            x = min(MAX_X, x + MOVE_STEP)
        return self._check_collision(replace(state, player=(x, y)))

    def on_tick(self, state: RunnerState, timer: str) -> RunnerState:
        if timer == FRAME:
            return self._frame(state)
        if timer == SPAWN:
            return self._spawn(state)
        return state

    def _frame(self, state: RunnerState) -> RunnerState:
        slide = SLIDE_PER_FRAME * self.level.speed
        moved = tuple(
            replace(o, x=o.x - slide)
            for o in state.obstacles
            if o.x - slide + o.width > 0
        )
        frames = state.frames + 1
        score = min(frames // FRAMES_PER_POINT, MAX_SCORE)
        state = self._check_collision(
            replace(state, obstacles=moved, frames=frames, score=score)
        )
        if state.status is GameStatus.ACTIVE and score >= MAX_SCORE:
            state = replace(state, status=GameStatus.SUCCEEDED)
        return state

    def _spawn(self, state: RunnerState) -> RunnerState:
        if self.rng.random() >= spawn_probability(self.level.obstacle_count):
            return state
        height = self.rng.randint(OBSTACLE_MIN_HEIGHT, OBSTACLE_MAX_HEIGHT)
        y = self.rng.randrange(0, FIELD_HEIGHT - height)
        obstacle = Obstacle(x=FIELD_WIDTH, y=y, width=OBSTACLE_WIDTH, height=height)
        return self._check_collision(
            replace(state, obstacles=state.obstacles + (obstacle,))
        )

    def _check_collision(self, state: RunnerState) -> RunnerState:
        if any(collides(state.player, o) for o in state.obstacles):
            return replace(state, status=GameStatus.FAILED)
        return state

    def describe(self, state: RunnerState) -> dict[str, Any]:
        return {
            "player": list(state.player),
            "obstacles": [
                {"x": o.x, "y": o.y, "width": o.width, "height": o.height}
                for o in state.obstacles
            ],
            "score": int(state.score),
            "time_left": state.time_left,
        }
