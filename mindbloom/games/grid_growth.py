"""Grid-Growth — steer a growing body of cells towards targets.

The body (head first) moves one cell per move tick in the committed
direction. Inputs only queue a direction; a reversal of the last committed
direction is ignored so the head can never fold back onto its neck. Eating
the target grows the body by one and relocates the target to a free cell.

Terminal rules: leaving the grid, hitting the body, or entering an obstacle
fails; score 100 succeeds; the countdown reaching zero fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from mindbloom.games.base import (
    COUNTDOWN,
    COUNTDOWN_INTERVAL_MS,
    OPPOSITE,
    GameState,
    GameStatus,
    GameVariant,
    Position,
    step_position,
)
from mindbloom.schemas import Direction

logger = logging.getLogger("mindbloom.games.grid_growth")

GRID_WIDTH = 40
GRID_HEIGHT = 25
START_BODY: tuple[Position, ...] = ((10, 10), (9, 10), (8, 10))
START_DIRECTION: Direction = "right"
START_TARGET: Position = (15, 10)
POINTS_PER_TARGET = 10
MAX_SCORE = 100

MOVE = "move"
MOVE_INTERVAL_MS = 300.0

# Cells kept obstacle-free beyond the start area: room for every target
# the body can still eat, plus one to put the next target on.
RESERVED_FREE_CELLS = MAX_SCORE // POINTS_PER_TARGET + 1
ATTEMPTS_PER_CELL = 200


@dataclass(frozen=True, kw_only=True)
class GridGrowthState(GameState):
    body: tuple[Position, ...] = START_BODY
    direction: Direction = START_DIRECTION
    pending: Direction = START_DIRECTION
    target: Position = START_TARGET
    obstacles: frozenset[Position] = frozenset()


def _in_grid(cell: Position) -> bool:
    return 0 <= cell[0] < GRID_WIDTH and 0 <= cell[1] < GRID_HEIGHT


class GridGrowth(GameVariant[GridGrowthState]):
    """Snake-style growth game."""

    name = "grid_growth"

    def initial_state(self) -> GridGrowthState:
        return GridGrowthState(
            time_left=self.level.time_limit_seconds,
            obstacles=self._place_obstacles(),
        )

    def timers(self) -> dict[str, float]:
        return {
            COUNTDOWN: COUNTDOWN_INTERVAL_MS,
            MOVE: MOVE_INTERVAL_MS / self.level.speed,
        }

    def _random_cell(self) -> Position:
        return (self.rng.randrange(GRID_WIDTH), self.rng.randrange(GRID_HEIGHT))

    def _place_obstacles(self) -> frozenset[Position]:
        """Draws the level's obstacles off the body, the target and the opening lane.

        The count is capped so RESERVED_FREE_CELLS always stay open for the
        body to grow into; sampling gives up (with a WARNING) after
        ATTEMPTS_PER_CELL misses in a row.
        """
        head_x, head_y = START_BODY[0]
        lane = {(x, head_y) for x in range(head_x + 1, START_TARGET[0] + 1)}
        blocked = set(START_BODY) | {START_TARGET} | lane
        count = self.level.obstacle_count
        capacity = GRID_WIDTH * GRID_HEIGHT - len(blocked) - RESERVED_FREE_CELLS
        if count > capacity:
            logger.warning(
                "Requested %d obstacles but only %d cells can hold one; reducing",
                count, capacity,
            )
            count = capacity

        chosen: set[Position] = set()
        for _ in range(count):
            for _attempt in range(ATTEMPTS_PER_CELL):
                cell = self._random_cell()
                if cell not in blocked and cell not in chosen:
                    chosen.add(cell)
                    break
            else:
                logger.warning(
                    "Obstacle placement gave up after %d attempts; placed %d of %d",
                    ATTEMPTS_PER_CELL, len(chosen), count,
                )
                break
        return frozenset(chosen)

    def _relocate_target(
        self, body: tuple[Position, ...], obstacles: frozenset[Position]
    ) -> Position:
        occupied = set(body) | obstacles
        for _attempt in range(ATTEMPTS_PER_CELL):
            cell = self._random_cell()
            if cell not in occupied:
                return cell
        # Crowded grid: pick from the exhaustive free list instead.
        free = [
            (x, y)
            for y in range(GRID_HEIGHT)
            for x in range(GRID_WIDTH)
            if (x, y) not in occupied
        ]
        return self.rng.choice(free)

    def on_input(self, state: GridGrowthState, direction: Direction) -> GridGrowthState:
        if direction == OPPOSITE[state.direction]:
            return state
        return replace(state, pending=direction)

    def on_tick(self, state: GridGrowthState, timer: str) -> GridGrowthState:
        if timer != MOVE:
            return state

        direction = state.pending
        head = step_position(state.body[0], direction)
        eating = head == state.target
        # The tail vacates its cell on a non-growing move.
        body_after = state.body if eating else state.body[:-1]

        if not _in_grid(head) or head in body_after or head in state.obstacles:
            return replace(state, direction=direction, status=GameStatus.FAILED)

        body = (head,) + body_after
        if not eating:
            return replace(state, body=body, direction=direction)

        score = state.score + POINTS_PER_TARGET
        if score >= MAX_SCORE:
            return replace(
                state, body=body, direction=direction, score=MAX_SCORE,
                status=GameStatus.SUCCEEDED,
            )
        return replace(
            state,
            body=body,
            direction=direction,
            score=score,
            target=self._relocate_target(body, state.obstacles),
        )

    def describe(self, state: GridGrowthState) -> dict[str, Any]:
        return {
            "body": [list(c) for c in state.body],
            "direction": state.direction,
            "target": list(state.target),
            "obstacles": sorted(list(c) for c in state.obstacles),
            "score": int(state.score),
            "time_left": state.time_left,
        }
