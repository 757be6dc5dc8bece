"""Maze-Navigation — walk a generated perfect maze from entrance to exit.

Inputs move the player to the adjacent cell unless a wall blocks that edge.
Reaching the exit scores ``floor(100 × remaining / limit) + EXIT_BONUS``.

Terminal rules: entering an obstacle cell fails; reaching the exit
succeeds; the countdown reaching zero fails.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any

from mindbloom.games import maze as maze_gen
from mindbloom.games.base import GameState, GameStatus, GameVariant, Position, step_position
from mindbloom.games.maze import MazeGraph
from mindbloom.schemas import Direction, Level

MAZE_WIDTH = 20
MAZE_HEIGHT = 12
EXIT_BONUS = 20


def exit_score(time_left: int, time_limit: int) -> int:
    return (100 * time_left) // time_limit + EXIT_BONUS


@dataclass(frozen=True, kw_only=True)
class MazeState(GameState):
    maze: MazeGraph
    player: Position = (0, 0)
    obstacles: frozenset[Position] = frozenset()


class MazeNavigation(GameVariant[MazeState]):
    """Maze walking game.

    Args:
        level: The level being played.
        rng: Randomness for carving and obstacle placement.
        width: Maze columns.
        height: Maze rows.
    """

    name = "maze_navigation"

    def __init__(
        self,
        level: Level,
        rng: random.Random | None = None,
        *,
        width: int = MAZE_WIDTH,
        height: int = MAZE_HEIGHT,
    ) -> None:
        super().__init__(level, rng)
        self.width = width
        self.height = height

    def initial_state(self) -> MazeState:
        graph = maze_gen.generate(self.width, self.height, self.rng)
        obstacles = maze_gen.place_obstacles(
            self.width, self.height, self.level.obstacle_count, self.rng,
        )
        return MazeState(
            time_left=self.level.time_limit_seconds,
            maze=graph,
            player=graph.entrance,
            obstacles=obstacles,
        )

    def on_input(self, state: MazeState, direction: Direction) -> MazeState:
        if not state.maze.can_move(state.player, direction):
            return state

        target = step_position(state.player, direction)
        if target in state.obstacles:
            return replace(state, player=target, status=GameStatus.FAILED)
        if target == state.maze.exit:
            return replace(
                state,
                player=target,
                score=exit_score(state.time_left, self.level.time_limit_seconds),
                status=GameStatus.SUCCEEDED,
            )
        return replace(state, player=target)

    def on_tick(self, state: MazeState, timer: str) -> MazeState:
        # Only the countdown drives this variant.
        return state

    def describe(self, state: MazeState) -> dict[str, Any]:
        return {
            "width": state.maze.width,
            "height": state.maze.height,
            "walls": state.maze.wall_rows(),
            "player": list(state.player),
            "exit": list(state.maze.exit),
            "obstacles": sorted(list(c) for c in state.obstacles),
            "score": int(state.score),
            "time_left": state.time_left,
        }
