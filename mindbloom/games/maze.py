"""Maze generator — randomized depth-first backtracking.

Builds a perfect maze (a spanning tree of the grid graph: every cell
reachable, exactly one path between any two cells) with the entrance at
(0, 0) and the exit at (width-1, height-1). Both have their outer wall
knocked out so they can be entered from outside the grid.

Obstacle placement is separate: place_obstacles() draws interior cells by
rejection sampling, never the entrance, the exit or a repeat.

Tier 1 module: imports from mindbloom.games.base and the stdlib.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from mindbloom.games.base import Position, step_position
from mindbloom.schemas import Direction

logger = logging.getLogger("mindbloom.games.maze")

# Direction → (wall on this cell, wall on the neighbour)
_WALLS: dict[Direction, tuple[str, str]] = {
    "up": ("top", "bottom"),
    "right": ("right", "left"),
    "down": ("bottom", "top"),
    "left": ("left", "right"),
}

DEFAULT_ATTEMPTS_PER_OBSTACLE = 200


class MazeGenerationError(ValueError):
    """Raised for dimensions that cannot form a maze (width or height < 1)."""


@dataclass
class Cell:
    """One grid cell. Walls start closed; visited is only used while carving."""

    x: int
    y: int
    top: bool = True
    right: bool = True
    bottom: bool = True
    left: bool = True
    visited: bool = False

    def has_wall(self, direction: Direction) -> bool:
        return getattr(self, _WALLS[direction][0])


@dataclass
class MazeGraph:
    """Grid of cells, indexed ``cells[y][x]``.

    Not mutated after generate() returns; variants share it read-only.
    """

    width: int
    height: int
    cells: list[list[Cell]] = field(repr=False)

    @property
    def entrance(self) -> Position:
        return (0, 0)

    @property
    def exit(self) -> Position:
        return (self.width - 1, self.height - 1)

    def in_bounds(self, position: Position) -> bool:
        x, y = position
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, position: Position) -> Cell:
        x, y = position
        return self.cells[y][x]

    def can_move(self, position: Position, direction: Direction) -> bool:
        """True if no wall blocks the edge and the target is inside the grid."""
        if self.cell(position).has_wall(direction):
            return False
        return self.in_bounds(step_position(position, direction))

    def open_neighbours(self, position: Position) -> list[Position]:
        return [
            step_position(position, d)
            for d in _WALLS
            if self.can_move(position, d)
        ]

    def open_internal_edges(self) -> int:
        """Counts open walls between two in-grid cells (each edge once)."""
        count = 0
        for row in self.cells:
            for c in row:
                if c.x < self.width - 1 and not c.right:
                    count += 1
                if c.y < self.height - 1 and not c.bottom:
                    count += 1
        return count

    def wall_rows(self) -> list[list[str]]:
        """Compact wall encoding for clients: one "TRBL" flag string per cell."""
        return [
            [
                "".join(
                    flag if getattr(c, name) else "-"
                    for flag, name in (("T", "top"), ("R", "right"), ("B", "bottom"), ("L", "left"))
                )
                for c in row
            ]
            for row in self.cells
        ]


def _unvisited_neighbours(
    maze: MazeGraph, position: Position
) -> list[tuple[Position, Direction]]:
    found: list[tuple[Position, Direction]] = []
    for direction in _WALLS:
        nxt = step_position(position, direction)
        if maze.in_bounds(nxt) and not maze.cell(nxt).visited:
            found.append((nxt, direction))
    return found


def _knock_down(maze: MazeGraph, position: Position, direction: Direction) -> None:
    own, theirs = _WALLS[direction]
    setattr(maze.cell(position), own, False)
    setattr(maze.cell(step_position(position, direction)), theirs, False)


def generate(width: int, height: int, rng: random.Random | None = None) -> MazeGraph:
    """Carves a perfect maze of the given size.

    Args:
        width: Number of columns (>= 1).
        height: Number of rows (>= 1).
        rng: Randomness source; a fresh Random if omitted.

    Returns:
        A fully connected, acyclic MazeGraph with open entrance and exit.

    Raises:
        MazeGenerationError: If width or height is below 1.
    """
    if width < 1 or height < 1:
        raise MazeGenerationError(
            f"Maze dimensions must be at least 1x1, got {width}x{height}"
        )
    rng = rng or random.Random()

    maze = MazeGraph(
        width=width,
        height=height,
        cells=[[Cell(x, y) for x in range(width)] for y in range(height)],
    )

    start = maze.entrance
    maze.cell(start).visited = True
    stack: list[Position] = [start]

    while stack:
        current = stack[-1]
        neighbours = _unvisited_neighbours(maze, current)
        if neighbours:
            nxt, direction = rng.choice(neighbours)
            _knock_down(maze, current, direction)
            maze.cell(nxt).visited = True
            stack.append(nxt)
        else:
            stack.pop()

    maze.cell(maze.entrance).top = False
    maze.cell(maze.exit).bottom = False
    return maze


def place_obstacles(
    width: int,
    height: int,
    count: int,
    rng: random.Random | None = None,
    *,
    attempts_per_obstacle: int = DEFAULT_ATTEMPTS_PER_OBSTACLE,
) -> frozenset[Position]:
    """Draws ``count`` distinct interior obstacle cells.

    Interior means x in [1, width-2] and y in [1, height-2]. The entrance and
    exit are always rejected. Sampling is bounded: when a draw keeps hitting
    taken cells for ``attempts_per_obstacle`` tries, placement stops early
    and fewer obstacles are returned.

    Args:
        width: Maze width.
        height: Maze height.
        count: Requested number of obstacles.
        rng: Randomness source.
        attempts_per_obstacle: Rejection-sampling budget per obstacle.

    Returns:
        The chosen obstacle positions.
    """
    rng = rng or random.Random()
    if count <= 0:
        return frozenset()
    if width < 3 or height < 3:
        logger.warning(
            "No interior cells in a %dx%d maze; placing no obstacles", width, height,
        )
        return frozenset()

    forbidden = {(0, 0), (width - 1, height - 1)}
    capacity = (width - 2) * (height - 2) - sum(
        1 for x, y in forbidden if 1 <= x <= width - 2 and 1 <= y <= height - 2
    )
    if count > capacity:
        logger.warning(
            "Requested %d obstacles but only %d interior cells; reducing", count, capacity,
        )
        count = capacity

    chosen: set[Position] = set()
    for _ in range(count):
        for _attempt in range(attempts_per_obstacle):
            candidate = (rng.randint(1, width - 2), rng.randint(1, height - 2))
            if candidate not in forbidden and candidate not in chosen:
                chosen.add(candidate)
                break
        else:
            logger.warning(
                "Obstacle placement gave up after %d attempts; placed %d of %d",
                attempts_per_obstacle, len(chosen), count,
            )
            break
    return frozenset(chosen)
