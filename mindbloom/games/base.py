"""Game variant base — shared state shape and transition contract.

Every variant is an explicit, immutable state value plus a transition
function ``step(state, event) -> state``. Events are either a directional
input or a named periodic timer firing; the session's scheduler decides when
timers fire, so variants never own a clock. All randomness goes through the
variant's injected ``random.Random``.

Common lifecycle: IDLE → ACTIVE → {SUCCEEDED | FAILED}. Once a state is
terminal, ``step`` returns it unchanged.

Tier 1 module: imports from mindbloom.schemas and the stdlib.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from mindbloom.schemas import Direction, Level, Variant

COUNTDOWN = "countdown"
COUNTDOWN_INTERVAL_MS = 1000.0

Position = tuple[int, int]

DELTAS: dict[Direction, Position] = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}

OPPOSITE: dict[Direction, Direction] = {
    "up": "down",
    "down": "up",
    "left": "right",
    "right": "left",
}


class GameStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class InputEvent:
    """A directional input accepted from the player."""

    direction: Direction


@dataclass(frozen=True)
class TimerEvent:
    """A periodic timer firing, identified by the name the variant declared."""

    name: str


GameEvent = InputEvent | TimerEvent


@dataclass(frozen=True, kw_only=True)
class GameState:
    """Fields every variant state carries."""

    status: GameStatus = GameStatus.IDLE
    score: float = 0
    time_left: int

    @property
    def is_terminal(self) -> bool:
        return self.status in (GameStatus.SUCCEEDED, GameStatus.FAILED)


S = TypeVar("S", bound=GameState)


class GameVariant(ABC, Generic[S]):
    """Rules for one variant, applied to immutable state values.

    Args:
        level: The level being played.
        rng: Source of all randomness. Pass a seeded instance for
            deterministic play.
    """

    name: ClassVar[Variant]

    def __init__(self, level: Level, rng: random.Random | None = None) -> None:
        self.level = level
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    def initial_state(self) -> S:
        """Builds the IDLE state for a fresh attempt."""
        ...

    @abstractmethod
    def on_input(self, state: S, direction: Direction) -> S:
        """Applies one directional input to an ACTIVE state."""
        ...

    @abstractmethod
    def on_tick(self, state: S, timer: str) -> S:
        """Applies a variant-specific timer (anything but the countdown)."""
        ...

    @abstractmethod
    def describe(self, state: S) -> dict[str, Any]:
        """Public view of the state for rendering clients."""
        ...

    def timers(self) -> dict[str, float]:
        """Periodic timers this variant needs, name → interval in ms."""
        return {COUNTDOWN: COUNTDOWN_INTERVAL_MS}

    def accepts_input(self, state: S) -> bool:
        """Whether an input would be evaluated (and timed) right now."""
        return state.status is GameStatus.ACTIVE

    def final_score(self, state: S) -> int:
        """Score reported with the terminal signal."""
        return int(state.score)

    # ------------------------------------------------------------------
    # Transition function
    # ------------------------------------------------------------------

    def activate(self, state: S) -> S:
        """IDLE → ACTIVE."""
        if state.status is not GameStatus.IDLE:
            return state
        return replace(state, status=GameStatus.ACTIVE)

    def step(self, state: S, event: GameEvent) -> S:
        """Single transition entry point. Non-ACTIVE states are returned as-is."""
        if state.status is not GameStatus.ACTIVE:
            return state
        if isinstance(event, InputEvent):
            if not self.accepts_input(state):
                return state
            return self.on_input(state, event.direction)
        if event.name == COUNTDOWN:
            return self._countdown(state)
        return self.on_tick(state, event.name)

    def _countdown(self, state: S) -> S:
        if state.time_left <= 1:
            return replace(state, time_left=0, status=GameStatus.FAILED)
        return replace(state, time_left=state.time_left - 1)


def step_position(position: Position, direction: Direction) -> Position:
    dx, dy = DELTAS[direction]
    return position[0] + dx, position[1] + dy
