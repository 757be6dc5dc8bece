"""Pattern-Recall — watch a direction sequence, then repeat it.

Each round plays a random sequence back one highlighted step per playback
tick, then accepts inputs. A full match scores
``multiplier × sequence length`` and, after a short pause, starts a longer
round. A wrong input is judged by the forgiveness policy table: early easy
rounds simply re-show the pattern, later ones cost one of the lives.

Terminal rules: lives exhausted fails; reaching the target score or the
round cap succeeds; the countdown reaching zero fails.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Literal

from mindbloom.games.base import COUNTDOWN, COUNTDOWN_INTERVAL_MS, GameState, GameStatus, GameVariant
from mindbloom.schemas import DIRECTIONS, Difficulty, Direction

PLAYBACK = "playback"
PLAYBACK_INTERVAL_MS = 1000.0
ROUND_PAUSE_MS = 1000.0
STARTING_LIVES = 3
TARGET_SCORE = 100

Phase = Literal["showing", "input", "pause"]


@dataclass(frozen=True)
class PatternRules:
    """Difficulty-specific tuning."""

    base_length: int
    grow_every: int
    max_length: int
    multiplier: int
    max_rounds: int


RULES: dict[Difficulty, PatternRules] = {
    "easy": PatternRules(base_length=2, grow_every=4, max_length=4, multiplier=12, max_rounds=6),
    "medium": PatternRules(base_length=3, grow_every=3, max_length=6, multiplier=15, max_rounds=8),
    "hard": PatternRules(base_length=4, grow_every=2, max_length=8, multiplier=20, max_rounds=10),
}


@dataclass(frozen=True)
class MistakeDecision:
    consumes_life: bool
    reshows_pattern: bool


# (difficulty, first round, last round or None for open-ended) → decision.
# First matching row wins.
FORGIVENESS_POLICY: tuple[tuple[Difficulty, int, int | None, MistakeDecision], ...] = (
    ("easy", 1, 3, MistakeDecision(consumes_life=False, reshows_pattern=True)),
    ("easy", 4, None, MistakeDecision(consumes_life=True, reshows_pattern=True)),
    ("medium", 1, 1, MistakeDecision(consumes_life=False, reshows_pattern=True)),
    ("medium", 2, None, MistakeDecision(consumes_life=True, reshows_pattern=True)),
    ("hard", 1, None, MistakeDecision(consumes_life=True, reshows_pattern=True)),
)

_STRICT = MistakeDecision(consumes_life=True, reshows_pattern=True)


def judge_mistake(difficulty: Difficulty, round_number: int) -> MistakeDecision:
    """Looks up what a wrong input costs in this round."""
    for diff, first, last, decision in FORGIVENESS_POLICY:
        if diff == difficulty and round_number >= first and (last is None or round_number <= last):
            return decision
    return _STRICT


def sequence_length(difficulty: Difficulty, round_number: int) -> int:
    rules = RULES[difficulty]
    return min(rules.base_length + round_number // rules.grow_every, rules.max_length)


@dataclass(frozen=True, kw_only=True)
class PatternState(GameState):
    round: int = 1
    sequence: tuple[Direction, ...] = ()
    phase: Phase = "showing"
    highlight: int = -1
    position: int = 0
    lives: int = STARTING_LIVES
    pause_ticks: int = 0
    rounds_completed: int = 0


class PatternRecall(GameVariant[PatternState]):
    """Sequence memory game."""

    name = "pattern_recall"

    @property
    def rules(self) -> PatternRules:
        return RULES[self.level.difficulty]

    def playback_interval(self) -> float:
        return PLAYBACK_INTERVAL_MS / self.level.speed

    def initial_state(self) -> PatternState:
        return PatternState(
            time_left=self.level.time_limit_seconds,
            sequence=self._generate(1),
        )

    def timers(self) -> dict[str, float]:
        return {
            COUNTDOWN: COUNTDOWN_INTERVAL_MS,
            PLAYBACK: self.playback_interval(),
        }

    def accepts_input(self, state: PatternState) -> bool:
        return state.status is GameStatus.ACTIVE and state.phase == "input"

    def _generate(self, round_number: int) -> tuple[Direction, ...]:
        length = sequence_length(self.level.difficulty, round_number)
        return tuple(self.rng.choice(DIRECTIONS) for _ in range(length))

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def on_tick(self, state: PatternState, timer: str) -> PatternState:
        if timer != PLAYBACK:
            return state
        if state.phase == "showing":
            nxt = state.highlight + 1
            if nxt >= len(state.sequence):
                return replace(state, phase="input", highlight=-1, position=0)
            return replace(state, highlight=nxt)
        if state.phase == "pause":
            if state.pause_ticks > 1:
                return replace(state, pause_ticks=state.pause_ticks - 1)
            return replace(
                state,
                phase="showing",
                pause_ticks=0,
                highlight=-1,
                position=0,
                sequence=self._generate(state.round),
            )
        return state

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def on_input(self, state: PatternState, direction: Direction) -> PatternState:
        if direction != state.sequence[state.position]:
            return self._mistake(state)

        position = state.position + 1
        if position < len(state.sequence):
            return replace(state, position=position)

        score = state.score + self.rules.multiplier * len(state.sequence)
        rounds_completed = state.rounds_completed + 1
        if score >= TARGET_SCORE or rounds_completed >= self.rules.max_rounds:
            return replace(
                state,
                score=score,
                position=position,
                rounds_completed=rounds_completed,
                status=GameStatus.SUCCEEDED,
            )
        return replace(
            state,
            score=score,
            rounds_completed=rounds_completed,
            round=state.round + 1,
            phase="pause",
            position=0,
            pause_ticks=max(1, math.ceil(ROUND_PAUSE_MS / self.playback_interval())),
        )

    def _mistake(self, state: PatternState) -> PatternState:
        decision = judge_mistake(self.level.difficulty, state.round)
        lives = state.lives - 1 if decision.consumes_life else state.lives
        if lives <= 0:
            return replace(state, lives=0, status=GameStatus.FAILED)
        if decision.reshows_pattern:
            return replace(state, lives=lives, phase="showing", highlight=-1, position=0)
        return replace(state, lives=lives, position=0)

    def describe(self, state: PatternState) -> dict[str, Any]:
        view: dict[str, Any] = {
            "round": state.round,
            "phase": state.phase,
            "lives": state.lives,
            "position": state.position,
            "length": len(state.sequence),
            "score": int(state.score),
            "time_left": state.time_left,
        }
        if state.phase == "showing" and state.highlight >= 0:
            view["highlight"] = state.sequence[state.highlight]
        return view
