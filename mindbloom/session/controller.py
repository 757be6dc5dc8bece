"""Session controller — the lifecycle wrapped uniformly around any variant.

Phases:
    INSTRUCTIONS → AWAITING_START → ACTIVE → COMPLETED
                                      ↓
                                AWAITING_RETRY → AWAITING_START → ...
    Any non-terminal phase → ABANDONED

The controller owns the attempt's TimerScheduler and ReactionCollector and
drives the variant's step() with timer firings and player inputs, all on
one serialized stream. Time is whatever the caller says it is (monotonic
ms); it never runs backwards inside an attempt.

The terminal latch is a one-shot flag set by the first terminal signal of
an attempt. Later signals for the same attempt are no-ops. Every path out
of ACTIVE cancels the scheduler, so no stale timer can touch a finished or
abandoned attempt.

Tier 2 module: imports from mindbloom.games, mindbloom.scoring,
mindbloom.telemetry and mindbloom.session.scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

from mindbloom.games.base import GameState, GameStatus, GameVariant, InputEvent, TimerEvent
from mindbloom.schemas import Direction, Level, SessionResult, Variant
from mindbloom.scoring import ScoringWeights, compute_emotion_score
from mindbloom.session.scheduler import TimerScheduler
from mindbloom.telemetry import ReactionCollector

logger = logging.getLogger("mindbloom.session")

# completion_time must stay strictly positive for the scoring engine.
MIN_COMPLETION_SECONDS = 0.001


class SessionStateError(RuntimeError):
    """Raised when an operation is not legal in the current phase."""


class SessionPhase(str, Enum):
    INSTRUCTIONS = "instructions"
    AWAITING_START = "awaiting_start"
    ACTIVE = "active"
    AWAITING_RETRY = "awaiting_retry"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class TerminalSignal:
    score: int
    success: bool


@dataclass
class Session:
    """Accumulating record across the attempts at one level.

    retry_count survives restarts; reaction_samples belong to the current
    attempt only and are cleared on every start.
    """

    variant: Variant
    level: Level
    child_id: str
    id: str = field(default_factory=lambda: uuid4().hex)
    retry_count: int = 0
    started_at: float | None = None
    reaction_samples: list[float] = field(default_factory=list)
    terminal: TerminalSignal | None = None


class SessionController:
    """Drives one variant instance through the session lifecycle.

    Args:
        session: The session record to accumulate into.
        game: The variant rules for this session's level.
        weights: Scoring profile applied on success. None means "standard".
        on_complete: Called once with the SessionResult of a successful
            attempt, after the controller has reached COMPLETED.
    """

    def __init__(
        self,
        session: Session,
        game: GameVariant,
        *,
        weights: ScoringWeights | None = None,
        on_complete: Callable[[SessionResult], None] | None = None,
    ) -> None:
        self.session = session
        self.game = game
        self.weights = weights
        self._on_complete = on_complete

        self.phase = SessionPhase.INSTRUCTIONS
        self.state: GameState | None = None
        self.result: SessionResult | None = None

        self._scheduler: TimerScheduler | None = None
        self._collector = ReactionCollector()
        self._latched = False
        self._clock = 0.0

    @property
    def timers_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def acknowledge_instructions(self) -> None:
        """INSTRUCTIONS → AWAITING_START."""
        self._require(SessionPhase.INSTRUCTIONS)
        self.phase = SessionPhase.AWAITING_START

    def retry(self) -> None:
        """AWAITING_RETRY → AWAITING_START. retry_count was already counted."""
        self._require(SessionPhase.AWAITING_RETRY)
        self.phase = SessionPhase.AWAITING_START

    def start(self, now_ms: float) -> None:
        """Begins a fresh attempt at ``now_ms``.

        Legal from AWAITING_START, or directly from AWAITING_RETRY.

        Raises:
            SessionStateError: From any other phase.
        """
        self._require(SessionPhase.AWAITING_START, SessionPhase.AWAITING_RETRY)

        self.state = self.game.activate(self.game.initial_state())
        self._scheduler = TimerScheduler(self.game.timers())
        self._scheduler.start(now_ms)
        self._collector.reset()
        self._latched = False
        self._clock = now_ms

        self.session.started_at = now_ms
        self.session.reaction_samples = []
        self.session.terminal = None
        self.phase = SessionPhase.ACTIVE
        logger.debug(
            "Session %s attempt started (variant=%s, level=%d, retries=%d)",
            self.session.id, self.session.variant, self.session.level.id,
            self.session.retry_count,
        )

    def abandon(self) -> None:
        """Player navigated away: clear timers, stop accepting input.

        Idempotent. A completed session keeps its result.
        """
        if self._scheduler is not None:
            self._scheduler.cancel_all()
        if self.phase in (SessionPhase.COMPLETED, SessionPhase.ABANDONED):
            return
        self.phase = SessionPhase.ABANDONED
        logger.debug("Session %s abandoned", self.session.id)

    # ------------------------------------------------------------------
    # Event stream
    # ------------------------------------------------------------------

    def advance(self, now_ms: float) -> None:
        """Fires every timer due up to ``now_ms``. No-op outside ACTIVE."""
        if self.phase is not SessionPhase.ACTIVE:
            return
        self._catch_up(max(now_ms, self._clock))

    def handle_input(self, direction: Direction, timestamp_ms: float) -> bool:
        """Feeds one directional input arriving at ``timestamp_ms``.

        Timers due before the input fire first. If the attempt is still
        ACTIVE and the variant accepts input, the latency is recorded and
        then the input is applied.

        Returns:
            True if the input was evaluated by the variant.

        Raises:
            SessionStateError: If no attempt is running.
        """
        self._require(SessionPhase.ACTIVE)
        now = max(timestamp_ms, self._clock)
        self._catch_up(now)
        if self.phase is not SessionPhase.ACTIVE:
            return False
        assert self.state is not None
        if not self.game.accepts_input(self.state):
            return False

        latency = self._collector.record(now)
        if latency is not None:
            self.session.reaction_samples.append(latency)
        self._apply(InputEvent(direction), now)
        return True

    def _catch_up(self, now_ms: float) -> None:
        assert self._scheduler is not None
        for fire_at, name in self._scheduler.run_until(now_ms):
            self._apply(TimerEvent(name), fire_at)
            if self.phase is not SessionPhase.ACTIVE:
                return
        self._clock = now_ms

    def _apply(self, event: InputEvent | TimerEvent, at_ms: float) -> None:
        assert self.state is not None
        self._clock = at_ms
        self.state = self.game.step(self.state, event)
        if self.state.is_terminal:
            self.on_terminal(
                self.game.final_score(self.state),
                self.state.status is GameStatus.SUCCEEDED,
                at_ms,
            )

    # ------------------------------------------------------------------
    # Terminal handling
    # ------------------------------------------------------------------

    def on_terminal(self, score: int, success: bool, at_ms: float) -> None:
        """Terminal signal from the variant. At most once per attempt."""
        if self._latched or self.phase is not SessionPhase.ACTIVE:
            logger.debug(
                "Session %s: ignoring duplicate terminal signal (phase=%s)",
                self.session.id, self.phase.value,
            )
            return
        self._latched = True
        assert self._scheduler is not None
        self._scheduler.cancel_all()
        self.session.terminal = TerminalSignal(score=score, success=success)

        if not success:
            self.session.retry_count += 1
            self.phase = SessionPhase.AWAITING_RETRY
            logger.debug(
                "Session %s attempt failed (score=%d, retries=%d)",
                self.session.id, score, self.session.retry_count,
            )
            return

        self.result = self._build_result(score, at_ms)
        self.phase = SessionPhase.COMPLETED
        logger.info(
            "Session %s completed: variant=%s level=%d score=%d",
            self.session.id, self.session.variant, self.session.level.id, score,
        )
        if self._on_complete is not None:
            self._on_complete(self.result)

    def _build_result(self, score: int, at_ms: float) -> SessionResult:
        session = self.session
        assert session.started_at is not None
        completion = max((at_ms - session.started_at) / 1000.0, MIN_COMPLETION_SECONDS)
        success_rate = max(0.0, min(1.0, score / 100))
        samples = tuple(session.reaction_samples)
        emotion = compute_emotion_score(
            completion_time=completion,
            time_limit=session.level.time_limit_seconds,
            retry_count=session.retry_count,
            success_rate=success_rate,
            reaction_samples=samples,
            weights=self.weights,
        )
        return SessionResult(
            child_id=session.child_id,
            variant=session.variant,
            level_id=session.level.id,
            score=max(score, 0),
            completion_time_seconds=completion,
            retry_count=session.retry_count,
            success_rate=success_rate,
            reaction_samples=samples,
            emotion_score=emotion,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready view of the session for clients and summary screens."""
        session = self.session
        view: dict[str, Any] = {
            "session_id": session.id,
            "child_id": session.child_id,
            "variant": session.variant,
            "level": session.level.model_dump(),
            "phase": self.phase.value,
            "retry_count": session.retry_count,
            "reaction_samples": list(session.reaction_samples),
            "game": None,
            "result": None,
        }
        if self.state is not None:
            view["game"] = {"status": self.state.status.value, **self.game.describe(self.state)}
        if self.result is not None:
            view["result"] = self.result.model_dump(mode="json")
        return view

    def _require(self, *phases: SessionPhase) -> None:
        if self.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise SessionStateError(
                f"Session {self.session.id} is {self.phase.value}; expected {allowed}"
            )
