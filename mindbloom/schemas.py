"""Core data models — shared Pydantic types for the Mindbloom game engine.

Levels, session results, emotion scores, and the progression records a
caregiver dashboard reads all flow through these types. They are the
shared vocabulary between the game simulation, the progression engine,
and the storage hooks.

This is a Tier 1 leaf module: it imports only from pydantic and the stdlib.
No project imports allowed — everything else imports from here.

Usage:
    from mindbloom.schemas import Level, SessionResult, EmotionScore
"""

from datetime import date, datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

Variant = Literal["runner", "pattern_recall", "grid_growth", "maze_navigation"]
Difficulty = Literal["easy", "medium", "hard"]
Direction = Literal["up", "down", "left", "right"]

VARIANTS: tuple[Variant, ...] = (
    "runner",
    "pattern_recall",
    "grid_growth",
    "maze_navigation",
)
DIRECTIONS: tuple[Direction, ...] = ("up", "down", "left", "right")


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------


class Level(BaseModel):
    """One playable level of a variant.

    Immutable — loaded once per session from the level catalog.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    name: str
    difficulty: Difficulty
    speed: float = Field(gt=0)
    obstacle_count: int = Field(ge=0)
    time_limit_seconds: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Scoring output
# ---------------------------------------------------------------------------


class EmotionScore(BaseModel):
    """Five-dimensional behavioural score derived from one session.

    Pure derived value. Frozen — never mutated after creation.
    """

    model_config = ConfigDict(frozen=True)

    joy: float = Field(ge=0.0, le=1.0)
    frustration: float = Field(ge=0.0, le=1.0)
    engagement: float = Field(ge=0.0, le=1.0)
    focus: float = Field(ge=0.0, le=1.0)
    overall: float = Field(ge=-1.0, le=1.0)


class SessionResult(BaseModel):
    """Outcome of one successful attempt, produced exactly once.

    Handed to the progression engine and the profile store. The score is
    on the variant's own scale; success_rate is already normalised to
    [0, 1].
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    child_id: str
    variant: Variant
    level_id: int
    score: int = Field(ge=0)
    completion_time_seconds: float = Field(gt=0)
    retry_count: int = Field(ge=0)
    success_rate: float = Field(ge=0.0, le=1.0)
    reaction_samples: tuple[float, ...] = ()
    emotion_score: EmotionScore
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Progression records
# ---------------------------------------------------------------------------


class DailyChallenge(BaseModel):
    """The (variant, level) pair assigned to a child for one calendar day.

    At most one per (child_id, assigned_date). Mutable only through
    model_copy — completed flips false → true once.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    child_id: str
    variant: Variant
    level_id: int
    assigned_date: date
    completed: bool = False


class StreakState(BaseModel):
    """Consecutive-day play streak, part of the child profile."""

    model_config = ConfigDict(frozen=True)

    child_id: str
    streak_days: int = Field(default=0, ge=0)
    last_play_date: date | None = None


class AchievementProgress(BaseModel):
    """Progress towards one achievement for one child.

    progress never decreases; unlocked_at is set once and never cleared.
    """

    model_config = ConfigDict(frozen=True)

    child_id: str
    achievement_id: str
    progress: int = Field(default=0, ge=0)
    max_progress: int = Field(ge=1)
    unlocked_at: datetime | None = None

    @property
    def unlocked(self) -> bool:
        return self.unlocked_at is not None


class DailyEmotion(BaseModel):
    """Average emotion score across all results of one calendar day."""

    model_config = ConfigDict(frozen=True)

    day: date
    sessions: int
    emotions: EmotionScore


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside ApiResponse.error.

    code is an uppercase string like "SESSION_NOT_FOUND" or
    "INVALID_TRANSITION". Not an enum — codes grow with the API.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class ApiResponse(BaseModel):
    """Universal response envelope — every API endpoint returns this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None
