"""Behavioural scoring — maps session telemetry to an EmotionScore.

compute_emotion_score() is a pure function: no side effects, deterministic
given its five inputs and a weight profile. Every output is clamped to its
declared range and no output can be NaN or infinite for inputs inside the
documented domain.

Two-layer arrangement:
  Layer 1: ScoringWeights bundles every tunable constant for one profile
  Layer 2: SCORING_PROFILES maps a profile name to its weights (the team
           experiments here; the active name comes from SCORING_PROFILE)

Tier 1 leaf module: imports only from the stdlib and mindbloom.schemas.
"""

import math
import statistics
from collections.abc import Sequence
from dataclasses import dataclass

from mindbloom.schemas import EmotionScore

DEFAULT_MEAN_REACTION_MS = 500.0


class ScoringInputError(ValueError):
    """Raised when scoring inputs fall outside the documented domain."""


@dataclass(frozen=True)
class ScoringWeights:
    """All tunable constants of the scoring policy.

    Structure is fixed; values are policy. Each emotion is a weighted sum of
    the derived intermediates, then clamped.
    """

    # Intermediates
    time_efficiency_cap: float = 2.0
    penalty_per_retry: float = 0.1
    fast_threshold_ms: float = 200.0
    reaction_window_ms: float = 800.0
    neutral_consistency: float = 0.5
    retry_term_step: float = 0.1
    retry_term_cap: float = 1.0

    # joy
    joy_success: float = 0.4
    joy_time: float = 0.25
    joy_retry: float = 0.2
    joy_consistency: float = 0.15

    # frustration
    frustration_failure: float = 0.35
    frustration_retry: float = 0.3
    frustration_time: float = 0.2
    frustration_inconsistency: float = 0.15

    # engagement
    engagement_speed: float = 0.35
    engagement_consistency: float = 0.25
    engagement_success: float = 0.2
    engagement_time: float = 0.2

    # focus
    focus_consistency: float = 0.45
    focus_time: float = 0.3
    focus_retry: float = 0.25

    # overall
    overall_joy: float = 0.4
    overall_engagement: float = 0.3
    overall_focus: float = 0.3
    overall_frustration: float = 0.8


# "legacy" keeps the emphasis of the first dashboard release: success and
# speed dominate, reaction consistency barely counts.
SCORING_PROFILES: dict[str, ScoringWeights] = {
    "standard": ScoringWeights(),
    "legacy": ScoringWeights(
        time_efficiency_cap=1.0,
        joy_success=0.5,
        joy_time=0.3,
        joy_retry=0.2,
        joy_consistency=0.0,
        frustration_failure=0.4,
        frustration_retry=0.4,
        frustration_time=0.2,
        frustration_inconsistency=0.0,
        engagement_speed=0.6,
        engagement_consistency=0.0,
        engagement_success=0.3,
        engagement_time=0.1,
        focus_consistency=0.0,
        focus_time=0.3,
        focus_retry=0.0,
    ),
}


def resolve_profile(name: str) -> ScoringWeights:
    """Resolves a scoring profile name to its weights.

    Raises:
        KeyError: If the profile name is not found in SCORING_PROFILES.
    """
    return SCORING_PROFILES[name]


def _clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def _validate(
    completion_time: float,
    time_limit: float,
    retry_count: int,
    success_rate: float,
    reaction_samples: Sequence[float],
) -> None:
    if not (math.isfinite(completion_time) and completion_time > 0):
        raise ScoringInputError(f"completion_time must be > 0, got {completion_time!r}")
    if not (math.isfinite(time_limit) and time_limit > 0):
        raise ScoringInputError(f"time_limit must be > 0, got {time_limit!r}")
    if retry_count < 0:
        raise ScoringInputError(f"retry_count must be >= 0, got {retry_count!r}")
    if not 0.0 <= success_rate <= 1.0:
        raise ScoringInputError(f"success_rate must be in [0, 1], got {success_rate!r}")
    for sample in reaction_samples:
        if not (math.isfinite(sample) and sample >= 0):
            raise ScoringInputError(f"reaction samples must be finite and >= 0, got {sample!r}")


def _reaction_consistency(samples: Sequence[float], mean: float, neutral: float) -> float:
    """1 - coefficient of variation, clamped. Neutral below two samples."""
    if len(samples) < 2:
        return neutral
    if mean == 0:
        # All samples are zero: perfectly regular.
        return 1.0
    return _clamp(1.0 - statistics.pstdev(samples) / mean, 0.0, 1.0)


def compute_emotion_score(
    completion_time: float,
    time_limit: float,
    retry_count: int,
    success_rate: float,
    reaction_samples: Sequence[float],
    weights: ScoringWeights | None = None,
) -> EmotionScore:
    """Derives an EmotionScore from one session's behavioural telemetry.

    Args:
        completion_time: Seconds from attempt start to terminal event (> 0).
        time_limit: The level's time limit in seconds (> 0).
        retry_count: Failed attempts before this one (>= 0).
        success_rate: Normalised score in [0, 1].
        reaction_samples: Inter-input latencies in ms (>= 0, may be empty).
        weights: Policy weights. Defaults to the "standard" profile.

    Returns:
        A frozen EmotionScore with joy/frustration/engagement/focus in
        [0, 1] and overall in [-1, 1].

    Raises:
        ScoringInputError: If any input is outside its documented domain.
    """
    w = weights or SCORING_PROFILES["standard"]
    samples = list(reaction_samples)
    _validate(completion_time, time_limit, retry_count, success_rate, samples)

    # statistics.mean works on exact fractions, so huge samples cannot overflow.
    mean_reaction = float(statistics.mean(samples)) if samples else DEFAULT_MEAN_REACTION_MS

    # Every retry-derived term saturates long before this.
    retries = min(retry_count, 1_000_000)

    time_efficiency = _clamp(time_limit / completion_time, 0.0, w.time_efficiency_cap)
    time_norm = time_efficiency / w.time_efficiency_cap
    time_unit = min(time_efficiency, 1.0)
    retry_factor = _clamp(1.0 - retries * w.penalty_per_retry, 0.0, 1.0)
    retry_term = min(retries * w.retry_term_step, w.retry_term_cap)
    consistency = _reaction_consistency(samples, mean_reaction, w.neutral_consistency)
    speed = _clamp(
        1.0 - (mean_reaction - w.fast_threshold_ms) / w.reaction_window_ms, 0.0, 1.0,
    )

    joy = _clamp(
        w.joy_success * success_rate
        + w.joy_time * time_norm
        + w.joy_retry * retry_factor
        + w.joy_consistency * consistency,
        0.0, 1.0,
    )
    frustration = _clamp(
        w.frustration_failure * (1.0 - success_rate)
        + w.frustration_retry * retry_term
        + w.frustration_time * (1.0 - time_unit)
        + w.frustration_inconsistency * (1.0 - consistency),
        0.0, 1.0,
    )
    engagement = _clamp(
        w.engagement_speed * speed
        + w.engagement_consistency * consistency
        + w.engagement_success * success_rate
        + w.engagement_time * time_unit,
        0.0, 1.0,
    )
    focus = _clamp(
        w.focus_consistency * consistency
        + w.focus_time * time_norm
        + w.focus_retry * (1.0 - retry_term),
        0.0, 1.0,
    )
    overall = _clamp(
        w.overall_joy * joy
        + w.overall_engagement * engagement
        + w.overall_focus * focus
        - w.overall_frustration * frustration,
        -1.0, 1.0,
    )

    return EmotionScore(
        joy=joy,
        frustration=frustration,
        engagement=engagement,
        focus=focus,
        overall=overall,
    )
