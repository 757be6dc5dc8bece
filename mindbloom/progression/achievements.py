"""Achievement rules — fixed catalogue of measurable milestones.

Each rule turns a child's PlayerStats into a progress value, capped at the
rule's max_progress. apply_progress() merges a freshly computed value into
the stored record: progress only ever goes up, and unlocked_at is written
once, the first time progress reaches max_progress.

Tier 1 module: imports from mindbloom.schemas and the stdlib.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from mindbloom.schemas import AchievementProgress, SessionResult, Variant


@dataclass(frozen=True)
class PlayerStats:
    """Aggregates over a child's successful sessions."""

    games_played: int = 0
    best_focus: float = 0.0
    best_joy: float = 0.0
    streak_days: int = 0
    variants_played: frozenset[Variant] = field(default_factory=frozenset)

    @classmethod
    def from_results(cls, results: Iterable[SessionResult], streak_days: int) -> PlayerStats:
        results = list(results)
        return cls(
            games_played=len(results),
            best_focus=max((r.emotion_score.focus for r in results), default=0.0),
            best_joy=max((r.emotion_score.joy for r in results), default=0.0),
            streak_days=streak_days,
            variants_played=frozenset(r.variant for r in results),
        )


@dataclass(frozen=True)
class AchievementRule:
    id: str
    title: str
    max_progress: int
    measure: Callable[[PlayerStats], int]

    def progress_for(self, stats: PlayerStats) -> int:
        return max(0, min(self.measure(stats), self.max_progress))


def _threshold(value: float, threshold: float) -> int:
    return 1 if value >= threshold else 0


DEFAULT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule("first_game", "First Game", 1, lambda s: s.games_played),
    AchievementRule("ten_games", "Ten Games", 10, lambda s: s.games_played),
    AchievementRule("laser_focus", "Laser Focus", 1, lambda s: _threshold(s.best_focus, 0.8)),
    AchievementRule("on_fire", "On Fire", 3, lambda s: s.streak_days),
    AchievementRule("happy_player", "Happy Player", 1, lambda s: _threshold(s.best_joy, 0.8)),
    AchievementRule("explorer", "Explorer", 4, lambda s: len(s.variants_played)),
)


def apply_progress(
    child_id: str,
    rule: AchievementRule,
    existing: AchievementProgress | None,
    computed: int,
    now: datetime,
) -> AchievementProgress:
    """Merges a computed progress value into the stored record.

    Args:
        child_id: Owner of the record.
        rule: The achievement being updated.
        existing: The stored record, or None on first evaluation.
        computed: Progress derived from the latest stats.
        now: Unlock timestamp if this update crosses max_progress.

    Returns:
        The merged record. Equal to ``existing`` when nothing changed.
    """
    if existing is None:
        existing = AchievementProgress(
            child_id=child_id,
            achievement_id=rule.id,
            progress=0,
            max_progress=rule.max_progress,
        )
    progress = max(existing.progress, computed)
    unlocked_at = existing.unlocked_at
    if unlocked_at is None and progress >= existing.max_progress:
        unlocked_at = now
    if progress == existing.progress and unlocked_at == existing.unlocked_at:
        return existing
    return existing.model_copy(update={"progress": progress, "unlocked_at": unlocked_at})
