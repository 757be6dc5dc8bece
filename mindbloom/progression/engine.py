"""Progression engine — daily challenges, streaks and achievements.

Consumes finished SessionResults and keeps the child's progression records
in the ProfileStore up to date. Independently hands out the day's challenge
on first query, creating it lazily.

All writes go through the store's idempotent upserts. Updates for the same
child are serialized by a per-child asyncio.Lock so two results landing at
once cannot both read the old streak.

Tier 3 module: imports from mindbloom.hooks, mindbloom.levels and the
progression rule modules.
"""

from __future__ import annotations

import asyncio
import logging
import random
import weakref
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone

from mindbloom.hooks.interfaces import ProfileStore
from mindbloom.levels import LevelResolver
from mindbloom.progression.achievements import (
    DEFAULT_RULES,
    AchievementRule,
    PlayerStats,
    apply_progress,
)
from mindbloom.progression.streaks import advance_streak
from mindbloom.schemas import (
    VARIANTS,
    AchievementProgress,
    DailyChallenge,
    SessionResult,
    StreakState,
)

logger = logging.getLogger("mindbloom.progression")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProgressionUpdate:
    """What one recorded session changed."""

    streak: StreakState
    challenge_completed: bool
    unlocked: tuple[AchievementProgress, ...]


class ProgressionEngine:
    """Updates progression records from successful sessions.

    Args:
        store: Where progression records live.
        levels: Level lookups for challenge selection.
        rules: The achievement rule set.
        rng: Randomness for challenge selection.
        clock: Returns the current UTC time (unlock timestamps).
    """

    def __init__(
        self,
        store: ProfileStore,
        levels: LevelResolver,
        rules: Sequence[AchievementRule] = DEFAULT_RULES,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._levels = levels
        self._rules = tuple(rules)
        self._rng = rng or random.Random()
        self._clock = clock
        # Entries vanish once no coroutine holds or awaits the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def rules(self) -> tuple[AchievementRule, ...]:
        return self._rules

    def _lock(self, child_id: str) -> asyncio.Lock:
        lock = self._locks.get(child_id)
        if lock is None:
            lock = self._locks[child_id] = asyncio.Lock()
        return lock

    # ------------------------------------------------------------------
    # Daily challenge
    # ------------------------------------------------------------------

    async def get_daily_challenge(self, child_id: str, today: date) -> DailyChallenge:
        """Returns today's challenge, creating it on first query.

        Selection is uniform over variants, then uniform over that
        variant's levels.
        """
        async with self._lock(child_id):
            existing = await self._store.get_daily_challenge(child_id, today)
            if existing is not None:
                return existing

            variant = self._rng.choice(VARIANTS)
            level = self._rng.choice(self._levels.get_levels(variant))
            challenge = DailyChallenge(
                child_id=child_id,
                variant=variant,
                level_id=level.id,
                assigned_date=today,
            )
            await self._store.save_daily_challenge(challenge)
            logger.info(
                "Daily challenge for %s on %s: %s level %d",
                child_id, today.isoformat(), variant, level.id,
            )
            return challenge

    # ------------------------------------------------------------------
    # Session results
    # ------------------------------------------------------------------

    async def record_session(self, result: SessionResult, today: date) -> ProgressionUpdate:
        """Applies one successful session to streak, challenge, achievements.

        Args:
            result: The committed result (already persisted or not).
            today: The calendar day the session counts towards.

        Returns:
            A ProgressionUpdate describing the changes.
        """
        async with self._lock(result.child_id):
            streak = await self._update_streak(result.child_id, today)
            completed = await self._complete_challenge(result, today)
            unlocked = await self._update_achievements(result, streak)
        return ProgressionUpdate(
            streak=streak, challenge_completed=completed, unlocked=unlocked,
        )

    async def _update_streak(self, child_id: str, today: date) -> StreakState:
        current = await self._store.get_streak(child_id) or StreakState(child_id=child_id)
        updated = advance_streak(current, today)
        if updated != current:
            await self._store.save_streak(updated)
        return updated

    async def _complete_challenge(self, result: SessionResult, today: date) -> bool:
        challenge = await self._store.get_daily_challenge(result.child_id, today)
        if challenge is None or challenge.completed:
            return False
        if (challenge.variant, challenge.level_id) != (result.variant, result.level_id):
            return False
        await self._store.save_daily_challenge(challenge.model_copy(update={"completed": True}))
        logger.info("Daily challenge completed by %s on %s", result.child_id, today.isoformat())
        return True

    async def _update_achievements(
        self, result: SessionResult, streak: StreakState
    ) -> tuple[AchievementProgress, ...]:
        history = await self._store.list_results(result.child_id)
        if all(r.id != result.id for r in history):
            history.append(result)
        stats = PlayerStats.from_results(history, streak.streak_days)

        existing = {
            p.achievement_id: p for p in await self._store.get_achievements(result.child_id)
        }
        now = self._clock()
        unlocked: list[AchievementProgress] = []
        for rule in self._rules:
            before = existing.get(rule.id)
            after = apply_progress(result.child_id, rule, before, rule.progress_for(stats), now)
            if after is before:
                continue
            await self._store.save_achievement(after)
            if after.unlocked and (before is None or not before.unlocked):
                unlocked.append(after)
                logger.info("Achievement %s unlocked by %s", rule.id, result.child_id)
        return tuple(unlocked)
