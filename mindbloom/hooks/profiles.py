"""In-memory profile store — development stub for ProfileStore.

Python dict-backed storage for session results and progression records.
Data lives only in memory and is lost on restart. Upsert keys mirror the
ProfileStore contract: child_id for streaks, (child_id, date) for daily
challenges, (child_id, achievement_id) for achievement progress.

TEAM: Replace this with your real database. Subclass ProfileStore from
mindbloom.hooks.interfaces and implement every abstract method.

Tier 2 service module: imports from mindbloom.hooks.interfaces (Tier 1)
and mindbloom.schemas (Tier 1).

Usage:
    from mindbloom.hooks.profiles import InMemoryProfileStore

    store = InMemoryProfileStore()
    await store.save_result(result)
    await store.list_results("child-1")
"""

from datetime import date

from mindbloom.hooks.interfaces import ProfileStore
from mindbloom.schemas import AchievementProgress, DailyChallenge, SessionResult, StreakState


class InMemoryProfileStore(ProfileStore):
    """STUB — dict-backed storage, loses data on restart.

    TEAM: Replace with your database adapter. The composite keys here show
    the upsert semantics your implementation must provide.
    """

    def __init__(self) -> None:
        """Initialises empty in-memory stores."""
        self._results: dict[str, dict[str, SessionResult]] = {}
        self._streaks: dict[str, StreakState] = {}
        self._challenges: dict[tuple[str, date], DailyChallenge] = {}
        self._achievements: dict[tuple[str, str], AchievementProgress] = {}

    async def save_result(self, result: SessionResult) -> None:
        self._results.setdefault(result.child_id, {})[result.id] = result

    async def list_results(self, child_id: str) -> list[SessionResult]:
        results = self._results.get(child_id, {}).values()
        return sorted(results, key=lambda r: r.created_at, reverse=True)

    async def get_streak(self, child_id: str) -> StreakState | None:
        return self._streaks.get(child_id)

    async def save_streak(self, streak: StreakState) -> None:
        self._streaks[streak.child_id] = streak

    async def get_daily_challenge(
        self, child_id: str, day: date
    ) -> DailyChallenge | None:
        return self._challenges.get((child_id, day))

    async def save_daily_challenge(self, challenge: DailyChallenge) -> None:
        self._challenges[(challenge.child_id, challenge.assigned_date)] = challenge

    async def get_achievements(self, child_id: str) -> list[AchievementProgress]:
        return [
            progress
            for (owner, _), progress in sorted(self._achievements.items())
            if owner == child_id
        ]

    async def save_achievement(self, progress: AchievementProgress) -> None:
        self._achievements[(progress.child_id, progress.achievement_id)] = progress
