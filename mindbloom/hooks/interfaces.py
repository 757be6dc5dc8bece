"""Hook interfaces — abstract base classes for all swappable services.

These ABCs define the contracts between the game engine and the
infrastructure around it. Each one has a stub implementation that lets the
engine run end-to-end without real infrastructure, and a production
implementation that the team wires in when ready.

Tier 1 leaf module: imports only from abc, datetime (stdlib) and
mindbloom.schemas (also Tier 1). No project services, no orchestration.

TEAM: To implement a real service, subclass the relevant ABC and implement
every abstract method. Python will raise TypeError at instantiation if
any method is missing — you'll know immediately what's left to do.

Usage:
    from mindbloom.hooks.interfaces import LevelCatalog, ProfileStore
    from mindbloom.hooks.interfaces import SessionStore
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import TYPE_CHECKING

from mindbloom.schemas import (
    AchievementProgress,
    DailyChallenge,
    Level,
    SessionResult,
    StreakState,
    Variant,
)

if TYPE_CHECKING:
    from mindbloom.session.controller import SessionController


# ---------------------------------------------------------------------------
# Level catalog (read-only content)
# ---------------------------------------------------------------------------


class LevelCatalog(ABC):
    """Read-only source of playable levels per variant.

    The engine never writes to the catalog. A catalog that is missing,
    empty or broken is not an error for callers: LevelResolver falls back
    to the built-in default levels.

    TEAM: Replace the stub (JsonLevelCatalog) with your content service.
    """

    @abstractmethod
    def get_levels(self, variant: Variant) -> list[Level]:
        """Returns the variant's levels in display order (possibly empty)."""
        ...

    @abstractmethod
    def get_level(self, variant: Variant, level_id: int) -> Level | None:
        """Returns one level, or None if the catalog doesn't have it."""
        ...


# ---------------------------------------------------------------------------
# Profile store (persistent results and progression)
# ---------------------------------------------------------------------------


class ProfileStore(ABC):
    """Persistent storage for session results and progression records.

    Progression writes are idempotent upserts: streaks keyed by child_id,
    daily challenges by (child_id, assigned_date), achievement progress by
    (child_id, achievement_id). Writing the same record twice leaves one
    record.

    Callers treat every method as fallible I/O. A failure must never
    corrupt in-memory session state — the session service catches and
    logs it.

    TEAM: Replace the stub (InMemoryProfileStore) with your database.
    The stub uses Python dicts and loses data on restart.
    """

    @abstractmethod
    async def save_result(self, result: SessionResult) -> None:
        """Persists one SessionResult. Saving the same id twice overwrites.

        Args:
            result: The immutable result of a successful attempt.
        """
        ...

    @abstractmethod
    async def list_results(self, child_id: str) -> list[SessionResult]:
        """Returns all results for a child, newest first.

        Args:
            child_id: The opaque child identifier.

        Returns:
            Results ordered by created_at descending. Empty if none.
        """
        ...

    @abstractmethod
    async def get_streak(self, child_id: str) -> StreakState | None:
        """Returns the child's streak, or None if they never played."""
        ...

    @abstractmethod
    async def save_streak(self, streak: StreakState) -> None:
        """Upserts the streak keyed by streak.child_id."""
        ...

    @abstractmethod
    async def get_daily_challenge(
        self, child_id: str, day: date
    ) -> DailyChallenge | None:
        """Returns the challenge assigned to a child for one calendar day.

        Args:
            child_id: The opaque child identifier.
            day: The calendar day (in the configured timezone).

        Returns:
            The DailyChallenge, or None if none was assigned yet.
        """
        ...

    @abstractmethod
    async def save_daily_challenge(self, challenge: DailyChallenge) -> None:
        """Upserts a challenge keyed by (child_id, assigned_date)."""
        ...

    @abstractmethod
    async def get_achievements(self, child_id: str) -> list[AchievementProgress]:
        """Returns every achievement progress record for a child."""
        ...

    @abstractmethod
    async def save_achievement(self, progress: AchievementProgress) -> None:
        """Upserts progress keyed by (child_id, achievement_id)."""
        ...


# ---------------------------------------------------------------------------
# Session storage (ephemeral, idle TTL)
# ---------------------------------------------------------------------------


class SessionStore(ABC):
    """Ephemeral storage for live session controllers.

    Holds in-flight sessions only. A session idle for longer than the
    store's TTL counts as "navigated away": the store abandons it (which
    clears its timers) and then behaves as if it never existed. Callers
    never check idleness themselves.

    TEAM: Replace the stub (InMemorySessionStore) with your session store.
    """

    @abstractmethod
    async def get_session(self, session_id: str) -> SessionController | None:
        """Returns a live session, or None if missing or idle-expired.

        A successful read counts as activity and refreshes the idle timer.
        """
        ...

    @abstractmethod
    async def get_session_for_child(self, child_id: str) -> SessionController | None:
        """Returns the child's live session, if any (at most one exists)."""
        ...

    @abstractmethod
    async def save_session(self, controller: SessionController) -> None:
        """Creates or updates a session, keyed by its session id."""
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> None:
        """Removes a session immediately. No-op if not found."""
        ...
