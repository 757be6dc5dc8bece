"""Game session service — async orchestration around session controllers.

Owns the glue the controller deliberately knows nothing about: level
resolution, the one-live-session-per-child rule, the session store, and
persistence of committed results.

Persistence is fire-and-forget from the simulation's point of view. When a
controller commits a success, the service starts a background task that
saves the result to the ProfileStore and then runs the ProgressionEngine.
The task's outcome is tracked as a persistence status (pending → saved or
failed); a storage failure is logged and never touches the result or the
controller. Callers that need to know can await wait_persisted().

Tier 3 orchestration module.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Any

from mindbloom.games.registry import create_variant
from mindbloom.hooks.interfaces import ProfileStore, SessionStore
from mindbloom.levels import LevelResolver
from mindbloom.progression.engine import ProgressionEngine
from mindbloom.schemas import Direction, SessionResult, Variant
from mindbloom.scoring import ScoringWeights
from mindbloom.session.controller import Session, SessionController

logger = logging.getLogger("mindbloom.session.service")


class SessionNotFound(KeyError):
    """Raised when a session id is unknown or has idle-expired."""


class PersistenceStatus(str, Enum):
    PENDING = "pending"
    SAVED = "saved"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameSessionService:
    """Creates, drives and persists game sessions.

    Args:
        sessions: Live-session storage.
        profiles: Persistent result storage.
        progression: Progression bookkeeping run after each saved result.
        levels: Level lookups with default fallback.
        weights: Scoring profile for every session.
        tz: Timezone that defines a child's calendar day.
        clock: Returns the current UTC time.
        rng_factory: Builds the random source for each new session.
    """

    def __init__(
        self,
        sessions: SessionStore,
        profiles: ProfileStore,
        progression: ProgressionEngine,
        levels: LevelResolver,
        *,
        weights: ScoringWeights | None = None,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = _utcnow,
        rng_factory: Callable[[], random.Random] = random.Random,
    ) -> None:
        self._sessions = sessions
        self._profiles = profiles
        self._progression = progression
        self._levels = levels
        self._weights = weights
        self._tz = tz
        self._clock = clock
        self._rng_factory = rng_factory

        self._status: dict[str, PersistenceStatus] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def calendar_timezone(self) -> tzinfo:
        return self._tz

    def today(self) -> date:
        """The current calendar day in the configured timezone."""
        return self._clock().astimezone(self._tz).date()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create(self, child_id: str, variant: Variant, level_id: int) -> SessionController:
        """Opens a session in the INSTRUCTIONS phase.

        A child's previous live session is abandoned first.
        """
        previous = await self._sessions.get_session_for_child(child_id)
        if previous is not None:
            logger.info(
                "Abandoning session %s: child started a new one", previous.session.id,
            )
            previous.abandon()
            await self._sessions.delete_session(previous.session.id)
            self._forget(previous.session.id)

        level = self._levels.get_level(variant, level_id)
        session = Session(variant=variant, level=level, child_id=child_id)
        controller = SessionController(
            session,
            create_variant(variant, level, self._rng_factory()),
            weights=self._weights,
            on_complete=lambda result: self._schedule_persistence(session.id, result),
        )
        await self._sessions.save_session(controller)
        logger.info(
            "Session %s created: variant=%s level=%d", session.id, variant, level.id,
        )
        return controller

    async def get(self, session_id: str) -> SessionController:
        """Returns a live session.

        Raises:
            SessionNotFound: If the id is unknown or idle-expired.
        """
        controller = await self._sessions.get_session(session_id)
        if controller is None:
            raise SessionNotFound(session_id)
        return controller

    async def acknowledge(self, session_id: str) -> SessionController:
        controller = await self.get(session_id)
        controller.acknowledge_instructions()
        return controller

    async def start(self, session_id: str, now_ms: float) -> SessionController:
        controller = await self.get(session_id)
        controller.start(now_ms)
        return controller

    async def input(
        self, session_id: str, direction: Direction, timestamp_ms: float
    ) -> tuple[SessionController, bool]:
        controller = await self.get(session_id)
        accepted = controller.handle_input(direction, timestamp_ms)
        return controller, accepted

    async def advance(self, session_id: str, now_ms: float) -> SessionController:
        controller = await self.get(session_id)
        controller.advance(now_ms)
        return controller

    async def retry(self, session_id: str) -> SessionController:
        controller = await self.get(session_id)
        controller.retry()
        return controller

    async def abandon(self, session_id: str) -> None:
        """Abandons and forgets a session. Unknown ids are a no-op."""
        controller = await self._sessions.get_session(session_id)
        if controller is None:
            return
        controller.abandon()
        await self._sessions.delete_session(session_id)
        self._forget(session_id)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _schedule_persistence(self, session_id: str, result: SessionResult) -> None:
        today = self.today()
        self._status[session_id] = PersistenceStatus.PENDING
        self._tasks[session_id] = asyncio.get_running_loop().create_task(
            self._persist(session_id, result, today)
        )

    async def _persist(self, session_id: str, result: SessionResult, today: date) -> None:
        try:
            await self._profiles.save_result(result)
            await self._progression.record_session(result, today)
        except Exception:
            logger.exception("Persisting result of session %s failed", session_id)
            outcome = PersistenceStatus.FAILED
        else:
            outcome = PersistenceStatus.SAVED
        finally:
            self._tasks.pop(session_id, None)
        # A session abandoned mid-save has already been forgotten.
        if session_id in self._status:
            self._status[session_id] = outcome

    def _forget(self, session_id: str) -> None:
        """Drops the save status of a session that no longer exists."""
        self._status.pop(session_id, None)

    def persistence_status(self, session_id: str) -> PersistenceStatus | None:
        """Status of the session's background save; None if nothing was saved."""
        return self._status.get(session_id)

    async def wait_persisted(self, session_id: str) -> PersistenceStatus | None:
        """Waits for the session's background save, if one is running."""
        task = self._tasks.get(session_id)
        if task is not None:
            await asyncio.shield(task)
        return self._status.get(session_id)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self, controller: SessionController) -> dict[str, Any]:
        view = controller.snapshot()
        status = self.persistence_status(controller.session.id)
        view["persistence"] = status.value if status is not None else None
        return view
