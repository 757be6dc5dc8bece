"""In-memory session store — development stub for SessionStore.

Holds live SessionControllers keyed by session id, plus a child → session
index (one live session per child). Idle TTL is enforced on read: a
session untouched for longer than the TTL is abandoned, which clears its
timers, and then dropped. No background sweeper — a stub that loses data
on restart doesn't need one.

TEAM: Replace this with your real session store. Your implementation MUST
enforce the idle TTL and abandon what it expires — callers never check
idleness themselves.

Tier 2 service module: imports from mindbloom.hooks.interfaces (Tier 1).

Usage:
    from mindbloom.hooks.sessions import InMemorySessionStore

    sessions = InMemorySessionStore(idle_ttl=timedelta(minutes=30))
    await sessions.save_session(controller)
    await sessions.get_session(controller.session.id)  # None if idle-expired
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from mindbloom.hooks.interfaces import SessionStore
from mindbloom.session.controller import SessionController

logger = logging.getLogger("mindbloom.hooks.sessions")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemorySessionStore(SessionStore):
    """STUB — dict-backed session storage, loses data on restart.

    Args:
        idle_ttl: How long a session may sit untouched before it counts
            as abandoned.
        clock: Returns the current UTC time. Injected by tests.
    """

    def __init__(
        self,
        idle_ttl: timedelta = timedelta(minutes=30),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._idle_ttl = idle_ttl
        self._clock = clock
        self._sessions: dict[str, tuple[SessionController, datetime]] = {}
        self._by_child: dict[str, str] = {}

    def _expire_if_idle(self, session_id: str) -> SessionController | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        controller, touched = entry
        now = self._clock()
        if now - touched >= self._idle_ttl:
            logger.info("Session %s idle-expired; abandoning", session_id)
            controller.abandon()
            self._drop(session_id)
            return None
        self._sessions[session_id] = (controller, now)
        return controller

    def _drop(self, session_id: str) -> None:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return
        child_id = entry[0].session.child_id
        if self._by_child.get(child_id) == session_id:
            del self._by_child[child_id]

    async def get_session(self, session_id: str) -> SessionController | None:
        return self._expire_if_idle(session_id)

    async def get_session_for_child(self, child_id: str) -> SessionController | None:
        session_id = self._by_child.get(child_id)
        if session_id is None:
            return None
        return self._expire_if_idle(session_id)

    async def save_session(self, controller: SessionController) -> None:
        session = controller.session
        self._sessions[session.id] = (controller, self._clock())
        self._by_child[session.child_id] = session.id

    async def delete_session(self, session_id: str) -> None:
        self._drop(session_id)
