"""Shared FastAPI dependencies — stores, level resolver, engine services.

Module-level singletons for each service stub. Route handlers access them
via FastAPI's Depends() system — never by importing stubs directly. When the
team swaps a stub for a real implementation, they change the class here and
every downstream handler picks it up automatically.

The level resolver, progression engine and session service depend on
settings (catalog path, timezone, scoring profile), so main.py builds them
at startup via init_services().

TEAM: To wire your real services, replace the stub class on the right side
of each singleton assignment below. The get_* functions and all route
handlers stay unchanged.

Tier 2 service module: imports from hooks/* (Tier 2), hooks/interfaces
(Tier 1), schemas (Tier 1), levels, progression and session services.

Usage:
    from mindbloom.api.deps import get_session_service

    @router.get("/something")
    async def do_thing(
        service: GameSessionService = Depends(get_session_service),
    ): ...
"""

import logging
from datetime import timedelta
from zoneinfo import ZoneInfo

from fastapi import HTTPException

from mindbloom.config import Settings
from mindbloom.hooks.catalog import JsonLevelCatalog
from mindbloom.hooks.interfaces import LevelCatalog, ProfileStore, SessionStore
from mindbloom.hooks.profiles import InMemoryProfileStore
from mindbloom.hooks.sessions import InMemorySessionStore
from mindbloom.levels import LevelResolver
from mindbloom.progression.engine import ProgressionEngine
from mindbloom.schemas import ApiError, ApiResponse
from mindbloom.scoring import resolve_profile
from mindbloom.session.service import GameSessionService

logger = logging.getLogger("mindbloom")

# ---------------------------------------------------------------------------
# Service singletons: the swap point
# ---------------------------------------------------------------------------

# TEAM: Replace with your real implementations here.
_profile_store: ProfileStore = InMemoryProfileStore()
_session_store: SessionStore = InMemorySessionStore()
_level_catalog: LevelCatalog | None = None

# Set by init_services() at startup
_level_resolver: LevelResolver | None = None
_progression: ProgressionEngine | None = None
_session_service: GameSessionService | None = None


def init_services(settings: Settings) -> None:
    """Builds the settings-dependent singletons.

    Loads the level catalog (never raises — a broken catalog falls back to
    the built-in levels), then wires progression and the session service.
    """
    global _session_store, _level_catalog, _level_resolver, _progression, _session_service

    catalog = JsonLevelCatalog(settings.level_catalog_path)
    catalog.load()
    _level_catalog = catalog

    _session_store = InMemorySessionStore(
        idle_ttl=timedelta(minutes=settings.session_idle_minutes),
    )
    _level_resolver = LevelResolver(catalog)
    _progression = ProgressionEngine(_profile_store, _level_resolver)
    _session_service = GameSessionService(
        _session_store,
        _profile_store,
        _progression,
        _level_resolver,
        weights=resolve_profile(settings.scoring_profile),
        tz=ZoneInfo(settings.calendar_timezone),
    )
    logger.info(
        "Game services initialized: scoring=%s, timezone=%s",
        settings.scoring_profile, settings.calendar_timezone,
    )


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def _unavailable(what: str) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail=ApiResponse(
            ok=False,
            error=ApiError(
                code="SERVICE_UNAVAILABLE",
                message=f"{what} is not yet available. Server is starting up.",
            ),
        ).model_dump(),
    )


def get_profile_store() -> ProfileStore:
    """Returns the profile store singleton."""
    return _profile_store


def get_level_resolver() -> LevelResolver:
    """Returns the level resolver singleton.

    Raises HTTPException(503) if startup hasn't wired it yet.
    """
    if _level_resolver is None:
        raise _unavailable("Level catalog")
    return _level_resolver


def get_progression() -> ProgressionEngine:
    """Returns the progression engine singleton (503 before startup)."""
    if _progression is None:
        raise _unavailable("Progression engine")
    return _progression


def get_session_service() -> GameSessionService:
    """Returns the session service singleton (503 before startup)."""
    if _session_service is None:
        raise _unavailable("Session service")
    return _session_service
