"""Session API routes — the game session lifecycle over HTTP.

Eight endpoints that drive one game session:
- create, get, abandon
- ready (instructions acknowledged), start, retry
- input (one directional event), advance (let timers catch up)

Clients own the clock: every start/input/advance call carries a monotonic
millisecond timestamp, and the server simulation catches up to it before
applying anything else. All responses use the ApiResponse envelope and
carry the session snapshot.

Domain errors map to the envelope in main.py: SessionNotFound → 404
SESSION_NOT_FOUND, SessionStateError → 409 INVALID_TRANSITION.

Tier 3 orchestration module: imports from deps (Tier 2), schemas (Tier 1)
and the session service.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from mindbloom.api.deps import get_session_service
from mindbloom.schemas import ApiResponse, Direction, Variant
from mindbloom.session.service import GameSessionService

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request bodies (API-boundary types, local to this module)
# ---------------------------------------------------------------------------


class CreateSessionRequest(BaseModel):
    """Request body for POST /sessions."""

    child_id: str = Field(min_length=1)
    variant: Variant
    level_id: int = Field(ge=1)


class ClockRequest(BaseModel):
    """Request body for start/advance: the client's monotonic time."""

    now_ms: float = Field(ge=0)


class InputRequest(BaseModel):
    """Request body for POST /sessions/{session_id}/input."""

    direction: Direction
    timestamp_ms: float = Field(ge=0)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


def _ok(data: Any) -> dict[str, Any]:
    return ApiResponse(ok=True, data=data).model_dump()


@router.post("")
async def create_session(
    body: CreateSessionRequest,
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    """Opens a session in the instructions phase.

    Any previous live session of the same child is abandoned.
    """
    controller = await service.create(body.child_id, body.variant, body.level_id)
    return _ok(service.snapshot(controller))


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    controller = await service.get(session_id)
    return _ok(service.snapshot(controller))


@router.post("/{session_id}/ready")
async def acknowledge_instructions(
    session_id: str,
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    controller = await service.acknowledge(session_id)
    return _ok(service.snapshot(controller))


@router.post("/{session_id}/start")
async def start_attempt(
    session_id: str,
    body: ClockRequest,
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    controller = await service.start(session_id, body.now_ms)
    return _ok(service.snapshot(controller))


@router.post("/{session_id}/input")
async def send_input(
    session_id: str,
    body: InputRequest,
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    """Applies one directional input.

    ``accepted`` is false when the variant ignored the input (for example
    while a pattern is still being shown, or the attempt just ended on a
    timer that fired first).
    """
    controller, accepted = await service.input(session_id, body.direction, body.timestamp_ms)
    return _ok({"accepted": accepted, **service.snapshot(controller)})


@router.post("/{session_id}/advance")
async def advance_clock(
    session_id: str,
    body: ClockRequest,
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    controller = await service.advance(session_id, body.now_ms)
    return _ok(service.snapshot(controller))


@router.post("/{session_id}/retry")
async def retry_attempt(
    session_id: str,
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    controller = await service.retry(session_id)
    return _ok(service.snapshot(controller))


@router.delete("/{session_id}")
async def abandon_session(
    session_id: str,
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    """Navigation away: clears timers and forgets the session. Idempotent."""
    await service.abandon(session_id)
    return _ok({"session_id": session_id, "abandoned": True})
