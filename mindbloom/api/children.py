"""Child-facing progression routes — challenge, streak, achievements, history.

Five read endpoints under /children/{child_id}:
- daily-challenge (created lazily on first query of the day)
- streak
- achievements (every rule, with zero progress where nothing is stored)
- results (newest first)
- emotion-trends (per-day averages for the caregiver dashboard)

"Today" is the current calendar day in the configured timezone.

Tier 3 orchestration module: imports from deps (Tier 2), schemas (Tier 1),
progression modules.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from mindbloom.api.deps import get_profile_store, get_progression, get_session_service
from mindbloom.hooks.interfaces import ProfileStore
from mindbloom.progression.engine import ProgressionEngine
from mindbloom.progression.trends import emotion_trends
from mindbloom.schemas import AchievementProgress, ApiResponse, StreakState
from mindbloom.session.service import GameSessionService

logger = logging.getLogger(__name__)

router = APIRouter()


def _ok(data: Any) -> dict[str, Any]:
    return ApiResponse(ok=True, data=data).model_dump(mode="json")


@router.get("/{child_id}/daily-challenge")
async def daily_challenge(
    child_id: str,
    progression: ProgressionEngine = Depends(get_progression),
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    challenge = await progression.get_daily_challenge(child_id, service.today())
    return _ok(challenge.model_dump(mode="json"))


@router.get("/{child_id}/streak")
async def streak(
    child_id: str,
    store: ProfileStore = Depends(get_profile_store),
) -> dict[str, Any]:
    state = await store.get_streak(child_id) or StreakState(child_id=child_id)
    return _ok(state.model_dump(mode="json"))


@router.get("/{child_id}/achievements")
async def achievements(
    child_id: str,
    store: ProfileStore = Depends(get_profile_store),
    progression: ProgressionEngine = Depends(get_progression),
) -> dict[str, Any]:
    stored = {p.achievement_id: p for p in await store.get_achievements(child_id)}
    items = []
    for rule in progression.rules:
        progress = stored.get(rule.id) or AchievementProgress(
            child_id=child_id,
            achievement_id=rule.id,
            max_progress=rule.max_progress,
        )
        items.append({
            "title": rule.title,
            "unlocked": progress.unlocked,
            **progress.model_dump(mode="json"),
        })
    return _ok(items)


@router.get("/{child_id}/results")
async def results(
    child_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    store: ProfileStore = Depends(get_profile_store),
) -> dict[str, Any]:
    history = await store.list_results(child_id)
    return _ok([r.model_dump(mode="json") for r in history[:limit]])


@router.get("/{child_id}/emotion-trends")
async def trends(
    child_id: str,
    store: ProfileStore = Depends(get_profile_store),
    service: GameSessionService = Depends(get_session_service),
) -> dict[str, Any]:
    history = await store.list_results(child_id)
    days = emotion_trends(history, service.calendar_timezone)
    return _ok([d.model_dump(mode="json") for d in days])
