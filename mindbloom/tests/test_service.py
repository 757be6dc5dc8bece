"""Tests for GameSessionService — lifecycle glue and background persistence.

Sessions are driven with explicit millisecond timestamps, the same way the
HTTP layer drives them. Pattern-Recall is used for full games because its
sequence can be read back from the controller state.
"""

from __future__ import annotations

import logging
import random
from datetime import date
from zoneinfo import ZoneInfo

import pytest

from mindbloom.hooks.profiles import InMemoryProfileStore
from mindbloom.hooks.sessions import InMemorySessionStore
from mindbloom.levels import DEFAULT_LEVELS, LevelResolver
from mindbloom.progression.engine import ProgressionEngine
from mindbloom.session.controller import SessionPhase, SessionStateError
from mindbloom.session.service import GameSessionService, PersistenceStatus, SessionNotFound


class _FailingProfileStore(InMemoryProfileStore):
    async def save_result(self, result):
        raise ConnectionError("database down")


@pytest.fixture
def build_service(fixed_clock):
    """Returns a factory for services around the given profile store."""

    def _build(profiles=None, tz=None) -> GameSessionService:
        profiles = profiles or InMemoryProfileStore()
        levels = LevelResolver()
        progression = ProgressionEngine(
            profiles, levels, rng=random.Random(3), clock=fixed_clock,
        )
        kwargs = {"tz": tz} if tz is not None else {}
        return GameSessionService(
            InMemorySessionStore(clock=fixed_clock),
            profiles,
            progression,
            levels,
            clock=fixed_clock,
            rng_factory=lambda: random.Random(11),
            **kwargs,
        )

    return _build


async def _win_pattern(service: GameSessionService, session_id: str) -> float:
    """Plays a Pattern-Recall session to success. Returns the final clock."""
    now = 0.0
    await service.acknowledge(session_id)
    controller = await service.start(session_id, now)
    while controller.phase is SessionPhase.ACTIVE:
        state = controller.state
        if state.phase == "input":
            for direction in state.sequence[state.position:]:
                now += 50
                await service.input(session_id, direction, now)
        else:
            now += 1000
            await service.advance(session_id, now)
    return now


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_create_opens_instructions(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "runner", 2)
        assert controller.phase is SessionPhase.INSTRUCTIONS
        assert controller.session.level == DEFAULT_LEVELS["runner"][1]
        assert await service.get(controller.session.id) is controller

    @pytest.mark.asyncio
    async def test_unknown_level_falls_back(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "grid_growth", 99)
        assert controller.session.level == DEFAULT_LEVELS["grid_growth"][0]

    @pytest.mark.asyncio
    async def test_new_session_abandons_previous(self, build_service) -> None:
        service = build_service()
        first = await service.create("child-1", "runner", 1)
        await service.acknowledge(first.session.id)
        await service.start(first.session.id, 0.0)

        second = await service.create("child-1", "maze_navigation", 1)

        assert first.phase is SessionPhase.ABANDONED
        assert not first.timers_running
        with pytest.raises(SessionNotFound):
            await service.get(first.session.id)
        assert await service.get(second.session.id) is second

    @pytest.mark.asyncio
    async def test_other_children_unaffected(self, build_service) -> None:
        service = build_service()
        first = await service.create("child-1", "runner", 1)
        await service.create("child-2", "runner", 1)
        assert first.phase is SessionPhase.INSTRUCTIONS

    @pytest.mark.asyncio
    async def test_get_unknown_raises(self, build_service) -> None:
        with pytest.raises(SessionNotFound):
            await build_service().get("missing")

    @pytest.mark.asyncio
    async def test_start_before_acknowledge_rejected(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "runner", 1)
        with pytest.raises(SessionStateError):
            await service.start(controller.session.id, 0.0)

    @pytest.mark.asyncio
    async def test_timeout_then_retry(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "pattern_recall", 1)
        sid = controller.session.id
        await service.acknowledge(sid)
        await service.start(sid, 0.0)

        await service.advance(sid, 45_000.0)
        assert controller.phase is SessionPhase.AWAITING_RETRY
        assert controller.session.retry_count == 1
        assert service.persistence_status(sid) is None

        await service.retry(sid)
        await service.start(sid, 50_000.0)
        assert controller.phase is SessionPhase.ACTIVE
        assert controller.state.time_left == DEFAULT_LEVELS["pattern_recall"][0].time_limit_seconds

    @pytest.mark.asyncio
    async def test_input_reports_acceptance(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "pattern_recall", 1)
        sid = controller.session.id
        await service.acknowledge(sid)
        await service.start(sid, 0.0)

        _, accepted = await service.input(sid, "up", 100.0)
        assert accepted is False  # still showing the pattern

    @pytest.mark.asyncio
    async def test_abandon(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "runner", 1)
        await service.abandon(controller.session.id)
        assert controller.phase is SessionPhase.ABANDONED
        with pytest.raises(SessionNotFound):
            await service.get(controller.session.id)

    @pytest.mark.asyncio
    async def test_abandon_unknown_is_noop(self, build_service) -> None:
        await build_service().abandon("missing")


class TestPersistence:
    @pytest.mark.asyncio
    async def test_success_is_saved_and_progressed(self, build_service) -> None:
        profiles = InMemoryProfileStore()
        service = build_service(profiles)
        controller = await service.create("child-1", "pattern_recall", 1)
        sid = controller.session.id

        await _win_pattern(service, sid)
        assert controller.phase is SessionPhase.COMPLETED

        assert await service.wait_persisted(sid) is PersistenceStatus.SAVED
        [stored] = await profiles.list_results("child-1")
        assert stored == controller.result
        assert (await profiles.get_streak("child-1")).streak_days == 1
        achievements = {a.achievement_id: a for a in await profiles.get_achievements("child-1")}
        assert achievements["first_game"].unlocked

    @pytest.mark.asyncio
    async def test_snapshot_carries_persistence(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "pattern_recall", 1)
        sid = controller.session.id
        assert service.snapshot(controller)["persistence"] is None

        await _win_pattern(service, sid)
        await service.wait_persisted(sid)
        view = service.snapshot(controller)
        assert view["persistence"] == "saved"
        assert view["phase"] == "completed"
        assert view["result"]["score"] == controller.result.score

    @pytest.mark.asyncio
    async def test_storage_failure_keeps_result(self, build_service, caplog) -> None:
        service = build_service(_FailingProfileStore())
        controller = await service.create("child-1", "pattern_recall", 1)
        sid = controller.session.id

        with caplog.at_level(logging.ERROR, logger="mindbloom.session.service"):
            await _win_pattern(service, sid)
            status = await service.wait_persisted(sid)

        assert status is PersistenceStatus.FAILED
        assert controller.phase is SessionPhase.COMPLETED
        assert controller.result is not None
        assert "database down" in caplog.text

    @pytest.mark.asyncio
    async def test_wait_without_completion(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "runner", 1)
        assert await service.wait_persisted(controller.session.id) is None

    @pytest.mark.asyncio
    async def test_abandon_forgets_persistence_status(self, build_service) -> None:
        service = build_service()
        controller = await service.create("child-1", "pattern_recall", 1)
        sid = controller.session.id
        await _win_pattern(service, sid)
        assert await service.wait_persisted(sid) is PersistenceStatus.SAVED

        await service.abandon(sid)
        assert service.persistence_status(sid) is None

    @pytest.mark.asyncio
    async def test_abandon_mid_save_still_saves(self, build_service) -> None:
        profiles = InMemoryProfileStore()
        service = build_service(profiles)
        controller = await service.create("child-1", "pattern_recall", 1)
        sid = controller.session.id
        await _win_pattern(service, sid)

        await service.abandon(sid)
        assert await service.wait_persisted(sid) is None
        assert len(await profiles.list_results("child-1")) == 1

    @pytest.mark.asyncio
    async def test_new_session_forgets_previous_status(self, build_service) -> None:
        service = build_service()
        first = await service.create("child-1", "pattern_recall", 1)
        await _win_pattern(service, first.session.id)
        await service.wait_persisted(first.session.id)

        await service.create("child-1", "runner", 1)
        assert service.persistence_status(first.session.id) is None


class TestCalendar:
    def test_today_defaults_to_utc(self, build_service) -> None:
        assert build_service().today() == date(2026, 3, 10)

    def test_today_follows_timezone(self, build_service) -> None:
        service = build_service(tz=ZoneInfo("Pacific/Kiritimati"))
        assert service.today() == date(2026, 3, 11)
        assert service.calendar_timezone == ZoneInfo("Pacific/Kiritimati")
