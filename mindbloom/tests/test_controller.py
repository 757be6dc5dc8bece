"""Tests for SessionController — phases, terminal latch, timers, results."""

from __future__ import annotations

import logging
import random

import pytest

from mindbloom.games.maze_navigation import EXIT_BONUS, MazeNavigation
from mindbloom.scoring import SCORING_PROFILES
from mindbloom.session.controller import (
    Session,
    SessionController,
    SessionPhase,
    SessionStateError,
)


@pytest.fixture
def corridor(make_level):
    """Controller around a 1×3 maze: two "down" moves reach the exit."""

    def _make(time_limit: int = 60, on_complete=None, weights=None) -> SessionController:
        level = make_level(time_limit_seconds=time_limit)
        session = Session(variant="maze_navigation", level=level, child_id="child-1")
        game = MazeNavigation(level, random.Random(0), width=1, height=3)
        return SessionController(session, game, weights=weights, on_complete=on_complete)

    return _make


def _ready(controller: SessionController, now_ms: float = 0.0) -> SessionController:
    controller.acknowledge_instructions()
    controller.start(now_ms)
    return controller


class TestPhases:
    def test_starts_with_instructions(self, corridor) -> None:
        controller = corridor()
        assert controller.phase is SessionPhase.INSTRUCTIONS
        assert controller.state is None

    def test_start_before_instructions_is_rejected(self, corridor) -> None:
        with pytest.raises(SessionStateError):
            corridor().start(0.0)

    def test_start_activates_game_and_timers(self, corridor) -> None:
        controller = _ready(corridor())
        assert controller.phase is SessionPhase.ACTIVE
        assert controller.timers_running
        assert controller.session.started_at == 0.0

    def test_start_while_active_is_rejected(self, corridor) -> None:
        controller = _ready(corridor())
        with pytest.raises(SessionStateError):
            controller.start(10.0)

    def test_retry_only_after_failure(self, corridor) -> None:
        with pytest.raises(SessionStateError):
            _ready(corridor()).retry()

    def test_input_outside_active_is_rejected(self, corridor) -> None:
        controller = corridor()
        with pytest.raises(SessionStateError):
            controller.handle_input("down", 0.0)


class TestSuccess:
    def test_reaching_exit_completes_with_result(self, corridor) -> None:
        completed = []
        controller = _ready(corridor(on_complete=completed.append), now_ms=1000.0)

        controller.handle_input("down", 3000.0)
        controller.handle_input("down", 5000.0)

        assert controller.phase is SessionPhase.COMPLETED
        assert not controller.timers_running
        result = controller.result
        assert result is not None
        assert completed == [result]
        # Countdown fired at 2000..5000 before the final input.
        assert result.score == 100 * 56 // 60 + EXIT_BONUS
        assert result.success_rate == 1.0
        assert result.completion_time_seconds == pytest.approx(4.0)
        assert result.reaction_samples == (2000.0,)
        assert result.retry_count == 0
        assert result.child_id == "child-1"
        assert result.variant == "maze_navigation"

    def test_blocked_inputs_still_count_as_reactions(self, corridor) -> None:
        controller = _ready(corridor(), now_ms=1000.0)
        controller.handle_input("right", 1100.0)
        controller.handle_input("down", 1300.0)
        controller.handle_input("down", 1600.0)
        assert controller.result is not None
        assert controller.result.reaction_samples == (200.0, 300.0)

    def test_backwards_timestamp_never_gives_negative_latency(self, corridor) -> None:
        controller = _ready(corridor(), now_ms=1000.0)
        controller.handle_input("right", 1500.0)
        controller.handle_input("right", 1200.0)
        assert controller.session.reaction_samples == [0.0]

    def test_scoring_profile_is_applied(self, corridor) -> None:
        standard = _ready(corridor(), now_ms=0.0)
        legacy = _ready(corridor(weights=SCORING_PROFILES["legacy"]), now_ms=0.0)
        for controller in (standard, legacy):
            controller.handle_input("down", 500.0)
            controller.handle_input("down", 900.0)
        assert standard.result.emotion_score != legacy.result.emotion_score


class TestFailureAndRetry:
    def test_timeout_moves_to_awaiting_retry(self, corridor) -> None:
        controller = _ready(corridor(time_limit=2))
        controller.advance(2000.0)
        assert controller.phase is SessionPhase.AWAITING_RETRY
        assert controller.session.retry_count == 1
        assert controller.session.terminal.success is False
        assert not controller.timers_running

    def test_no_timer_fires_after_leaving_active(self, corridor) -> None:
        controller = _ready(corridor(time_limit=2))
        controller.advance(2000.0)
        state = controller.state
        controller.advance(60_000.0)
        assert controller.state is state

    def test_input_after_timeout_is_not_evaluated(self, corridor) -> None:
        controller = _ready(corridor(time_limit=1))
        assert controller.handle_input("down", 5000.0) is False
        assert controller.phase is SessionPhase.AWAITING_RETRY
        assert controller.session.reaction_samples == []

    def test_retry_keeps_count_and_clears_samples(self, corridor) -> None:
        controller = _ready(corridor(time_limit=2))
        controller.handle_input("right", 100.0)
        controller.handle_input("right", 400.0)
        assert controller.session.reaction_samples == [300.0]
        controller.advance(2000.0)

        controller.retry()
        assert controller.phase is SessionPhase.AWAITING_START
        controller.start(10_000.0)
        assert controller.session.reaction_samples == []
        assert controller.session.retry_count == 1

        controller.handle_input("down", 10_200.0)
        controller.handle_input("down", 10_400.0)
        assert controller.result.retry_count == 1
        assert controller.result.completion_time_seconds == pytest.approx(0.4)

    def test_start_directly_from_awaiting_retry(self, corridor) -> None:
        controller = _ready(corridor(time_limit=1))
        controller.advance(1000.0)
        controller.start(5000.0)
        assert controller.phase is SessionPhase.ACTIVE


class TestTerminalLatch:
    def test_second_terminal_signal_is_ignored(self, corridor, caplog) -> None:
        controller = _ready(corridor())
        controller.on_terminal(0, False, 500.0)
        with caplog.at_level(logging.DEBUG, logger="mindbloom.session"):
            controller.on_terminal(0, False, 600.0)
            controller.on_terminal(100, True, 700.0)
        assert controller.session.retry_count == 1
        assert controller.phase is SessionPhase.AWAITING_RETRY
        assert controller.result is None
        assert "duplicate terminal" in caplog.text

    def test_signal_after_completion_keeps_result(self, corridor) -> None:
        completed = []
        controller = _ready(corridor(on_complete=completed.append))
        controller.handle_input("down", 100.0)
        controller.handle_input("down", 200.0)
        result = controller.result

        controller.on_terminal(0, False, 300.0)
        controller.on_terminal(50, True, 400.0)

        assert controller.result is result
        assert controller.session.retry_count == 0
        assert len(completed) == 1

    def test_latch_rearms_on_new_attempt(self, corridor) -> None:
        controller = _ready(corridor())
        controller.on_terminal(0, False, 100.0)
        controller.start(200.0)
        controller.on_terminal(0, False, 300.0)
        assert controller.session.retry_count == 2


class TestAbandon:
    def test_abandon_clears_timers_and_blocks_input(self, corridor) -> None:
        controller = _ready(corridor())
        controller.abandon()
        assert controller.phase is SessionPhase.ABANDONED
        assert not controller.timers_running
        with pytest.raises(SessionStateError):
            controller.handle_input("down", 100.0)

    def test_abandon_is_idempotent(self, corridor) -> None:
        controller = _ready(corridor())
        controller.abandon()
        controller.abandon()
        assert controller.phase is SessionPhase.ABANDONED

    def test_abandon_after_completion_keeps_result(self, corridor) -> None:
        controller = _ready(corridor())
        controller.handle_input("down", 100.0)
        controller.handle_input("down", 200.0)
        controller.abandon()
        assert controller.phase is SessionPhase.COMPLETED
        assert controller.result is not None


class TestPatternThroughController:
    def test_inputs_during_playback_are_not_timed(self, make_controller) -> None:
        controller = make_controller(variant="pattern_recall")
        _ready(controller)
        assert controller.handle_input("up", 100.0) is False
        assert controller.session.reaction_samples == []

    def test_timers_drive_playback_into_input_phase(self, make_controller) -> None:
        controller = make_controller(variant="pattern_recall")
        _ready(controller)
        controller.advance(3000.0)
        assert controller.state.phase == "input"
        assert controller.state.time_left == 57


class TestSnapshot:
    def test_snapshot_shape(self, corridor) -> None:
        controller = _ready(corridor())
        view = controller.snapshot()
        assert view["phase"] == "active"
        assert view["game"]["status"] == "active"
        assert view["game"]["player"] == [0, 0]
        assert view["result"] is None

    def test_snapshot_before_start_has_no_game(self, corridor) -> None:
        assert corridor().snapshot()["game"] is None
