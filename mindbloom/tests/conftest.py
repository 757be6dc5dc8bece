"""Shared test fixtures for the game engine.

Factory-pattern fixtures that return callables accepting **overrides.
Every test module imports from here — no reinventing test scaffolding.

Fixtures:
    make_level: Factory for valid Level instances
    make_emotion: Factory for EmotionScore instances
    make_result: Factory for valid SessionResult instances
    make_controller: Factory for SessionControllers around a seeded variant
    fixed_clock: Settable UTC clock for stores, engines and services
"""

import random
from datetime import datetime, timezone

import pytest

from mindbloom.games.registry import create_variant
from mindbloom.schemas import EmotionScore, Level, SessionResult
from mindbloom.session.controller import Session, SessionController


@pytest.fixture
def make_level():
    """Returns a factory for Level instances. Defaults: easy, speed 1, 60s."""

    def _make(**overrides) -> Level:
        defaults = {
            "id": 1,
            "name": "Test Level",
            "difficulty": "easy",
            "speed": 1.0,
            "obstacle_count": 0,
            "time_limit_seconds": 60,
        }
        defaults.update(overrides)
        return Level(**defaults)

    return _make


@pytest.fixture
def make_emotion():
    """Returns a factory for EmotionScore instances (all dimensions 0.5)."""

    def _make(**overrides) -> EmotionScore:
        defaults = {
            "joy": 0.5,
            "frustration": 0.5,
            "engagement": 0.5,
            "focus": 0.5,
            "overall": 0.0,
        }
        defaults.update(overrides)
        return EmotionScore(**defaults)

    return _make


@pytest.fixture
def make_result(make_emotion):
    """Returns a factory for valid SessionResult instances."""

    def _make(**overrides) -> SessionResult:
        defaults = {
            "child_id": "child-1",
            "variant": "runner",
            "level_id": 1,
            "score": 100,
            "completion_time_seconds": 30.0,
            "retry_count": 0,
            "success_rate": 1.0,
            "reaction_samples": (300.0, 320.0),
            "emotion_score": make_emotion(),
        }
        defaults.update(overrides)
        return SessionResult(**defaults)

    return _make


@pytest.fixture
def make_controller(make_level):
    """Returns a factory for SessionControllers with a seeded variant.

    Accepts ``variant``, ``seed``, ``child_id``, any Level field, and the
    controller keywords ``weights`` and ``on_complete``.
    """

    def _make(variant="maze_navigation", seed=7, child_id="child-1", **overrides):
        controller_kwargs = {
            key: overrides.pop(key) for key in ("weights", "on_complete") if key in overrides
        }
        level = make_level(**overrides)
        session = Session(variant=variant, level=level, child_id=child_id)
        game = create_variant(variant, level, random.Random(seed))
        return SessionController(session, game, **controller_kwargs)

    return _make


class FixedClock:
    """Callable UTC clock the test can move."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def fixed_clock():
    return FixedClock(datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))
