"""Tests for the behavioural scoring engine."""

from __future__ import annotations

import itertools
import math

import pytest

from mindbloom.scoring import (
    SCORING_PROFILES,
    ScoringInputError,
    ScoringWeights,
    compute_emotion_score,
    resolve_profile,
)

COMPLETION_TIMES = [1e-9, 0.001, 0.5, 30.0, 60.0, 1e6]
TIME_LIMITS = [1e-6, 1.0, 60.0, 1e9]
RETRIES = [0, 1, 7, 10, 10_000, 10**18]
SUCCESS_RATES = [0.0, 0.37, 1.0]
SAMPLE_SETS = [
    (),
    (0.0,),
    (0.0, 0.0),
    (250.0,),
    (100.0, 900.0, 300.0),
    (0.0, 1e12),
    (1e300, 1e300),
    (5.0,) * 50,
]


def _assert_in_range(score) -> None:
    for name in ("joy", "frustration", "engagement", "focus"):
        value = getattr(score, name)
        assert math.isfinite(value), name
        assert 0.0 <= value <= 1.0, name
    assert math.isfinite(score.overall)
    assert -1.0 <= score.overall <= 1.0


class TestRanges:
    @pytest.mark.parametrize("profile", sorted(SCORING_PROFILES))
    def test_all_outputs_finite_and_in_range(self, profile: str) -> None:
        weights = SCORING_PROFILES[profile]
        for completion, limit, retries, rate, samples in itertools.product(
            COMPLETION_TIMES, TIME_LIMITS, RETRIES, SUCCESS_RATES, SAMPLE_SETS,
        ):
            _assert_in_range(
                compute_emotion_score(completion, limit, retries, rate, samples, weights)
            )

    def test_extreme_weights_are_still_clamped(self) -> None:
        weights = ScoringWeights(joy_success=50.0, frustration_retry=50.0, overall_frustration=50.0)
        _assert_in_range(compute_emotion_score(1.0, 60.0, 100, 1.0, (), weights))


class TestBehaviour:
    def test_deterministic(self) -> None:
        a = compute_emotion_score(20.0, 60.0, 1, 0.8, (300.0, 350.0))
        b = compute_emotion_score(20.0, 60.0, 1, 0.8, (300.0, 350.0))
        assert a == b

    def test_retries_raise_frustration_and_lower_joy(self) -> None:
        clean = compute_emotion_score(30.0, 60.0, 0, 1.0, (300.0, 310.0))
        retried = compute_emotion_score(30.0, 60.0, 5, 1.0, (300.0, 310.0))
        assert retried.frustration > clean.frustration
        assert retried.joy < clean.joy
        assert retried.focus < clean.focus

    def test_consistent_reactions_raise_focus(self) -> None:
        steady = compute_emotion_score(30.0, 60.0, 0, 1.0, (400.0, 400.0, 400.0))
        erratic = compute_emotion_score(30.0, 60.0, 0, 1.0, (50.0, 1500.0, 200.0))
        assert steady.focus > erratic.focus

    def test_empty_samples_use_default_mean(self) -> None:
        # Mean 500 ms: reaction speed 1 - (500 - 200) / 800 = 0.625.
        score = compute_emotion_score(60.0, 60.0, 0, 1.0, ())
        expected = 0.35 * 0.625 + 0.25 * 0.5 + 0.2 * 1.0 + 0.2 * 1.0
        assert score.engagement == pytest.approx(expected)

    def test_standard_profile_is_default(self) -> None:
        args = (25.0, 60.0, 2, 0.9, (200.0, 260.0))
        assert compute_emotion_score(*args) == compute_emotion_score(
            *args, weights=resolve_profile("standard"),
        )

    def test_unknown_profile(self) -> None:
        with pytest.raises(KeyError):
            resolve_profile("nope")


class TestInputValidation:
    @pytest.mark.parametrize(
        "args",
        [
            (0.0, 60.0, 0, 1.0, ()),
            (-1.0, 60.0, 0, 1.0, ()),
            (math.inf, 60.0, 0, 1.0, ()),
            (10.0, 0.0, 0, 1.0, ()),
            (10.0, 60.0, -1, 1.0, ()),
            (10.0, 60.0, 0, 1.5, ()),
            (10.0, 60.0, 0, math.nan, ()),
            (10.0, 60.0, 0, 1.0, (-5.0,)),
            (10.0, 60.0, 0, 1.0, (math.nan,)),
        ],
    )
    def test_out_of_domain_inputs_raise(self, args) -> None:
        with pytest.raises(ScoringInputError):
            compute_emotion_score(*args)

    def test_scoring_input_error_is_value_error(self) -> None:
        assert issubclass(ScoringInputError, ValueError)
