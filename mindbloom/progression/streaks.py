"""Streak continuity — calendar-day comparison, never timestamp deltas."""

from __future__ import annotations

from datetime import date, timedelta

from mindbloom.schemas import StreakState


def advance_streak(state: StreakState, today: date) -> StreakState:
    """Applies one successful session played on ``today``.

    No prior play → 1; already played today → unchanged; played yesterday
    → +1; anything older → 1. last_play_date always moves to today.
    """
    last = state.last_play_date
    if last is None:
        days = 1
    elif last == today:
        days = max(state.streak_days, 1)
    elif last == today - timedelta(days=1):
        days = state.streak_days + 1
    else:
        days = 1
    return state.model_copy(update={"streak_days": days, "last_play_date": today})
