"""Emotion trends — per-day averages for the caregiver dashboard."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, tzinfo
from statistics import fmean

from mindbloom.schemas import DailyEmotion, EmotionScore, SessionResult


def emotion_trends(results: Iterable[SessionResult], tz: tzinfo) -> list[DailyEmotion]:
    """Averages the five emotion dimensions per calendar day.

    Days are taken in ``tz``, so a late-evening session counts towards the
    child's local day. Output is ascending by date; days without results
    are absent.
    """
    by_day: dict[date, list[EmotionScore]] = defaultdict(list)
    for result in results:
        by_day[result.created_at.astimezone(tz).date()].append(result.emotion_score)

    trends: list[DailyEmotion] = []
    for day in sorted(by_day):
        scores = by_day[day]
        trends.append(
            DailyEmotion(
                day=day,
                sessions=len(scores),
                emotions=EmotionScore(
                    joy=fmean(s.joy for s in scores),
                    frustration=fmean(s.frustration for s in scores),
                    engagement=fmean(s.engagement for s in scores),
                    focus=fmean(s.focus for s in scores),
                    overall=fmean(s.overall for s in scores),
                ),
            )
        )
    return trends
