"""
Learner statistics over stored progress.

Read-only aggregates for dashboards: how many patterns were started, overall
accuracy, average mastery per category, and time spent practicing.
Patterns without a progress record count as mastery 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from nativepace.core.models import MasteryLevel, PatternCategory, PatternInfo, PatternProgress
from nativepace.core.utils import round_half_up, to_utc
from nativepace.study.mastery_calculator import MasteryCalculator


@dataclass(frozen=True)
class CategoryStats:
    category: PatternCategory | None
    average_mastery: int
    patterns_started: int
    total_patterns: int


@dataclass(frozen=True)
class PracticeSession:
    """Start and (optional) end of a practice session."""

    started_at: datetime
    ended_at: datetime | None = None


def patterns_started(progress: Iterable[PatternProgress]) -> int:
    """Patterns with any mastery at all (mastery > 0)."""
    return sum(1 for p in progress if p.mastery_score > 0)


def average_accuracy(progress: Iterable[PatternProgress]) -> int:
    """Total correct over total practiced as a percentage; 0 without practice."""
    records = list(progress)
    practiced = sum(p.times_practiced for p in records)
    if practiced == 0:
        return 0
    correct = sum(p.times_correct for p in records)
    return round_half_up(correct / practiced * 100)


def _mastery_lookup(progress: Iterable[PatternProgress]) -> dict[str, int]:
    return {p.pattern_id: p.mastery_score for p in progress}


def _group_scores(
    progress: Iterable[PatternProgress],
    patterns: Iterable[PatternInfo],
) -> dict[PatternCategory | None, list[int]]:
    mastery = _mastery_lookup(progress)
    groups: dict[PatternCategory | None, list[int]] = {}
    for pattern in patterns:
        groups.setdefault(pattern.category, []).append(mastery.get(pattern.pattern_id, 0))
    return groups


def mastery_by_category(
    progress: Iterable[PatternProgress],
    patterns: Iterable[PatternInfo],
) -> dict[PatternCategory, int]:
    """
    Average mastery per category.

    Every category is present in the result; categories without patterns
    report 0. Patterns with no category are left out.
    """
    result = {category: 0 for category in PatternCategory}
    for category, scores in _group_scores(progress, patterns).items():
        if category is not None and scores:
            result[category] = round_half_up(sum(scores) / len(scores))
    return result


def category_stats(
    progress: Iterable[PatternProgress],
    patterns: Iterable[PatternInfo],
) -> list[CategoryStats]:
    """Per-category detail, in the order categories first appear in `patterns`."""
    return [
        CategoryStats(
            category=category,
            average_mastery=round_half_up(sum(scores) / len(scores)),
            patterns_started=sum(1 for s in scores if s > 0),
            total_patterns=len(scores),
        )
        for category, scores in _group_scores(progress, patterns).items()
    ]


def count_by_mastery_level(
    progress: Iterable[PatternProgress],
    calculator: MasteryCalculator | None = None,
) -> dict[MasteryLevel, int]:
    """Number of patterns in each display bucket (all buckets present)."""
    calculator = calculator or MasteryCalculator()
    counts = {level: 0 for level in MasteryLevel}
    for p in progress:
        counts[calculator.mastery_level(p.mastery_score)] += 1
    return counts


def total_practice_minutes(sessions: Sequence[PracticeSession]) -> int:
    """Minutes spent in finished sessions. Sessions still open are skipped."""
    total_seconds = 0.0
    for session in sessions:
        if session.ended_at is None:
            continue
        total_seconds += (to_utc(session.ended_at) - to_utc(session.started_at)).total_seconds()
    return round_half_up(total_seconds / 60)
