"""
Unit tests for learner statistics.
"""

from datetime import timedelta

import pytest

from nativepace.core.models import MasteryLevel, PatternCategory, PatternInfo, PatternProgress
from nativepace.study import progress_stats
from nativepace.study.progress_stats import CategoryStats, PracticeSession


@pytest.fixture
def progress():
    return [
        PatternProgress("weak-1", mastery_score=80, times_practiced=10, times_correct=9),
        PatternProgress("weak-2", mastery_score=0, times_practiced=2, times_correct=0),
        PatternProgress("link-1", mastery_score=45, times_practiced=4, times_correct=3),
    ]


@pytest.fixture
def patterns():
    return [
        PatternInfo("weak-1", category=PatternCategory.WEAK_FORMS),
        PatternInfo("weak-2", category=PatternCategory.WEAK_FORMS),
        PatternInfo("weak-3", category=PatternCategory.WEAK_FORMS),
        PatternInfo("link-1", category=PatternCategory.LINKING),
    ]


class TestTotals:
    def test_patterns_started(self, progress):
        assert progress_stats.patterns_started(progress) == 2

    def test_average_accuracy(self, progress):
        # 12 correct of 16
        assert progress_stats.average_accuracy(progress) == 75

    def test_average_accuracy_without_practice(self):
        assert progress_stats.average_accuracy([]) == 0


class TestCategories:
    def test_mastery_by_category(self, progress, patterns):
        result = progress_stats.mastery_by_category(progress, patterns)

        # (80 + 0 + 0) / 3 = 26.67
        assert result[PatternCategory.WEAK_FORMS] == 27
        assert result[PatternCategory.LINKING] == 45
        assert result[PatternCategory.FLAPPING] == 0
        assert set(result) == set(PatternCategory)

    def test_category_stats(self, progress, patterns):
        stats = progress_stats.category_stats(progress, patterns)

        assert stats == [
            CategoryStats(PatternCategory.WEAK_FORMS, average_mastery=27, patterns_started=1, total_patterns=3),
            CategoryStats(PatternCategory.LINKING, average_mastery=45, patterns_started=1, total_patterns=1),
        ]

    def test_count_by_mastery_level(self, progress):
        counts = progress_stats.count_by_mastery_level(progress)

        assert counts == {
            MasteryLevel.NOT_STARTED: 1,
            MasteryLevel.LEARNING: 1,
            MasteryLevel.PRACTICED: 0,
            MasteryLevel.MASTERED: 1,
        }


class TestPracticeTime:
    def test_total_practice_minutes_skips_open_sessions(self, now):
        sessions = [
            PracticeSession(now, now + timedelta(minutes=10)),
            PracticeSession(now, now + timedelta(minutes=5, seconds=30)),
            PracticeSession(now),
        ]

        # 15.5 minutes
        assert progress_stats.total_practice_minutes(sessions) == 16

    def test_no_sessions(self):
        assert progress_stats.total_practice_minutes([]) == 0
