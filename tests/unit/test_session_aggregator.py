"""
Unit tests for SessionAggregator.

Tests:
- Outcome summaries
- Milestone priority
- Completion summaries with per-exercise progress updates
- Practice session state machine and session score
- Review session state machine
"""

from datetime import timedelta

import pytest

from nativepace.core.errors import InvariantViolation
from nativepace.core.models import (
    ExerciseOutcome,
    ExerciseType,
    Milestone,
    PatternCategory,
    ReviewCandidate,
)
from nativepace.study.session_aggregator import (
    PATTERN_VIEW_STEP,
    SUMMARY_STEP,
    ProgressUpdate,
    SessionAggregator,
)


@pytest.fixture
def aggregator():
    return SessionAggregator(pass_ratio=0.5)


def outcome(is_correct, ms=1000, exercise_type=ExerciseType.DICTATION):
    return ExerciseOutcome(exercise_type=exercise_type, is_correct=is_correct, response_time_ms=ms)


class TestSummarize:
    """Tests for outcome aggregation."""

    def test_empty_is_all_zero(self, aggregator):
        result = aggregator.summarize([])

        assert result.total_count == 0
        assert result.correct_count == 0
        assert result.accuracy == 0
        assert result.average_response_time_ms == 0
        assert result.total_time_ms == 0

    def test_counts_and_timing(self, aggregator):
        result = aggregator.summarize([outcome(True, 1000), outcome(False, 2000), outcome(True, 3000)])

        assert result.total_count == 3
        assert result.correct_count == 2
        assert result.incorrect_count == 1
        assert result.accuracy == 67
        assert result.average_response_time_ms == 2000
        assert result.total_time_ms == 6000


class TestDetectMilestone:
    """Tests for milestone priority."""

    def test_first_practice_wins(self):
        assert SessionAggregator.detect_milestone(True, 100, 0, 60) == Milestone.FIRST_PRACTICE

    def test_perfect_score(self):
        assert SessionAggregator.detect_milestone(False, 100, 10, 20) == Milestone.PERFECT_SCORE

    @pytest.mark.parametrize(
        "start,end,expected",
        [
            (45, 55, Milestone.MASTERY_50),
            (70, 80, Milestone.MASTERY_75),
            (40, 80, Milestone.MASTERY_75),
            (95, 100, Milestone.MASTERY_100),
            (100, 100, None),
            (55, 60, None),
            (60, 40, None),
        ],
    )
    def test_highest_threshold_crossed(self, start, end, expected):
        assert SessionAggregator.detect_milestone(False, 80, start, end) == expected


class TestCompleteSession:
    """Tests for completion summaries."""

    def test_folds_mastery_across_exercises(self, aggregator):
        summary = aggregator.complete_session("p1", [outcome(True), outcome(True)], starting_mastery=0)

        assert [u.new_mastery for u in summary.progress_updates] == [15, 30]
        assert summary.progress_updates[1].previous_mastery == 15
        assert summary.ending_mastery == 30
        assert summary.overall_mastery_change == 30
        assert summary.milestone == Milestone.PERFECT_SCORE

    def test_records_quality_and_decline(self, aggregator):
        summary = aggregator.complete_session(
            "p1", [outcome(True, 1000), outcome(False, 1000)], starting_mastery=50
        )

        first, second = summary.progress_updates
        assert first.quality == 5
        assert first.is_improvement is True
        assert second.quality == 1
        assert second.mastery_change < 0
        assert summary.milestone is None

    def test_first_practice_milestone(self, aggregator):
        summary = aggregator.complete_session("p1", [outcome(False)], 0, is_first_practice=True)

        assert summary.milestone == Milestone.FIRST_PRACTICE

    def test_summarize_progress_updates(self, aggregator):
        updates = [
            ProgressUpdate(previous_mastery=0, new_mastery=15, mastery_change=15, quality=5),
            ProgressUpdate(previous_mastery=15, new_mastery=10, mastery_change=-5, quality=1),
            ProgressUpdate(previous_mastery=10, new_mastery=10, mastery_change=0, quality=4),
        ]

        assert aggregator.summarize_progress_updates(updates) == {
            "total_improvement": 10,
            "average_quality": 3,
            "improvement_count": 1,
            "decline_count": 1,
        }

    def test_summarize_progress_updates_empty(self, aggregator):
        assert aggregator.summarize_progress_updates([])["average_quality"] == 0


class TestReviewSession:
    """Tests for the review session state machine."""

    @pytest.fixture
    def patterns(self):
        return [
            ReviewCandidate("p1", category=PatternCategory.LINKING, title="Want to -> wanna"),
            ReviewCandidate("p2", category=PatternCategory.ELISION),
        ]

    def test_start(self, aggregator, patterns, now):
        state = aggregator.start_review(patterns, now)
        progress = aggregator.review_progress(state)

        assert state.is_complete is False
        assert state.current_pattern.pattern_id == "p1"
        assert state.current_exercise_type == ExerciseType.DISCRIMINATION
        assert progress.current_pattern == 1
        assert progress.total_patterns == 2
        assert progress.total_exercises == 2
        assert progress.overall_percentage == 0

    def test_full_session(self, aggregator, patterns, now):
        state = aggregator.start_review(patterns, now)

        state = aggregator.record_review_result(state, outcome(True, exercise_type=ExerciseType.DISCRIMINATION))
        assert state.current_exercise_type == ExerciseType.DICTATION
        assert aggregator.review_progress(state).overall_percentage == 25

        state = aggregator.record_review_result(state, outcome(False))
        assert state.current_pattern.pattern_id == "p2"
        assert state.pattern_results[0].passed is True
        assert aggregator.review_progress(state).overall_percentage == 50

        state = aggregator.record_review_result(state, outcome(False, exercise_type=ExerciseType.DISCRIMINATION))
        state = aggregator.record_review_result(state, outcome(False))
        assert state.is_complete is True
        assert state.pattern_results[1].passed is False
        assert aggregator.review_progress(state).overall_percentage == 100

        result = aggregator.finish_review(state, now + timedelta(seconds=90))
        assert result.patterns_reviewed == 2
        assert result.patterns_passed == 1
        assert result.patterns_failed == 1
        assert result.accuracy == 50
        assert result.total_time_ms == 90_000
        assert result.pattern_results[0].category == PatternCategory.LINKING
        assert result.pattern_results[0].title == "Want to -> wanna"
        assert result.pattern_results[1].title == "Unknown Pattern"

    def test_recording_into_complete_session_raises(self, aggregator, now):
        state = aggregator.start_review([ReviewCandidate("p1")], now, [ExerciseType.DICTATION])
        state = aggregator.record_review_result(state, outcome(True))

        with pytest.raises(InvariantViolation):
            aggregator.record_review_result(state, outcome(True))

    def test_states_are_not_mutated(self, aggregator, patterns, now):
        start = aggregator.start_review(patterns, now)
        aggregator.record_review_result(start, outcome(True))

        assert start.current_exercise_index == 0
        assert start.current_pattern_results == ()

    def test_empty_session(self, aggregator, now):
        state = aggregator.start_review([], now)

        assert state.is_complete is True
        assert aggregator.review_progress(state).overall_percentage == 100
        assert aggregator.finish_review(state, now).accuracy == 0

    def test_empty_sequence_raises(self, aggregator, now):
        with pytest.raises(InvariantViolation):
            aggregator.start_review([ReviewCandidate("p1")], now, [])


class TestSessionScore:
    """Tests for the accuracy/speed blend."""

    def test_blend(self, aggregator):
        # 75 * 0.7 + (1 - 0.2) * 100 * 0.3 = 76.5
        assert aggregator.session_score(3, 4, 2000) == 77

    def test_perfect_and_instant(self, aggregator):
        assert aggregator.session_score(4, 4, 0) == 100

    def test_slow_answers_get_no_speed_credit(self, aggregator):
        assert aggregator.session_score(2, 2, 15000) == 70

    def test_empty_session_is_zero(self, aggregator):
        assert aggregator.session_score(0, 0, 3000) == 0

    def test_more_correct_than_total_raises(self, aggregator):
        with pytest.raises(InvariantViolation):
            aggregator.session_score(5, 4, 1000)


class TestPracticeSession:
    """Tests for the practice session state machine."""

    @pytest.fixture
    def state(self, aggregator, now):
        return aggregator.start_practice("p1", now)

    def test_steps_with_pattern_view(self, state):
        assert state.steps == (
            PATTERN_VIEW_STEP,
            ExerciseType.COMPARISON,
            ExerciseType.DISCRIMINATION,
            ExerciseType.DICTATION,
            ExerciseType.SPEED,
            SUMMARY_STEP,
        )
        assert state.is_pattern_view_step is True
        assert state.exercises_remaining == 4

    def test_steps_without_pattern_view(self, aggregator, now):
        state = aggregator.start_practice(
            "p1", now, [ExerciseType.DICTATION], include_pattern_view=False
        )

        assert state.steps == (ExerciseType.DICTATION, SUMMARY_STEP)
        assert state.is_exercise_step is True

    def test_walk_through(self, aggregator, state, now):
        state = aggregator.advance_step(state)
        assert state.current_step == ExerciseType.COMPARISON

        for is_correct in (True, True, False, True):
            state = aggregator.record_exercise_result(
                state, outcome(is_correct, exercise_type=state.current_step)
            )

        assert state.is_summary_step is True
        assert state.exercises_remaining == 0
        assert [o.exercise_type for o in state.exercise_results] == [
            ExerciseType.COMPARISON,
            ExerciseType.DISCRIMINATION,
            ExerciseType.DICTATION,
            ExerciseType.SPEED,
        ]

        state = aggregator.advance_step(state)
        assert state.is_complete is True
        assert aggregator.advance_step(state) is state

        result = aggregator.finish_practice(state, now + timedelta(minutes=2))
        assert result.pattern_id == "p1"
        assert result.correct_count == 3
        assert result.total_count == 4
        assert result.accuracy == 75
        assert result.total_time_ms == 120_000

    def test_progress(self, aggregator, state):
        assert aggregator.practice_progress(state).percentage == 0
        assert aggregator.practice_progress(state).current == 1

        state = aggregator.advance_step(aggregator.advance_step(state))
        progress = aggregator.practice_progress(state)

        # step index 2 of 5
        assert progress.current == 3
        assert progress.total == 6
        assert progress.percentage == 40

    def test_progress_complete(self, aggregator, now):
        state = aggregator.start_practice("p1", now, [ExerciseType.SPEED], include_pattern_view=False)
        state = aggregator.advance_step(aggregator.advance_step(state))

        progress = aggregator.practice_progress(state)
        assert progress.percentage == 100
        assert progress.current == 2

    def test_recording_outside_exercise_step_raises(self, aggregator, state):
        with pytest.raises(InvariantViolation):
            aggregator.record_exercise_result(state, outcome(True))

    def test_states_are_not_mutated(self, aggregator, state):
        aggregator.advance_step(state)

        assert state.current_step_index == 0

    def test_finish_without_results(self, aggregator, state, now):
        result = aggregator.finish_practice(state, now)

        assert result.total_count == 0
        assert result.accuracy == 0
        assert result.total_time_ms == 0

    def test_empty_sequence_raises(self, aggregator, now):
        with pytest.raises(InvariantViolation):
            aggregator.start_practice("p1", now, [])
