"""
Session Aggregator - folds per-exercise outcomes into session summaries.

Two kinds of sessions:
- Practice session: one pattern; pattern view, the full exercise sequence,
  then a summary step; ends with a completion summary and at most one milestone
- Review session: several due patterns, a short fixed sequence per pattern
  (discrimination then dictation); a pattern passes at >= 50% correct

Session state is an immutable value; every transition returns a new state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Sequence, Union

from loguru import logger

from nativepace.config import get_settings
from nativepace.core.errors import InvariantViolation
from nativepace.core.models import (
    ExerciseOutcome,
    ExerciseType,
    Milestone,
    PatternCategory,
    ReviewCandidate,
)
from nativepace.core.utils import round_half_up, to_utc
from nativepace.study.mastery_calculator import MasteryCalculator
from nativepace.study.quality_mapper import QualityMapper

# Non-exercise steps of a practice session
PATTERN_VIEW_STEP = "pattern-view"
SUMMARY_STEP = "summary"

PracticeStep = Union[ExerciseType, str]

PRACTICE_EXERCISE_SEQUENCE: tuple[ExerciseType, ...] = (
    ExerciseType.COMPARISON,
    ExerciseType.DISCRIMINATION,
    ExerciseType.DICTATION,
    ExerciseType.SPEED,
)

# Shorter than a learning session
REVIEW_EXERCISE_SEQUENCE: tuple[ExerciseType, ...] = (
    ExerciseType.DISCRIMINATION,
    ExerciseType.DICTATION,
)

# Highest first: a session crossing several thresholds reports the top one
MASTERY_MILESTONES: tuple[tuple[int, Milestone], ...] = (
    (100, Milestone.MASTERY_100),
    (75, Milestone.MASTERY_75),
    (50, Milestone.MASTERY_50),
)

UNKNOWN_PATTERN_TITLE = "Unknown Pattern"


# =============================================================================
# Result types
# =============================================================================


@dataclass(frozen=True)
class SessionResult:
    """Aggregate of an ordered list of exercise outcomes."""

    total_count: int
    correct_count: int
    accuracy: int
    average_response_time_ms: int
    total_time_ms: int

    @property
    def incorrect_count(self) -> int:
        return self.total_count - self.correct_count


@dataclass(frozen=True)
class ProgressUpdate:
    """Mastery movement caused by one exercise."""

    previous_mastery: int
    new_mastery: int
    mastery_change: int
    quality: int

    @property
    def is_improvement(self) -> bool:
        return self.mastery_change > 0


@dataclass(frozen=True)
class SessionCompletionSummary:
    """Summary shown when a practice session for one pattern ends."""

    pattern_id: str
    result: SessionResult
    progress_updates: tuple[ProgressUpdate, ...]
    starting_mastery: int
    ending_mastery: int
    milestone: Milestone | None

    @property
    def overall_mastery_change(self) -> int:
        return self.ending_mastery - self.starting_mastery


@dataclass(frozen=True)
class PracticeSessionState:
    """In-progress practice session for one pattern."""

    pattern_id: str
    steps: tuple[PracticeStep, ...]
    started_at: datetime
    current_step_index: int = 0
    exercise_results: tuple[ExerciseOutcome, ...] = ()
    is_complete: bool = False

    @property
    def current_step(self) -> PracticeStep | None:
        if self.current_step_index >= len(self.steps):
            return None
        return self.steps[self.current_step_index]

    @property
    def is_pattern_view_step(self) -> bool:
        return self.current_step == PATTERN_VIEW_STEP

    @property
    def is_exercise_step(self) -> bool:
        return isinstance(self.current_step, ExerciseType)

    @property
    def is_summary_step(self) -> bool:
        return self.current_step == SUMMARY_STEP

    @property
    def exercises_remaining(self) -> int:
        exercise_steps = sum(1 for s in self.steps if isinstance(s, ExerciseType))
        return max(0, exercise_steps - len(self.exercise_results))


@dataclass(frozen=True)
class SessionProgress:
    current: int
    total: int
    percentage: int


@dataclass(frozen=True)
class PracticeSessionResult:
    """Final summary of a practice session."""

    pattern_id: str
    exercise_results: tuple[ExerciseOutcome, ...]
    total_time_ms: int
    correct_count: int
    total_count: int
    accuracy: int


@dataclass(frozen=True)
class PatternReviewResult:
    """Outcome of one pattern inside a review session."""

    pattern_id: str
    title: str
    category: PatternCategory | None
    exercise_results: tuple[ExerciseOutcome, ...]
    passed: bool


@dataclass(frozen=True)
class ReviewSessionState:
    """In-progress review session."""

    patterns: tuple[ReviewCandidate, ...]
    started_at: datetime
    exercise_sequence: tuple[ExerciseType, ...] = REVIEW_EXERCISE_SEQUENCE
    current_pattern_index: int = 0
    current_exercise_index: int = 0
    pattern_results: tuple[PatternReviewResult, ...] = ()
    current_pattern_results: tuple[ExerciseOutcome, ...] = ()
    is_complete: bool = False

    @property
    def current_pattern(self) -> ReviewCandidate | None:
        if self.is_complete or self.current_pattern_index >= len(self.patterns):
            return None
        return self.patterns[self.current_pattern_index]

    @property
    def current_exercise_type(self) -> ExerciseType | None:
        if self.is_complete:
            return None
        return self.exercise_sequence[self.current_exercise_index]

    @property
    def patterns_remaining(self) -> int:
        return max(0, len(self.patterns) - len(self.pattern_results))


@dataclass(frozen=True)
class ReviewProgress:
    current_pattern: int
    total_patterns: int
    current_exercise: int
    total_exercises: int
    overall_percentage: int


@dataclass(frozen=True)
class ReviewSessionResult:
    """Final, write-once summary of a review session."""

    patterns_reviewed: int
    patterns_passed: int
    patterns_failed: int
    total_time_ms: int
    accuracy: int
    pattern_results: tuple[PatternReviewResult, ...] = field(default_factory=tuple)


def _elapsed_ms(started_at: datetime, finished_at: datetime) -> int:
    elapsed = to_utc(finished_at) - to_utc(started_at)
    return max(0, int(elapsed.total_seconds() * 1000))


# =============================================================================
# Aggregator
# =============================================================================


class SessionAggregator:
    """Builds session summaries and drives practice and review sessions."""

    # Session score blend
    ACCURACY_WEIGHT = 0.7
    SPEED_WEIGHT = 0.3
    # Average response time at which the speed component reaches 0
    SPEED_CAP_MS = 10000

    def __init__(
        self,
        mastery_calculator: MasteryCalculator | None = None,
        quality_mapper: QualityMapper | None = None,
        pass_ratio: float | None = None,
    ):
        self.mastery_calculator = mastery_calculator or MasteryCalculator()
        self.quality_mapper = quality_mapper or QualityMapper()
        self.pass_ratio = pass_ratio if pass_ratio is not None else get_settings().review_pass_ratio

    # ---- Session summaries ----

    def summarize(self, outcomes: Sequence[ExerciseOutcome]) -> SessionResult:
        """Fold outcomes into counts, accuracy and timing. Empty input gives zeros."""
        total = len(outcomes)
        correct = sum(1 for o in outcomes if o.is_correct)
        total_time = sum(o.response_time_ms for o in outcomes)

        return SessionResult(
            total_count=total,
            correct_count=correct,
            accuracy=round_half_up(correct / total * 100) if total else 0,
            average_response_time_ms=round_half_up(total_time / total) if total else 0,
            total_time_ms=round_half_up(total_time),
        )

    def session_score(
        self,
        correct_count: int,
        total_count: int,
        average_response_time_ms: float,
    ) -> int:
        """
        Overall session score (0-100).

        Formula:
            accuracy * 0.7 + max(0, 1 - avg_ms / 10000) * 100 * 0.3

        Returns 0 for an empty session.
        """
        if total_count == 0:
            return 0
        if not 0 <= correct_count <= total_count or average_response_time_ms < 0:
            raise InvariantViolation(
                f"Invalid session counts: {correct_count}/{total_count}, "
                f"avg={average_response_time_ms}ms"
            )

        accuracy_score = correct_count / total_count * 100
        speed_factor = max(0.0, 1 - average_response_time_ms / self.SPEED_CAP_MS)
        return round_half_up(
            accuracy_score * self.ACCURACY_WEIGHT + speed_factor * 100 * self.SPEED_WEIGHT
        )

    @staticmethod
    def detect_milestone(
        is_first_practice: bool,
        accuracy: int,
        starting_mastery: int,
        ending_mastery: int,
    ) -> Milestone | None:
        """
        Determine the milestone achieved in a session. First match wins:
        first-practice, perfect-score, then the highest mastery threshold
        crossed from below.
        """
        if is_first_practice:
            return Milestone.FIRST_PRACTICE

        if accuracy == 100:
            return Milestone.PERFECT_SCORE

        for threshold, milestone in MASTERY_MILESTONES:
            if ending_mastery >= threshold > starting_mastery:
                return milestone

        return None

    def complete_session(
        self,
        pattern_id: str,
        outcomes: Sequence[ExerciseOutcome],
        starting_mastery: int,
        is_first_practice: bool = False,
    ) -> SessionCompletionSummary:
        """
        Create the completion summary for a finished practice session.

        Mastery is folded across the outcomes in order, so each exercise
        starts from the mastery the previous one produced.
        """
        mastery = starting_mastery
        updates: list[ProgressUpdate] = []

        for outcome in outcomes:
            new_mastery = self.mastery_calculator.new_mastery(
                mastery, outcome.is_correct, outcome.exercise_type
            )
            quality = self.quality_mapper.quality(outcome.is_correct, outcome.response_time_ms)
            updates.append(
                ProgressUpdate(
                    previous_mastery=mastery,
                    new_mastery=new_mastery,
                    mastery_change=new_mastery - mastery,
                    quality=quality,
                )
            )
            mastery = new_mastery

        result = self.summarize(outcomes)
        milestone = self.detect_milestone(
            is_first_practice, result.accuracy, starting_mastery, mastery
        )

        logger.info(
            f"Session complete for {pattern_id}: {result.correct_count}/{result.total_count} "
            f"correct, mastery {starting_mastery} -> {mastery}"
            + (f", milestone {milestone.value}" if milestone else "")
        )

        return SessionCompletionSummary(
            pattern_id=pattern_id,
            result=result,
            progress_updates=tuple(updates),
            starting_mastery=starting_mastery,
            ending_mastery=mastery,
            milestone=milestone,
        )

    @staticmethod
    def summarize_progress_updates(updates: Sequence[ProgressUpdate]) -> dict:
        """Totals across progress updates (improvement, average quality, counts)."""
        if not updates:
            return {
                "total_improvement": 0,
                "average_quality": 0,
                "improvement_count": 0,
                "decline_count": 0,
            }

        return {
            "total_improvement": sum(u.mastery_change for u in updates),
            "average_quality": round_half_up(sum(u.quality for u in updates) / len(updates)),
            "improvement_count": sum(1 for u in updates if u.is_improvement),
            "decline_count": sum(1 for u in updates if u.mastery_change < 0),
        }

    # ---- Practice sessions ----

    def start_practice(
        self,
        pattern_id: str,
        started_at: datetime,
        exercise_sequence: Sequence[ExerciseType] = PRACTICE_EXERCISE_SEQUENCE,
        include_pattern_view: bool = True,
    ) -> PracticeSessionState:
        """
        Create the initial state of a practice session.

        Steps are: pattern view (optional), each exercise, summary.
        """
        if not exercise_sequence:
            raise InvariantViolation("A practice session needs at least one exercise")

        exercises = tuple(ExerciseType(t) for t in exercise_sequence)
        steps: tuple[PracticeStep, ...] = (
            ((PATTERN_VIEW_STEP,) if include_pattern_view else ()) + exercises + (SUMMARY_STEP,)
        )

        return PracticeSessionState(
            pattern_id=pattern_id,
            steps=steps,
            started_at=to_utc(started_at),
        )

    @staticmethod
    def advance_step(state: PracticeSessionState) -> PracticeSessionState:
        """Move to the next step. Advancing past the summary completes the session."""
        if state.is_complete:
            return state

        next_index = state.current_step_index + 1
        return replace(
            state,
            current_step_index=next_index,
            is_complete=next_index >= len(state.steps),
        )

    def record_exercise_result(
        self,
        state: PracticeSessionState,
        outcome: ExerciseOutcome,
    ) -> PracticeSessionState:
        """Record the result of the current exercise step and advance."""
        if not state.is_exercise_step:
            raise InvariantViolation(
                f"Cannot record an exercise result on step {state.current_step!r}"
            )

        logger.debug(
            f"Practice {state.pattern_id}: {outcome.exercise_type.value} "
            f"correct={outcome.is_correct}"
        )
        return self.advance_step(
            replace(state, exercise_results=state.exercise_results + (outcome,))
        )

    @staticmethod
    def practice_progress(state: PracticeSessionState) -> SessionProgress:
        """Step position; the summary step itself does not count toward the percentage."""
        total = len(state.steps)
        if state.is_complete:
            percentage = 100
        else:
            percentage = round_half_up(state.current_step_index / (total - 1) * 100)

        return SessionProgress(
            current=min(state.current_step_index + 1, total),
            total=total,
            percentage=percentage,
        )

    def finish_practice(
        self,
        state: PracticeSessionState,
        finished_at: datetime,
    ) -> PracticeSessionResult:
        """Create the final practice summary from the recorded exercise results."""
        result = self.summarize(state.exercise_results)

        return PracticeSessionResult(
            pattern_id=state.pattern_id,
            exercise_results=state.exercise_results,
            total_time_ms=_elapsed_ms(state.started_at, finished_at),
            correct_count=result.correct_count,
            total_count=result.total_count,
            accuracy=result.accuracy,
        )

    # ---- Review sessions ----

    def start_review(
        self,
        patterns: Sequence[ReviewCandidate],
        started_at: datetime,
        exercise_sequence: Sequence[ExerciseType] = REVIEW_EXERCISE_SEQUENCE,
    ) -> ReviewSessionState:
        if not exercise_sequence:
            raise InvariantViolation("A review session needs at least one exercise per pattern")

        return ReviewSessionState(
            patterns=tuple(patterns),
            started_at=to_utc(started_at),
            exercise_sequence=tuple(ExerciseType(t) for t in exercise_sequence),
            is_complete=len(patterns) == 0,
        )

    def record_review_result(
        self,
        state: ReviewSessionState,
        outcome: ExerciseOutcome,
    ) -> ReviewSessionState:
        """Record one exercise result and advance to the next exercise or pattern."""
        if state.is_complete:
            raise InvariantViolation("Cannot record a result in a completed review session")

        results = state.current_pattern_results + (outcome,)
        next_exercise = state.current_exercise_index + 1

        if next_exercise < len(state.exercise_sequence):
            return replace(
                state,
                current_exercise_index=next_exercise,
                current_pattern_results=results,
            )

        pattern = state.patterns[state.current_pattern_index]
        correct = sum(1 for r in results if r.is_correct)
        pattern_result = PatternReviewResult(
            pattern_id=pattern.pattern_id,
            title=pattern.title or UNKNOWN_PATTERN_TITLE,
            category=pattern.category,
            exercise_results=results,
            passed=correct / len(results) >= self.pass_ratio,
        )
        logger.debug(
            f"Reviewed {pattern.pattern_id}: {correct}/{len(results)} "
            f"({'passed' if pattern_result.passed else 'failed'})"
        )

        next_pattern = state.current_pattern_index + 1
        return replace(
            state,
            current_pattern_index=next_pattern,
            current_exercise_index=0,
            pattern_results=state.pattern_results + (pattern_result,),
            current_pattern_results=(),
            is_complete=next_pattern >= len(state.patterns),
        )

    @staticmethod
    def review_progress(state: ReviewSessionState) -> ReviewProgress:
        """Position within the session. An empty session counts as 100% complete."""
        total_patterns = len(state.patterns)
        total_exercises = len(state.exercise_sequence)
        total_steps = total_patterns * total_exercises
        completed_steps = (
            len(state.pattern_results) * total_exercises + len(state.current_pattern_results)
        )

        return ReviewProgress(
            current_pattern=min(state.current_pattern_index + 1, total_patterns),
            total_patterns=total_patterns,
            current_exercise=min(state.current_exercise_index + 1, total_exercises),
            total_exercises=total_exercises,
            overall_percentage=(
                round_half_up(completed_steps / total_steps * 100) if total_steps else 100
            ),
        )

    @staticmethod
    def finish_review(state: ReviewSessionState, finished_at: datetime) -> ReviewSessionResult:
        """Create the final review summary. Accuracy is the share of patterns passed."""
        reviewed = len(state.pattern_results)
        passed = sum(1 for r in state.pattern_results if r.passed)

        return ReviewSessionResult(
            patterns_reviewed=reviewed,
            patterns_passed=passed,
            patterns_failed=reviewed - passed,
            total_time_ms=_elapsed_ms(state.started_at, finished_at),
            accuracy=round_half_up(passed / reviewed * 100) if reviewed else 0,
            pattern_results=state.pattern_results,
        )
