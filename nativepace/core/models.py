"""
Domain models for the progress engine.

These are pure value types with no I/O. Every operation in nativepace.study
returns new instances (dataclasses.replace) instead of mutating these.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from nativepace.core.utils import round_half_up


class ExerciseType(str, Enum):
    """Types of exercises available for pattern practice."""

    COMPARISON = "comparison"
    DISCRIMINATION = "discrimination"
    DICTATION = "dictation"
    SPEED = "speed"


class PatternCategory(str, Enum):
    """Categories of connected speech patterns."""

    WEAK_FORMS = "weak-forms"
    REDUCTIONS = "reductions"
    LINKING = "linking"
    ELISION = "elision"
    ASSIMILATION = "assimilation"
    FLAPPING = "flapping"


class MasteryLevel(str, Enum):
    """Display bucket for a mastery score."""

    NOT_STARTED = "not-started"
    LEARNING = "learning"
    PRACTICED = "practiced"
    MASTERED = "mastered"


class Milestone(str, Enum):
    """Achievements detected at the end of a practice session."""

    FIRST_PRACTICE = "first-practice"
    PERFECT_SCORE = "perfect-score"
    MASTERY_50 = "mastery-50"
    MASTERY_75 = "mastery-75"
    MASTERY_100 = "mastery-100"


@dataclass(frozen=True)
class PatternInfo:
    """Static pattern metadata, owned by the content collaborator."""

    pattern_id: str
    category: PatternCategory | None = None
    level: int = 1
    order_index: int = 0
    title: str | None = None


@dataclass(frozen=True)
class PatternProgress:
    """
    A learner's progress on one pattern.

    Attributes:
        mastery_score: 0-100 estimate of how well the pattern is known.
        ease_factor: SM-2 multiplier, never below 1.3.
        interval_days: Days between last_practiced_at and next_review_at.
        repetition_count: Consecutive successful reviews since the last lapse.
    """

    pattern_id: str
    mastery_score: int = 0
    times_practiced: int = 0
    times_correct: int = 0
    ease_factor: float = 2.5
    interval_days: int = 1
    repetition_count: int = 0
    last_practiced_at: datetime | None = None
    next_review_at: datetime | None = None

    @classmethod
    def new(cls, pattern_id: str, ease_factor: float = 2.5) -> PatternProgress:
        """Progress for a pattern the learner is attempting for the first time."""
        return cls(pattern_id=pattern_id, ease_factor=ease_factor)

    @property
    def accuracy(self) -> int:
        """Share of correct attempts as a percentage (0 if never practiced)."""
        if self.times_practiced == 0:
            return 0
        return round_half_up(self.times_correct / self.times_practiced * 100)

    def to_record(self) -> dict:
        """Row shape handed to the persistence collaborator."""
        return {
            "pattern_id": self.pattern_id,
            "mastery_score": self.mastery_score,
            "times_practiced": self.times_practiced,
            "times_correct": self.times_correct,
            "ease_factor": self.ease_factor,
            "interval_days": self.interval_days,
            "repetition_count": self.repetition_count,
            "last_practiced_at": _iso(self.last_practiced_at),
            "next_review_at": _iso(self.next_review_at),
        }


@dataclass(frozen=True)
class StreakState:
    """Daily practice streak of a learner."""

    current_streak: int = 0
    longest_streak: int = 0
    last_practice_date: date | None = None

    def to_record(self) -> dict:
        return {
            "streak_current": self.current_streak,
            "streak_longest": self.longest_streak,
            "last_practice_date": _iso(self.last_practice_date),
        }


@dataclass(frozen=True)
class ExerciseAttempt:
    """A validated exercise submission. Only produced by core.validation."""

    pattern_id: str
    exercise_type: ExerciseType
    is_correct: bool
    response_time_ms: float
    user_input: str | None = None
    session_id: str | None = None

    def to_record(self, user_id: str) -> dict:
        return {
            "user_id": user_id,
            "pattern_id": self.pattern_id,
            "exercise_type": self.exercise_type.value,
            "is_correct": self.is_correct,
            "response_time_ms": self.response_time_ms,
            "user_input": self.user_input or None,
            "session_id": self.session_id,
        }


@dataclass(frozen=True)
class ExerciseOutcome:
    """Result of one completed exercise inside a session."""

    exercise_type: ExerciseType
    is_correct: bool
    response_time_ms: float

    @classmethod
    def from_attempt(cls, attempt: ExerciseAttempt) -> ExerciseOutcome:
        return cls(
            exercise_type=attempt.exercise_type,
            is_correct=attempt.is_correct,
            response_time_ms=attempt.response_time_ms,
        )


@dataclass(frozen=True)
class ReviewCandidate:
    """Read view joining a learner's progress with static pattern metadata."""

    pattern_id: str
    mastery_score: int = 0
    times_practiced: int = 0
    next_review_at: datetime | None = None
    category: PatternCategory | None = None
    order_index: int = 0
    level: int = 1
    title: str | None = None

    @classmethod
    def from_progress(
        cls,
        progress: PatternProgress,
        pattern: PatternInfo | None = None,
    ) -> ReviewCandidate:
        if pattern is not None and pattern.pattern_id != progress.pattern_id:
            raise ValueError(
                f"Pattern metadata {pattern.pattern_id} does not match "
                f"progress for {progress.pattern_id}"
            )
        return cls(
            pattern_id=progress.pattern_id,
            mastery_score=progress.mastery_score,
            times_practiced=progress.times_practiced,
            next_review_at=progress.next_review_at,
            category=pattern.category if pattern else None,
            order_index=pattern.order_index if pattern else 0,
            level=pattern.level if pattern else 1,
            title=pattern.title if pattern else None,
        )


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
