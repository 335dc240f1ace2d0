"""
Progress Engine - per-attempt orchestration.

Flow for one submission:
    validate -> (dictation free text) match answer -> quality
             -> mastery + SM-2 schedule -> counters -> streak

Nothing is persisted here. The caller loads progress and streak state,
passes them in with "now", and stores what comes back.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable

from loguru import logger

from nativepace.config import get_settings
from nativepace.core.models import (
    ExerciseAttempt,
    ExerciseType,
    PatternProgress,
    StreakState,
)
from nativepace.core.utils import to_utc
from nativepace.core.validation import validate_attempt
from nativepace.study.answer_matcher import AnswerMatcher
from nativepace.study.mastery_calculator import MasteryCalculator
from nativepace.study.quality_mapper import QualityMapper
from nativepace.study.scheduler import SpacedRepetitionScheduler
from nativepace.study.streak_tracker import StreakTracker, StreakUpdate


@dataclass(frozen=True)
class AttemptResult:
    """What a learner is told after one attempt."""

    new_mastery: int
    mastery_change: int
    quality: int
    new_ease_factor: float
    new_interval_days: int
    next_review_at: datetime
    streak: StreakUpdate
    is_learned: bool
    is_correct: bool
    similarity: int | None = None

    def to_payload(self) -> dict:
        """Outbound camelCase shape."""
        payload = {
            "newMastery": self.new_mastery,
            "masteryChange": self.mastery_change,
            "quality": self.quality,
            "newEaseFactor": self.new_ease_factor,
            "newIntervalDays": self.new_interval_days,
            "nextReviewAt": self.next_review_at.isoformat(),
            "streak": self.streak.to_payload(),
            "isLearned": self.is_learned,
        }
        if self.similarity is not None:
            payload["similarity"] = self.similarity
        return payload


@dataclass(frozen=True)
class AttemptOutcome:
    """Everything the caller persists and returns after an attempt."""

    attempt: ExerciseAttempt
    progress: PatternProgress
    streak: StreakState
    result: AttemptResult


class ProgressEngine:
    """Wires the study components together for a single attempt."""

    def __init__(
        self,
        answer_matcher: AnswerMatcher | None = None,
        quality_mapper: QualityMapper | None = None,
        mastery_calculator: MasteryCalculator | None = None,
        scheduler: SpacedRepetitionScheduler | None = None,
        streak_tracker: StreakTracker | None = None,
    ):
        self.answer_matcher = answer_matcher or AnswerMatcher()
        self.quality_mapper = quality_mapper or QualityMapper()
        self.mastery_calculator = mastery_calculator or MasteryCalculator()
        self.scheduler = scheduler or SpacedRepetitionScheduler()
        self.streak_tracker = streak_tracker or StreakTracker()

    def record_attempt(
        self,
        payload: Any,
        progress: PatternProgress | None,
        streak: StreakState,
        now: datetime,
        expected_answer: str | None = None,
        alternates: Iterable[str] = (),
    ) -> AttemptOutcome:
        """
        Process one exercise submission.

        Args:
            payload: Raw camelCase submission (validated here)
            progress: Existing progress for the pattern, None on first attempt
            streak: Learner's streak state
            now: Time of the attempt
            expected_answer: Target text for dictation; enables answer matching
            alternates: Other accepted spellings of the target

        Returns:
            AttemptOutcome with the updated progress, streak and result

        Raises:
            AttemptValidationError: if the payload is invalid
            InvariantViolation: if the stored progress or streak is corrupt
        """
        attempt = validate_attempt(payload)
        now = to_utc(now)

        if progress is None:
            progress = PatternProgress.new(
                attempt.pattern_id, get_settings().sm2_default_ease_factor
            )
        elif progress.pattern_id != attempt.pattern_id:
            raise ValueError(
                f"Progress for {progress.pattern_id} passed with an attempt on {attempt.pattern_id}"
            )

        is_correct = attempt.is_correct
        similarity = None
        if (
            attempt.exercise_type == ExerciseType.DICTATION
            and attempt.user_input
            and expected_answer is not None
        ):
            similarity = self.answer_matcher.similarity(attempt.user_input, expected_answer)
            is_correct = self.answer_matcher.is_acceptable(
                attempt.user_input, expected_answer, alternates
            )
            if is_correct != attempt.is_correct:
                logger.debug(
                    f"Answer matcher overrode isCorrect={attempt.is_correct} "
                    f"for {attempt.pattern_id} (similarity {similarity})"
                )
            attempt = replace(attempt, is_correct=is_correct)

        quality = self.quality_mapper.quality(is_correct, attempt.response_time_ms)
        new_mastery = self.mastery_calculator.new_mastery(
            progress.mastery_score, is_correct, attempt.exercise_type
        )
        schedule = self.scheduler.schedule(
            quality,
            progress.ease_factor,
            progress.interval_days,
            progress.repetition_count,
            now,
        )

        new_progress = replace(
            progress,
            mastery_score=new_mastery,
            times_practiced=progress.times_practiced + 1,
            times_correct=progress.times_correct + (1 if is_correct else 0),
            ease_factor=schedule.ease_factor,
            interval_days=schedule.interval_days,
            repetition_count=schedule.repetition_count,
            last_practiced_at=now,
            next_review_at=schedule.next_review_at,
        )
        new_streak, streak_update = self.streak_tracker.apply(streak, now)

        result = AttemptResult(
            new_mastery=new_mastery,
            mastery_change=new_mastery - progress.mastery_score,
            quality=quality,
            new_ease_factor=schedule.ease_factor,
            new_interval_days=schedule.interval_days,
            next_review_at=schedule.next_review_at,
            streak=streak_update,
            is_learned=self.mastery_calculator.is_learned(new_mastery),
            is_correct=is_correct,
            similarity=similarity,
        )

        logger.info(
            f"Recorded {attempt.exercise_type.value} attempt on {attempt.pattern_id}: "
            f"correct={is_correct}, q={quality}, mastery {progress.mastery_score} -> {new_mastery}, "
            f"next review in {schedule.interval_days}d"
        )

        return AttemptOutcome(
            attempt=attempt,
            progress=new_progress,
            streak=new_streak,
            result=result,
        )
