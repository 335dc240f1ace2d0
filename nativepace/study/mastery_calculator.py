"""
Mastery Calculator for pattern practice.

Moves a pattern's 0-100 mastery score after each exercise:
- Each exercise type carries a weight reflecting how diagnostic it is
  (dictation requires production, so it moves mastery the most)
- Correct answers gain with diminishing returns near 100
- Incorrect answers lose half the weight

Learned threshold: 50. Mastered (display) threshold: 80.
"""

from __future__ import annotations

from loguru import logger

from nativepace.config import get_settings
from nativepace.core.errors import InvariantViolation
from nativepace.core.models import ExerciseType, MasteryLevel
from nativepace.core.utils import clamp, round_half_up

MIN_MASTERY = 0
MAX_MASTERY = 100


class MasteryCalculator:
    """
    Calculates mastery deltas from exercise results.

    Properties:
    - Correct answers never decrease mastery
    - Incorrect answers never increase mastery
    - Repeated correct answers converge toward, never past, 100
    """

    # Share of remaining headroom gained per correct answer
    HEADROOM_RATE = 0.2
    # Share of the weight gained (correct) or lost (incorrect)
    WEIGHT_RATE = 0.5

    # Display buckets
    LEARNING_THRESHOLD = 1

    def __init__(
        self,
        weights: dict[ExerciseType, int] | None = None,
        learned_threshold: int | None = None,
        mastered_threshold: int | None = None,
    ):
        """
        Initialize calculator with configurable weights and thresholds.

        Args:
            weights: Mastery weight per exercise type
                (default comparison=5, discrimination=10, dictation=15, speed=10)
            learned_threshold: Mastery at which a pattern is learned (default 50)
            mastered_threshold: Mastery at which a pattern is shown as mastered (default 80)
        """
        settings = get_settings()
        if weights is None:
            weights = {
                ExerciseType(name): weight
                for name, weight in settings.get_mastery_weights().items()
            }
        missing = set(ExerciseType) - set(weights)
        if missing:
            raise InvariantViolation(
                f"Missing mastery weights for: {', '.join(sorted(t.value for t in missing))}"
            )
        self.weights = dict(weights)
        self.learned_threshold = (
            learned_threshold if learned_threshold is not None else settings.mastery_learned_threshold
        )
        self.mastered_threshold = (
            mastered_threshold
            if mastered_threshold is not None
            else settings.mastery_mastered_threshold
        )

    def weight_for(self, exercise_type: ExerciseType | str) -> int:
        return self.weights[ExerciseType(exercise_type)]

    def new_mastery(
        self,
        current: int,
        is_correct: bool,
        exercise_type: ExerciseType | str,
    ) -> int:
        """
        Calculate the mastery score after one exercise.

        Formula:
            correct:   current + min(weight, (100 - current) * 0.2 + weight * 0.5)
            incorrect: current - weight * 0.5

        Args:
            current: Current mastery score (0-100)
            is_correct: Whether the answer was correct
            exercise_type: Type of exercise completed

        Returns:
            New mastery score, rounded and clamped to 0-100
        """
        if not MIN_MASTERY <= current <= MAX_MASTERY:
            raise InvariantViolation(f"Mastery must be within 0-100, got {current}")

        weight = self.weight_for(exercise_type)

        if is_correct:
            headroom = MAX_MASTERY - current
            increase = min(weight, headroom * self.HEADROOM_RATE + weight * self.WEIGHT_RATE)
            raw = current + increase
        else:
            raw = current - weight * self.WEIGHT_RATE

        result = int(clamp(round_half_up(raw), MIN_MASTERY, MAX_MASTERY))

        logger.debug(
            f"Mastery {current} -> {result} ({ExerciseType(exercise_type).value}, "
            f"correct={is_correct}, weight={weight})"
        )
        return result

    def is_learned(self, mastery: int, threshold: int | None = None) -> bool:
        """Check if a pattern counts as learned (mastery >= 50 by default)."""
        threshold = self.learned_threshold if threshold is None else threshold
        return mastery >= threshold

    def mastery_level(self, score: int) -> MasteryLevel:
        """Classify a score into a display bucket."""
        if score >= self.mastered_threshold:
            return MasteryLevel.MASTERED
        if score >= self.learned_threshold:
            return MasteryLevel.PRACTICED
        if score >= self.LEARNING_THRESHOLD:
            return MasteryLevel.LEARNING
        return MasteryLevel.NOT_STARTED
