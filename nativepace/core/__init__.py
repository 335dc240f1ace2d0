"""Domain models, validation and errors shared by the study components."""

from nativepace.core.errors import (
    AttemptValidationError,
    FieldViolation,
    InvariantViolation,
    NativePaceError,
)
from nativepace.core.models import (
    ExerciseAttempt,
    ExerciseOutcome,
    ExerciseType,
    MasteryLevel,
    Milestone,
    PatternCategory,
    PatternInfo,
    PatternProgress,
    ReviewCandidate,
    StreakState,
)
from nativepace.core.validation import AttemptSubmission, validate_attempt

__all__ = [
    "AttemptSubmission",
    "AttemptValidationError",
    "ExerciseAttempt",
    "ExerciseOutcome",
    "ExerciseType",
    "FieldViolation",
    "InvariantViolation",
    "MasteryLevel",
    "Milestone",
    "NativePaceError",
    "PatternCategory",
    "PatternInfo",
    "PatternProgress",
    "ReviewCandidate",
    "StreakState",
    "validate_attempt",
]
