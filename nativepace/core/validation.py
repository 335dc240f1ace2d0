"""
Inbound submission validation.

The caller hands over the raw JSON-like payload of an exercise attempt.
Validation never stops at the first problem: every invalid field is collected
into one AttemptValidationError so a client can show all of them at once.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from nativepace.core.errors import AttemptValidationError, FieldViolation
from nativepace.core.models import ExerciseAttempt, ExerciseType

VALID_EXERCISE_TYPES = [t.value for t in ExerciseType]

# One message per inbound key, in payload order
FIELD_MESSAGES = {
    "patternId": "is required and must be a non-empty string",
    "exerciseType": f"is required and must be one of: {', '.join(VALID_EXERCISE_TYPES)}",
    "isCorrect": "is required and must be a boolean",
    "responseTimeMs": "is required and must be a non-negative number",
    "userInput": "must be a string if provided",
    "sessionId": "must be a string if provided",
}


class AttemptSubmission(BaseModel):
    """Wire shape of an exercise attempt (camelCase keys)."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    pattern_id: StrictStr = Field(alias="patternId", min_length=1)
    exercise_type: ExerciseType = Field(alias="exerciseType")
    is_correct: StrictBool = Field(alias="isCorrect")
    response_time_ms: Union[StrictInt, StrictFloat] = Field(alias="responseTimeMs")
    user_input: Optional[StrictStr] = Field(default=None, alias="userInput")
    session_id: Optional[StrictStr] = Field(default=None, alias="sessionId")

    @field_validator("response_time_ms")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        # NaN fails both comparisons
        if not v >= 0:
            raise ValueError("must be non-negative")
        return v

    def to_attempt(self) -> ExerciseAttempt:
        return ExerciseAttempt(
            pattern_id=self.pattern_id,
            exercise_type=self.exercise_type,
            is_correct=self.is_correct,
            response_time_ms=self.response_time_ms,
            user_input=self.user_input,
            session_id=self.session_id,
        )


_ALIASES = {
    name: field.alias for name, field in AttemptSubmission.model_fields.items()
}


def _violations_from(error: ValidationError) -> list[FieldViolation]:
    """Collapse pydantic errors into one violation per inbound field."""
    invalid: set[str] = set()
    for err in error.errors():
        loc = err.get("loc", ())
        if not loc:
            return [FieldViolation("body", "must be an object")]
        key = str(loc[0])
        invalid.add(_ALIASES.get(key, key))

    return [
        FieldViolation(field, message)
        for field, message in FIELD_MESSAGES.items()
        if field in invalid
    ]


def validate_attempt(payload: Any) -> ExerciseAttempt:
    """
    Validate a raw submission and return a typed ExerciseAttempt.

    Args:
        payload: Mapping with camelCase keys, an AttemptSubmission,
            or an already validated ExerciseAttempt

    Returns:
        ExerciseAttempt

    Raises:
        AttemptValidationError: listing every invalid field
    """
    if isinstance(payload, ExerciseAttempt):
        return payload
    if isinstance(payload, AttemptSubmission):
        return payload.to_attempt()

    try:
        submission = AttemptSubmission.model_validate(payload)
    except ValidationError as e:
        violations = _violations_from(e)
        logger.warning(f"Rejected submission: {'; '.join(str(v) for v in violations)}")
        raise AttemptValidationError(violations) from e

    return submission.to_attempt()
