"""
SM-2 Spaced Repetition Scheduler.

Consumes a 0-5 quality score and a pattern's scheduling state and produces
the next ease factor, interval and review date:

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)),  floored at 1.3

    q < 3  (lapse)   -> repetitions reset to 0, interval 1 day
    repetition 1     -> 1 day
    repetition 2     -> 6 days
    repetition n > 2 -> round(previous interval * EF')

Intervals grow exponentially for well-remembered patterns and reset hard on
forgetting. "Now" is always supplied by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from nativepace.config import get_settings
from nativepace.core.errors import InvariantViolation
from nativepace.core.utils import round_half_up, to_utc

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

# Float noise allowance when checking a persisted ease factor against the floor
_EASE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class ScheduleResult:
    """Scheduling state after one review."""

    ease_factor: float
    interval_days: int
    repetition_count: int
    next_review_at: datetime


class SpacedRepetitionScheduler:
    """SM-2 scheduler. Stateless and side-effect free."""

    def __init__(
        self,
        min_ease_factor: float | None = None,
        first_interval_days: int | None = None,
        second_interval_days: int | None = None,
    ):
        config = get_settings().get_sm2_config()
        self.min_ease_factor = (
            min_ease_factor if min_ease_factor is not None else config["min_ease_factor"]
        )
        self.first_interval_days = (
            first_interval_days
            if first_interval_days is not None
            else int(config["first_interval_days"])
        )
        self.second_interval_days = (
            second_interval_days
            if second_interval_days is not None
            else int(config["second_interval_days"])
        )

        if self.min_ease_factor <= 0:
            raise InvariantViolation(f"min_ease_factor must be positive, got {self.min_ease_factor}")
        if self.first_interval_days < 1 or self.second_interval_days < 1:
            raise InvariantViolation(
                f"Intervals must be at least 1 day, got "
                f"{self.first_interval_days}/{self.second_interval_days}"
            )

    def next_ease_factor(self, quality: int, ease_factor: float) -> float:
        """Apply the SM-2 ease update, rounded to 2 decimals and floored."""
        lapse_distance = MAX_QUALITY - quality
        new_ef = ease_factor + (0.1 - lapse_distance * (0.08 + lapse_distance * 0.02))
        return max(self.min_ease_factor, round(new_ef, 2))

    def schedule(
        self,
        quality: int,
        prior_ease_factor: float,
        prior_interval_days: int,
        prior_repetition_count: int,
        now: datetime,
    ) -> ScheduleResult:
        """
        Process a review and return the new scheduling state.

        Args:
            quality: Quality of recall (0-5)
            prior_ease_factor: Ease factor before this review (>= 1.3)
            prior_interval_days: Interval before this review (>= 1)
            prior_repetition_count: Successful repetitions since the last lapse
            now: Time of the review

        Returns:
            ScheduleResult with next_review_at = now + interval_days

        Raises:
            InvariantViolation: if any prior value is outside its valid range
        """
        self._check_inputs(quality, prior_ease_factor, prior_interval_days, prior_repetition_count)

        ease_factor = self.next_ease_factor(quality, prior_ease_factor)

        if quality < PASSING_QUALITY:
            repetition_count = 0
            interval_days = 1
        else:
            repetition_count = prior_repetition_count + 1
            if repetition_count == 1:
                interval_days = self.first_interval_days
            elif repetition_count == 2:
                interval_days = self.second_interval_days
            else:
                interval_days = max(1, round_half_up(prior_interval_days * ease_factor))

        next_review_at = to_utc(now) + timedelta(days=interval_days)

        logger.debug(
            f"SM2 q={quality}: EF {prior_ease_factor} -> {ease_factor}, "
            f"interval {prior_interval_days} -> {interval_days}d, reps {repetition_count}"
        )

        return ScheduleResult(
            ease_factor=ease_factor,
            interval_days=interval_days,
            repetition_count=repetition_count,
            next_review_at=next_review_at,
        )

    def _check_inputs(
        self,
        quality: int,
        ease_factor: float,
        interval_days: int,
        repetition_count: int,
    ) -> None:
        if not MIN_QUALITY <= quality <= MAX_QUALITY:
            raise InvariantViolation(f"Quality must be within 0-5, got {quality}")
        if ease_factor < self.min_ease_factor - _EASE_TOLERANCE:
            raise InvariantViolation(
                f"Ease factor must be >= {self.min_ease_factor}, got {ease_factor}"
            )
        if interval_days < 1:
            raise InvariantViolation(f"Interval must be a positive number of days, got {interval_days}")
        if repetition_count < 0:
            raise InvariantViolation(f"Repetition count must be >= 0, got {repetition_count}")


def is_due(next_review_at: datetime | None, now: datetime) -> bool:
    """A pattern is due once its review time has passed. Unscheduled patterns never are."""
    if next_review_at is None:
        return False
    return to_utc(next_review_at) <= to_utc(now)
