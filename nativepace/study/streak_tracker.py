"""
Streak Tracker - consecutive calendar days with at least one practice.

Dates are compared at UTC day granularity. Rules, in order:
1. Already practiced today: nothing changes
2. Practiced yesterday, or never practiced: streak + 1
3. Anything else (gap of 2+ days, or a last practice in the future): restart at 1
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime

from loguru import logger

from nativepace.core.errors import InvariantViolation
from nativepace.core.models import StreakState
from nativepace.core.utils import utc_day


@dataclass(frozen=True)
class StreakUpdate:
    """Result of a streak calculation."""

    new_current: int
    new_longest: int
    continued: bool
    broken: bool
    is_new_record: bool

    def to_payload(self) -> dict:
        return {
            "current": self.new_current,
            "longest": self.new_longest,
            "continued": self.continued,
            "broken": self.broken,
            "isNewRecord": self.is_new_record,
        }


def days_between(earlier: date | datetime, later: date | datetime) -> int:
    """Whole UTC days from earlier to later (negative if later is before earlier)."""
    return (utc_day(later) - utc_day(earlier)).days


class StreakTracker:
    """Computes daily streak transitions. Idempotent within a UTC day."""

    def has_practiced_today(self, last_practice_date: date | datetime | None, now: datetime) -> bool:
        return last_practice_date is not None and days_between(last_practice_date, now) == 0

    def update(
        self,
        current_streak: int,
        longest_streak: int,
        last_practice_date: date | datetime | None,
        now: datetime,
    ) -> StreakUpdate:
        """
        Calculate the streak after a practice event at `now`.

        Args:
            current_streak: Current streak count
            longest_streak: Longest streak ever (>= current_streak)
            last_practice_date: Last practice day, or None for first-ever practice
            now: Time of this practice

        Returns:
            StreakUpdate with new values and status flags
        """
        if current_streak < 0 or longest_streak < current_streak:
            raise InvariantViolation(
                f"Invalid streak state: current={current_streak}, longest={longest_streak}"
            )

        if self.has_practiced_today(last_practice_date, now):
            return StreakUpdate(
                new_current=current_streak,
                new_longest=longest_streak,
                continued=True,
                broken=False,
                is_new_record=False,
            )

        if last_practice_date is None or days_between(last_practice_date, now) == 1:
            new_current = current_streak + 1
            continued = True
            broken = False
        else:
            new_current = 1
            continued = False
            broken = current_streak > 0 and last_practice_date is not None
            logger.info(f"Streak of {current_streak} day(s) reset (last practice {last_practice_date})")

        return StreakUpdate(
            new_current=new_current,
            new_longest=max(longest_streak, new_current),
            continued=continued,
            broken=broken,
            is_new_record=new_current > longest_streak,
        )

    def apply(self, state: StreakState, now: datetime) -> tuple[StreakState, StreakUpdate]:
        """Update a StreakState, stamping today's UTC date as the last practice day."""
        result = self.update(
            state.current_streak,
            state.longest_streak,
            state.last_practice_date,
            now,
        )
        new_state = replace(
            state,
            current_streak=result.new_current,
            longest_streak=result.new_longest,
            last_practice_date=utc_day(now),
        )
        return new_state, result
