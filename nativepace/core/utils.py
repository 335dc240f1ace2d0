"""Numeric and time helpers shared by the study components."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity (2.5 -> 3)."""
    return math.floor(value + 0.5)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def to_utc(moment: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utc_day(moment: date | datetime) -> date:
    """Calendar day in UTC; time of day is discarded."""
    if isinstance(moment, datetime):
        return to_utc(moment).date()
    return moment
