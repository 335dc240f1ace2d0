"""
Quality Mapper - converts an exercise result into an SM-2 quality score.

The score is relative to an expected pace rather than an absolute latency,
so exercise types with different typical durations stay comparable:

    incorrect                 -> 1
    correct, ratio <= 0.4     -> 5
    correct, ratio <= 0.8     -> 4
    correct, slower           -> 3

where ratio = clamped response time / expected time.
"""

from __future__ import annotations

from loguru import logger

from nativepace.config import get_settings
from nativepace.core.errors import InvariantViolation
from nativepace.core.utils import clamp

QUALITY_INCORRECT = 1
QUALITY_SLOW = 3
QUALITY_NORMAL = 4
QUALITY_FAST = 5


class QualityMapper:
    """Grades correctness plus response latency on the 0-5 SM-2 scale."""

    def __init__(
        self,
        average_time_ms: float | None = None,
        fast_ratio: float | None = None,
        normal_ratio: float | None = None,
        min_response_time_ms: float | None = None,
        max_response_time_ms: float | None = None,
    ):
        config = get_settings().get_quality_config()
        self.average_time_ms = (
            average_time_ms if average_time_ms is not None else config["average_time_ms"]
        )
        self.fast_ratio = fast_ratio if fast_ratio is not None else config["fast_ratio"]
        self.normal_ratio = normal_ratio if normal_ratio is not None else config["normal_ratio"]
        self.min_response_time_ms = (
            min_response_time_ms
            if min_response_time_ms is not None
            else config["min_response_time_ms"]
        )
        self.max_response_time_ms = (
            max_response_time_ms
            if max_response_time_ms is not None
            else config["max_response_time_ms"]
        )

        if self.average_time_ms <= 0:
            raise InvariantViolation(f"average_time_ms must be positive, got {self.average_time_ms}")
        if not 0 < self.fast_ratio <= self.normal_ratio:
            raise InvariantViolation(
                f"Ratios must satisfy 0 < fast <= normal, got {self.fast_ratio}/{self.normal_ratio}"
            )
        if not 0 <= self.min_response_time_ms <= self.max_response_time_ms:
            raise InvariantViolation(
                f"Invalid response time bounds: {self.min_response_time_ms}-{self.max_response_time_ms}"
            )

    def normalize_response_time(self, response_time_ms: float) -> float:
        """Clamp to [500ms, 60000ms] to dampen instant submits and abandoned tabs."""
        if response_time_ms < 0:
            raise InvariantViolation(f"response_time_ms must be >= 0, got {response_time_ms}")
        return clamp(response_time_ms, self.min_response_time_ms, self.max_response_time_ms)

    def quality(
        self,
        is_correct: bool,
        response_time_ms: float,
        average_time_ms: float | None = None,
    ) -> int:
        """
        Convert an exercise result to a quality score.

        Args:
            is_correct: Whether the answer was correct
            response_time_ms: Time taken to respond
            average_time_ms: Expected response time (default 5000ms)

        Returns:
            Quality score 1-5
        """
        expected = self.average_time_ms if average_time_ms is None else average_time_ms
        if expected <= 0:
            raise InvariantViolation(f"average_time_ms must be positive, got {expected}")

        response_time_ms = self.normalize_response_time(response_time_ms)

        if not is_correct:
            score = QUALITY_INCORRECT
        else:
            ratio = response_time_ms / expected
            if ratio <= self.fast_ratio:
                score = QUALITY_FAST
            elif ratio <= self.normal_ratio:
                score = QUALITY_NORMAL
            else:
                score = QUALITY_SLOW

        logger.debug(
            f"Quality {score} (correct={is_correct}, time={response_time_ms:.0f}ms, "
            f"expected={expected:.0f}ms)"
        )
        return score
