"""
Review Queue Selector for pattern practice.

Decides what a learner sees before a session starts:
- Due reviews (highest priority, earliest due first)
- New patterns from the current level, in curriculum order
- A single recommended pattern when only one is needed
- Level helpers: next unlearned pattern and completion percentage

All functions return new lists; the caller's sequences are never reordered.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from loguru import logger

from nativepace.config import get_settings
from nativepace.core.models import PatternInfo, ReviewCandidate
from nativepace.core.utils import to_utc
from nativepace.study.scheduler import is_due

# Patterns below this mastery are recommended before well-known ones
LOW_MASTERY_THRESHOLD = 50


@dataclass
class ReviewQueue:
    """Queue for one session: due reviews first, then unseen patterns."""

    due: list[ReviewCandidate] = field(default_factory=list)
    new: list[PatternInfo] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.due) + len(self.new)

    def pattern_ids(self) -> list[str]:
        """Presentation order of the whole queue."""
        return [c.pattern_id for c in self.due] + [p.pattern_id for p in self.new]


class ReviewQueueSelector:
    """Selects and orders patterns to present next."""

    def __init__(self, due_limit: int | None = None, new_limit: int | None = None):
        """
        Args:
            due_limit: Default cap on due reviews per queue (default 20)
            new_limit: Default cap on new patterns per queue (default 5)
        """
        settings = get_settings()
        self.due_limit = due_limit if due_limit is not None else settings.due_patterns_limit
        self.new_limit = new_limit if new_limit is not None else settings.new_patterns_limit

    def due_for_review(
        self,
        candidates: Iterable[ReviewCandidate],
        now: datetime,
        limit: int | None = None,
    ) -> list[ReviewCandidate]:
        """
        Candidates whose next review time has passed, earliest due first.

        Candidates without a review date are never due and are excluded.
        """
        due = [c for c in candidates if is_due(c.next_review_at, now)]
        due.sort(key=lambda c: to_utc(c.next_review_at))
        return due[:limit] if limit is not None else due

    def new_patterns_for_level(
        self,
        patterns: Iterable[PatternInfo],
        practiced_ids: Iterable[str],
        limit: int | None = None,
    ) -> list[PatternInfo]:
        """Patterns the learner has never attempted, in curriculum (order_index) order."""
        practiced = set(practiced_ids)
        fresh = sorted(
            (p for p in patterns if p.pattern_id not in practiced),
            key=lambda p: p.order_index,
        )
        return fresh[:limit] if limit is not None else fresh

    def next_recommended(
        self,
        candidates: Sequence[ReviewCandidate],
        now: datetime,
    ) -> str | None:
        """
        Pick the single next pattern to practice.

        Priority:
            1. Due for review, earliest first
            2. Mastery below 50, lowest first
            3. Fewest times practiced
        Ties keep input order. Returns None only for an empty list.
        """
        if not candidates:
            return None

        due = self.due_for_review(candidates, now)
        if due:
            return due[0].pattern_id

        low = [c for c in candidates if c.mastery_score < LOW_MASTERY_THRESHOLD]
        if low:
            return min(low, key=lambda c: c.mastery_score).pattern_id

        return min(candidates, key=lambda c: c.times_practiced).pattern_id

    def build_queue(
        self,
        candidates: Iterable[ReviewCandidate],
        level_patterns: Iterable[PatternInfo],
        practiced_ids: Iterable[str],
        now: datetime,
        due_limit: int | None = None,
        new_limit: int | None = None,
    ) -> ReviewQueue:
        """
        Build the queue for a session.

        Args:
            candidates: Learner's progress joined with pattern metadata
            level_patterns: All patterns of the learner's current level
            practiced_ids: IDs of every pattern the learner has attempted
            now: Reference time for due checks
            due_limit: Cap on due reviews (default from settings)
            new_limit: Cap on new patterns (default from settings)

        Returns:
            ReviewQueue
        """
        queue = ReviewQueue(
            due=self.due_for_review(
                candidates, now, self.due_limit if due_limit is None else due_limit
            ),
            new=self.new_patterns_for_level(
                level_patterns,
                practiced_ids,
                self.new_limit if new_limit is None else new_limit,
            ),
        )

        logger.info(f"Built review queue: {len(queue.due)} due, {len(queue.new)} new")
        return queue

    @staticmethod
    def group_by_category(candidates: Iterable[ReviewCandidate]) -> dict[str, int]:
        """Count candidates per category, in first-seen order ("unknown" when missing)."""
        groups: dict[str, int] = {}
        for candidate in candidates:
            category = candidate.category
            key = getattr(category, "value", category) or "unknown"
            groups[key] = groups.get(key, 0) + 1
        return groups

    @staticmethod
    def next_unlearned_pattern(
        patterns: Iterable[ReviewCandidate],
        learned_threshold: int | None = None,
    ) -> ReviewCandidate | None:
        """First pattern of a level, in curriculum order, that is not yet learned."""
        if learned_threshold is None:
            learned_threshold = get_settings().mastery_learned_threshold

        for candidate in sorted(patterns, key=lambda c: c.order_index):
            if candidate.mastery_score < learned_threshold:
                return candidate
        return None

    @staticmethod
    def completion_percentage(
        patterns: Sequence[ReviewCandidate],
        learned_threshold: int | None = None,
    ) -> float:
        """Share of a level's patterns that are learned, 0-100 (unrounded)."""
        if not patterns:
            return 0.0
        if learned_threshold is None:
            learned_threshold = get_settings().mastery_learned_threshold

        learned = sum(1 for c in patterns if c.mastery_score >= learned_threshold)
        return learned / len(patterns) * 100
