"""
Study Module for pattern practice.

Provides the components that turn exercise attempts into progress:
- Answer matching for free-text dictation
- Quality scoring from correctness and speed
- Mastery calculation
- SM-2 spaced repetition scheduling
- Daily streak tracking
- Review queue selection and session summaries
"""

from nativepace.study.answer_matcher import AnswerMatcher
from nativepace.study.mastery_calculator import MasteryCalculator
from nativepace.study.progress_engine import ProgressEngine
from nativepace.study.quality_mapper import QualityMapper
from nativepace.study.review_queue import ReviewQueueSelector
from nativepace.study.scheduler import SpacedRepetitionScheduler
from nativepace.study.session_aggregator import SessionAggregator
from nativepace.study.streak_tracker import StreakTracker

__all__ = [
    "AnswerMatcher",
    "QualityMapper",
    "MasteryCalculator",
    "SpacedRepetitionScheduler",
    "StreakTracker",
    "ReviewQueueSelector",
    "SessionAggregator",
    "ProgressEngine",
]
