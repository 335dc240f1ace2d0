"""
NativePace learning-progress engine.

Pure computation layer for connected speech practice:
- Answer matching for dictation
- Mastery and SM-2 spaced repetition
- Daily streaks, review queues and session summaries
"""

__version__ = "1.0.0"
