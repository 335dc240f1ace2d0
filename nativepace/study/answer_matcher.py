"""
Answer Matcher for dictation exercises.

Decides whether free-text input is close enough to the expected sentence:
- Normalization (case, punctuation, whitespace)
- Levenshtein edit distance and a 0-100 similarity score
- Token (word) overlap for partially correct sentences
- Highlighting of reduced forms ("gonna", "wanna") inside a transcript
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from loguru import logger

from nativepace.config import get_settings
from nativepace.core.utils import round_half_up

# Characters removed before comparing answers
PUNCTUATION = ".,!?;:'\"()-[]{}"

_PUNCTUATION_RE = re.compile("[" + re.escape(PUNCTUATION) + "]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class BestMatch:
    """Best scoring candidate for an input."""

    match: str
    score: int
    index: int


@dataclass(frozen=True)
class TextSegment:
    """A run of text, highlighted when it is one of the searched patterns."""

    text: str
    is_highlighted: bool


class AnswerMatcher:
    """
    Fuzzy matching of learner input against expected answers.

    Stateless apart from its configured thresholds.
    """

    def __init__(
        self,
        threshold: int | None = None,
        char_weight: float | None = None,
        token_weight: float | None = None,
    ):
        """
        Args:
            threshold: Minimum similarity to accept an answer (default from settings, 85)
            char_weight: Weight of character similarity in combined_similarity
            token_weight: Weight of token similarity in combined_similarity
        """
        settings = get_settings()
        self.threshold = threshold if threshold is not None else settings.answer_similarity_threshold
        self.char_weight = char_weight if char_weight is not None else settings.char_similarity_weight
        self.token_weight = (
            token_weight if token_weight is not None else settings.token_similarity_weight
        )

    # =========================================================================
    # Character level
    # =========================================================================

    @staticmethod
    def normalize(text: str) -> str:
        """Lowercase, strip punctuation, collapse whitespace, trim."""
        text = _PUNCTUATION_RE.sub("", text.lower())
        return _WHITESPACE_RE.sub(" ", text).strip()

    @staticmethod
    def edit_distance(a: str, b: str) -> int:
        """Minimum single-character inserts, deletes and substitutions from a to b."""
        if not a:
            return len(b)
        if not b:
            return len(a)

        previous = list(range(len(b) + 1))
        for i, ca in enumerate(a, start=1):
            current = [i]
            for j, cb in enumerate(b, start=1):
                if ca == cb:
                    current.append(previous[j - 1])
                else:
                    current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
            previous = current

        return previous[-1]

    def similarity(self, input_text: str, target: str) -> int:
        """
        Similarity of two strings after normalization (0-100).

        100 means identical, 0 means nothing in common or one side is empty.
        """
        normalized_input = self.normalize(input_text)
        normalized_target = self.normalize(target)

        if normalized_input == normalized_target:
            return 100

        if not normalized_input or not normalized_target:
            return 0

        distance = self.edit_distance(normalized_input, normalized_target)
        max_length = max(len(normalized_input), len(normalized_target))
        score = (max_length - distance) / max_length * 100

        return max(0, round_half_up(score))

    def is_acceptable(
        self,
        input_text: str,
        target: str,
        alternates: Iterable[str] = (),
        threshold: int | None = None,
    ) -> bool:
        """
        Check if a dictation answer should be accepted.

        An answer is acceptable if it matches the target or any alternate exactly
        (after normalization), or its similarity to the target reaches the threshold.
        """
        threshold = self.threshold if threshold is None else threshold
        normalized_input = self.normalize(input_text)

        if normalized_input == self.normalize(target):
            return True

        if any(normalized_input == self.normalize(alt) for alt in alternates):
            return True

        score = self.similarity(input_text, target)
        logger.debug(f"Fuzzy answer check: score={score} threshold={threshold}")
        return score >= threshold

    def find_best_match(self, input_text: str, candidates: Sequence[str]) -> BestMatch | None:
        """
        Score every candidate and return the first one with the highest score.

        Returns None when there are no candidates or nothing scores above 0.
        """
        best: BestMatch | None = None

        for index, candidate in enumerate(candidates):
            score = self.similarity(input_text, candidate)
            if best is None or score > best.score:
                best = BestMatch(match=candidate, score=score, index=index)

        if best is None or best.score == 0:
            return None

        return best

    # =========================================================================
    # Token level
    # =========================================================================

    def tokenize(self, text: str) -> list[str]:
        normalized = self.normalize(text)
        return normalized.split(" ") if normalized else []

    def count_matching_tokens(self, input_text: str, target: str) -> int:
        """How many input tokens (repeats included) appear in the target."""
        target_tokens = set(self.tokenize(target))
        return sum(1 for token in self.tokenize(input_text) if token in target_tokens)

    def contains_all_tokens(self, input_text: str, required_tokens: Iterable[str]) -> bool:
        input_tokens = set(self.tokenize(input_text))
        return all(self.normalize(token) in input_tokens for token in required_tokens)

    def token_similarity(self, input_text: str, target: str) -> int:
        """Shared distinct tokens over all distinct tokens (0-100)."""
        input_tokens = set(self.tokenize(input_text))
        target_tokens = set(self.tokenize(target))

        if not input_tokens or not target_tokens:
            return 0

        shared = len(input_tokens & target_tokens)
        return round_half_up(shared / len(input_tokens | target_tokens) * 100)

    def combined_similarity(self, input_text: str, target: str) -> int:
        """Weighted blend of character and token similarity (70/30 by default)."""
        char_score = self.similarity(input_text, target)
        token_score = self.token_similarity(input_text, target)
        return round_half_up(char_score * self.char_weight + token_score * self.token_weight)

    # =========================================================================
    # Highlighting
    # =========================================================================

    @staticmethod
    def highlight_spans(text: str, patterns: Iterable[str]) -> list[TextSegment]:
        """
        Split text into alternating plain and highlighted segments.

        Matching is case-insensitive. At any position the longest pattern wins,
        so "gonna" is preferred over "gon". Joining the segment texts gives back
        the original string.
        """
        # Longest first; regex alternation takes the first alternative that matches
        ordered = sorted({p for p in patterns if p}, key=len, reverse=True)
        if not ordered:
            return [TextSegment(text, False)]

        regex = re.compile("|".join(re.escape(p) for p in ordered), re.IGNORECASE)

        segments: list[TextSegment] = []
        last = 0
        for match in regex.finditer(text):
            if match.start() > last:
                segments.append(TextSegment(text[last : match.start()], False))
            segments.append(TextSegment(match.group(0), True))
            last = match.end()

        if last < len(text):
            segments.append(TextSegment(text[last:], False))

        return segments or [TextSegment(text, False)]
