"""
Unit tests for AnswerMatcher.

Tests:
- Normalization and edit distance
- Similarity scoring and acceptance threshold
- Best match selection
- Token helpers
- Highlighting of reduced forms
"""

import pytest

from nativepace.study.answer_matcher import AnswerMatcher, BestMatch, TextSegment


@pytest.fixture
def matcher():
    """Create AnswerMatcher with the default 85 threshold."""
    return AnswerMatcher(threshold=85)


class TestNormalize:
    """Tests for text normalization."""

    def test_lowercases_strips_punctuation_and_collapses_whitespace(self, matcher):
        assert matcher.normalize("  Hello,   World!  ") == "hello world"

    def test_removes_apostrophes_and_brackets(self, matcher):
        assert matcher.normalize("I'm (gonna) [go]") == "im gonna go"

    @pytest.mark.parametrize("text", ["What's UP?", "  a  b\tc ", "", "(---)"])
    def test_is_idempotent(self, matcher, text):
        once = matcher.normalize(text)
        assert matcher.normalize(once) == once

    def test_punctuation_only_becomes_empty(self, matcher):
        assert matcher.normalize("?!...") == ""


class TestEditDistance:
    """Tests for Levenshtein distance."""

    def test_classic_example(self, matcher):
        assert matcher.edit_distance("kitten", "sitting") == 3

    def test_distance_to_empty_is_length(self, matcher):
        assert matcher.edit_distance("hello", "") == 5
        assert matcher.edit_distance("", "hello") == 5

    def test_identical_strings(self, matcher):
        assert matcher.edit_distance("same", "same") == 0

    @pytest.mark.parametrize("a,b", [("flaw", "lawn"), ("gonna", "going to"), ("abc", "")])
    def test_is_symmetric(self, matcher, a, b):
        assert matcher.edit_distance(a, b) == matcher.edit_distance(b, a)


class TestSimilarity:
    """Tests for the 0-100 similarity score."""

    def test_equal_after_normalization_is_100(self, matcher):
        assert matcher.similarity("Hello, world!", "hello world") == 100

    def test_both_empty_is_100(self, matcher):
        assert matcher.similarity("", "...") == 100

    def test_one_side_empty_is_0(self, matcher):
        assert matcher.similarity("abc", "") == 0
        assert matcher.similarity("!!!", "abc") == 0

    def test_partial_similarity(self, matcher):
        # distance 3 over length 7 -> 57.14
        assert matcher.similarity("kitten", "sitting") == 57

    def test_score_stays_within_bounds(self, matcher):
        score = matcher.similarity("xyz", "a much longer sentence")
        assert 0 <= score <= 100


class TestIsAcceptable:
    """Tests for dictation answer acceptance."""

    def test_exact_match_after_normalization(self, matcher):
        assert matcher.is_acceptable("I'm gonna go!", "im gonna go") is True

    def test_small_typo_is_accepted(self, matcher):
        # 1 edit over 17 chars -> 94
        assert matcher.is_acceptable("I want to go hom", "I want to go home") is True

    def test_different_sentence_is_rejected(self, matcher):
        assert matcher.is_acceptable("banana", "I want to go home") is False

    def test_alternate_spelling_is_accepted(self, matcher):
        assert matcher.is_acceptable("wanna", "want to", alternates=["wanna"]) is True

    def test_threshold_override(self, matcher):
        # similarity("kitten", "sitting") == 57
        assert matcher.is_acceptable("kitten", "sitting", threshold=50) is True
        assert matcher.is_acceptable("kitten", "sitting", threshold=60) is False


class TestFindBestMatch:
    """Tests for best candidate selection."""

    def test_returns_highest_scoring_candidate(self, matcher):
        result = matcher.find_best_match("helo", ["world", "hello", "help"])

        assert result == BestMatch(match="hello", score=80, index=1)

    def test_first_candidate_wins_ties(self, matcher):
        result = matcher.find_best_match("abc", ["abd", "abe"])

        assert result.index == 0
        assert result.match == "abd"

    @pytest.mark.parametrize("candidates", [["gonna", "gon"], ["gon", "gonna"]])
    def test_exact_match_wins_regardless_of_order(self, matcher, candidates):
        result = matcher.find_best_match("gonna", candidates)

        assert result.match == "gonna"
        assert result.score == 100

    def test_empty_candidates_returns_none(self, matcher):
        assert matcher.find_best_match("hello", []) is None

    def test_zero_score_returns_none(self, matcher):
        assert matcher.find_best_match("xyz", ["abc"]) is None


class TestTokens:
    """Tests for token level helpers."""

    def test_tokenize(self, matcher):
        assert matcher.tokenize("I'm gonna GO!") == ["im", "gonna", "go"]
        assert matcher.tokenize("  ") == []

    def test_count_matching_tokens_counts_repeats(self, matcher):
        assert matcher.count_matching_tokens("the the cat", "the dog") == 2

    def test_contains_all_tokens(self, matcher):
        assert matcher.contains_all_tokens("I'm gonna go", ["gonna", "Go"]) is True
        assert matcher.contains_all_tokens("I'm gonna go", ["wanna"]) is False

    def test_token_similarity(self, matcher):
        # shared {the, cat} over union {the, cat, sat, ran}
        assert matcher.token_similarity("the cat sat", "the cat ran") == 50

    def test_token_similarity_empty_side_is_zero(self, matcher):
        assert matcher.token_similarity("", "the cat") == 0

    def test_combined_similarity(self, matcher):
        # char 82 * 0.7 + token 50 * 0.3 = 72.4
        assert matcher.combined_similarity("the cat sat", "the cat ran") == 72


class TestHighlightSpans:
    """Tests for highlighting reduced forms in a transcript."""

    def test_longest_pattern_wins_and_text_is_preserved(self, matcher):
        text = "I'm GONNA go, gon"
        segments = matcher.highlight_spans(text, ["gon", "gonna"])

        assert segments == [
            TextSegment("I'm ", False),
            TextSegment("GONNA", True),
            TextSegment(" go, ", False),
            TextSegment("gon", True),
        ]
        assert "".join(s.text for s in segments) == text

    def test_no_patterns_gives_single_plain_segment(self, matcher):
        assert matcher.highlight_spans("hello", []) == [TextSegment("hello", False)]

    def test_empty_patterns_are_ignored(self, matcher):
        assert matcher.highlight_spans("hello", [""]) == [TextSegment("hello", False)]
