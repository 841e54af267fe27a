"""
Unit tests for detection/matching.py.

Tests:
- coalesce keeps the best non-overlapping candidates in original order
- is_full_match requires coverage and a confidence floor
- best_matches prefers the step grammar on ties
"""

import os
from unittest.mock import patch

from detection.matching import (
    TermMatch,
    aggregate_confidence,
    best_matches,
    coalesce,
    coverage,
    is_full_match,
)


class TestCoalesce:

    def test_empty_input(self):
        assert coalesce([], "anything") == []
        assert coalesce(None, "anything") == []

    def test_higher_confidence_wins_overlap(self):
        low = TermMatch("low", 0.4, 0, 5)
        high = TermMatch("high", 0.9, 2, 3)
        assert coalesce([low, high], "hello") == [high]

    def test_longer_span_wins_equal_confidence(self):
        short = TermMatch("back", 1.0, 3, 4)
        long = TermMatch("go back", 1.0, 0, 7)
        assert coalesce([short, long], "go back") == [long]

    def test_earlier_candidate_wins_full_tie(self):
        first = TermMatch("a", 1.0, 0, 3)
        second = TermMatch("b", 1.0, 0, 3)
        assert coalesce([first, second], "abc") == [first]

    def test_disjoint_candidates_keep_order(self):
        a = TermMatch("a", 0.5, 4, 3)
        b = TermMatch("b", 1.0, 0, 3)
        assert coalesce([a, b], "one two") == [a, b]

    def test_spans_are_clipped_to_utterance(self):
        [clipped] = coalesce([TermMatch("x", 1.0, 2, 50)], "abcd")
        assert (clipped.start, clipped.length) == (2, 2)


class TestFullMatch:

    def test_empty_set_is_never_full(self):
        assert not is_full_match("yes", [])

    def test_full_coverage_above_floor(self):
        assert is_full_match("yes", [TermMatch(True, 1.0, 0, 3)])

    def test_punctuation_and_whitespace_ignored(self):
        assert is_full_match("  yes!  ", [TermMatch(True, 1.0, 2, 3)])

    def test_partial_coverage_is_not_full(self):
        assert not is_full_match("I am 30", [TermMatch(30, 1.0, 5, 2)])
        assert coverage("I am 30", [TermMatch(30, 1.0, 5, 2)]) == 0.4

    def test_low_confidence_is_not_full(self):
        assert not is_full_match("Ada", [TermMatch("Ada", 0.4, 0, 3)])

    def test_threshold_and_floor_overrides(self):
        candidates = [TermMatch("Ada", 0.4, 0, 3)]
        assert is_full_match("Ada Lovelace", candidates, threshold=0.25, min_confidence=0.0)

    def test_floor_read_from_environment(self):
        candidates = [TermMatch("Ada", 0.4, 0, 3)]
        with patch.dict(os.environ, {"FORM_FULL_MATCH_CONFIDENCE": "0.3"}):
            assert is_full_match("Ada", candidates)


class TestBestMatches:

    def test_tie_goes_to_step(self):
        step = [TermMatch("x", 1.0, 0, 4)]
        commands = [TermMatch("y", 1.0, 0, 4)]
        assert best_matches(step, commands) == 0

    def test_commands_win_when_stronger(self):
        step = [TermMatch("Al help", 0.4, 0, 7)]
        commands = [TermMatch("help", 1.0, 3, 4)]
        assert aggregate_confidence(step) < aggregate_confidence(commands)
        assert best_matches(step, commands) == 1

    def test_no_commands(self):
        assert best_matches([TermMatch("Ada", 0.4, 0, 3)], []) == 0

    def test_span_length_does_not_outweigh_confidence(self):
        step = [TermMatch("please go back", 0.4, 0, 14)]
        commands = [TermMatch("backup", 0.6, 7, 7)]
        assert best_matches(step, commands) == 1

    def test_strongest_candidate_counts(self):
        step = [TermMatch("a", 0.3, 0, 1), TermMatch("b", 0.7, 2, 1)]
        commands = [TermMatch("c", 0.6, 4, 8)]
        assert aggregate_confidence(step) == 0.7
        assert best_matches(step, commands) == 0
