"""
MODULE: detection/matching.py
PURPOSE: Scoring utilities over candidate interpretations of one utterance.

A recognizer turns an utterance into a list of TermMatch candidates. The turn
loop never looks at how a score was computed, only at (value, confidence,
span). This module answers three questions about such lists:

- coalesce: which candidates survive when spans overlap
- is_full_match: does a candidate set explain the whole utterance
- best_matches: which of two competing sets (step grammar vs global
  commands) is the better explanation

All functions are pure and deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Set

from workflows.io.config_store import get_full_match_confidence


@dataclass(frozen=True)
class TermMatch:
    """One scored candidate interpretation of (part of) an utterance.

    Attributes:
        value: Parsed field value, a FormCommand, or a step name
        confidence: Score in [0, 1]
        start: Offset of the covered span in the utterance
        length: Length of the covered span
    """
    value: Any
    confidence: float
    start: int = 0
    length: int = 0

    @property
    def end(self) -> int:
        return self.start + self.length

    def overlaps(self, other: "TermMatch") -> bool:
        return self.start < other.end and other.start < self.end

    def covers(self, position: int) -> bool:
        return self.start <= position < self.end


def coalesce(candidates: Optional[Iterable[TermMatch]], utterance: Optional[str]) -> List[TermMatch]:
    """Drop candidates that overlap a better candidate.

    Preference order is higher confidence, then longer span, then earlier
    production. Survivors are returned in production order. Spans are
    clipped to the utterance.
    """
    if not candidates:
        return []
    text_length = len(utterance or "")
    clipped: List[TermMatch] = []
    for candidate in candidates:
        start = max(0, min(candidate.start, text_length))
        end = max(start, min(candidate.end, text_length))
        if (start, end) != (candidate.start, candidate.end):
            candidate = TermMatch(candidate.value, candidate.confidence, start, end - start)
        clipped.append(candidate)

    ranked = sorted(
        range(len(clipped)),
        key=lambda i: (-clipped[i].confidence, -clipped[i].length, i),
    )
    kept: List[int] = []
    for index in ranked:
        candidate = clipped[index]
        if any(candidate.overlaps(clipped[k]) for k in kept):
            continue
        kept.append(index)
    return [clipped[i] for i in sorted(kept)]


def _significant_positions(utterance: str) -> List[int]:
    return [i for i, ch in enumerate(utterance) if ch.isalnum()]


def coverage(utterance: Optional[str], candidates: Sequence[TermMatch]) -> float:
    """Fraction of the utterance's word characters covered by candidate spans."""
    positions = _significant_positions(utterance or "")
    if not positions:
        return 0.0
    covered: Set[int] = set()
    for candidate in candidates:
        covered.update(p for p in positions if candidate.covers(p))
    return len(covered) / len(positions)


def is_full_match(
    utterance: Optional[str],
    candidates: Optional[Sequence[TermMatch]],
    threshold: float = 1.0,
    min_confidence: Optional[float] = None,
) -> bool:
    """True if the candidates explain the utterance unambiguously.

    An empty candidate set is never a full match. Otherwise every candidate
    must reach the confidence floor and the spans must cover at least
    ``threshold`` of the trimmed utterance.
    """
    if not candidates:
        return False
    floor = get_full_match_confidence() if min_confidence is None else min_confidence
    if any(candidate.confidence < floor for candidate in candidates):
        return False
    return coverage(utterance, candidates) >= threshold


def aggregate_confidence(candidates: Sequence[TermMatch]) -> float:
    """Strongest candidate confidence; 0.0 for an empty set.

    Span length plays no part, so a low-confidence reading over the whole
    utterance never outweighs a confident reading of part of it.
    """
    return max((candidate.confidence for candidate in candidates), default=0.0)


def best_matches(step_candidates: Sequence[TermMatch], command_candidates: Sequence[TermMatch]) -> int:
    """Return 0 if the step's own grammar wins, 1 if the global commands win.

    Ties go to the step: its answer is the contextually expected reading.
    """
    if aggregate_confidence(command_candidates) > aggregate_confidence(step_candidates):
        return 1
    return 0


__all__ = [
    "TermMatch",
    "coalesce",
    "coverage",
    "is_full_match",
    "aggregate_confidence",
    "best_matches",
]
