"""
MODULE: detection/recognizers.py
PURPOSE: Reference recognizers that turn free text into scored TermMatches.

The turn loop only consumes (value, confidence, span) triples, so any
recognizer (regex, NLU service, LLM) can stand behind a field. These cover
the common field shapes:

- TextRecognizer: open-ended answers
- NumberRecognizer: integers / decimals, digits or number words
- BooleanRecognizer: yes / no
- ChoiceRecognizer: one of a fixed set of options, by term or ordinal
- TermRecognizer: generic "value -> regex terms" matcher (also used for
  the global command vocabulary)

SCORING:
- Open-ended text is matched with low confidence so that a global command
  typed at a text field still wins.
- Exact terms and in-range numbers score 1.0.
- A single word taken from a longer option description scores 0.5.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from detection.matching import TermMatch

TEXT_CONFIDENCE = 0.4
PARTIAL_WORD_CONFIDENCE = 0.5

_NUMBER_WORDS: Dict[str, int] = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19, "twenty": 20,
    "thirty": 30, "forty": 40, "fifty": 50, "sixty": 60, "seventy": 70,
    "eighty": 80, "ninety": 90, "hundred": 100,
}

_NUMBER_PATTERN = re.compile(
    r"(?<![\w.])-?\d+(?:\.\d+)?(?!\w|\.\d)|\b(?:" + "|".join(_NUMBER_WORDS) + r")\b",
    re.IGNORECASE,
)

YES_TERMS = (
    "yes", "y", "yep", "yeah", "yup", "sure", "ok", "okay", "correct", "right",
    "true", "confirm", "confirmed", "that's right", "that is right", "sounds good",
)
NO_TERMS = (
    "no", "n", "nope", "nah", "false", "wrong", "incorrect", "not right",
    "that's wrong", "that is wrong",
)


def compile_term(term: str) -> Pattern[str]:
    """Compile a term (itself a regex) so it only matches on word boundaries."""
    return re.compile(r"(?<!\w)(?:" + term + r")(?!\w)", re.IGNORECASE)


def literal_term(text: str) -> str:
    """Escape literal text for use as a term, allowing flexible whitespace."""
    return r"\s+".join(re.escape(part) for part in text.split())


class Recognizer:
    """Base recognizer interface."""

    def matches(self, utterance: Optional[str]) -> List[TermMatch]:
        raise NotImplementedError("matches must be implemented by subclasses.")

    def help_text(self) -> str:
        return ""


class TextRecognizer(Recognizer):
    """Accept the whole trimmed utterance as the value."""

    def __init__(self, confidence: float = TEXT_CONFIDENCE) -> None:
        self.confidence = confidence

    def matches(self, utterance: Optional[str]) -> List[TermMatch]:
        text = utterance or ""
        trimmed = text.strip()
        if not trimmed:
            return []
        start = text.index(trimmed)
        return [TermMatch(trimmed, self.confidence, start, len(trimmed))]

    def help_text(self) -> str:
        return "* Any text."


class NumberRecognizer(Recognizer):
    """Recognize numbers written as digits or common number words."""

    def __init__(
        self,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
        integer_only: bool = False,
    ) -> None:
        self.minimum = minimum
        self.maximum = maximum
        self.integer_only = integer_only

    def _parse(self, token: str) -> Optional[float]:
        lowered = token.lower()
        if lowered in _NUMBER_WORDS:
            return _NUMBER_WORDS[lowered]
        try:
            value = float(token)
        except ValueError:
            return None
        if value.is_integer():
            return int(value)
        return None if self.integer_only else value

    def _in_range(self, value: float) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True

    def matches(self, utterance: Optional[str]) -> List[TermMatch]:
        results: List[TermMatch] = []
        for found in _NUMBER_PATTERN.finditer(utterance or ""):
            value = self._parse(found.group(0))
            if value is None or not self._in_range(value):
                continue
            results.append(TermMatch(value, 1.0, found.start(), found.end() - found.start()))
        return results

    def help_text(self) -> str:
        if self.minimum is not None and self.maximum is not None:
            return f"* A number between {self.minimum:g} and {self.maximum:g}."
        if self.minimum is not None:
            return f"* A number of at least {self.minimum:g}."
        if self.maximum is not None:
            return f"* A number up to {self.maximum:g}."
        return "* A number."


class TermRecognizer(Recognizer):
    """Match values by regex terms.

    Args:
        terms: Sequence of (value, [regex terms]) in priority order
        confidence: Score given to a full term match
    """

    def __init__(self, terms: Sequence[Tuple[Any, Sequence[str]]], confidence: float = 1.0) -> None:
        self.confidence = confidence
        self._patterns: List[Tuple[Any, Pattern[str]]] = [
            (value, compile_term(term))
            for value, value_terms in terms
            for term in value_terms
            if term
        ]

    def matches(self, utterance: Optional[str]) -> List[TermMatch]:
        text = utterance or ""
        results: List[TermMatch] = []
        for value, pattern in self._patterns:
            for found in pattern.finditer(text):
                if found.end() > found.start():
                    results.append(TermMatch(value, self.confidence, found.start(), found.end() - found.start()))
        return results


class BooleanRecognizer(TermRecognizer):
    """Recognize yes / no answers."""

    def __init__(self, yes_terms: Iterable[str] = YES_TERMS, no_terms: Iterable[str] = NO_TERMS) -> None:
        super().__init__([
            (True, [literal_term(t) for t in yes_terms]),
            (False, [literal_term(t) for t in no_terms]),
        ])

    def help_text(self) -> str:
        return "* Yes or no."


@dataclass
class Choice:
    """One option of a choice field."""
    value: Any
    description: str
    terms: List[str] = field(default_factory=list)


class ChoiceRecognizer(Recognizer):
    """Recognize one of a fixed set of options.

    Each option matches on its explicit terms (regexes), its description,
    its value, and its 1-based position in the list. Single words of a
    multi-word description match with partial confidence.
    """

    def __init__(self, choices: Sequence[Choice], allow_ordinals: bool = True) -> None:
        self.choices = list(choices)
        self.allow_ordinals = allow_ordinals
        exact: List[Tuple[Any, List[str]]] = []
        partial: List[Tuple[Any, List[str]]] = []
        for choice in self.choices:
            terms = list(choice.terms) or []
            terms.append(literal_term(choice.description))
            if isinstance(choice.value, str) and choice.value.lower() != choice.description.lower():
                terms.append(literal_term(choice.value))
            exact.append((choice.value, terms))
            words = [w for w in re.findall(r"\w+", choice.description) if len(w) > 2]
            if len(words) > 1:
                partial.append((choice.value, [re.escape(w) for w in words]))
        self._exact = TermRecognizer(exact)
        self._partial = TermRecognizer(partial, confidence=PARTIAL_WORD_CONFIDENCE)

    def matches(self, utterance: Optional[str]) -> List[TermMatch]:
        text = utterance or ""
        results = self._exact.matches(text)
        if self.allow_ordinals:
            for found in re.finditer(r"(?<![\w.])\d+(?!\w|\.\d)", text):
                position = int(found.group(0))
                if 1 <= position <= len(self.choices):
                    results.append(TermMatch(
                        self.choices[position - 1].value, 1.0, found.start(), found.end() - found.start(),
                    ))
        results.extend(self._partial.matches(text))
        return results

    def descriptions(self) -> List[str]:
        return [choice.description for choice in self.choices]

    def help_text(self) -> str:
        if not self.choices:
            return ""
        listed = ", ".join(self.descriptions())
        if self.allow_ordinals:
            return f"* A number 1-{len(self.choices)} or words from the descriptions. ({listed})"
        return f"* Any words from the descriptions. ({listed})"


__all__ = [
    "TEXT_CONFIDENCE",
    "YES_TERMS",
    "NO_TERMS",
    "compile_term",
    "literal_term",
    "Recognizer",
    "TextRecognizer",
    "NumberRecognizer",
    "TermRecognizer",
    "BooleanRecognizer",
    "Choice",
    "ChoiceRecognizer",
]
