"""
MODULE: detection/commands.py
PURPOSE: Recognize global commands and field-name navigation in an utterance.

Two kinds of values come out of the command recognizer:
- FormCommand members for the configured command vocabulary
  ("help", "go back", "start over", ...)
- step names, when the user types the name or description of a step
  ("email" -> jump to the email field)

Filtering by what is currently active is left to the turn loop, which
knows the conversation's values.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence, Tuple

from detection.matching import TermMatch
from detection.recognizers import Recognizer, TermRecognizer, literal_term
from workflows.common.types import FormCommand
from workflows.form.configuration import FormConfiguration


class CommandRecognizer(Recognizer):
    """Match the command vocabulary plus step names / descriptions."""

    def __init__(self, configuration: FormConfiguration, steps: Iterable[Tuple[str, str]] = ()) -> None:
        terms: List[Tuple[Any, Sequence[str]]] = [
            (command, description.terms) for command, description in configuration.commands.items()
        ]
        for name, description in steps:
            step_terms = [literal_term(name)]
            if description and description.lower() != name.lower():
                step_terms.append(literal_term(description))
            spaced = name.replace("_", " ")
            if spaced != name and spaced.lower() != (description or "").lower():
                step_terms.append(literal_term(spaced))
            terms.append((name, step_terms))
        self._recognizer = TermRecognizer(terms)

    def matches(self, utterance: Optional[str]) -> List[TermMatch]:
        return self._recognizer.matches(utterance)

    def help_text(self) -> str:
        return ""


def is_form_command(value: Any) -> bool:
    return isinstance(value, FormCommand)


__all__ = ["CommandRecognizer", "is_form_command"]
