"""Exceptions raised by the form workflow.

Only form misconfiguration is fatal. Everything a user can cause is turned
into feedback text by the turn loop.
"""
from __future__ import annotations


class FormError(Exception):
    """Base class for form workflow errors."""


class FormDefinitionError(FormError, ValueError):
    """The step list cannot be used (empty, duplicate names, bad dependency)."""


class NoSuchStepError(FormError, ValueError):
    """Navigation referenced a step name that is not part of the form."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No such step: {name!r} does not correspond to a step in the form")
        self.name = name


class RecognitionCancelled(FormError):
    """Raised by a recognizer to abandon the conversation instead of re-prompting."""


__all__ = [
    "FormError",
    "FormDefinitionError",
    "NoSuchStepError",
    "RecognitionCancelled",
]
