"""Field descriptors: what a Field step fills in and when it applies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from detection.recognizers import Recognizer, TextRecognizer

Values = Dict[str, Any]
Condition = Callable[[Values], bool]
# Returns an error message, or None if the value is acceptable. May be async.
Validator = Callable[[Values, Any], Union[Optional[str], Awaitable[Optional[str]]]]


@dataclass
class FieldDescriptor:
    """Describe one value collected from the user.

    Attributes:
        name: Key in the values dict; also the step name
        description: Human readable name used in prompts and navigation
        recognizer: Turns the user's reply into TermMatches
        prompt: Question text; rendered from templates when omitted
        help: Extra help line; the recognizer's help text when omitted
        condition: Predicate over current values; inactive fields are skipped
        optional: Optional fields may be left unknown at completion
        allow_many: Commit every surviving match as a list
        validate: Business check run before the value is committed
    """
    name: str
    description: str = ""
    recognizer: Optional[Recognizer] = None
    prompt: Optional[str] = None
    help: Optional[str] = None
    condition: Optional[Condition] = None
    optional: bool = False
    allow_many: bool = False
    validate: Optional[Validator] = None

    def __post_init__(self) -> None:
        if not self.description:
            self.description = self.name.replace("_", " ")
        if self.recognizer is None:
            self.recognizer = TextRecognizer()

    def active(self, values: Values) -> bool:
        return self.condition is None or bool(self.condition(values))

    def is_unknown(self, values: Values) -> bool:
        value = values.get(self.name)
        if value is None:
            return True
        if self.allow_many and not value:
            return True
        return False


__all__ = ["Values", "Condition", "Validator", "FieldDescriptor"]
