"""The contract every step variant implements.

Steps form a closed set of variants (Field, Confirm, Message, Navigation),
each tagged with a ``StepType``. The engine dispatches on that tag where a
variant needs special treatment; everything else goes through the uniform
methods below. Each method receives the conversation's ``values`` dict and
its ``FormState`` explicitly.
"""
from __future__ import annotations

import inspect
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Sequence, Tuple, TypeVar, Union

from detection.matching import TermMatch
from workflows.common.types import StepResult, StepType
from workflows.form.state import FormState

Values = Dict[str, Any]
T = TypeVar("T")


class StepContract(Protocol):
    type: StepType
    name: str
    dependencies: Tuple[str, ...]

    def is_active(self, values: Values) -> bool: ...

    def is_unknown(self, values: Values) -> bool: ...

    def start(self, values: Values, state: FormState) -> str: ...

    def match(self, values: Values, state: FormState, utterance: Optional[str]) -> List[TermMatch]: ...

    async def process(
        self, values: Values, state: FormState, utterance: Optional[str], matches: Sequence[TermMatch],
    ) -> StepResult: ...

    def not_understood(self, values: Values, state: FormState, utterance: Optional[str]) -> str: ...

    def help(self, values: Values, state: FormState, command_help: str) -> str: ...

    def back(self, values: Values, state: FormState) -> bool: ...


def top_match(matches: Sequence[TermMatch]) -> TermMatch:
    """Highest-confidence match; the earliest one wins ties."""
    best = matches[0]
    for candidate in matches[1:]:
        if candidate.confidence > best.confidence:
            best = candidate
    return best


def distinct_values(matches: Sequence[TermMatch]) -> List[Any]:
    values: List[Any] = []
    for candidate in matches:
        if candidate.value not in values:
            values.append(candidate.value)
    return values


async def resolve(result: Union[T, Awaitable[T]]) -> T:
    """Await ``result`` if a callback handed back a coroutine."""
    if inspect.isawaitable(result):
        return await result
    return result


class _SafeValues(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def fill(text: str, values: Values) -> str:
    """Substitute ``{field}`` placeholders with current values, leaving unknown ones."""
    return text.format_map(_SafeValues({k: v for k, v in values.items() if v is not None}))


__all__ = [
    "Values",
    "StepContract",
    "top_match",
    "distinct_values",
    "resolve",
    "fill",
]
