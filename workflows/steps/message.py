"""Message step: a one-shot notice that expects no reply."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, List, Optional, Sequence, Tuple, Union

from detection.matching import TermMatch
from workflows.common.types import NextStep, StepPhase, StepResult, StepType
from workflows.form.fields import Condition
from workflows.form.state import FormState
from workflows.steps.base import Values, fill


@dataclass
class MessageStep:
    name: str
    message: Union[str, Callable[[Values], str]]
    condition: Optional[Condition] = None

    type: ClassVar[StepType] = StepType.MESSAGE
    dependencies: ClassVar[Tuple[str, ...]] = ()

    def is_active(self, values: Values) -> bool:
        return self.condition is None or bool(self.condition(values))

    def is_unknown(self, values: Values) -> bool:
        return False

    def start(self, values: Values, state: FormState) -> str:
        # Never enters Responding
        state.set_phase(StepPhase.COMPLETED)
        if callable(self.message):
            return self.message(values)
        return fill(self.message, values)

    def match(self, values: Values, state: FormState, utterance: Optional[str]) -> List[TermMatch]:
        return []

    async def process(
        self,
        values: Values,
        state: FormState,
        utterance: Optional[str],
        matches: Sequence[TermMatch],
    ) -> StepResult:
        state.set_phase(StepPhase.COMPLETED)
        return StepResult(next=NextStep())

    def not_understood(self, values: Values, state: FormState, utterance: Optional[str]) -> str:
        return ""

    def help(self, values: Values, state: FormState, command_help: str) -> str:
        return command_help

    def back(self, values: Values, state: FormState) -> bool:
        return False


__all__ = ["MessageStep"]
