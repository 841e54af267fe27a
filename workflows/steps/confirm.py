"""Confirm step: a yes/no question over values collected by earlier fields.

A confirmation is only meaningful once its inputs exist, so the navigation
engine redirects to the first incomplete dependency before presenting it.
Answering "no" sends the user back to the dependencies (asking which one if
there are several) and leaves the confirmation Ready so it is asked again.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, ClassVar, List, Optional, Sequence, Tuple, Union

from detection.matching import TermMatch
from detection.recognizers import BooleanRecognizer, Recognizer
from workflows.common.prompts import TemplateUsage, build_list, format_value
from workflows.common.types import NextStep, StepDirection, StepPhase, StepResult, StepType
from workflows.form.configuration import FormConfiguration, resolve as resolve_configuration
from workflows.form.fields import Condition
from workflows.form.state import FormState
from workflows.steps.base import Values, fill, top_match

PromptSource = Union[str, Callable[[Values], str]]


@dataclass
class ConfirmStep:
    name: str
    prompt: Optional[PromptSource] = None
    dependencies: Tuple[str, ...] = ()
    condition: Optional[Condition] = None
    description: str = "confirmation"
    recognizer: Recognizer = field(default_factory=BooleanRecognizer)
    configuration: Optional[FormConfiguration] = None

    type: ClassVar[StepType] = StepType.CONFIRM

    def __post_init__(self) -> None:
        self.dependencies = tuple(self.dependencies)

    @property
    def config(self) -> FormConfiguration:
        return resolve_configuration(self.configuration)

    def is_active(self, values: Values) -> bool:
        return self.condition is None or bool(self.condition(values))

    def is_unknown(self, values: Values) -> bool:
        return True

    def start(self, values: Values, state: FormState) -> str:
        state.set_phase(StepPhase.RESPONDING)
        if self.prompt is None:
            return self._summary_prompt(values)
        if callable(self.prompt):
            return self.prompt(values)
        return fill(self.prompt, values)

    def _summary_prompt(self, values: Values) -> str:
        config = self.config
        parts = [
            f"{name.replace('_', ' ')}: {format_value(values[name], config.separator, config.last_separator)}"
            for name in self.dependencies
            if values.get(name) is not None
        ]
        return config.render(
            TemplateUsage.CONFIRM,
            summary=build_list(parts, config.separator, config.last_separator),
        )

    def match(self, values: Values, state: FormState, utterance: Optional[str]) -> List[TermMatch]:
        return self.recognizer.matches(utterance)

    async def process(
        self,
        values: Values,
        state: FormState,
        utterance: Optional[str],
        matches: Sequence[TermMatch],
    ) -> StepResult:
        if top_match(matches).value:
            state.set_phase(StepPhase.COMPLETED)
            return StepResult(next=NextStep())

        state.set_phase(StepPhase.READY)
        if self.dependencies:
            return StepResult(next=NextStep.named(self.dependencies))
        return StepResult(next=NextStep(StepDirection.PREVIOUS))

    def not_understood(self, values: Values, state: FormState, utterance: Optional[str]) -> str:
        return self.config.render(
            TemplateUsage.NOT_UNDERSTOOD,
            input=(utterance or "").strip(),
            field=self.description,
        )

    def help(self, values: Values, state: FormState, command_help: str) -> str:
        return self.config.render(
            TemplateUsage.HELP,
            field=self.description,
            recognizer_help=self.recognizer.help_text(),
            command_help=command_help,
        )

    def back(self, values: Values, state: FormState) -> bool:
        return False


__all__ = ["ConfirmStep"]
