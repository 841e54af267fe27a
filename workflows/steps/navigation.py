"""Navigation step: ask which of several named steps the user meant.

Never part of a FormSpec. The turn loop creates one on the fly while
``FormState.next`` holds a Named intent with more than one name, and drops it
as soon as the choice is resolved or cancelled.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Sequence, Tuple

from detection.matching import TermMatch
from detection.recognizers import Choice, ChoiceRecognizer
from workflows.common.prompts import TemplateUsage, numbered_choices
from workflows.common.types import NextStep, StepResult, StepType
from workflows.form.configuration import FormConfiguration, resolve as resolve_configuration
from workflows.form.state import FormState
from workflows.steps.base import Values, top_match


@dataclass
class NavigationStep:
    name: str  # Step the user is navigating away from
    choices: List[Choice]
    configuration: Optional[FormConfiguration] = None
    description: str = "field"
    recognizer: ChoiceRecognizer = field(init=False)

    type: ClassVar[StepType] = StepType.NAVIGATION
    dependencies: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self) -> None:
        self.recognizer = ChoiceRecognizer(self.choices)

    @property
    def config(self) -> FormConfiguration:
        return resolve_configuration(self.configuration)

    def is_active(self, values: Values) -> bool:
        return True

    def is_unknown(self, values: Values) -> bool:
        return False

    def start(self, values: Values, state: FormState) -> str:
        return self.config.render(
            TemplateUsage.NAVIGATION,
            choices=numbered_choices(self.recognizer.descriptions()),
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
        state.next = None
        return StepResult(next=NextStep.named([top_match(matches).value]))

    def not_understood(self, values: Values, state: FormState, utterance: Optional[str]) -> str:
        return self.config.render(
            TemplateUsage.NOT_UNDERSTOOD,
            input=(utterance or "").strip(),
            field=self.description,
        )

    def help(self, values: Values, state: FormState, command_help: str) -> str:
        return self.config.render(
            TemplateUsage.NAVIGATION_HELP,
            recognizer_help=self.recognizer.help_text(),
            command_help=command_help,
        )

    def back(self, values: Values, state: FormState) -> bool:
        # Cancel the disambiguation and stay on the current step
        state.next = None
        return True


__all__ = ["NavigationStep"]
