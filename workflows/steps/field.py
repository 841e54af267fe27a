"""Field step: ask for one value, parse the reply, commit it."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, List, Optional, Sequence, Tuple

from detection.matching import TermMatch, coverage
from detection.recognizers import ChoiceRecognizer, NumberRecognizer, TermRecognizer, literal_term
from workflows.common.prompts import TemplateUsage, format_value, numbered_choices
from workflows.common.types import NextStep, StepPhase, StepResult, StepType
from workflows.form.configuration import FormConfiguration, resolve as resolve_configuration
from workflows.form.fields import FieldDescriptor
from workflows.form.state import FormState
from workflows.steps.base import Values, distinct_values, fill, resolve, top_match

logger = logging.getLogger(__name__)

NO_PREFERENCE_TERMS = ("no preference", "skip", "don't care", "dont care")

# Optional fields also accept an explicit "no preference", committed as None
_no_preference = TermRecognizer([(None, [literal_term(term) for term in NO_PREFERENCE_TERMS])])


@dataclass
class FieldStep:
    field: FieldDescriptor
    configuration: Optional[FormConfiguration] = None

    type: ClassVar[StepType] = StepType.FIELD
    dependencies: ClassVar[Tuple[str, ...]] = ()

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def description(self) -> str:
        return self.field.description

    @property
    def config(self) -> FormConfiguration:
        return resolve_configuration(self.configuration)

    def is_active(self, values: Values) -> bool:
        return self.field.active(values)

    def is_unknown(self, values: Values) -> bool:
        return self.field.is_unknown(values)

    def start(self, values: Values, state: FormState) -> str:
        state.set_phase(StepPhase.RESPONDING)
        if self.field.prompt:
            return fill(self.field.prompt, values)
        recognizer = self.field.recognizer
        if isinstance(recognizer, ChoiceRecognizer):
            return self.config.render(
                TemplateUsage.SELECT_ONE,
                field=self.description,
                choices=numbered_choices(recognizer.descriptions()),
            )
        if isinstance(recognizer, NumberRecognizer):
            return self.config.render(TemplateUsage.NUMBER, field=self.description)
        return self.config.render(TemplateUsage.STRING, field=self.description)

    def match(self, values: Values, state: FormState, utterance: Optional[str]) -> List[TermMatch]:
        matches = self.field.recognizer.matches(utterance)
        if self.field.optional:
            matches = matches + _no_preference.matches(utterance)
        return matches

    async def process(
        self,
        values: Values,
        state: FormState,
        utterance: Optional[str],
        matches: Sequence[TermMatch],
    ) -> StepResult:
        if top_match(matches).value is None:
            value = None
        elif self.field.allow_many:
            value = distinct_values([m for m in matches if m.value is not None])
        else:
            value = top_match(matches).value

        if value is not None and self.field.validate is not None:
            error = await resolve(self.field.validate(values, value))
            if error:
                logger.info("[FORM][FIELD] %s rejected %r: %s", self.name, value, error)
                return StepResult(next=NextStep(), feedback=error)

        values[self.name] = value
        state.set_phase(StepPhase.COMPLETED)
        logger.debug("[FORM][FIELD] %s=%r", self.name, value)

        feedback = None
        if coverage(utterance, matches) < 1.0:
            # Part of the reply was ignored: say what was taken from it
            feedback = self.config.render(
                TemplateUsage.FEEDBACK,
                field=self.description,
                value=self._display(value),
            )
        return StepResult(next=NextStep(), feedback=feedback)

    def not_understood(self, values: Values, state: FormState, utterance: Optional[str]) -> str:
        return self.config.render(
            TemplateUsage.NOT_UNDERSTOOD,
            input=(utterance or "").strip(),
            field=self.description,
        )

    def help(self, values: Values, state: FormState, command_help: str) -> str:
        recognizer_help = self.field.help or self.field.recognizer.help_text()
        if self.field.optional:
            recognizer_help = "\n".join(filter(None, [recognizer_help, "* No preference."]))
        return self.config.render(
            TemplateUsage.HELP,
            field=self.description,
            recognizer_help=recognizer_help,
            command_help=command_help,
        )

    def back(self, values: Values, state: FormState) -> bool:
        return False

    def _display(self, value) -> str:
        config = self.config
        if value is None:
            return config.render(TemplateUsage.UNSPECIFIED)
        return format_value(value, config.separator, config.last_separator)


__all__ = ["FieldStep"]
