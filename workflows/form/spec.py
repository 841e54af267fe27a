"""FormSpec: the immutable shape of one kind of conversation.

A FormSpec is built once per form type and shared by every conversation of
that type. Per-conversation data lives in FormState (indices, phases) and in
the values dict; neither is ever stored here.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from detection.commands import CommandRecognizer
from workflows.common.errors import FormDefinitionError, NoSuchStepError
from workflows.common.types import StepType
from workflows.form.configuration import FormConfiguration
from workflows.form.fields import FieldDescriptor, Values
from workflows.steps import Step

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[Values], Union[None, Awaitable[None]]]


class FormSpec:
    """Ordered steps, field registry, configuration and completion callback."""

    def __init__(
        self,
        steps: Sequence[Step],
        configuration: Optional[FormConfiguration] = None,
        on_completion: Optional[CompletionCallback] = None,
    ) -> None:
        if not steps:
            raise FormDefinitionError("A form needs at least one step")
        configuration = configuration or FormConfiguration()

        index: Dict[str, int] = {}
        bound: List[Step] = []
        for position, step in enumerate(steps):
            if step.type is StepType.NAVIGATION:
                raise FormDefinitionError(f"Navigation steps cannot be declared in a form: {step.name!r}")
            if step.name in index:
                raise FormDefinitionError(f"Duplicate step name: {step.name!r}")
            index[step.name] = position
            if hasattr(step, "configuration") and step.configuration is None:
                # Bind a copy; the caller's step may be shared with other forms
                step = dataclasses.replace(step, configuration=configuration)
            bound.append(step)

        for step in bound:
            for dependency in step.dependencies:
                if dependency not in index:
                    raise NoSuchStepError(dependency)

        self._steps: Tuple[Step, ...] = tuple(bound)
        self._index = index
        self._fields: Dict[str, FieldDescriptor] = {
            step.name: step.field for step in self._steps if step.type is StepType.FIELD
        }
        self._configuration = configuration
        self._on_completion = on_completion
        self._commands = CommandRecognizer(configuration, self._navigable())
        logger.debug("[FORM][SPEC] Built form with steps=%s", [step.name for step in self._steps])

    def _navigable(self) -> Iterable[Tuple[str, str]]:
        for step in self._steps:
            if step.type is StepType.FIELD:
                yield step.name, step.description
            elif step.type is StepType.CONFIRM:
                yield step.name, ""

    @property
    def steps(self) -> Tuple[Step, ...]:
        return self._steps

    @property
    def fields(self) -> Dict[str, FieldDescriptor]:
        return dict(self._fields)

    @property
    def configuration(self) -> FormConfiguration:
        return self._configuration

    @property
    def on_completion(self) -> Optional[CompletionCallback]:
        return self._on_completion

    @property
    def commands(self) -> CommandRecognizer:
        return self._commands

    def __len__(self) -> int:
        return len(self._steps)

    def step(self, name: str) -> Optional[Step]:
        position = self._index.get(name)
        return None if position is None else self._steps[position]

    def step_index(self, name: str) -> int:
        """Position of the named step; unknown names are a configuration error."""
        try:
            return self._index[name]
        except KeyError:
            raise NoSuchStepError(name) from None

    def field(self, name: str) -> Optional[FieldDescriptor]:
        return self._fields.get(name)

    def active_fields(self, values: Values) -> List[FieldDescriptor]:
        return [
            step.field for step in self._steps
            if step.type is StepType.FIELD and step.is_active(values)
        ]


__all__ = ["FormSpec", "CompletionCallback"]
