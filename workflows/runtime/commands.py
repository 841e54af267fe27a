"""Command dispatcher: turn a recognized global command into an intent.

Only the first recognized command is acted on. An utterance such as
"help and go back" runs Help only.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from detection.matching import TermMatch
from workflows.common.prompts import TemplateUsage, build_list, format_value
from workflows.common.types import FormCommand, NextStep, StepDirection, StepType
from workflows.form.spec import FormSpec
from workflows.form.state import FormState
from workflows.steps import Step

logger = logging.getLogger(__name__)

Values = Dict[str, Any]


def dispatch_command(
    form: FormSpec,
    values: Values,
    state: FormState,
    step: Step,
    commands: Sequence[TermMatch],
) -> Tuple[NextStep, Optional[str]]:
    """Return (intent, feedback) for the first command in ``commands``."""
    value = commands[0].value
    logger.info("[FORM][CMD] %s at step=%s", getattr(value, "value", value), step.name)

    if value is FormCommand.BACKUP:
        if step.back(values, state):
            return NextStep(), None
        return NextStep(StepDirection.PREVIOUS), None
    if value is FormCommand.HELP:
        return NextStep(), step.help(values, state, command_help(form, values))
    if value is FormCommand.QUIT:
        return NextStep(StepDirection.QUIT), None
    if value is FormCommand.RESET:
        return NextStep(StepDirection.RESET), None
    if value is FormCommand.STATUS:
        return NextStep(), status_summary(form, values)

    target = form.step(value) if isinstance(value, str) else None
    if target is not None and target.is_active(values):
        return NextStep.named([value]), None
    return NextStep(), None


def command_help(form: FormSpec, values: Values) -> str:
    """Bullet list of command help plus the fields the user can switch to."""
    config = form.configuration
    lines = [f"* {entry}" for entry in config.command_help()]
    fields = build_list(
        (descriptor.description for descriptor in form.active_fields(values)),
        config.separator,
        config.last_separator,
    )
    lines.append("* " + config.render(TemplateUsage.HELP_NAVIGATION, fields=fields))
    return "\n".join(lines)


def status_summary(form: FormSpec, values: Values) -> str:
    """One "description: value" line per active field."""
    config = form.configuration
    unspecified = config.render(TemplateUsage.UNSPECIFIED)
    lines = []
    for step in form.steps:
        if step.type is not StepType.FIELD or not step.is_active(values):
            continue
        if step.is_unknown(values):
            shown = unspecified
        else:
            shown = format_value(values[step.name], config.separator, config.last_separator)
        lines.append(config.render(TemplateUsage.STATUS, field=step.description, value=shown))
    return "\n".join(lines)


__all__ = ["dispatch_command", "command_help", "status_summary"]
