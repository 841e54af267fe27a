"""Form configuration: global command vocabulary and prompt templates."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from workflows.common.prompts import TemplateUsage, render
from workflows.common.types import FormCommand


@dataclass(frozen=True)
class CommandDescription:
    """A global command.

    Attributes:
        description: Display name
        terms: Case-insensitive regexes that trigger the command
        help: One-line help shown by the Help command
    """
    description: str
    terms: List[str]
    help: str


def default_commands() -> Dict[FormCommand, CommandDescription]:
    return {
        FormCommand.BACKUP: CommandDescription(
            "Backup", ["backup", "go back", "back"],
            "Back: Go back to the previous question.",
        ),
        FormCommand.HELP: CommandDescription(
            "Help", ["help", "choices", r"\?"],
            "Help: Show the kinds of responses you can enter.",
        ),
        FormCommand.QUIT: CommandDescription(
            "Quit", ["quit", "stop", "finish", "goodbye", "good bye"],
            "Quit: Quit the form without completing it.",
        ),
        FormCommand.RESET: CommandDescription(
            "Start over", ["start over", "reset", "clear"],
            "Reset: Start over filling in the form. (With defaults of your previous entries.)",
        ),
        FormCommand.STATUS: CommandDescription(
            "Status", ["status", "progress", "so far"],
            "Status: Show your progress in filling in the form so far.",
        ),
    }


@dataclass
class FormConfiguration:
    commands: Dict[FormCommand, CommandDescription] = field(default_factory=default_commands)
    templates: Dict[TemplateUsage, str] = field(default_factory=dict)
    separator: str = ", "
    last_separator: str = " and "

    def render(self, usage: TemplateUsage, **context) -> str:
        return render(usage, self.templates, **context)

    def command_help(self) -> List[str]:
        return [description.help for description in self.commands.values()]


DEFAULT_CONFIGURATION = FormConfiguration()


def resolve(configuration: Optional[FormConfiguration]) -> FormConfiguration:
    return configuration if configuration is not None else DEFAULT_CONFIGURATION


__all__ = [
    "CommandDescription",
    "FormConfiguration",
    "DEFAULT_CONFIGURATION",
    "default_commands",
    "resolve",
]
