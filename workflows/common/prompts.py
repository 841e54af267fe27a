"""Prompt templates and the small rendering helpers the steps rely on.

Templates use ``str.format`` placeholders. The turn loop never builds
sentences itself; it asks a step (which asks this module) for finished text.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence


class TemplateUsage(str, Enum):
    FEEDBACK = "feedback"
    HELP = "help"
    HELP_NAVIGATION = "help_navigation"
    NAVIGATION = "navigation"
    NAVIGATION_HELP = "navigation_help"
    NOT_UNDERSTOOD = "not_understood"
    SELECT_ONE = "select_one"
    STRING = "string"
    NUMBER = "number"
    CONFIRM = "confirm"
    STATUS = "status"
    UNSPECIFIED = "unspecified"


DEFAULT_TEMPLATES: Dict[TemplateUsage, str] = {
    TemplateUsage.FEEDBACK: "For {field} I understood {value}.",
    TemplateUsage.HELP: "You are filling in the {field} field. Possible responses:\n{recognizer_help}\n{command_help}",
    # {fields} is the list of field names the user can switch to
    TemplateUsage.HELP_NAVIGATION: "You can switch to a field by using its name: ({fields}).",
    TemplateUsage.NAVIGATION: "What do you want to change? {choices}",
    TemplateUsage.NAVIGATION_HELP: "You are choosing which field to change. Possible responses:\n{recognizer_help}\n{command_help}",
    TemplateUsage.NOT_UNDERSTOOD: '"{input}" is not a {field} option.',
    TemplateUsage.SELECT_ONE: "Please select a {field} {choices}",
    TemplateUsage.STRING: "Please enter {field}",
    TemplateUsage.NUMBER: "Please enter a number for {field}",
    TemplateUsage.CONFIRM: "Is this correct? {summary}",
    TemplateUsage.STATUS: "{field}: {value}",
    TemplateUsage.UNSPECIFIED: "Unspecified",
}


def render(usage: TemplateUsage, templates: Optional[Mapping[TemplateUsage, str]] = None, **context: Any) -> str:
    """Fill the template for ``usage``; overrides win over the defaults."""
    template = (templates or {}).get(usage) or DEFAULT_TEMPLATES[usage]
    return template.format(**context).strip()


def build_list(items: Iterable[str], separator: str = ", ", last_separator: str = " and ") -> str:
    """Join items as natural language: "a, b and c"."""
    values = [item for item in items if item]
    if not values:
        return ""
    if len(values) == 1:
        return values[0]
    return separator.join(values[:-1]) + last_separator + values[-1]


def numbered_choices(descriptions: Sequence[str]) -> str:
    """Render choices as "1. Name 2. Email" for selection prompts."""
    return " ".join(f"{index}. {description}" for index, description in enumerate(descriptions, start=1))


def format_value(value: Any, separator: str = ", ", last_separator: str = " and ") -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple, set)):
        return build_list((str(item) for item in value), separator, last_separator)
    return str(value)


__all__ = [
    "TemplateUsage",
    "DEFAULT_TEMPLATES",
    "render",
    "build_list",
    "numbered_choices",
    "format_value",
]
