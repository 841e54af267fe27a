"""Shared value types for the form workflow.

These are plain values: they hold no references to steps or specs so that
everything which ends up inside a FormState stays serializable.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, Flag
from typing import Any, Dict, Iterable, List, Optional, Tuple


class StepPhase(str, Enum):
    """Per-step status tracked in FormState.phases."""
    READY = "ready"            # About to prompt
    RESPONDING = "responding"  # Prompt shown, waiting for / parsing a reply
    COMPLETED = "completed"    # Value committed


class StepType(str, Enum):
    FIELD = "field"
    CONFIRM = "confirm"
    MESSAGE = "message"
    NAVIGATION = "navigation"


class StepDirection(str, Enum):
    """Where control flow goes after a turn has been processed."""
    NEXT = "next"
    PREVIOUS = "previous"
    NAMED = "named"
    COMPLETE = "complete"
    QUIT = "quit"
    RESET = "reset"


class FormCommand(str, Enum):
    """Global commands recognized regardless of the active step."""
    BACKUP = "backup"
    HELP = "help"
    QUIT = "quit"
    RESET = "reset"
    STATUS = "status"


class FormOptions(Flag):
    NONE = 0
    PROMPT_IN_START = 1


@dataclass
class NextStep:
    """Navigation intent.

    ``names`` is only meaningful for NAMED: a single name is a direct jump,
    several names mean the user has to pick one. The engine mutates
    ``direction`` in place when a scan degrades (Next -> Complete,
    Previous -> Quit).
    """
    direction: StepDirection = StepDirection.NEXT
    names: Tuple[str, ...] = ()

    @classmethod
    def named(cls, names: Iterable[str]) -> "NextStep":
        return cls(StepDirection.NAMED, tuple(names))

    def to_dict(self) -> Dict[str, Any]:
        return {"direction": self.direction.value, "names": list(self.names)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["NextStep"]:
        if not data:
            return None
        return cls(
            direction=StepDirection(data.get("direction", StepDirection.NEXT.value)),
            names=tuple(data.get("names") or ()),
        )


@dataclass
class StepResult:
    """What Step.process reports back to the turn loop."""
    next: NextStep = field(default_factory=NextStep)
    feedback: Optional[str] = None
    prompt: Optional[str] = None


@dataclass
class Entity:
    """A pre-filled entity supplied by the host when a form starts.

    Attributes:
        type: Field name the entity belongs to
        entity: Raw entity text, interpreted as if the user had typed it
    """
    type: str
    entity: str


def group_entities(entities: Iterable[Entity]) -> List[Tuple[str, List[Entity]]]:
    """Group entities by field name, keeping first-seen order."""
    groups: Dict[str, List[Entity]] = {}
    for entity in entities:
        groups.setdefault(entity.type, []).append(entity)
    return list(groups.items())


__all__ = [
    "StepPhase",
    "StepType",
    "StepDirection",
    "FormCommand",
    "FormOptions",
    "NextStep",
    "StepResult",
    "Entity",
    "group_entities",
]
