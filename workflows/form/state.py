"""Per-conversation form state.

State Structure (as persisted by ``FormState.to_dict``):
    {
        "version": 1,
        "step": int,                     # index into FormSpec.steps
        "phases": ["ready" | "responding" | "completed", ...],
        "history": [int, ...],           # stack, last element is the top
        "next": {"direction": str, "names": [str]} | None,
        "step_state": dict | None,       # opaque sub-state of the current step
        "last_prompt": str | None,
        "locale": str,
    }

FormState only ever refers to steps by position. Every key defaults on
absence so states persisted by older versions remain loadable.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from workflows.common.types import NextStep, StepPhase

FORM_STATE_VERSION = 1
DEFAULT_LOCALE = "en-US"


@dataclass
class FormState:
    phases: List[StepPhase] = field(default_factory=list)
    step: int = 0
    history: List[int] = field(default_factory=list)
    next: Optional[NextStep] = None
    step_state: Optional[Dict[str, Any]] = None
    last_prompt: Optional[str] = None
    locale: str = DEFAULT_LOCALE

    @classmethod
    def create(cls, step_count: int, locale: str = DEFAULT_LOCALE) -> "FormState":
        return cls(phases=[StepPhase.READY] * step_count, locale=locale)

    # ------------------------------------------------------------------
    # Phase helpers
    # ------------------------------------------------------------------

    def phase(self, index: Optional[int] = None) -> StepPhase:
        return self.phases[self.step if index is None else index]

    def set_phase(self, phase: StepPhase, index: Optional[int] = None) -> None:
        self.phases[self.step if index is None else index] = phase

    def reset(self) -> None:
        """Start over: every step Ready again, no history, nothing pending."""
        self.phases = [StepPhase.READY] * len(self.phases)
        self.history = []
        self.next = None
        self.step_state = None

    def resize(self, step_count: int) -> None:
        """Match a changed step count, keeping existing phases."""
        if step_count < len(self.phases):
            self.phases = self.phases[:step_count]
        else:
            self.phases = self.phases + [StepPhase.READY] * (step_count - len(self.phases))
        self.history = [index for index in self.history if 0 <= index < step_count]
        if step_count and not 0 <= self.step < step_count:
            self.step = 0
            self.step_state = None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": FORM_STATE_VERSION,
            "step": self.step,
            "phases": [phase.value for phase in self.phases],
            "history": list(self.history),
            "next": self.next.to_dict() if self.next else None,
            "step_state": copy.deepcopy(self.step_state),
            "last_prompt": self.last_prompt,
            "locale": self.locale,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], step_count: int) -> "FormState":
        """Rehydrate a persisted state, resized to ``step_count`` steps."""
        if not data:
            return cls.create(step_count)
        state = cls(
            phases=[StepPhase(value) for value in data.get("phases") or []],
            step=int(data.get("step") or 0),
            history=[int(index) for index in data.get("history") or []],
            next=NextStep.from_dict(data.get("next")),
            step_state=copy.deepcopy(data.get("step_state")),
            last_prompt=data.get("last_prompt"),
            locale=data.get("locale") or DEFAULT_LOCALE,
        )
        state.resize(step_count)
        return state

    def copy(self) -> "FormState":
        return FormState.from_dict(self.to_dict(), len(self.phases))


__all__ = ["FORM_STATE_VERSION", "DEFAULT_LOCALE", "FormState"]
