"""Navigation engine: move FormState to the next step to run.

``move_to_next`` is a state machine over ``NextStep.direction``. Each
direction has its own handler; the fall-backs between them are explicit
calls:

- Named with no names, or naming an inactive step   -> Next
- Next that wraps around without an eligible step   -> direction becomes Complete
- Previous with no active step left in history      -> direction becomes Quit

The return value says whether the turn loop has a step to run.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from workflows.common.types import NextStep, StepDirection, StepPhase, StepType
from workflows.form.spec import FormSpec
from workflows.form.state import FormState

logger = logging.getLogger(__name__)

Values = Dict[str, Any]


def active_steps(form: FormSpec, intent: NextStep, values: Values) -> NextStep:
    """Drop named targets that are not currently active.

    No survivors degrades to a bare Next. Idempotent for unchanged values.
    """
    if intent.direction is not StepDirection.NAMED:
        return intent
    names = tuple(name for name in intent.names if _step(form, name).is_active(values))
    if not names:
        return NextStep()
    if len(names) != len(intent.names):
        return NextStep.named(names)
    return intent


def move_to_next(form: FormSpec, values: Values, state: FormState, intent: NextStep) -> bool:
    direction = intent.direction
    if direction is StepDirection.NAMED:
        return _move_named(form, values, state, intent)
    if direction is StepDirection.NEXT:
        return _move_forward(form, values, state, intent)
    if direction is StepDirection.PREVIOUS:
        return _move_back(form, values, state, intent)
    if direction is StepDirection.RESET:
        state.reset()
        logger.info("[FORM][NAV] Reset at step=%s", form.steps[state.step].name)
        return True
    # Complete and Quit end the conversation
    return False


def _step(form: FormSpec, name: str):
    return form.steps[form.step_index(name)]


def _leave_current(form: FormSpec, values: Values, state: FormState) -> None:
    """Mark the step being left Ready or Completed depending on its value."""
    current = form.steps[state.step]
    state.set_phase(StepPhase.READY if current.is_unknown(values) else StepPhase.COMPLETED)


def _move_named(form: FormSpec, values: Values, state: FormState, intent: NextStep) -> bool:
    state.step_state = None
    if not intent.names:
        return _move_forward(form, values, state, intent)
    if len(intent.names) > 1:
        # The user has to pick one first; nothing moves yet
        return True

    state.next = None
    target = form.step_index(intent.names[0])
    if not form.steps[target].is_active(values):
        return _move_forward(form, values, state, intent)

    _leave_current(form, values, state)
    state.history.append(state.step)
    state.step = target
    state.set_phase(StepPhase.READY)
    logger.debug("[FORM][NAV] Jumped to %s", form.steps[target].name)
    return True


def _move_forward(form: FormSpec, values: Values, state: FormState, intent: NextStep) -> bool:
    start = state.step
    count = len(form)
    # Offset 0 is the current step: a Ready/Responding step is not skipped
    for offset in range(count):
        state.step = (start + offset) % count
        if offset > 0:
            state.step_state = None
            state.next = None
        step = form.steps[state.step]
        if state.phase() not in (StepPhase.READY, StepPhase.RESPONDING) or not step.is_active(values):
            continue
        if step.type is StepType.CONFIRM:
            _redirect_to_dependency(form, values, state, step)
        if state.step != start and form.steps[start].type is not StepType.MESSAGE:
            state.history.append(start)
        if state.step != start:
            logger.debug("[FORM][NAV] Next %s -> %s", form.steps[start].name, form.steps[state.step].name)
        return True

    state.step = start
    intent.direction = StepDirection.COMPLETE
    logger.debug("[FORM][NAV] No eligible step left, form complete")
    return False


def _redirect_to_dependency(form: FormSpec, values: Values, state: FormState, step) -> None:
    """Point at the first active, incomplete dependency of a confirmation."""
    for dependency in step.dependencies:
        index = form.step_index(dependency)
        if form.steps[index].is_active(values) and state.phases[index] is not StepPhase.COMPLETED:
            logger.debug("[FORM][NAV] %s waits for %s", step.name, dependency)
            state.step = index
            return


def _move_back(form: FormSpec, values: Values, state: FormState, intent: NextStep) -> bool:
    while state.history:
        previous = state.history.pop()
        if not form.steps[previous].is_active(values):
            continue
        _leave_current(form, values, state)
        state.step = previous
        state.set_phase(StepPhase.READY)
        state.step_state = None
        state.next = None
        logger.debug("[FORM][NAV] Back to %s", form.steps[previous].name)
        return True

    intent.direction = StepDirection.QUIT
    logger.debug("[FORM][NAV] History exhausted, quitting")
    return False


def reset_dependents(form: FormSpec, state: FormState, name: str) -> None:
    """Re-open confirmations that depend on a field which was just answered."""
    for index, step in enumerate(form.steps):
        if step.type is StepType.CONFIRM and name in step.dependencies:
            state.set_phase(StepPhase.READY, index)


__all__ = ["active_steps", "move_to_next", "reset_dependents"]
