"""Turn controller for form conversations.

``FormDialog`` handles one incoming message at a time. Per turn it:

1. asks the navigation engine which step is active
2. starts that step (prompt) or matches the message against it
3. weighs the step's own grammar against the global commands
4. lets the step process the reply, or dispatches the command
5. feeds the resulting intent back into the navigation engine

and repeats until there is a prompt to show, feedback to report, or the
form is complete / quit. Nothing survives between turns except the values
dict and the FormState, so a FormDialog is cheap to rebuild per message.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from detection.commands import is_form_command
from detection.matching import TermMatch, best_matches, coalesce, is_full_match
from detection.recognizers import Choice
from workflows.common.errors import RecognitionCancelled
from workflows.common.types import (
    Entity,
    FormOptions,
    NextStep,
    StepDirection,
    StepPhase,
    StepResult,
    StepType,
    group_entities,
)
from workflows.form.spec import FormSpec
from workflows.form.state import FormState
from workflows.io.channel import Channel
from workflows.io.config_store import get_prefill_coverage
from workflows.runtime.commands import dispatch_command
from workflows.runtime.navigation import active_steps, move_to_next, reset_dependents
from workflows.steps import NavigationStep, Step
from workflows.steps.base import resolve

logger = logging.getLogger(__name__)

Values = Dict[str, Any]


class FormDialog:
    """Run a FormSpec against one conversation's values and state."""

    def __init__(
        self,
        form: FormSpec,
        values: Optional[Values] = None,
        state: Optional[FormState] = None,
        options: FormOptions = FormOptions.NONE,
    ) -> None:
        self.form = form
        self.values: Values = values if values is not None else {}
        self.state = state if state is not None else FormState.create(len(form))
        if len(self.state.phases) != len(form):
            self.state.resize(len(form))
        pending = self.state.next
        if pending is not None and any(form.step(name) is None for name in pending.names):
            # Saved against an older version of the form
            logger.warning("[FORM][TURN] Dropping pending navigation to removed steps %s", list(pending.names))
            self.state.next = None
        self.options = options

    # ------------------------------------------------------------------
    # Conversation start
    # ------------------------------------------------------------------

    async def start(self, channel: Channel, entities: Iterable[Entity] = ()) -> None:
        """Apply pre-filled entities, then prompt or wait for the first message."""
        for name, group in group_entities(entities):
            if self.form.step(name) is None:
                logger.debug("[FORM][TURN] Ignoring entity for unknown field %s", name)
                continue
            await self._prefill(name, " ".join(entity.entity for entity in group))

        self.state.step = 0
        self.state.step_state = None

        if FormOptions.PROMPT_IN_START in self.options:
            await self.message_received(channel, None)
        else:
            channel.wait()

    async def _prefill(self, name: str, text: str) -> None:
        form, values, state = self.form, self.values, self.state
        step = form.steps[form.step_index(name)]
        state.step = form.step_index(name)
        state.step_state = None
        step.start(values, state)
        try:
            matches = coalesce(step.match(values, state, text), text)
        except Exception:
            logger.exception("[FORM][TURN] Recognizer failed on pre-filled %s", name)
            matches = []
        # The entity extractor already vouched for the type, so only coverage counts
        if is_full_match(text, matches, get_prefill_coverage(), min_confidence=0.0):
            await self._process(step, text, matches)
        if state.phase() is not StepPhase.COMPLETED:
            state.set_phase(StepPhase.READY)
        logger.info("[FORM][TURN] Pre-filled %s accepted=%s", name, state.phase() is StepPhase.COMPLETED)

    # ------------------------------------------------------------------
    # One turn
    # ------------------------------------------------------------------

    async def message_received(self, channel: Channel, text: Optional[str]) -> None:
        form, values, state = self.form, self.values, self.state
        message: Optional[str] = None
        prompt: Optional[str] = None
        use_last_prompt = False
        require_prompt = False
        # Once the utterance has been matched it must not be matched again this turn
        consumed = text is None
        next_step = NextStep() if state.next is None else active_steps(form, state.next, values)

        while prompt is None and (message is None or require_prompt) and move_to_next(form, values, state, next_step):
            matches: Optional[List[TermMatch]] = None
            feedback: Optional[str] = None
            should_match = False

            if next_step.direction is StepDirection.NAMED and len(next_step.names) > 1:
                # Ask which of several steps the user meant
                starting = state.next is None
                state.next = next_step
                step: Step = self._navigation_step(next_step.names)
                if starting or consumed:
                    prompt = step.start(values, state)
                else:
                    should_match = True
            else:
                step = form.steps[state.step]
                phase = state.phase()
                if phase is StepPhase.READY:
                    if step.type is StepType.MESSAGE:
                        feedback = step.start(values, state)
                        require_prompt = True
                        use_last_prompt = False
                        next_step = NextStep()
                    else:
                        prompt = step.start(values, state)
                elif phase is StepPhase.RESPONDING:
                    if consumed:
                        prompt = step.start(values, state)
                    else:
                        should_match = True

            if should_match:
                consumed = True
                try:
                    matches = step.match(values, state, text)
                except RecognitionCancelled:
                    logger.info("[FORM][TURN] Recognition cancelled at step=%s", step.name)
                    next_step = NextStep(StepDirection.QUIT)
                except Exception:
                    logger.exception("[FORM][TURN] Recognizer failed at step=%s", step.name)
                    feedback = step.not_understood(values, state, text)
                    require_prompt = False
                    use_last_prompt = True

            if matches is not None:
                matches = coalesce(matches, text)
                if is_full_match(text, matches):
                    result = await self._process(step, text, matches)
                    next_step, feedback, prompt = result.next, result.feedback, result.prompt
                    require_prompt = state.phase() is StepPhase.COMPLETED
                    use_last_prompt = not require_prompt
                else:
                    commands = self._commands(text, step)
                    if is_full_match(text, commands):
                        next_step, feedback = dispatch_command(form, values, state, step, commands)
                        require_prompt = False
                        use_last_prompt = True
                    elif not matches and not commands:
                        feedback = step.not_understood(values, state, text)
                        require_prompt = False
                        use_last_prompt = True
                    elif best_matches(matches, commands) == 0:
                        # Go with the step's reading since it looks possible
                        result = await self._process(step, text, matches)
                        next_step, feedback, prompt = result.next, result.feedback, result.prompt
                        require_prompt = state.phase() is StepPhase.COMPLETED
                        use_last_prompt = not require_prompt
                    else:
                        next_step, feedback = dispatch_command(form, values, state, step, commands)
                        require_prompt = False
                        use_last_prompt = True

            next_step = active_steps(form, next_step, values)
            if feedback:
                message = feedback if message is None else message + "\n\n" + feedback

        logger.info(
            "[FORM][TURN] step=%s direction=%s prompt=%s feedback=%s",
            form.steps[state.step].name, next_step.direction.value, prompt is not None, message is not None,
        )

        if next_step.direction is StepDirection.COMPLETE:
            if message is not None:
                channel.post(message)
            if form.on_completion is not None:
                await resolve(form.on_completion(values))
            channel.done(values)
            return
        if next_step.direction is StepDirection.QUIT:
            channel.abort()
            return

        if message is not None:
            if require_prompt and prompt is not None:
                state.last_prompt = prompt
                reply = message + "\n\n" + prompt
            elif use_last_prompt and state.last_prompt:
                reply = message + "\n\n" + state.last_prompt
            else:
                reply = message
        else:
            state.last_prompt = prompt
            reply = prompt

        if reply:
            channel.post(reply)
        channel.wait()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _process(self, step: Step, text: Optional[str], matches: Sequence[TermMatch]) -> StepResult:
        result = await step.process(self.values, self.state, text, matches)
        if step.type is StepType.FIELD and self.state.phase() is StepPhase.COMPLETED:
            reset_dependents(self.form, self.state, step.name)
        return result

    def _commands(self, text: Optional[str], step: Step) -> List[TermMatch]:
        """Global commands in ``text`` whose target is currently active.

        The name of the step being answered is not a command: "jo@email.com"
        at the email step is an answer, not a jump to where the user already is.
        """
        current = None if step.type is StepType.NAVIGATION else step.name
        return [
            command
            for command in coalesce(self.form.commands.matches(text), text)
            if (is_form_command(command.value) or command.value != current)
            and self._command_active(command.value)
        ]

    def _command_active(self, value: Any) -> bool:
        if is_form_command(value):
            return True
        target = self.form.step(value)
        return target is not None and target.is_active(self.values)

    def _navigation_step(self, names: Sequence[str]) -> NavigationStep:
        choices = [Choice(name, self._describe(name)) for name in names]
        current = self.form.steps[self.state.step]
        return NavigationStep(current.name, choices, self.form.configuration)

    def _describe(self, name: str) -> str:
        step = self.form.steps[self.form.step_index(name)]
        return getattr(step, "description", None) or name


__all__ = ["FormDialog"]
