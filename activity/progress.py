"""
MODULE: activity/progress.py
PURPOSE: Convert a conversation's FormState to a progress bar.

One stage per active Field or Confirm step. Message steps never count, and
inactive steps are left out entirely so the bar shrinks and grows with the
form's conditions.
"""

from typing import Any, Dict, List, Optional

from workflows.common.types import StepPhase, StepType
from workflows.form.spec import FormSpec
from workflows.form.state import FormState

from .types import Progress, ProgressStage, StageStatus

PROGRESS_STEP_TYPES = (StepType.FIELD, StepType.CONFIRM)


def get_progress(form: FormSpec, state: Optional[FormState], values: Dict[str, Any]) -> Progress:
    """
    Build the progress bar for one conversation.

    Example:
        >>> progress = get_progress(form, state, {"name": "Ada"})
        >>> progress.current_stage
        'email'
    """
    if state is None:
        state = FormState.create(len(form))

    stages: List[ProgressStage] = []
    current_stage = ""
    for index, step in enumerate(form.steps):
        if step.type not in PROGRESS_STEP_TYPES or not step.is_active(values):
            continue
        phase = state.phases[index]
        if phase is StepPhase.COMPLETED:
            status: StageStatus = "completed"
        elif index == state.step:
            status = "active"
            current_stage = step.name
        else:
            status = "pending"
        stages.append(ProgressStage(id=step.name, label=getattr(step, "description", step.name), status=status))

    completed = sum(1 for stage in stages if stage.status == "completed")
    percentage = round(100 * completed / len(stages)) if stages else 100
    return Progress(current_stage=current_stage, stages=stages, percentage=percentage)


def get_progress_summary(form: FormSpec, state: Optional[FormState], values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Minimal progress summary for turn responses:
        {"current_stage": "email", "percentage": 40}
    """
    progress = get_progress(form, state, values)
    return {
        "current_stage": progress.current_stage,
        "percentage": progress.percentage,
    }
