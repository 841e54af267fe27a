"""
MODULE: activity/persistence.py
PURPOSE: Persist conversation activities to the conversation record.

Activities are stored in record["activity_log"] for:
- Operators tracing what happened at each turn
- Post-restart access to activity history

GRANULARITY LEVELS:
- "high" (coarse): Form milestones, shown by default
- "detailed" (fine): Per-step changes, for deeper investigation

DESIGN:
- Both granularity levels are persisted (clients filter)
- Activities are appended in chronological order
- Max 50 activities per conversation (oldest trimmed)
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging
import uuid

from .types import Granularity
from workflows.common.prompts import format_value
from workflows.common.types import StepPhase, StepType
from workflows.form.spec import FormSpec
from workflows.form.state import FormState

logger = logging.getLogger(__name__)

MAX_ACTIVITIES_PER_CONVERSATION = 50

# Form milestones
COARSE_ACTIVITIES = {
    "conversation_started", "form_completed", "form_cancelled", "form_reset",
}


def log_activity(
    record: Dict[str, Any],
    icon: str,
    title: str,
    detail: str = "",
    granularity: Granularity = "high",
) -> None:
    """
    Log an activity to the conversation record.

    Example:
        log_activity(record, "✅", "Form Completed", "contact", "high")
    """
    if record is None:
        return

    activity_log = record.setdefault("activity_log", [])
    now = datetime.now()
    activity_log.append({
        "id": f"act_{uuid.uuid4().hex[:8]}",
        "timestamp": now.strftime("%Y-%m-%dT%H:%M:%S"),
        "icon": icon,
        "title": title,
        "detail": detail,
        "granularity": granularity,
    })

    # Keep the most recent entries
    if len(activity_log) > MAX_ACTIVITIES_PER_CONVERSATION:
        record["activity_log"] = activity_log[-MAX_ACTIVITIES_PER_CONVERSATION:]


def get_persisted_activities(
    record: Optional[Dict[str, Any]],
    limit: int = 50,
    granularity: Granularity = "high",
) -> List[Dict[str, Any]]:
    """
    Get persisted activities, most recent first.

    "detailed" returns everything, "high" only the milestones.
    """
    if not record:
        return []

    activity_log = record.get("activity_log") or []
    if granularity == "high":
        filtered = [a for a in activity_log if a.get("granularity", "high") == "high"]
    else:
        filtered = activity_log
    return list(reversed(filtered[-limit:]))


# Format: (icon, title_template, detail_template)
WORKFLOW_ACTIVITIES = {
    # Coarse
    "conversation_started": ("💬", "Conversation Started", "{form_id}"),
    "form_completed": ("✅", "Form Completed", "{form_id}"),
    "form_cancelled": ("🔴", "Form Cancelled", "{form_id}"),
    "form_reset": ("🔄", "Form Reset", "Started over"),

    # Fine
    "step_completed": ("📝", "Step Completed", "{field}: {value}"),
    "confirmation_accepted": ("✓", "Confirmed", "{field}"),
    "step_revisited": ("↩️", "Step Revisited", "{field}"),
}


def log_workflow_activity(
    record: Dict[str, Any],
    activity_key: str,
    **format_args,
) -> None:
    """
    Log a pre-defined activity; granularity follows COARSE_ACTIVITIES.

    Example:
        log_workflow_activity(record, "step_completed", field="email", value="ada@example.com")
    """
    template = WORKFLOW_ACTIVITIES.get(activity_key)
    if not template:
        logger.warning("Unknown activity key: %s", activity_key)
        return

    icon, title_template, detail_template = template

    try:
        title = title_template.format(**format_args)
    except KeyError:
        title = title_template

    try:
        detail = detail_template.format(**format_args)
    except KeyError:
        detail = detail_template

    granularity: Granularity = "high" if activity_key in COARSE_ACTIVITIES else "detailed"
    log_activity(record, icon, title, detail, granularity)


def log_turn_activities(
    record: Dict[str, Any],
    form: FormSpec,
    before: FormState,
    after: FormState,
    values: Dict[str, Any],
    status: str,
) -> None:
    """Compare the state before and after a turn and log what changed."""
    form_id = record.get("form_id", "")
    was_started = any(phase is not StepPhase.READY for phase in before.phases)
    all_ready = all(phase is StepPhase.READY for phase in after.phases)

    if was_started and all_ready and status == "waiting":
        log_workflow_activity(record, "form_reset")
    else:
        for index, step in enumerate(form.steps):
            if after.phases[index] is not StepPhase.COMPLETED or before.phases[index] is StepPhase.COMPLETED:
                continue
            if step.type is StepType.FIELD:
                value = values.get(step.name)
                shown = "Unspecified" if value is None else format_value(value)
                log_workflow_activity(record, "step_completed", field=step.description, value=shown)
            elif step.type is StepType.CONFIRM:
                log_workflow_activity(record, "confirmation_accepted", field=step.name)

        if after.step < before.step and status == "waiting":
            log_workflow_activity(
                record, "step_revisited",
                field=getattr(form.steps[after.step], "description", form.steps[after.step].name),
            )

    if status == "completed":
        log_workflow_activity(record, "form_completed", form_id=form_id)
    elif status == "cancelled":
        log_workflow_activity(record, "form_cancelled", form_id=form_id)
