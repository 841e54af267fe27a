"""
MODULE: activity/__init__.py
PURPOSE: Conversation progress and activity logging.

Provides:
- Progress bar with one stage per active Field/Confirm step
- Activity log with two granularity levels (milestones vs per-step detail)
- Persistence of activities to the conversation record

DESIGN DECISIONS:
- Activities are derived by comparing FormState before and after a turn,
  so steps never log anything themselves
- Granularity filter: "high" = milestones, "detailed" = per-step changes
"""

from .types import Activity, ProgressStage, Progress, Granularity
from .progress import get_progress, get_progress_summary
from .persistence import (
    log_activity,
    log_workflow_activity,
    log_turn_activities,
    get_persisted_activities,
    WORKFLOW_ACTIVITIES,
)

__all__ = [
    # Types
    "Activity",
    "ProgressStage",
    "Progress",
    "Granularity",
    # Progress
    "get_progress",
    "get_progress_summary",
    # Persistence
    "log_activity",
    "log_workflow_activity",
    "log_turn_activities",
    "get_persisted_activities",
    "WORKFLOW_ACTIVITIES",
]
