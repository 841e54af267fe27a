"""
MODULE: activity/types.py
PURPOSE: Core data types for the conversation activity log.

Contains:
- Activity: One notable thing that happened in a conversation
- ProgressStage: One stage in the progress bar
- Progress: Complete progress state
- Granularity: Filter level for activities
"""

from dataclasses import dataclass, field
from typing import List, Literal


Granularity = Literal["high", "detailed"]
StageStatus = Literal["completed", "active", "pending"]


@dataclass
class Activity:
    """A single conversation event for display in the activity window.

    Attributes:
        id: Unique identifier (e.g., "act_1a2b3c4d")
        timestamp: ISO 8601 timestamp
        icon: Emoji icon for visual representation
        title: Short action title (e.g., "Step Completed")
        detail: Longer description with context
        granularity: "high" for operators, "detailed" for debugging
    """
    id: str
    timestamp: str
    icon: str
    title: str
    detail: str
    granularity: Granularity = "high"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "icon": self.icon,
            "title": self.title,
            "detail": self.detail,
            "granularity": self.granularity,
        }


@dataclass
class ProgressStage:
    """One answerable step of the form.

    Attributes:
        id: Step name
        label: Human readable description
        status: "completed", "active", or "pending"
    """
    id: str
    label: str
    status: StageStatus

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "status": self.status}


@dataclass
class Progress:
    """Complete form progress state.

    Attributes:
        current_stage: Name of the step being asked, or "" once finished
        stages: Ordered list of active Field/Confirm steps
        percentage: Share of completed stages (0-100)
    """
    current_stage: str
    stages: List[ProgressStage] = field(default_factory=list)
    percentage: int = 0

    def to_dict(self) -> dict:
        return {
            "current_stage": self.current_stage,
            "stages": [s.to_dict() for s in self.stages],
            "percentage": self.percentage,
        }
