"""
MODULE: api/routes/activity.py
PURPOSE: Conversation progress and activity endpoints.

ENDPOINTS:
    GET  /api/conversations/{conversation_id}/progress   - Progress bar state
    GET  /api/conversations/{conversation_id}/activity   - Activity log with granularity filter
"""

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query

from activity import Activity, get_progress
from activity.persistence import get_persisted_activities
from workflows.form.state import FormState
from workflows.forms.registry import get_form
from workflows.io.database import ConversationStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["activity"])

store = ConversationStore()


def _load_record(conversation_id: str):
    record = store.get(conversation_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return record


@router.get("/api/conversations/{conversation_id}/progress")
async def get_conversation_progress(conversation_id: str):
    """
    Get form progress for a conversation.

    Example response:
    {
        "current_stage": "email",
        "stages": [
            {"id": "name", "label": "name", "status": "completed"},
            {"id": "email", "label": "email address", "status": "active"},
            ...
        ],
        "percentage": 20
    }
    """
    try:
        record = _load_record(conversation_id)
        form = get_form(record["form_id"])
        state = FormState.from_dict(record.get("form_state"), len(form))
        return get_progress(form, state, record.get("values") or {}).to_dict()
    except HTTPException:
        raise
    except KeyError:
        raise HTTPException(status_code=404, detail="Unknown form")
    except Exception as exc:
        logger.exception("Failed to get progress for conversation %s: %s", conversation_id, exc)
        raise HTTPException(status_code=500, detail="Failed to get progress")


@router.get("/api/conversations/{conversation_id}/activity")
async def get_conversation_activity(
    conversation_id: str,
    granularity: Literal["high", "detailed"] = Query(
        default="high",
        description="Activity detail level: 'high' for milestones, 'detailed' for every step change",
    ),
    limit: int = Query(
        default=50,
        ge=1,
        le=200,
        description="Maximum number of activities to return",
    ),
):
    """
    Get the activity log for a conversation, most recent first.

    Example response:
    {
        "activities": [
            {
                "id": "act_1a2b3c4d",
                "timestamp": "2025-01-28T10:30:00",
                "icon": "✅",
                "title": "Form Completed",
                "detail": "contact"
            }
        ],
        "has_more": false
    }
    """
    try:
        record = _load_record(conversation_id)
        activities = get_persisted_activities(record, limit=limit + 1, granularity=granularity)
        has_more = len(activities) > limit
        if has_more:
            activities = activities[:limit]

        return {
            "activities": [Activity(**entry).to_dict() for entry in activities],
            "has_more": has_more,
            "conversation_id": conversation_id,
            "granularity": granularity,
        }

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to get activity for conversation %s: %s", conversation_id, exc)
        raise HTTPException(status_code=500, detail="Failed to get activity")
