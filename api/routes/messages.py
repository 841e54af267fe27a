"""
MODULE: api/routes/messages.py
PURPOSE: Conversation API endpoints.

ROUTES:
    GET  /api/forms                                  - List available forms
    POST /api/forms/{form_id}/conversations          - Start a new conversation
    POST /api/conversations/{conversation_id}/messages - Send one user message
    GET  /api/conversations/{conversation_id}        - Get conversation state

Each request rebuilds a FormDialog from the persisted values and FormState,
runs one turn against a RecordingChannel and writes the record back.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from activity.persistence import log_turn_activities, log_workflow_activity
from activity.progress import get_progress_summary
from workflows.common.types import Entity, FormOptions
from workflows.form.spec import FormSpec
from workflows.form.state import DEFAULT_LOCALE, FormState
from workflows.forms.registry import available_forms, get_form
from workflows.io.channel import RecordingChannel
from workflows.io.config_store import prompt_in_start
from workflows.io.database import ConversationStore, append_transcript, new_record
from workflows.runtime.router import FormDialog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])

store = ConversationStore()

TurnAction = Callable[[FormDialog, RecordingChannel], Awaitable[None]]


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class EntityModel(BaseModel):
    type: str
    entity: str


class StartConversationRequest(BaseModel):
    entities: List[EntityModel] = Field(default_factory=list)
    locale: Optional[str] = None


class SendMessageRequest(BaseModel):
    message: str


class TurnResponse(BaseModel):
    conversation_id: str
    status: str
    replies: List[str]
    values: Dict[str, Any]
    progress: Dict[str, Any]


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def _load_form(form_id: str) -> FormSpec:
    try:
        return get_form(form_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown form: {form_id}")


def _load_record(conversation_id: str) -> Dict[str, Any]:
    record = store.get(conversation_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return record


def _options() -> FormOptions:
    return FormOptions.PROMPT_IN_START if prompt_in_start() else FormOptions.NONE


async def _run_turn(
    conversation_id: str,
    record: Dict[str, Any],
    form: FormSpec,
    action: TurnAction,
) -> TurnResponse:
    """Run ``action`` on a dialog rebuilt from ``record`` and persist the outcome."""
    state = FormState.from_dict(record.get("form_state"), len(form))
    before = state.copy()
    channel = RecordingChannel()
    dialog = FormDialog(form, record.get("values") or {}, state, _options())

    try:
        await action(dialog, channel)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("[FORM][API] Turn failed for conversation %s: %s", conversation_id, exc)
        raise HTTPException(status_code=500, detail="Failed to process message")

    status = channel.status if channel.status in ("completed", "cancelled") else "waiting"
    record["values"] = dialog.values
    record["form_state"] = dialog.state.to_dict()
    record["status"] = status
    for reply in channel.replies:
        append_transcript(record, "assistant", reply)
    log_turn_activities(record, form, before, dialog.state, dialog.values, status)
    store.put(conversation_id, record)
    if status != "waiting":
        store.release_turn_lock(conversation_id)

    logger.info("[FORM][API] conversation=%s status=%s replies=%d", conversation_id, status, len(channel.replies))
    return TurnResponse(
        conversation_id=conversation_id,
        status=status,
        replies=channel.replies,
        values=dialog.values,
        progress=get_progress_summary(form, dialog.state, dialog.values),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("/api/forms")
async def list_forms():
    return {"forms": available_forms()}


@router.post("/api/forms/{form_id}/conversations", response_model=TurnResponse)
async def start_conversation(form_id: str, request: Optional[StartConversationRequest] = None):
    """Create a conversation, apply pre-filled entities and return the first replies."""
    request = request or StartConversationRequest()
    form = _load_form(form_id)
    conversation_id = store.new_id()
    record = new_record(form_id)
    record["form_state"] = FormState.create(len(form), request.locale or DEFAULT_LOCALE).to_dict()
    log_workflow_activity(record, "conversation_started", form_id=form_id)

    entities = [Entity(type=item.type, entity=item.entity) for item in request.entities]

    async def _start(dialog: FormDialog, channel: RecordingChannel) -> None:
        await dialog.start(channel, entities)

    async with store.turn_lock(conversation_id):
        return await _run_turn(conversation_id, record, form, _start)


@router.post("/api/conversations/{conversation_id}/messages", response_model=TurnResponse)
async def send_message(conversation_id: str, request: SendMessageRequest):
    """Run one turn of the conversation with the user's message."""
    async with store.turn_lock(conversation_id):
        record = store.get(conversation_id)
        if record is None or record["status"] != "waiting":
            # No turn will ever run for it, so do not keep its lock around
            store.release_turn_lock(conversation_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Conversation not found")
        if record["status"] != "waiting":
            raise HTTPException(
                status_code=409,
                detail=f"Conversation is already {record['status']}",
            )
        form = _load_form(record["form_id"])
        append_transcript(record, "user", request.message)

        async def _receive(dialog: FormDialog, channel: RecordingChannel) -> None:
            await dialog.message_received(channel, request.message)

        return await _run_turn(conversation_id, record, form, _receive)


@router.get("/api/conversations/{conversation_id}")
async def get_conversation(conversation_id: str):
    record = _load_record(conversation_id)
    return {
        "conversation_id": conversation_id,
        "form_id": record["form_id"],
        "status": record["status"],
        "values": record["values"],
        "form_state": record["form_state"],
        "transcript": record["transcript"],
    }
