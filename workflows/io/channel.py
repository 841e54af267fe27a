"""Channels connect the turn loop to whatever carries the conversation.

The dialog needs four things from its host: send text, suspend until the
next message, finish with the collected values, or abandon. Tests and the
HTTP API use RecordingChannel, which just records what happened.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

ConversationStatus = Literal["active", "waiting", "completed", "cancelled"]


class Channel:
    """Base channel defining the transport interface."""

    def post(self, text: str) -> None:
        raise NotImplementedError("post must be implemented by subclasses.")

    def wait(self) -> None:
        """Suspend the conversation until the next user message."""
        raise NotImplementedError("wait must be implemented by subclasses.")

    def done(self, values: Dict[str, Any]) -> None:
        """Finish the conversation successfully with the collected values."""
        raise NotImplementedError("done must be implemented by subclasses.")

    def abort(self) -> None:
        """Finish the conversation as cancelled."""
        raise NotImplementedError("abort must be implemented by subclasses.")


class RecordingChannel(Channel):
    """In-memory channel that records replies and the final status of a turn."""

    def __init__(self) -> None:
        self.replies: List[str] = []
        self.status: ConversationStatus = "active"
        self.result: Optional[Dict[str, Any]] = None

    def post(self, text: str) -> None:
        self.replies.append(text)

    def wait(self) -> None:
        self.status = "waiting"

    def done(self, values: Dict[str, Any]) -> None:
        self.status = "completed"
        self.result = dict(values)

    def abort(self) -> None:
        self.status = "cancelled"

    @property
    def last_reply(self) -> Optional[str]:
        return self.replies[-1] if self.replies else None

    def clear(self) -> None:
        self.replies = []
        self.status = "active"


__all__ = ["ConversationStatus", "Channel", "RecordingChannel"]
