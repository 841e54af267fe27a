"""HTTP routers for the form conversation API."""

from .activity import router as activity_router
from .messages import router as messages_router

__all__ = ["activity_router", "messages_router"]
