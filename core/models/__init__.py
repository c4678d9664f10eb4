"""
Domain models for the chat core.

These are the core data structures used throughout the application.
"""

from .event import Event
from .event_kind import EventKind
from .session_state import SessionState
from .utils import gen_id

__all__ = [
    # Utils
    "gen_id",
    # Event models
    "EventKind",
    "Event",
    # Session models
    "SessionState",
]
