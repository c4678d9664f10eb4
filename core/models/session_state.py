"""SessionState enum."""

from enum import Enum


class SessionState(str, Enum):
    CONNECTING = "connecting"
    JOINED = "joined"
    CLOSING = "closing"
    CLOSED = "closed"
