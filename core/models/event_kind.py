"""EventKind enum."""

from enum import Enum


class EventKind(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    MESSAGE = "message"
