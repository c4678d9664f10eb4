"""
Core chat protocol package.

This package contains the transport-agnostic chat protocol: the event model
and codec, the history log, the session state machine, and the broadcast hub.
The server package provides HTTP/WebSocket bindings around these operations.
"""

from .events import decode, decode_history, describe, encode, encode_history, encode_text
from .exceptions import (
    CoreError,
    InvalidOperationError,
    JoinRejectedError,
    MalformedEventError,
    SlowConsumerError,
    StorageFailureError,
)
from .history import FileHistoryLog, HistoryLog, MemoryHistoryLog, open_history_log
from .hub import BroadcastHub
from .models import Event, EventKind, SessionState, gen_id
from .session import Session

__all__ = [
    # Exceptions
    "CoreError",
    "MalformedEventError",
    "StorageFailureError",
    "JoinRejectedError",
    "InvalidOperationError",
    "SlowConsumerError",
    # Models
    "Event",
    "EventKind",
    "SessionState",
    "gen_id",
    # Codec
    "encode",
    "encode_text",
    "decode",
    "encode_history",
    "decode_history",
    "describe",
    # History log
    "HistoryLog",
    "MemoryHistoryLog",
    "FileHistoryLog",
    "open_history_log",
    # Sessions
    "Session",
    "BroadcastHub",
]
