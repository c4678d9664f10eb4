"""
Core domain exceptions.

These exceptions are transport-agnostic and should be caught by the server
layer to convert into WebSocket close codes or log lines.
"""


class CoreError(Exception):
    """Base exception for all core errors."""

    pass


class MalformedEventError(CoreError):
    """Raised when a payload does not decode to a well-formed event."""

    def __init__(self, reason: str, payload: str | bytes | None = None):
        self.reason = reason
        self.payload = payload
        super().__init__(f"malformed event: {reason}")


class StorageFailureError(CoreError):
    """Raised when the history log cannot store an event."""

    pass


class JoinRejectedError(CoreError):
    """Raised when a participant cannot join the chat."""

    def __init__(self, participant: str, reason: str):
        self.participant = participant
        self.reason = reason
        super().__init__(f"join rejected for {participant!r}: {reason}")


class InvalidOperationError(CoreError):
    """Raised when an operation cannot be performed in the current state."""

    pass


class SlowConsumerError(CoreError):
    """Raised when a session's outbound queue is full."""

    pass
