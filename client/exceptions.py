"""
Client-side exceptions.
"""


class ClientError(Exception):
    """Base exception for chat client errors."""

    pass


class HistoryFetchError(ClientError):
    """Raised when the history snapshot cannot be fetched."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ChannelClosedError(ClientError):
    """Raised when using a live channel that is not open."""

    def __init__(self, code: int | None = None, reason: str = ""):
        self.code = code
        self.reason = reason
        detail = f" ({code}: {reason})" if code is not None else ""
        super().__init__(f"live channel is closed{detail}")
