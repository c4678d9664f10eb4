"""HubConfig model."""

from pydantic import BaseModel, Field

from .defaults import (
    DEFAULT_OUTBOUND_QUEUE_SIZE,
    DEFAULT_SEND_TIMEOUT_SECONDS,
    DEFAULT_STORAGE_RETRY_ATTEMPTS,
)


class HubConfig(BaseModel):
    """Broadcast hub backpressure and storage policy."""

    outbound_queue_size: int = Field(
        default=DEFAULT_OUTBOUND_QUEUE_SIZE,
        ge=1,
        description="Frames buffered per session before the session is dropped",
    )
    send_timeout_seconds: float = Field(
        default=DEFAULT_SEND_TIMEOUT_SECONDS,
        gt=0,
        description="Maximum time a single WebSocket send may take",
    )
    storage_retry_attempts: int = Field(
        default=DEFAULT_STORAGE_RETRY_ATTEMPTS,
        ge=1,
        description="Attempts to store a join event before the join fails",
    )
