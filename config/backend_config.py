"""BackendConfig model."""

from pydantic import BaseModel, Field

from .defaults import DEFAULT_PORT


class BackendConfig(BaseModel):
    """HTTP/WebSocket listener settings."""

    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535, description="Listening port")
