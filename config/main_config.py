"""Main Config model."""

from pydantic import BaseModel, Field, field_validator

from .backend_config import BackendConfig
from .defaults import DEFAULT_CORS_ORIGINS, DEFAULT_HOST
from .history_config import HistoryConfig
from .hub_config import HubConfig


class Config(BaseModel):
    """Main configuration model."""

    host: str = Field(default=DEFAULT_HOST, description="Interface to bind")
    backend: BackendConfig = Field(
        default_factory=BackendConfig,
        description="Listener settings",
    )
    hub: HubConfig = Field(
        default_factory=HubConfig,
        description="Broadcast hub policy",
    )
    history: HistoryConfig = Field(
        default_factory=HistoryConfig,
        description="History log storage",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),
        description="Allowed CORS origins",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        # Environment overrides arrive as "https://a.example,https://b.example"
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value
