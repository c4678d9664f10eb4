"""HistoryConfig model."""

from pydantic import BaseModel, Field


class HistoryConfig(BaseModel):
    """History log storage settings."""

    path: str | None = Field(
        default=None,
        description="JSON-lines file to persist history to; in-memory when unset",
    )
