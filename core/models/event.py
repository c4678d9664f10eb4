"""Event model."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .event_kind import EventKind


class Event(BaseModel):
    """One protocol event: a presence notification or a chat message.

    Python attribute names differ from the wire field names; the aliases
    are the wire names (`event_type`, `username`, `message`).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: EventKind = Field(alias="event_type")
    participant: str = Field(alias="username")
    body: str | None = Field(default=None, alias="message")

    @field_validator("participant")
    @classmethod
    def _participant_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("username must not be empty")
        return value

    @model_validator(mode="after")
    def _body_matches_kind(self) -> "Event":
        if self.kind is EventKind.MESSAGE:
            if not self.body:
                raise ValueError("message events require a non-empty message")
        elif self.body is not None:
            raise ValueError(f"{self.kind.value} events must not carry a message")
        return self

    # Constructors take the wire names; only aliases populate fields.

    @classmethod
    def connected(cls, participant: str) -> "Event":
        return cls(event_type=EventKind.CONNECTED, username=participant)

    @classmethod
    def disconnected(cls, participant: str) -> "Event":
        return cls(event_type=EventKind.DISCONNECTED, username=participant)

    @classmethod
    def message(cls, participant: str, body: str) -> "Event":
        return cls(event_type=EventKind.MESSAGE, username=participant, message=body)
