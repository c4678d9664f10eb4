"""
Event wire codec and display mapping.

Events travel as JSON records:

    {"event_type": "message", "username": "bob", "message": "hey"}

`message` is omitted for presence events. The same record shape is used on
the live channel (one record per frame) and in the history snapshot (a JSON
array of records).
"""

from pydantic import TypeAdapter, ValidationError

from .exceptions import MalformedEventError
from .models import Event, EventKind

_HISTORY_ADAPTER = TypeAdapter(list[Event])


def _reason(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def encode_text(event: Event) -> str:
    """Encode an event as a JSON text record."""
    return event.model_dump_json(by_alias=True, exclude_none=True)


def encode(event: Event) -> bytes:
    """Encode an event as UTF-8 JSON bytes."""
    return encode_text(event).encode("utf-8")


def decode(data: bytes | str) -> Event:
    """
    Decode and validate a single wire record.

    Args:
        data: JSON text or UTF-8 bytes

    Returns:
        The decoded event

    Raises:
        MalformedEventError: If the record is not a well-formed event
    """
    try:
        return Event.model_validate_json(data)
    except ValidationError as e:
        raise MalformedEventError(_reason(e), data) from e


def encode_history(events: list[Event]) -> bytes:
    """Encode a history snapshot as a JSON array of wire records."""
    return _HISTORY_ADAPTER.dump_json(events, by_alias=True, exclude_none=True)


def decode_history(data: bytes | str) -> list[Event]:
    """
    Decode a history snapshot.

    Raises:
        MalformedEventError: If the payload is not an array or any element is malformed
    """
    try:
        return _HISTORY_ADAPTER.validate_json(data)
    except ValidationError as e:
        raise MalformedEventError(_reason(e), data) from e


def describe(event: Event) -> str:
    """Human-readable line shown for an event by display layers."""
    if event.kind is EventKind.CONNECTED:
        return f"{event.participant} has joined the chat."
    if event.kind is EventKind.DISCONNECTED:
        return f"{event.participant} has left the chat."
    return f"[{event.participant}]: {event.body}"
