"""
Shared pytest fixtures for all tests.
"""
import asyncio
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from core import BroadcastHub, Event, MemoryHistoryLog, Session, StorageFailureError, decode
from server import app, set_hub


class FlakyHistoryLog(MemoryHistoryLog):
    """In-memory log whose next `failures` appends fail."""

    def __init__(self, failures: int = 0):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    def append(self, event: Event) -> int:
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise StorageFailureError("disk full")
        return super().append(event)


@pytest.fixture
def hub() -> Iterator[BroadcastHub]:
    """Install a fresh in-memory hub for the server and return it."""
    hub = BroadcastHub()
    set_hub(hub)
    yield hub
    set_hub(None)


@pytest.fixture
def client(hub: BroadcastHub) -> Iterator[TestClient]:
    """Create a test client for the FastAPI app.

    Used as a context manager so every request and WebSocket shares one
    event loop for the lifetime of the test. The hub is installed again
    after startup in case an application lifespan replaced it.
    """
    with TestClient(app) as test_client:
        set_hub(hub)
        yield test_client


def joined(hub: BroadcastHub, name: str, since: int | None = None) -> Session:
    """Join a participant and complete the handshake."""
    session = hub.join(name)
    hub.complete_handshake(session, since)
    return session


async def drain(session: Session) -> list[Event]:
    """Decode every frame currently queued for a session."""
    events = []
    for _ in range(session.pending):
        frame = await asyncio.wait_for(session.next_outbound(), 1)
        if frame is not None:
            events.append(decode(frame))
    return events
