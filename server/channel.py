"""
WebSocket chat channel.

Each connection is served by two tasks: a reader that turns inbound frames
into hub operations, and a writer that drains the session's outbound queue
onto the socket. Whichever finishes first ends the connection; the hub is
always told to drop the session, so its Disconnected event is published on
every exit path, including abrupt network loss and task cancellation.
"""

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from core import (
    BroadcastHub,
    EventKind,
    InvalidOperationError,
    JoinRejectedError,
    MalformedEventError,
    Session,
    StorageFailureError,
    decode,
    encode_text,
)
from core.models import Event

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

HANDSHAKE_TIMEOUT_SECONDS = 10.0


async def run_channel(
    websocket: WebSocket,
    hub: BroadcastHub,
    username: str | None,
    since: int | None,
    send_timeout: float,
) -> None:
    """
    Serve one participant's live connection until it closes.

    Args:
        websocket: The connection, not yet accepted
        hub: Hub the participant joins
        username: Participant name from the query string; when None the
            first frame must be a connected event carrying it
        since: History length the client already holds (see BroadcastHub.complete_handshake)
        send_timeout: Maximum seconds a single outbound frame may take
    """
    await websocket.accept()

    if username is None:
        username = await _read_handshake(websocket)
        if username is None:
            return

    try:
        session = hub.join(username)
    except JoinRejectedError as e:
        logger.warning("Rejected join: %s", e)
        await _close(websocket, status.WS_1008_POLICY_VIOLATION, e.reason)
        return

    try:
        backlog = hub.complete_handshake(session, since)
    except StorageFailureError:
        await _close(websocket, status.WS_1011_INTERNAL_ERROR, "history unavailable")
        return

    reader = asyncio.create_task(_read_loop(websocket, hub, session))
    writer = asyncio.create_task(_write_loop(websocket, session, backlog, send_timeout))
    reason = "channel closed"
    try:
        done, _ = await asyncio.wait({reader, writer}, return_when=asyncio.FIRST_COMPLETED)
        reason = done.pop().result()
    finally:
        # Synchronous, so it completes even while this task is being cancelled
        hub.leave(session, reason)
        reader.cancel()
        writer.cancel()

    await asyncio.gather(reader, writer, return_exceptions=True)
    await _close(websocket, status.WS_1000_NORMAL_CLOSURE, reason)


async def _read_handshake(websocket: WebSocket) -> str | None:
    """Read the participant name from an initial connected frame."""
    try:
        message = await asyncio.wait_for(websocket.receive(), HANDSHAKE_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        await _close(websocket, status.WS_1008_POLICY_VIOLATION, "handshake timeout")
        return None

    if message["type"] == "websocket.disconnect":
        return None

    try:
        event = decode(_frame_data(message))
    except MalformedEventError as e:
        logger.warning("Malformed handshake frame: %s", e.reason)
        await _close(websocket, status.WS_1008_POLICY_VIOLATION, "malformed handshake")
        return None

    if event.kind is not EventKind.CONNECTED:
        await _close(websocket, status.WS_1008_POLICY_VIOLATION, "expected connected event")
        return None
    return event.participant


async def _read_loop(websocket: WebSocket, hub: BroadcastHub, session: Session) -> str:
    """Apply inbound frames until the client leaves. Returns the close reason."""
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return f"remote close ({message.get('code', status.WS_1000_NORMAL_CLOSURE)})"

            try:
                event = decode(_frame_data(message))
            except MalformedEventError as e:
                logger.warning("Dropping malformed frame from %s: %s", session.participant, e.reason)
                continue

            if event.kind is EventKind.DISCONNECTED:
                return "left"
            if event.kind is EventKind.CONNECTED:
                logger.debug("Ignoring repeated connected frame from %s", session.participant)
                continue
            _send_message(hub, session, event)
    except InvalidOperationError:
        return session.close_reason or "closed"
    except WebSocketDisconnect as e:
        return f"remote close ({e.code})"
    except Exception:
        logger.exception("Error reading from %s", session.participant)
        return "channel error"


def _send_message(hub: BroadcastHub, session: Session, event: Event) -> None:
    if event.participant != session.participant:
        logger.warning(
            "Session %s sent a message as %r; publishing as %r",
            session.id,
            event.participant,
            session.participant,
        )
    try:
        hub.send(session, event.body or "")
    except StorageFailureError as e:
        logger.error("Message from %s was not stored: %s", session.participant, e)


async def _write_loop(
    websocket: WebSocket, session: Session, backlog: list[Event], send_timeout: float
) -> str:
    """Send the backlog, then queued frames, until the session closes. Returns the close reason."""
    try:
        for event in backlog:
            await asyncio.wait_for(websocket.send_text(encode_text(event)), send_timeout)

        while True:
            frame = await session.next_outbound()
            if frame is None:
                return session.close_reason or "closed"
            await asyncio.wait_for(websocket.send_text(frame), send_timeout)
    except asyncio.TimeoutError:
        logger.warning("Send to %s timed out after %.1fs", session.participant, send_timeout)
        return "send timeout"
    except WebSocketDisconnect as e:
        return f"remote close ({e.code})"
    except Exception:
        logger.exception("Error writing to %s", session.participant)
        return "channel error"


def _frame_data(message: dict) -> str | bytes:
    text = message.get("text")
    return text if text is not None else message.get("bytes") or b""


async def _close(websocket: WebSocket, code: int, reason: str) -> None:
    if (
        websocket.application_state is not WebSocketState.CONNECTED
        or websocket.client_state is not WebSocketState.CONNECTED
    ):
        return
    try:
        await websocket.close(code=code, reason=reason[:120])
    except RuntimeError as e:
        # Peer went away between the state check and the close frame
        logger.debug("Close after disconnect: %s", e)
