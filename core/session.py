"""
Chat session state machine.

A Session is one participant's live connection as seen by the hub:

    connecting -> joined -> closing -> closed

The hub drives every transition. The transport layer only reads frames
from the session's outbound queue and reports channel errors back to the
hub.
"""

import asyncio
import logging

from .exceptions import InvalidOperationError, SlowConsumerError
from .models import SessionState, gen_id

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_OUTBOUND_QUEUE_SIZE = 256


class Session:
    """
    One participant's live connection.

    Outbound frames are encoded once by the hub and queued here until the
    transport writer sends them. The queue is bounded; `deliver` never waits
    and raises SlowConsumerError instead, so a stalled consumer can be dropped
    without blocking anyone else.
    """

    def __init__(
        self, participant: str, queue_size: int = DEFAULT_OUTBOUND_QUEUE_SIZE
    ) -> None:
        self.id = gen_id("ses_")
        self.participant = participant
        self.state = SessionState.CONNECTING
        self.close_reason: str | None = None
        # None is the terminal sentinel
        self._outbound: asyncio.Queue[str | None] = asyncio.Queue(maxsize=queue_size)

    def __repr__(self) -> str:
        return f"Session({self.id!r}, {self.participant!r}, {self.state.value})"

    @property
    def is_joined(self) -> bool:
        return self.state is SessionState.JOINED

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def pending(self) -> int:
        """Number of frames waiting to be sent."""
        return self._outbound.qsize()

    # =========================================================================
    # Transitions
    # =========================================================================

    def mark_joined(self) -> None:
        """Complete the open handshake."""
        if self.state is not SessionState.CONNECTING:
            raise InvalidOperationError(
                f"cannot join session {self.id} in state {self.state.value}"
            )
        self.state = SessionState.JOINED

    def begin_close(self, reason: str) -> bool:
        """
        Enter the closing state.

        Frames still queued are discarded and the terminal sentinel is
        enqueued so a writer blocked in next_outbound() wakes up.

        Returns:
            True if this call started the teardown, False if it was already under way
        """
        if self.state in (SessionState.CLOSING, SessionState.CLOSED):
            return False

        self.state = SessionState.CLOSING
        self.close_reason = reason
        while not self._outbound.empty():
            self._outbound.get_nowait()
        self._outbound.put_nowait(None)
        logger.debug("Session %s closing: %s", self.id, reason)
        return True

    def mark_closed(self, reason: str = "closed") -> None:
        """Enter the terminal state. Closing a closed session is a no-op."""
        if self.state is SessionState.CLOSED:
            return
        self.begin_close(reason)
        self.state = SessionState.CLOSED

    # =========================================================================
    # Outbound Frames
    # =========================================================================

    def deliver(self, frame: str) -> None:
        """
        Queue an encoded frame for the transport writer.

        Raises:
            InvalidOperationError: If the session has not joined
            SlowConsumerError: If the outbound queue is full
        """
        if self.state is not SessionState.JOINED:
            raise InvalidOperationError(
                f"cannot deliver to session {self.id} in state {self.state.value}"
            )
        try:
            self._outbound.put_nowait(frame)
        except asyncio.QueueFull:
            raise SlowConsumerError(
                f"outbound queue full for {self.participant} ({self._outbound.maxsize} frames)"
            ) from None

    async def next_outbound(self) -> str | None:
        """
        Wait for the next outbound frame.

        Returns:
            The encoded frame, or None once the session is closing or closed
        """
        if self.state in (SessionState.CLOSING, SessionState.CLOSED) and self._outbound.empty():
            return None
        return await self._outbound.get()
