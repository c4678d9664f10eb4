"""
Broadcast hub.

The hub owns the registry of live sessions and is the only writer of the
history log. Every registry mutation and every append happens under one
exclusive lock, which gives all participants the same total order of
events. Hub operations are synchronous and never wait on a consumer:
delivery only enqueues onto each session's bounded outbound queue.

Backpressure policy: a session whose outbound queue is full when an event
is published is dropped (closed with reason "slow consumer"), which in turn
publishes its Disconnected event. Publishers are never blocked.
"""

import logging
import threading

from .events import encode_text
from .exceptions import (
    InvalidOperationError,
    JoinRejectedError,
    SlowConsumerError,
    StorageFailureError,
)
from .history import HistoryLog, MemoryHistoryLog
from .models import Event
from .session import DEFAULT_OUTBOUND_QUEUE_SIZE, Session

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_STORAGE_RETRY_ATTEMPTS = 3
SLOW_CONSUMER_REASON = "slow consumer"


class BroadcastHub:
    """Fans out events to joined sessions and records them in the history log."""

    def __init__(
        self,
        history: HistoryLog | None = None,
        queue_size: int = DEFAULT_OUTBOUND_QUEUE_SIZE,
        storage_retry_attempts: int = DEFAULT_STORAGE_RETRY_ATTEMPTS,
    ) -> None:
        self.history = history if history is not None else MemoryHistoryLog()
        self.queue_size = queue_size
        self.storage_retry_attempts = max(storage_retry_attempts, 1)
        # session id -> session, in join order
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    # =========================================================================
    # Public API
    # =========================================================================

    def join(self, participant: str | None) -> Session:
        """
        Register a new session in the connecting state.

        Args:
            participant: Display name; surrounding whitespace is stripped

        Returns:
            The new session

        Raises:
            JoinRejectedError: If the name is blank or held by a live session
        """
        name = (participant or "").strip()
        if not name:
            raise JoinRejectedError(participant or "", "username is required")

        with self._lock:
            if any(s.participant == name for s in self._sessions.values()):
                raise JoinRejectedError(name, "username already in use")
            session = Session(name, self.queue_size)
            self._sessions[session.id] = session

        logger.debug("Session %s connecting as %s", session.id, name)
        return session

    def complete_handshake(self, session: Session, since: int | None = None) -> list[Event]:
        """
        Move a connecting session to joined and announce it.

        The backlog read and the subscription happen in one locked step, so
        the caller sees every event after `since` exactly once: either in the
        returned backlog or later through the session's outbound queue.

        Args:
            session: Session returned by join()
            since: Number of history events the client already holds; None
                means the client wants the live feed only

        Returns:
            Events appended at or after `since`, in order

        Raises:
            InvalidOperationError: If the session is not registered or not connecting
            StorageFailureError: If the Connected event cannot be stored; the
                session is closed and deregistered
        """
        with self._lock:
            if self._sessions.get(session.id) is not session:
                raise InvalidOperationError(f"session {session.id} is not registered")

            backlog: list[Event] = []
            if since is not None:
                backlog = self.history.since(min(since, len(self.history)))

            session.mark_joined()
            try:
                self._publish_locked(
                    Event.connected(session.participant),
                    exclude=session,
                    attempts=self.storage_retry_attempts,
                )
            except StorageFailureError:
                self._sessions.pop(session.id, None)
                session.mark_closed("storage failure")
                raise

        logger.info(
            "%s joined the chat (session %s, backlog %d)",
            session.participant,
            session.id,
            len(backlog),
        )
        return backlog

    def publish(self, event: Event, exclude: Session | None = None) -> int:
        """
        Append an event to the history log and deliver it to joined sessions.

        Args:
            event: Event to publish
            exclude: Session that should not receive the event

        Returns:
            Sequence index of the event in the history log

        Raises:
            StorageFailureError: If the append fails; nothing is delivered
        """
        with self._lock:
            return self._publish_locked(event, exclude=exclude)

    def send(self, session: Session, text: str) -> Event | None:
        """
        Publish a chat message on behalf of a session's participant.

        The message is echoed back to the sender as well, which confirms
        delivery.

        Returns:
            The published event, or None if the text was empty or whitespace

        Raises:
            InvalidOperationError: If the session is not joined
            StorageFailureError: If the append fails
        """
        if not text or not text.strip():
            return None

        with self._lock:
            if not session.is_joined or self._sessions.get(session.id) is not session:
                raise InvalidOperationError(
                    f"session {session.id} cannot send in state {session.state.value}"
                )
            event = Event.message(session.participant, text)
            self._publish_locked(event)
        return event

    def leave(self, session: Session, reason: str = "left") -> None:
        """Close and deregister a session. Leaving twice is a no-op."""
        with self._lock:
            if session.is_closed:
                return
            self._leave_locked(session, reason)

    def close(self) -> None:
        """Close every session, e.g. on server shutdown."""
        with self._lock:
            for session in list(self._sessions.values()):
                self._leave_locked(session, "server shutdown")

    def snapshot(self) -> list[Event]:
        """Return the full history in append order."""
        with self._lock:
            return self.history.snapshot()

    def participants(self) -> list[str]:
        """Names of joined participants in join order."""
        with self._lock:
            return [s.participant for s in self._sessions.values() if s.is_joined]

    # =========================================================================
    # Internals (caller holds the lock)
    # =========================================================================

    def _append_locked(self, event: Event, attempts: int = 1) -> int:
        attempt = 1
        while True:
            try:
                return self.history.append(event)
            except StorageFailureError as e:
                if attempt >= attempts:
                    logger.error(
                        "History append failed after %d attempt(s): %s", attempt, e
                    )
                    raise
                logger.warning(
                    "History append failed (attempt %d/%d): %s", attempt, attempts, e
                )
                attempt += 1

    def _publish_locked(
        self, event: Event, exclude: Session | None = None, attempts: int = 1
    ) -> int:
        index = self._append_locked(event, attempts)
        self._fan_out_locked(event, exclude)
        return index

    def _fan_out_locked(self, event: Event, exclude: Session | None) -> None:
        frame = encode_text(event)
        dropped: list[Session] = []

        for session in list(self._sessions.values()):
            if session is exclude or not session.is_joined:
                continue
            try:
                session.deliver(frame)
            except SlowConsumerError as e:
                logger.warning("Dropping %s: %s", session.participant, e)
                dropped.append(session)

        for session in dropped:
            self._leave_locked(session, SLOW_CONSUMER_REASON)

    def _leave_locked(self, session: Session, reason: str) -> None:
        if self._sessions.pop(session.id, None) is None:
            session.mark_closed(reason)
            return

        was_joined = session.is_joined
        session.begin_close(reason)

        if was_joined:
            event = Event.disconnected(session.participant)
            try:
                self._append_locked(event)
            except StorageFailureError:
                # Live views stay consistent even when the log could not record it
                logger.error("Disconnected event for %s was not stored", session.participant)
            self._fan_out_locked(event, exclude=session)
            logger.info("%s left the chat (%s)", session.participant, reason)
        else:
            logger.debug("Session %s closed before joining (%s)", session.id, reason)

        session.mark_closed(reason)
