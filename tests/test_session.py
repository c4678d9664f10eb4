"""
Tests for the session state machine.
"""
import asyncio

import pytest

from core import InvalidOperationError, Session, SessionState, SlowConsumerError


class TestTransitions:
    """Test session lifecycle transitions."""

    def test_initial_state(self):
        session = Session("alice")
        assert session.state is SessionState.CONNECTING
        assert session.participant == "alice"
        assert session.id.startswith("ses_")
        assert session.close_reason is None

    def test_ids_are_unique(self):
        assert Session("alice").id != Session("alice").id

    def test_join(self):
        session = Session("alice")
        session.mark_joined()
        assert session.state is SessionState.JOINED
        assert session.is_joined

    def test_join_twice(self):
        """Test joined -> joined via handshake is illegal."""
        session = Session("alice")
        session.mark_joined()
        with pytest.raises(InvalidOperationError):
            session.mark_joined()

    def test_no_transition_out_of_closed(self):
        session = Session("alice")
        session.mark_closed()
        with pytest.raises(InvalidOperationError):
            session.mark_joined()

    def test_begin_close(self):
        """Test the first close records the reason."""
        session = Session("alice")
        session.mark_joined()
        assert session.begin_close("left") is True
        assert session.state is SessionState.CLOSING
        assert session.close_reason == "left"

        assert session.begin_close("channel error") is False
        assert session.close_reason == "left"

    def test_mark_closed_is_idempotent(self):
        session = Session("alice")
        session.mark_joined()
        session.mark_closed("left")
        session.mark_closed("again")
        assert session.is_closed
        assert session.close_reason == "left"

    def test_close_before_join(self):
        """Test a connecting session can be closed directly."""
        session = Session("alice")
        session.mark_closed("rejected")
        assert session.is_closed


class TestOutbound:
    """Test the bounded outbound queue."""

    def test_deliver_requires_joined(self):
        session = Session("alice")
        with pytest.raises(InvalidOperationError):
            session.deliver("frame")

    def test_deliver_counts_pending(self):
        session = Session("alice")
        session.mark_joined()
        session.deliver("one")
        session.deliver("two")
        assert session.pending == 2

    def test_full_queue_raises_slow_consumer(self):
        """Test delivery never waits on a full queue."""
        session = Session("alice", queue_size=2)
        session.mark_joined()
        session.deliver("one")
        session.deliver("two")
        with pytest.raises(SlowConsumerError):
            session.deliver("three")
        assert session.pending == 2

    def test_deliver_after_close(self):
        session = Session("alice")
        session.mark_joined()
        session.begin_close("left")
        with pytest.raises(InvalidOperationError):
            session.deliver("frame")

    @pytest.mark.asyncio
    async def test_frames_in_order(self):
        session = Session("alice")
        session.mark_joined()
        session.deliver("one")
        session.deliver("two")
        assert await session.next_outbound() == "one"
        assert await session.next_outbound() == "two"

    @pytest.mark.asyncio
    async def test_close_discards_pending_frames(self):
        """Test closing drops queued frames and ends the stream."""
        session = Session("alice", queue_size=2)
        session.mark_joined()
        session.deliver("one")
        session.deliver("two")
        session.begin_close("slow consumer")
        assert await session.next_outbound() is None
        assert await session.next_outbound() is None

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_writer(self):
        """Test a writer blocked on an empty queue returns promptly on close."""
        session = Session("alice")
        session.mark_joined()

        waiter = asyncio.create_task(session.next_outbound())
        await asyncio.sleep(0)
        assert not waiter.done()

        session.mark_closed("left")
        assert await asyncio.wait_for(waiter, 1) is None
