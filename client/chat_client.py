"""
Async client for the realtime chat server.

Joining is a two-step hand-off: fetch the history snapshot over HTTP, then
open the live channel passing the snapshot length as `since`. The server
replays anything published in between, so the caller sees every event
exactly once.

The server is echo authoritative: messages this client sends come back on
the live channel, and that echo is what should be displayed.
"""

import asyncio
import logging
from typing import AsyncIterator
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from core import (
    Event,
    MalformedEventError,
    SessionState,
    decode,
    decode_history,
    encode_text,
)

from .exceptions import ChannelClosedError, HistoryFetchError

logger = logging.getLogger(__name__)

# Constants
REQUEST_TIMEOUT_SECONDS = 10.0
OPEN_TIMEOUT_SECONDS = 10.0
HISTORY_PATH = "/history"
CHANNEL_PATH = "/ws"


class ChatClient:
    """One participant's connection to the chat server."""

    def __init__(
        self,
        base_url: str,
        username: str,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize chat client.

        Args:
            base_url: Server URL, e.g. http://127.0.0.1:8000
            username: Display name; surrounding whitespace is stripped
            http_client: Client used for the history request. If None, one
                         is created and closed by this client.

        Raises:
            ValueError: If username is blank
        """
        self.base_url = base_url.rstrip("/")
        self.username = username.strip()
        if not self.username:
            raise ValueError("username is required")

        self.state = SessionState.CONNECTING
        self._http = http_client
        self._owns_http = http_client is None
        self._ws: ClientConnection | None = None

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def channel_url(self) -> str:
        """WebSocket URL of the live channel (without query)."""
        parts = urlsplit(self.base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        return urlunsplit((scheme, parts.netloc, parts.path + CHANNEL_PATH, "", ""))

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(base_url=self.base_url, timeout=REQUEST_TIMEOUT_SECONDS)
        return self._http

    # MARK: - History

    async def fetch_history(self) -> list[Event]:
        """Fetch the history snapshot.

        Returns:
            Events published so far, oldest first

        Raises:
            HistoryFetchError: On transport errors, non-success status, or a malformed body
        """
        try:
            response = await self._get_http().get(HISTORY_PATH)
        except httpx.HTTPError as e:
            raise HistoryFetchError(f"unable to query history: {e}") from e

        if not response.is_success:
            raise HistoryFetchError(
                f"unable to query history: {response.status_code}", response.status_code
            )

        try:
            return decode_history(response.content)
        except MalformedEventError as e:
            raise HistoryFetchError(f"unable to query history: {e}") from e

    # MARK: - Live Channel

    async def connect(self, since: int | None = None) -> None:
        """Open the live channel.

        Args:
            since: Number of history events already held; the server replays
                   anything newer. None subscribes to live events only.
        """
        if self.state is not SessionState.CONNECTING:
            raise ChannelClosedError(reason=f"cannot connect in state {self.state.value}")

        params: dict[str, str | int] = {"username": self.username}
        if since is not None:
            params["since"] = since
        url = f"{self.channel_url}?{urlencode(params)}"

        self._ws = await connect(url, open_timeout=OPEN_TIMEOUT_SECONDS)
        self.state = SessionState.JOINED
        logger.debug("Connected to %s as %s", self.channel_url, self.username)

    async def join(self) -> list[Event]:
        """Fetch history, then open the live channel right after it.

        Returns:
            The history snapshot
        """
        history = await self.fetch_history()
        await self.connect(since=len(history))
        return history

    async def send(self, text: str) -> bool:
        """Send a chat message.

        Returns:
            False if the text was empty or whitespace and nothing was sent

        Raises:
            ChannelClosedError: If the channel is not open
        """
        if not text.strip():
            return False

        ws = self._require_open()
        try:
            await ws.send(encode_text(Event.message(self.username, text)))
        except ConnectionClosed as e:
            self._mark_closed()
            raise _closed_error(e) from e
        return True

    async def receive(self, timeout: float | None = None) -> Event:
        """Wait for the next well-formed event.

        Malformed frames are logged and skipped.

        Raises:
            ChannelClosedError: If the channel closes first
            asyncio.TimeoutError: If timeout elapses first
        """
        ws = self._require_open()
        while True:
            try:
                frame = await asyncio.wait_for(ws.recv(), timeout)
            except ConnectionClosed as e:
                self._mark_closed()
                raise _closed_error(e) from e

            try:
                return decode(frame)
            except MalformedEventError as e:
                logger.warning("Dropping malformed frame: %s", e.reason)

    async def events(self) -> AsyncIterator[Event]:
        """Iterate over live events until the channel closes normally."""
        while True:
            try:
                yield await self.receive()
            except ChannelClosedError as e:
                if e.code not in (None, 1000, 1001):
                    raise
                return

    async def close(self) -> None:
        """Leave the chat. Closing twice is a no-op."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSING

        if self._ws is not None:
            # Best effort: the server announces the departure either way
            try:
                await self._ws.send(encode_text(Event.disconnected(self.username)))
            except ConnectionClosed:
                logger.debug("Channel already closed before leave")
            await self._ws.close()
            self._ws = None

        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

        self.state = SessionState.CLOSED

    def _require_open(self) -> ClientConnection:
        if self._ws is None or self.state is not SessionState.JOINED:
            raise ChannelClosedError(reason=f"channel is {self.state.value}")
        return self._ws

    def _mark_closed(self) -> None:
        if self.state is SessionState.JOINED:
            self.state = SessionState.CLOSING


def _closed_error(error: ConnectionClosed) -> ChannelClosedError:
    if error.rcvd is None:
        return ChannelClosedError()
    return ChannelClosedError(error.rcvd.code, error.rcvd.reason)
