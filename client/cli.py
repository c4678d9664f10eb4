"""
Line-oriented terminal chat client.

Usage:
    chat-client --url http://127.0.0.1:8000 --username alice

Prints the history, then every live event as it arrives. Each line typed on
stdin is sent as a chat message; end of input (Ctrl+D) leaves the chat.
"""

import argparse
import asyncio
import logging
import sys
import threading
from typing import Callable, TextIO

from websockets.exceptions import InvalidHandshake

from core import describe
from core.models import Event

from .chat_client import ChatClient
from .exceptions import ChannelClosedError, HistoryFetchError

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://127.0.0.1:8000"
NAME_PROMPT = "Please enter your name (required): "


def prompt_for_username(read_line: Callable[[], str], out: TextIO) -> str | None:
    """Ask until a non-blank name is entered. Returns None at end of input."""
    while True:
        out.write(NAME_PROMPT)
        out.flush()
        line = read_line()
        if not line:
            return None
        name = line.strip()
        if name:
            return name


async def _print_events(client: ChatClient, out: TextIO) -> None:
    try:
        async for event in client.events():
            out.write(describe(event) + "\n")
            out.flush()
    except ChannelClosedError as e:
        logger.debug("Channel closed: %s", e)
    out.write("Error: connection to server was closed.\n")
    out.flush()


def _start_line_reader(
    read_line: Callable[[], str], loop: asyncio.AbstractEventLoop
) -> "asyncio.Queue[str]":
    """Read input lines on a daemon thread. An empty string marks end of input.

    A blocked read never holds up shutdown: the thread is a daemon and is
    not part of the loop's executor.
    """
    lines: asyncio.Queue[str] = asyncio.Queue()

    def _loop() -> None:
        while True:
            try:
                line = read_line()
            except (OSError, ValueError) as e:
                logger.debug("Input closed: %s", e)
                line = ""
            try:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            except RuntimeError:
                # Event loop already closed
                return
            if not line:
                return

    threading.Thread(target=_loop, name="chat-input", daemon=True).start()
    return lines


async def _send_lines(client: ChatClient, lines: "asyncio.Queue[str]") -> None:
    while True:
        line = await lines.get()
        if not line:
            return
        try:
            await client.send(line.rstrip("\n"))
        except ChannelClosedError:
            return


async def run(
    url: str,
    username: str,
    read_line: Callable[[], str] = sys.stdin.readline,
    out: TextIO = sys.stdout,
) -> int:
    """Run an interactive chat session. Returns a process exit code."""
    async with ChatClient(url, username) as client:
        try:
            history = await client.fetch_history()
            since: int | None = len(history)
        except HistoryFetchError as e:
            # The live channel replays the full history when asked from zero
            logger.error("%s", e)
            history, since = [], 0

        for event in history:
            out.write(describe(event) + "\n")

        try:
            await client.connect(since=since)
        except (OSError, InvalidHandshake) as e:
            logger.error("Unable to connect: %s", e)
            out.write("Error: unable to connect to server.\n")
            return 1

        # The server does not send a participant's own join back to it
        out.write(describe(Event.connected(client.username)) + "\n")
        out.flush()

        printer = asyncio.create_task(_print_events(client, out))
        lines = _start_line_reader(read_line, asyncio.get_running_loop())
        sender = asyncio.create_task(_send_lines(client, lines))
        done, pending = await asyncio.wait(
            {printer, sender}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Realtime chat terminal client")
    parser.add_argument("--url", default=DEFAULT_URL, help="Chat server URL")
    parser.add_argument("--username", help="Display name (prompted if omitted)")
    parser.add_argument("--log-level", default="WARNING", help="Client log level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    username = (args.username or "").strip() or prompt_for_username(sys.stdin.readline, sys.stdout)
    if not username:
        return 1

    try:
        return asyncio.run(run(args.url, username))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
