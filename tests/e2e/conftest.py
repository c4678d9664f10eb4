"""
E2E test fixtures: a real uvicorn server on a loopback port.

Uses the websockets client and httpx.AsyncClient through ChatClient.
"""
import asyncio
from typing import AsyncGenerator, Callable

import pytest_asyncio
import uvicorn

from client import ChatClient
from core import BroadcastHub
from server import app, set_hub


# =============================================================================
# Constants
# =============================================================================

E2E_TIMEOUT_SECONDS = 5.0
SERVER_START_TIMEOUT_SECONDS = 10.0


# =============================================================================
# Server - Async Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def live_server(hub: BroadcastHub) -> AsyncGenerator[str, None]:
    """Run the app on an ephemeral port and return its base URL."""
    # The hub fixture provides state; no lifespan
    config = uvicorn.Config(app, host="127.0.0.1", port=0, log_level="warning", lifespan="off")
    server = uvicorn.Server(config)

    server_task = asyncio.create_task(server.serve())

    # Wait for server to start
    deadline = asyncio.get_running_loop().time() + SERVER_START_TIMEOUT_SECONDS
    while not server.started:
        if server_task.done():
            server_task.result()
            raise RuntimeError("test server exited during startup")
        if asyncio.get_running_loop().time() > deadline:
            raise RuntimeError("test server did not start")
        await asyncio.sleep(0.01)

    set_hub(hub)
    port = server.servers[0].sockets[0].getsockname()[1]
    yield f"http://127.0.0.1:{port}"

    # Shutdown server
    server.should_exit = True
    await server_task


@pytest_asyncio.fixture
async def make_client(live_server: str) -> AsyncGenerator[Callable[[str], ChatClient], None]:
    """Factory for chat clients bound to the live server; all are closed at teardown."""
    clients: list[ChatClient] = []

    def factory(username: str) -> ChatClient:
        client = ChatClient(live_server, username)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()


# =============================================================================
# Assertion Helpers
# =============================================================================

async def wait_for_text(out, expected: str, timeout: float = E2E_TIMEOUT_SECONDS) -> None:
    """Poll a text buffer until it contains `expected`."""
    deadline = asyncio.get_running_loop().time() + timeout
    while expected not in out.getvalue():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"Expected {expected!r} in output:\n{out.getvalue()}")
        await asyncio.sleep(0.01)
