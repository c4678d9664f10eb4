"""
Chat server entry point.
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import get_config
from core import BroadcastHub, open_history_log
from server import app, get_hub, set_hub, set_send_timeout
from server.logging_config import log_timing, setup_logging

# Initialize logging before anything else
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the broadcast hub on startup and disconnect everyone on shutdown."""
    config = get_config()

    logger.info("Starting chat server")
    logger.info("History: %s", config.history.path or "in-memory")

    with log_timing(logger, "History load", level=logging.INFO):
        history = open_history_log(config.history.path)

    set_hub(
        BroadcastHub(
            history,
            queue_size=config.hub.outbound_queue_size,
            storage_retry_attempts=config.hub.storage_retry_attempts,
        )
    )
    set_send_timeout(config.hub.send_timeout_seconds)
    logger.info("Broadcast hub ready (%d history events)", len(history))

    yield

    logger.info("Shutting down, disconnecting %d session(s)...", len(get_hub()))
    get_hub().close()
    set_hub(None)


app.router.lifespan_context = lifespan


def main() -> None:
    """Start the chat server."""
    config = get_config()

    logger.info("Server listening on %s:%d", config.host, config.backend.port)
    uvicorn.run(app, host=config.host, port=config.backend.port)


if __name__ == "__main__":
    main()
