"""
Live chat WebSocket endpoint.
"""

from fastapi import APIRouter, Query, WebSocket

from ..channel import run_channel
from ..state import get_hub, get_send_timeout


router = APIRouter()


@router.websocket("/ws")
async def chat_channel(
    websocket: WebSocket,
    username: str | None = Query(None),
    since: int | None = Query(None, ge=0),
) -> None:
    """Join the chat and exchange live events."""
    await run_channel(websocket, get_hub(), username, since, get_send_timeout())
