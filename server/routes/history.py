"""
History snapshot endpoint.
"""

import logging

from fastapi import APIRouter, Response

from core import encode_history

from ..state import get_hub

logger = logging.getLogger(__name__)


router = APIRouter()


@router.get("/history")
async def get_history() -> Response:
    """
    Return every event published so far, oldest first.

    The length of the returned array is the cursor a client passes as
    `since` when it opens the live channel.
    """
    events = get_hub().snapshot()
    logger.debug("History queried: %d events", len(events))
    return Response(content=encode_history(events), media_type="application/json")
