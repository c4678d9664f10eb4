"""
Health check endpoint.
"""

from fastapi import APIRouter

from ..state import get_hub


router = APIRouter()


@router.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "participants": len(get_hub().participants())}
