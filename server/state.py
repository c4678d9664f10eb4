"""
Server-side state management.

The server keeps exactly one broadcast hub. It is created by the application
lifespan in main.py, or lazily with in-memory history when the app is used
without it (tests, embedding).
"""

from core import BroadcastHub
from config.defaults import DEFAULT_SEND_TIMEOUT_SECONDS


# =============================================================================
# Hub Management
# =============================================================================

_hub: BroadcastHub | None = None


def set_hub(hub: BroadcastHub | None) -> None:
    """Set the hub instance. Pass None to discard the current one."""
    global _hub
    _hub = hub


def get_hub() -> BroadcastHub:
    """Get the hub instance, creating an in-memory one if necessary."""
    global _hub
    if _hub is None:
        _hub = BroadcastHub()
    return _hub


# =============================================================================
# Channel Settings
# =============================================================================

_send_timeout_seconds: float = DEFAULT_SEND_TIMEOUT_SECONDS


def set_send_timeout(seconds: float) -> None:
    """Set the per-frame WebSocket send timeout."""
    global _send_timeout_seconds
    _send_timeout_seconds = seconds


def get_send_timeout() -> float:
    """Get the per-frame WebSocket send timeout."""
    return _send_timeout_seconds
