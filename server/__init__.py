"""
Realtime chat server.

Exposes the chat history snapshot over HTTP and the live chat channel over
WebSocket, both backed by a single broadcast hub.
"""

from .app import app
from .routes import register_routes
from .state import get_hub, get_send_timeout, set_hub, set_send_timeout

# Register all routes with the app
register_routes(app)

__all__ = ["app", "get_hub", "set_hub", "get_send_timeout", "set_send_timeout"]
