"""
Chat client package.

Provides an async client for the chat server and a terminal front end.
"""

from .chat_client import ChatClient
from .exceptions import ChannelClosedError, ClientError, HistoryFetchError

__all__ = ["ChatClient", "ClientError", "HistoryFetchError", "ChannelClosedError"]
