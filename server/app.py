"""
FastAPI application setup and configuration.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import get_config
from server.middleware import RequestLoggingMiddleware


# =============================================================================
# Constants
# =============================================================================

API_TITLE = "Realtime Chat API"
API_VERSION = "1.0.0"


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(title=API_TITLE, version=API_VERSION)


# =============================================================================
# CORS Configuration
# =============================================================================

# The browser front end is served from a different origin than the API.
# For production, restrict origins, e.g.
# CHAT_APP_CORS_ORIGINS="https://chat.example.com"

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Request logging middleware (added after CORS so it runs first)
app.add_middleware(RequestLoggingMiddleware)
