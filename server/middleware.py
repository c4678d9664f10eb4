"""HTTP middleware for request/response logging."""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Slow request threshold in milliseconds
SLOW_REQUEST_THRESHOLD_MS = 500


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs HTTP requests with timing information.

    WebSocket connections bypass this middleware; the chat channel logs
    its own lifecycle.

    Log levels:
    - DEBUG: Request start, successful responses
    - WARNING: 4xx errors, slow requests
    - ERROR: 5xx errors
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and log timing/status information."""
        start_time = time.perf_counter()
        client = request.client.host if request.client else "-"

        logger.debug("%s %s from %s", request.method, request.url.path, client)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._log_response(request, response, duration_ms, client)

        return response

    def _log_response(
        self, request: Request, response: Response, duration_ms: float, client: str
    ) -> None:
        """Log response with appropriate level based on status and duration."""
        method = request.method
        path = request.url.path
        status = response.status_code

        if status >= 500:
            logger.error("%s %s -> %d (%.1fms) [%s]", method, path, status, duration_ms, client)
        elif status >= 400:
            logger.warning("%s %s -> %d (%.1fms) [%s]", method, path, status, duration_ms, client)
        elif duration_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                "%s %s -> %d (%.1fms) SLOW [%s]", method, path, status, duration_ms, client
            )
        else:
            # Clients poll /history and /health often; keep them out of INFO
            logger.debug("%s %s -> %d (%.1fms) [%s]", method, path, status, duration_ms, client)
